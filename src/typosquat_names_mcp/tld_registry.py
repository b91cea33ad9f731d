"""
Static TLD Registry Tables

Maps TLDs to their RDAP base URLs and WHOIS servers. The tables are built once
at import time and wrapped in read-only mappings, so concurrent lookups need
no locking.

A TLD missing from the RDAP table has no RDAP tier; a TLD missing from the
WHOIS table is referred to the IANA WHOIS server.
"""

from types import MappingProxyType

# Fallback WHOIS server for TLDs not listed below
DEFAULT_WHOIS_SERVER = "whois.iana.org:43"

WHOIS_PORT = 43

RDAP_ENDPOINTS = MappingProxyType({
    # Major gTLDs
    "com": "https://rdap.verisign.com/com/v1/domain/",
    "net": "https://rdap.verisign.com/net/v1/domain/",
    "org": "https://rdap.publicinterestregistry.org/rdap/domain/",
    "info": "https://rdap.identitydigital.services/rdap/domain/",
    "biz": "https://rdap.nic.biz/domain/",
    # Google TLDs
    "app": "https://rdap.nic.google/domain/",
    "dev": "https://rdap.nic.google/domain/",
    "page": "https://rdap.nic.google/domain/",
    # Other popular gTLDs
    "xyz": "https://rdap.nic.xyz/domain/",
    "tech": "https://rdap.nic.tech/domain/",
    "online": "https://rdap.nic.online/domain/",
    "site": "https://rdap.nic.site/domain/",
    # ccTLDs
    "io": "https://rdap.identitydigital.services/rdap/domain/",
    "ai": "https://rdap.nic.ai/domain/",
    "co": "https://rdap.nic.co/domain/",
    "me": "https://rdap.nic.me/domain/",
    "us": "https://rdap.nic.us/domain/",
    "uk": "https://rdap.nominet.uk/domain/",
    "eu": "https://rdap.eu.org/domain/",
    "de": "https://rdap.denic.de/domain/",
    "ca": "https://rdap.cira.ca/domain/",
    "au": "https://rdap.auda.org.au/domain/",
    "fr": "https://rdap.nic.fr/domain/",
    "jp": "https://rdap.jprs.jp/domain/",
    "br": "https://rdap.registro.br/domain/",
    "in": "https://rdap.registry.in/domain/",
    "cn": "https://rdap.cnnic.cn/domain/",
    "tv": "https://rdap.verisign.com/tv/v1/domain/",
    "cc": "https://rdap.verisign.com/cc/v1/domain/",
})

WHOIS_SERVERS = MappingProxyType({
    "com": "whois.verisign-grs.com:43",
    "net": "whois.verisign-grs.com:43",
    "org": "whois.pir.org:43",
    "info": "whois.afilias.net:43",
    "biz": "whois.neulevel.biz:43",
    "us": "whois.nic.us:43",
    "co": "whois.nic.co:43",
    "io": "whois.nic.io:43",
    "me": "whois.nic.me:43",
    "uk": "whois.nic.uk:43",
    "ca": "whois.cira.ca:43",
    "de": "whois.denic.de:43",
    "fr": "whois.afnic.fr:43",
    "ru": "whois.tcinet.ru:43",
    "cn": "whois.cnnic.net.cn:43",
    "jp": "whois.jprs.jp:43",
    "au": "whois.auda.org.au:43",
    "br": "whois.registro.br:43",
    "tk": "whois.dot.tk:43",
    "ml": "whois.dot.ml:43",
    "ga": "whois.dot.ga:43",
    "cf": "whois.dot.cf:43",
    "app": "whois.nic.google:43",
    "dev": "whois.nic.google:43",
    "tech": "whois.nic.tech:43",
})


def extract_tld(domain: str) -> str:
    """
    Return the lowercase last label of a domain.

    Raises:
        ValueError: if the domain has no dot.
    """
    labels = domain.strip().rstrip(".").split(".")
    if len(labels) < 2 or not labels[-1]:
        raise ValueError(f"Invalid domain format: {domain!r}")
    return labels[-1].lower()


def extract_registrable_domain(domain: str) -> str:
    """Reduce a name to its last two labels ("con.example.com" -> "example.com")."""
    labels = domain.strip().rstrip(".").split(".")
    if len(labels) >= 2:
        return f"{labels[-2]}.{labels[-1]}".lower()
    return domain.lower()


def get_rdap_endpoint(tld: str) -> str | None:
    """
    Get the RDAP base URL for a TLD.

    Returns:
        The base URL (the domain is appended directly), or None if the TLD
        has no RDAP endpoint in the table.
    """
    return RDAP_ENDPOINTS.get(tld.lower().lstrip("."))


def get_whois_server(tld: str) -> str:
    """Get the WHOIS "host:port" for a TLD, defaulting to the IANA server."""
    return WHOIS_SERVERS.get(tld.lower().lstrip("."), DEFAULT_WHOIS_SERVER)


def split_host_port(server: str) -> tuple[str, int]:
    """Split "host:port" into its parts; a bare host gets port 43."""
    host, sep, port = server.rpartition(":")
    if not sep:
        return server, WHOIS_PORT
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"Invalid WHOIS server address: {server!r}") from None


def get_supported_tlds() -> dict[str, list[str]]:
    """
    List the TLDs with tier-specific data.

    Returns:
        {"rdap": [...], "whois": [...]} with each list sorted alphabetically.
    """
    return {
        "rdap": sorted(RDAP_ENDPOINTS),
        "whois": sorted(WHOIS_SERVERS),
    }
