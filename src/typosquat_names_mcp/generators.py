"""
Typosquat candidate generators.

Each generator takes the name and TLD of the original domain ("example",
"com") and returns variant domains produced by one transformation. The
`iter_candidates` stream runs the enabled generators lazily, validates and
de-duplicates their output and attaches similarity scores, so the batch
pipeline can stop pulling as soon as it has enough results.
"""

from pathlib import Path
from typing import Callable, Iterable, Iterator

from .models import DomainCandidate
from .similarity import calculate_similarity
from .tld_registry import extract_registrable_domain

Generator = Callable[[str, str], list[str]]

COMMON_TLDS = (
    "com", "net", "org", "info", "biz", "us", "co", "io", "me", "app", "dev", "tech", "online",
    "site", "store", "shop", "uk", "ca", "de", "fr", "ru", "cn", "jp", "au", "br", "tk", "ml",
    "ga", "cf",
)

# Adjacent keys on a QWERTY keyboard
QWERTY_ADJACENT = {
    "q": "wa", "w": "qes", "e": "wrd", "r": "etf", "t": "rgy", "y": "tuh", "u": "yio",
    "i": "uop", "o": "ip", "p": "o", "a": "qsz", "s": "awdz", "d": "sefx", "f": "dgrc",
    "g": "fthv", "h": "gyjb", "j": "hukn", "k": "julm", "l": "km", "z": "asx", "x": "zsdc",
    "c": "xdfv", "v": "cfgb", "b": "vghn", "n": "bhjm", "m": "njk",
}

LEET_SUBSTITUTIONS = {
    "o": "0q", "0": "o", "l": "1i", "1": "li", "i": "1l", "e": "3", "3": "e", "a": "4",
    "4": "a", "s": "5", "5": "s", "g": "9", "9": "g", "b": "6d", "6": "b", "t": "7",
    "7": "t", "z": "2", "2": "z", "q": "op", "p": "q", "d": "b", "u": "v", "v": "u",
    "m": "n", "n": "m", "r": "n", "h": "n",
}

DOMAIN_PREFIXES = (
    "www", "mail", "secure", "admin", "test", "dev", "api", "cdn", "auth", "login", "support",
    "help", "shop", "store", "my", "portal", "mobile", "app", "service", "cloud", "server",
    "vpn", "security", "monitor", "beta",
)

DOMAIN_SUFFIXES = (
    "app", "site", "web", "online", "pro", "plus", "premium", "club", "group", "tech",
    "service", "platform", "security", "media", "shop", "store", "finance", "health", "gaming",
    "demo", "beta",
)

AUTHORITY_PREFIXES = ("www", "secure", "official", "my", "admin", "portal", "app")
AUTHORITY_SUFFIXES = ("app", "online", "portal", "center", "pro", "plus", "secure")

DEFAULT_DICTIONARY = (
    "login", "secure", "account", "support", "help", "verify", "update", "service", "online",
    "mail", "pay", "billing", "auth", "signin", "official", "app", "shop", "store", "cloud", "web",
)


def is_valid_domain(domain: str) -> bool:
    """
    Check the basic shape of a domain name.

    Non-ASCII characters are allowed in labels so IDN variants pass; ASCII
    characters must be letters, digits or hyphens.
    """
    if not domain or len(domain) > 253:
        return False
    if domain.startswith(".") or domain.endswith("."):
        return False

    labels = domain.split(".")
    if len(labels) < 2:
        return False

    for label in labels:
        if not label or len(label) > 63:
            return False
        if label.startswith("-") or label.endswith("-"):
            return False
        for ch in label:
            if ch.isascii() and not (ch.isalnum() or ch == "-"):
                return False

    return len(labels[-1]) >= 2


def parse_domain(domain: str) -> tuple[str, str]:
    """Split "example.com" into ("example", "com"); a bare name gets "com"."""
    name, dot, tld = domain.strip().lower().rpartition(".")
    if not dot:
        return tld, "com"
    return name, tld


def parse_similarity_threshold(value: str) -> float:
    """
    Parse "0.73" or "73%" into a fraction.

    Raises:
        ValueError: if the value is malformed or out of range.
    """
    value = value.strip()
    if value.endswith("%"):
        try:
            percentage = float(value[:-1])
        except ValueError:
            raise ValueError(f"Invalid percentage format: {value}") from None
        if not 0.0 <= percentage <= 100.0:
            raise ValueError(f"Percentage must be between 0% and 100%, got: {percentage}%")
        return percentage / 100.0

    try:
        fraction = float(value)
    except ValueError:
        raise ValueError(f"Invalid similarity threshold format: {value}") from None
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"Decimal threshold must be between 0.0 and 1.0, got: {fraction}")
    return fraction


# =============================================================================
# Transformations
# =============================================================================

def generate_tld_variations(name: str, tld: str) -> list[str]:
    return [f"{name}.{t}" for t in COMMON_TLDS if t != tld]


def generate_fat_finger(name: str, tld: str) -> list[str]:
    """Single keyboard slips: doubled key, adjacent key hit, adjacent key added."""
    variations = []
    for i, ch in enumerate(name):
        head, tail = name[:i], name[i + 1:]
        variations.append(f"{head}{ch}{ch}{tail}.{tld}")
        for adjacent in QWERTY_ADJACENT.get(ch, ""):
            variations.append(f"{head}{adjacent}{tail}.{tld}")
            variations.append(f"{head}{adjacent}{ch}{tail}.{tld}")
    return variations


def generate_bitsquatting(name: str, tld: str) -> list[str]:
    """One flipped bit per character, kept when the result is still a letter or digit."""
    variations = []
    for i, ch in enumerate(name):
        if not ch.isascii():
            continue
        for bit in range(8):
            flipped = chr(ord(ch) ^ (1 << bit))
            if flipped.isascii() and flipped.isalnum():
                variations.append(f"{name[:i]}{flipped.lower()}{name[i + 1:]}.{tld}")
    return variations


def generate_1337speak(name: str, tld: str) -> list[str]:
    variations = []
    for i, ch in enumerate(name):
        for replacement in LEET_SUBSTITUTIONS.get(ch, ""):
            variations.append(f"{name[:i]}{replacement}{name[i + 1:]}.{tld}")
    return variations


def generate_hyphenation(name: str, tld: str) -> list[str]:
    variations = []
    for i in range(1, len(name)):
        if name[i - 1] in "-." or name[i] in "-.":
            continue
        variations.append(f"{name[:i]}-{name[i:]}.{tld}")
    return variations


def generate_dot_insertion(name: str, tld: str) -> list[str]:
    variations = []
    for i in range(1, len(name)):
        if name[i - 1] == "." or name[i] == ".":
            continue
        variations.append(f"{name[:i]}.{name[i:]}.{tld}")
    return variations


def generate_word_swap(name: str, tld: str) -> list[str]:
    variations = []
    if len(name) >= 4:
        mid = len(name) // 2
        variations.append(f"{name[mid:]}{name[:mid]}.{tld}")
    if len(name) >= 6:
        third = len(name) // 3
        variations.append(f"{name[2 * third:]}{name[third:2 * third]}{name[:third]}.{tld}")
    return variations


def generate_domain_prefix(name: str, tld: str) -> list[str]:
    variations = []
    for prefix in DOMAIN_PREFIXES:
        variations.append(f"{prefix}-{name}.{tld}")
        variations.append(f"{prefix}.{name}.{tld}")
        variations.append(f"{prefix}{name}.{tld}")
    return variations


def generate_domain_suffix(name: str, tld: str) -> list[str]:
    variations = []
    for suffix in DOMAIN_SUFFIXES:
        variations.append(f"{name}-{suffix}.{tld}")
        variations.append(f"{name}{suffix}.{tld}")
    return variations


def generate_brand_confusion(name: str, tld: str) -> list[str]:
    variations = []
    for prefix in AUTHORITY_PREFIXES:
        variations.append(f"{prefix}-{name}.{tld}")
        variations.append(f"{prefix}.{name}.{tld}")
    for suffix in AUTHORITY_SUFFIXES:
        variations.append(f"{name}-{suffix}.{tld}")
        variations.append(f"{name}{suffix}.{tld}")
    return variations


def generate_combosquatting(
    name: str, tld: str, dictionary: Iterable[str] = DEFAULT_DICTIONARY
) -> list[str]:
    variations = []
    for word in dictionary:
        variations.append(f"{name}-{word}.{tld}")
        variations.append(f"{name}{word}.{tld}")
        variations.append(f"{word}-{name}.{tld}")
        variations.append(f"{word}{name}.{tld}")
    return variations


TRANSFORMATIONS: dict[str, Generator] = {
    "1337speak": generate_1337speak,
    "fat-finger": generate_fat_finger,
    "bitsquatting": generate_bitsquatting,
    "tld-variations": generate_tld_variations,
    "hyphenation": generate_hyphenation,
    "dot-insertion": generate_dot_insertion,
    "word-swap": generate_word_swap,
    "domain-prefix": generate_domain_prefix,
    "domain-suffix": generate_domain_suffix,
    "brand-confusion": generate_brand_confusion,
    "combosquatting": generate_combosquatting,
}

BUNDLES = {
    "lookalike": ("1337speak", "fat-finger"),
    "system-fault": ("bitsquatting",),
}

DEFAULT_TRANSFORMATIONS = ("lookalike",)


def resolve_transformations(names: Iterable[str] | None) -> list[str]:
    """
    Expand bundle names and "all" into concrete transformation names.

    Raises:
        ValueError: on an unknown transformation name.
    """
    requested = [n.strip().lower() for n in (names or DEFAULT_TRANSFORMATIONS) if n.strip()]
    if not requested:
        requested = list(DEFAULT_TRANSFORMATIONS)

    if "all" in requested:
        return list(TRANSFORMATIONS)

    enabled: list[str] = []
    for name in requested:
        expanded = BUNDLES.get(name, (name,))
        for item in expanded:
            if item not in TRANSFORMATIONS:
                raise ValueError(f"Unknown transformation: {item}")
            if item not in enabled:
                enabled.append(item)
    return enabled


def load_dictionary(path: str | Path) -> list[str]:
    """One word per line; blank lines and #-comments are skipped."""
    words = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        word = line.strip().lower()
        if word and not word.startswith("#"):
            words.append(word)
    return words


def iter_candidates(
    domain: str,
    transformations: Iterable[str] | None = None,
    min_similarity: float | None = None,
    dictionary: Iterable[str] | None = None,
) -> Iterator[DomainCandidate]:
    """
    Lazily yield scored candidates for a domain.

    Variants equal to the original, invalid names and repeats are dropped,
    and so are variants that share the original's registrable domain
    ("www.example.com" for "example.com"), since they resolve as the original.
    With `min_similarity`, variants scoring below it are dropped too.
    """
    name, tld = parse_domain(domain)
    original = f"{name}.{tld}"
    original_registrable = extract_registrable_domain(original)
    words = list(dictionary) if dictionary is not None else list(DEFAULT_DICTIONARY)
    seen: set[str] = set()

    for transformation in resolve_transformations(transformations):
        generator = TRANSFORMATIONS[transformation]
        if transformation == "combosquatting":
            variants = generate_combosquatting(name, tld, words)
        else:
            variants = generator(name, tld)

        for variant in variants:
            variant = variant.lower()
            if variant == original or variant in seen or not is_valid_domain(variant):
                continue
            seen.add(variant)
            if extract_registrable_domain(variant) == original_registrable:
                continue

            score = calculate_similarity(original, variant, transformation).combined_score
            if min_similarity is not None and score < min_similarity:
                continue
            yield DomainCandidate(domain=variant, transformation=transformation, score=score)
