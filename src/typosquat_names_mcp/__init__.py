"""
Typosquat Names MCP Server

An MCP server for generating typosquat variants of a domain and resolving the
registration status (available, registered, parked, timeout) of domains.
"""

__version__ = "0.1.0"


def main():
    """Main entry point for the CLI."""
    import sys

    # Handle CLI arguments before importing heavy dependencies
    if "--help" in sys.argv or "-h" in sys.argv:
        print_help()
        sys.exit(0)

    if "--version" in sys.argv or "-V" in sys.argv:
        print(f"typosquat-names-mcp {__version__}")
        sys.exit(0)

    if "--init-config" in sys.argv:
        sys.exit(0 if init_config() else 1)

    if "--show-config" in sys.argv:
        show_config()
        sys.exit(0)

    # Default: run the MCP server
    from .config import configure_logging
    from .server import mcp

    configure_logging()
    mcp.run()


def print_help():
    """Print help message."""
    print(f"""typosquat-names-mcp {__version__}

An MCP server for finding typosquat domains and checking their registration status.

Usage:
    typosquat-names-mcp                Run the MCP server
    typosquat-names-mcp --init-config  Write a config file with the defaults
    typosquat-names-mcp --show-config  Show current configuration
    typosquat-names-mcp --version      Show version
    typosquat-names-mcp --help         Show this help

Configuration:
    Settings are read from environment variables first, then from the
    config file, then built-in defaults:

    TYPOSQUAT_CONCURRENCY   Domains resolved at once (default 15)
    TYPOSQUAT_BATCH_SIZE    Candidates per pipeline group (default 20)
    TYPOSQUAT_USER_AGENT    User-Agent for RDAP and HTTP requests
    TYPOSQUAT_DEBUG         Set to 1 for debug logging, including HTTP requests

Claude Code Setup:
    Add to ~/.claude/settings.json:
    {{
      "mcpServers": {{
        "typosquat-names": {{
          "command": "uvx",
          "args": ["typosquat-names-mcp"]
        }}
      }}
    }}
""")


def init_config() -> bool:
    """Write the default settings to the config file unless one exists."""
    from .config import get_config_file, save_config
    from .concurrency import DEFAULT_CONCURRENCY
    from .pipeline import DEFAULT_BATCH_SIZE
    from .rdap_client import USER_AGENT

    config_file = get_config_file()
    if config_file.exists():
        print(f"Config file already exists: {config_file}")
        return True

    defaults = {
        "concurrency": DEFAULT_CONCURRENCY,
        "batch_size": DEFAULT_BATCH_SIZE,
        "user_agent": USER_AGENT,
    }
    if save_config(defaults):
        print(f"✓ Wrote {config_file}")
        return True

    print(f"✗ Failed to write {config_file}")
    return False


def show_config():
    """Show current configuration."""
    from .config import (
        get_batch_size,
        get_concurrency,
        get_config_file,
        get_setting_source,
        get_user_agent,
        is_debug,
    )

    print("Configuration")
    print("=" * 50)
    print()

    config_file = get_config_file()
    print(f"Config file: {config_file}")
    print(f"  Exists: {config_file.exists()}")
    print()

    settings = (
        ("Concurrency", "concurrency", get_concurrency()),
        ("Batch size", "batch_size", get_batch_size()),
        ("User-Agent", "user_agent", get_user_agent()),
    )
    for label, name, value in settings:
        print(f"{label}: {value}")
        print(f"  Source: {get_setting_source(name)}")

    print()
    print(f"Debug logging: {'on' if is_debug() else 'off'}")
