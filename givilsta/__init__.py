"""Whitelist rules for blocklist maintainers: a rule index, normalisation helpers and a command line tool."""

__version__ = "0.1.0"
__all__ = ["__version__"]