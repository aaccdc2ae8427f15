"""
Configuration management.

Configuration file parsing and environment resolution.
"""

from srasubmit.config.loader import Config, load_config
from srasubmit.config.resolver import find_unresolved, resolve_config

__all__ = [
    "load_config",
    "Config",
    "resolve_config",
    "find_unresolved",
]
