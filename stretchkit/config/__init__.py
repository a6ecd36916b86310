# stretchkit/config/__init__.py

"""
Configuration management for stretchkit.

This package handles loading configuration from files (TOML),
environment variables, and internal defaults, providing a unified
configuration object.
"""

from .models import StretchkitConfig
from .loaders import load_configuration

__all__ = [
    "StretchkitConfig",
    "load_configuration",
]
