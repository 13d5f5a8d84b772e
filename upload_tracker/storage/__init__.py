"""
Storage Layer.

This package handles the application's only on-disk state: the INI
configuration file.
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]
