"""
Configuration adapters
"""
from .loader import ConfigLoader
from .app_parser import AppConfig, parse_app_config, parse_sync_settings, parse_targets

__all__ = [
    "ConfigLoader",
    "AppConfig",
    "parse_app_config",
    "parse_sync_settings",
    "parse_targets",
]
