"""Configuration module for loading and managing application settings"""
from typing import Dict, Any, Optional
from .lib.load_settings_conf import load_settings_conf, SettingsError, DEFAULTS

__all__ = ['get_settings', 'reset_settings', 'SettingsError', 'DEFAULTS']

_settings: Optional[Dict[str, Any]] = None

def get_settings(settings_path: str = ".") -> Dict[str, Any]:
    """Load settings once and return the cached dictionary.

    Args:
        settings_path: Directory containing settings.conf

    Returns:
        Validated settings dictionary

    Raises:
        SettingsError: If settings are missing or invalid
    """
    global _settings

    if _settings is None:
        try:
            _settings = load_settings_conf(settings_path)
        except SettingsError as e:
            # Re-raise the error but provide more context
            raise SettingsError(
                f"Configuration Error\n"
                "=================\n\n"
                f"{str(e)}\n\n"
                "Please ensure settings.conf is properly configured "
                "or the TIPJAR_* environment variables are set.\n"
                "See settings.conf.example for the available settings."
            )
    return _settings

def reset_settings() -> None:
    """Drop the cached settings so the next call reloads them."""
    global _settings
    _settings = None
