"""Configuration module for the Webex provisioning backend."""
from .settings import AppConfig, load_cli_settings, load_settings

__all__ = ["AppConfig", "load_cli_settings", "load_settings"]
