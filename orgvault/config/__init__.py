"""Configuration module for the orgvault service."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
