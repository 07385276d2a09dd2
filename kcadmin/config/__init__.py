"""Configuration module for the Keycloak admin client."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
