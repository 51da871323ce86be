"""Configuration module for the IDM user service."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
