"""Configuration module for async-button."""

from src.config.settings import AppConfig, ButtonConfig, LoggingConfig, load_config

__all__ = ["AppConfig", "ButtonConfig", "LoggingConfig", "load_config"]
