"""Configuration loading and schema."""

from worldforge.config.loader import load_config
from worldforge.config.schema import AppConfig, AppConfigRoot

__all__ = ["AppConfig", "AppConfigRoot", "load_config"]
