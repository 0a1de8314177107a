"""Configuration and logging helpers"""

from .config import Config, get_config, get_settings
from .logger import setup_logging

__all__ = ["Config", "get_config", "get_settings", "setup_logging"]
