"""Configuration adapters."""

from bus_tracker.adapters.config.app_config import AppConfig

__all__ = ["AppConfig"]
