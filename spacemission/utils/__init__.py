"""Space Mission utilities."""

import logging

from .config import Settings, load_settings, load_yaml_settings


def configure_logging(level: int | str = "INFO") -> logging.Logger:
    """Configure root logging and return the package logger."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
    return logging.getLogger("spacemission")


__all__ = [
    "Settings",
    "load_settings",
    "load_yaml_settings",
    "configure_logging",
]
