"""
TraderBot – Shared Kernel
==========================
Utilidades transversales a todas las capas:

- config/: Settings (pydantic-settings)
- logging/: setup_logging() y get_logger()
"""

from traderbot.shared.config.settings import Settings, settings
from traderbot.shared.logging.logger import setup_logging, get_logger

__all__ = [
    "Settings",
    "settings",
    "setup_logging",
    "get_logger",
]
