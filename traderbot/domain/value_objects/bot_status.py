"""
TraderBot – Domain Value Object: BotStatus
============================================

  Stopped ──start()──▸ Starting ──subscribe ok──▸ Running
                          │                          │
                          └──subscribe falla──▸ Error ◂── feed cae
  Running | Error ──stop()──▸ Stopped
"""

from __future__ import annotations

from enum import Enum


class BotStatus(str, Enum):
    STOPPED = "Stopped"
    STARTING = "Starting"
    RUNNING = "Running"
    ERROR = "Error"
