"""
TraderBot – Domain Events
===========================
Eventos de dominio publicados por el motor y el ciclo de vida.

Son HECHOS inmutables con timestamp. El tópico del bus se deriva
de cada evento (`topic`), el payload de `to_dict()`.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Any


@dataclass(frozen=True)
class DomainEvent:
    """Evento base de dominio."""

    event_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: float = field(default_factory=time.time)

    topic = "domain_event"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.__class__.__name__,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class PositionOpened(DomainEvent):
    """Evento: se confirmó la orden de apertura y el ledger la registró."""

    topic = "position_opened"

    position_id: int = 0
    symbol: str = ""
    side: str = ""
    quantity: str = "0"
    entry_price: str = "0"
    martingale_step: int = 0
    order_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "position_id": self.position_id,
            "symbol": self.symbol,
            "side": self.side,
            "quantity": self.quantity,
            "entry_price": self.entry_price,
            "martingale_step": self.martingale_step,
            "order_id": self.order_id,
        })
        return base


@dataclass(frozen=True)
class PositionClosed(DomainEvent):
    """Evento: se cerró una posición (TP o SL)."""

    topic = "position_closed"

    position_id: int = 0
    symbol: str = ""
    reason: str = ""  # TAKE_PROFIT | STOP_LOSS
    close_price: str = "0"
    realized_pnl: str = "0"
    profit_percent: str = "0"
    next_step: int = 0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "position_id": self.position_id,
            "symbol": self.symbol,
            "reason": self.reason,
            "close_price": self.close_price,
            "realized_pnl": self.realized_pnl,
            "profit_percent": self.profit_percent,
            "next_step": self.next_step,
        })
        return base


@dataclass(frozen=True)
class CycleFailed(DomainEvent):
    """Evento: un ciclo de decisión falló; el pipeline sigue con la próxima vela."""

    topic = "cycle_failed"

    symbol: str = ""
    candle_timestamp: str = ""
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "symbol": self.symbol,
            "candle_timestamp": self.candle_timestamp,
            "error": self.error,
        })
        return base


@dataclass(frozen=True)
class BotStatusChanged(DomainEvent):
    """Evento: transición de estado del bot."""

    topic = "bot_status"

    previous: str = ""
    current: str = ""
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "previous": self.previous,
            "current": self.current,
            "message": self.message,
        })
        return base
