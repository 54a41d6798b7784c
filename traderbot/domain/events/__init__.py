"""Domain events."""
from traderbot.domain.events.domain_events import (
    BotStatusChanged,
    CycleFailed,
    DomainEvent,
    PositionClosed,
    PositionOpened,
)

__all__ = [
    "BotStatusChanged",
    "CycleFailed",
    "DomainEvent",
    "PositionClosed",
    "PositionOpened",
]
