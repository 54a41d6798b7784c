"""
TraderBot – Candle Mapper
===========================
Mapea entre Candle (domain entity) y CandleModel (ORM).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from traderbot.domain.entities.candle import Candle


def to_db_datetime(value: datetime) -> datetime:
    """tz-aware → UTC naive (MySQL DATETIME)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_db_datetime(value: datetime) -> datetime:
    """UTC naive → tz-aware."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class CandleMapper:
    """Mapper bidireccional Candle ↔ CandleModel."""

    def to_model(self, candle: Candle) -> Dict[str, Any]:
        return {
            "symbol": candle.symbol,
            "timestamp": to_db_datetime(candle.timestamp),
            "timeframe": candle.timeframe,
            "open": candle.open,
            "high": candle.high,
            "low": candle.low,
            "close": candle.close,
            "volume": candle.volume,
        }

    def to_entity(self, model: Any) -> Candle:
        return Candle(
            symbol=model.symbol,
            timestamp=from_db_datetime(model.timestamp),
            open=model.open,
            high=model.high,
            low=model.low,
            close=model.close,
            volume=model.volume,
            timeframe=model.timeframe,
        )
