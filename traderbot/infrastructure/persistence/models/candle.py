"""
TraderBot – Candle ORM Model
==============================
Tabla `candles`: velas OHLCV por símbolo.

DECISIONES DE DISEÑO:
- UNIQUE (symbol, timestamp): la identidad de la vela. Un segundo
  insert de la misma vela viola la restricción → primera escritura gana.
- DECIMAL(28, 10) para precios y volumen: sin error de punto flotante.
- timestamp en UTC naive (MySQL DATETIME no guarda zona).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from traderbot.infrastructure.persistence.database import Base


class CandleModel(Base):

    __tablename__ = "candles"
    __table_args__ = (
        UniqueConstraint("symbol", "timestamp", name="uq_candles_symbol_timestamp"),
    )

    # ─── Primary Key ──────────────────────────────────────────────────
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)

    # ─── Identidad ────────────────────────────────────────────────────
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    timeframe: Mapped[str] = mapped_column(String(5), nullable=False, default="5m")

    # ─── OHLCV ────────────────────────────────────────────────────────
    open: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)
    high: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)
    low: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)
    close: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)
    volume: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)

    def __repr__(self) -> str:
        return f"<CandleModel(symbol='{self.symbol}', ts={self.timestamp}, close={self.close})>"
