"""
TraderBot – Position ORM Model
================================
Tabla `positions`: historial de posiciones del bot.

- Una fila por posición; se actualiza al cerrarse, nunca se borra.
- is_open indexado junto a symbol: la consulta caliente es
  "posición abierta de X" en cada ciclo.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from traderbot.infrastructure.persistence.database import Base


class PositionModel(Base):

    __tablename__ = "positions"
    __table_args__ = (
        Index("ix_positions_symbol_is_open", "symbol", "is_open"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    side: Mapped[str] = mapped_column(String(4), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)
    entry_price: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)
    current_price: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)
    realized_pnl: Mapped[Optional[Decimal]] = mapped_column(Numeric(28, 10), nullable=True)

    martingale_step: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    opened_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    open_order_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    close_order_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<PositionModel(id={self.id}, symbol='{self.symbol}', open={self.is_open})>"
