"""
TraderBot – Position Mapper
=============================
Mapea entre Position (domain entity) y PositionModel (ORM).
"""

from __future__ import annotations

from typing import Any, Dict

from traderbot.domain.entities.position import Position
from traderbot.domain.value_objects.trade_intent import OrderSide
from traderbot.infrastructure.persistence.mappers.candle_mapper import (
    from_db_datetime,
    to_db_datetime,
)


class PositionMapper:
    """Mapper bidireccional Position ↔ PositionModel."""

    def to_model(self, position: Position) -> Dict[str, Any]:
        """Campos mutables + inmutables (sin id, lo asigna la BD)."""
        return {
            "symbol": position.symbol,
            "side": position.side.value,
            "quantity": position.quantity,
            "entry_price": position.entry_price,
            "current_price": position.current_price,
            "realized_pnl": position.realized_pnl,
            "martingale_step": position.martingale_step,
            "is_open": position.is_open,
            "opened_at": to_db_datetime(position.opened_at),
            "closed_at": to_db_datetime(position.closed_at) if position.closed_at else None,
            "open_order_id": position.open_order_id,
            "close_order_id": position.close_order_id,
        }

    def apply(self, model: Any, position: Position) -> None:
        """Copia el estado de la entidad sobre una fila existente."""
        for name, value in self.to_model(position).items():
            setattr(model, name, value)

    def to_entity(self, model: Any) -> Position:
        position = Position(
            symbol=model.symbol,
            quantity=model.quantity,
            entry_price=model.entry_price,
            side=OrderSide(model.side),
            martingale_step=model.martingale_step,
            opened_at=from_db_datetime(model.opened_at),
            current_price=model.current_price,
            open_order_id=model.open_order_id,
        )
        position.id = model.id
        position.is_open = model.is_open
        position.closed_at = from_db_datetime(model.closed_at) if model.closed_at else None
        position.close_order_id = model.close_order_id
        position.realized_pnl = model.realized_pnl
        return position
