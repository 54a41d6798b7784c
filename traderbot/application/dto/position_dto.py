"""
TraderBot – Application DTO: Position
=======================================
Data Transfer Objects para posiciones y balances expuestos por la API.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Any, Optional

from traderbot.domain.entities.position import Position


@dataclass
class PositionResponseDTO:
    """DTO de respuesta con datos de posición."""

    id: Optional[int]
    symbol: str
    side: str
    quantity: float
    entry_price: float
    current_price: float
    martingale_step: int
    is_open: bool
    opened_at: str

    # Campos de cierre (opcionales)
    closed_at: Optional[str] = None
    realized_pnl: Optional[float] = None
    unrealized_pnl: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "side": self.side,
            "quantity": self.quantity,
            "entry_price": self.entry_price,
            "current_price": self.current_price,
            "martingale_step": self.martingale_step,
            "is_open": self.is_open,
            "opened_at": self.opened_at,
            "closed_at": self.closed_at,
            "realized_pnl": self.realized_pnl,
            "unrealized_pnl": self.unrealized_pnl,
        }

    @classmethod
    def from_entity(cls, position: Position) -> "PositionResponseDTO":
        unrealized = None
        if position.is_open:
            unrealized = float(position.profit_loss(position.current_price))
        return cls(
            id=position.id,
            symbol=position.symbol,
            side=position.side.value,
            quantity=float(position.quantity),
            entry_price=float(position.entry_price),
            current_price=float(position.current_price),
            martingale_step=position.martingale_step,
            is_open=position.is_open,
            opened_at=position.opened_at.isoformat(),
            closed_at=position.closed_at.isoformat() if position.closed_at else None,
            realized_pnl=float(position.realized_pnl) if position.realized_pnl is not None else None,
            unrealized_pnl=unrealized,
        )


@dataclass
class BalanceSummaryDTO:
    """Balances por activo más el total de activos con saldo."""

    balances: Dict[str, Decimal]
    trading_enabled: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trading_enabled": self.trading_enabled,
            "balances": {asset: float(amount) for asset, amount in self.balances.items()},
            "assets_with_balance": sum(1 for amount in self.balances.values() if amount > 0),
        }
