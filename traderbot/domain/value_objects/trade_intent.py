"""
TraderBot – Domain Value Object: TradeIntent
==============================================
Intención de orden emitida por el motor de decisión hacia el ejecutor.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from traderbot.domain.exceptions.domain_errors import ValidationError


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


@dataclass(frozen=True, slots=True)
class TradeIntent:
    symbol: str
    side: OrderSide
    quantity: Decimal
    limit_price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValidationError(
                "La cantidad de la orden debe ser positiva",
                field="quantity",
                value=self.quantity,
            )
        if self.limit_price is not None and self.limit_price <= 0:
            raise ValidationError(
                "El precio límite debe ser positivo",
                field="limit_price",
                value=self.limit_price,
            )

    @property
    def order_type(self) -> str:
        return "LIMIT" if self.limit_price is not None else "MARKET"
