"""
TraderBot – Application Port: Trade Executor
==============================================
Envío de órdenes al exchange (real o simulado).

Una orden enviada es IRREVERSIBLE desde el punto de vista del motor:
por eso el motor solo toca el ledger después de la confirmación.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from traderbot.domain.value_objects.trade_intent import OrderSide


class ITradeExecutor(ABC):

    @abstractmethod
    async def execute_trade(
        self,
        symbol: str,
        side: OrderSide,
        quantity: Decimal,
        limit_price: Optional[Decimal] = None,
    ) -> str:
        """
        Envía una orden y espera confirmación.

        Returns:
            order_id asignado por el exchange.

        Raises:
            ValidationError: cantidad no positiva.
            TradeExecutionError: el exchange rechazó la orden.
        """
        pass

    @abstractmethod
    async def cancel_order(self, order_id: str) -> bool:
        """True si la orden fue cancelada."""
        pass
