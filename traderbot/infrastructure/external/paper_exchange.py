"""
Paper Exchange.

Exchange simulado: ejecuta órdenes de mercado contra el último cierre
almacenado y mantiene balances spot en memoria.

- BUY:  quote -= qty × precio ; base += qty
- SELL: base  -= qty          ; quote += qty × precio
- Sin saldo suficiente → TradeExecutionError (la orden no existe).
- Las órdenes de mercado se llenan al instante: cancel_order() nunca
  cancela nada.

Implementa ITradeExecutor e IBalanceSource para que el bot corra de
punta a punta sin credenciales.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Mapping, Optional

from traderbot.application.ports.balance_source import IBalanceSource
from traderbot.application.ports.trade_executor import ITradeExecutor
from traderbot.domain.exceptions.domain_errors import TradeExecutionError, ValidationError
from traderbot.domain.repositories.candle_repository import ICandleRepository
from traderbot.domain.value_objects.symbol import Symbol
from traderbot.domain.value_objects.trade_intent import OrderSide, TradeIntent
from traderbot.shared.logging.logger import get_logger

logger = get_logger("paper_exchange")

ZERO = Decimal("0")


@dataclass(frozen=True)
class PaperFill:
    order_id: str
    symbol: str
    side: OrderSide
    quantity: Decimal
    price: Decimal
    filled_at: datetime

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": str(self.quantity),
            "price": str(self.price),
            "filled_at": self.filled_at.isoformat(),
        }


class PaperExchange(ITradeExecutor, IBalanceSource):

    def __init__(
        self,
        candle_repository: ICandleRepository,
        initial_balances: Optional[Mapping[str, Decimal]] = None,
    ) -> None:
        self._candles = candle_repository
        self._balances: Dict[str, Decimal] = {
            asset: Decimal(str(amount)) for asset, amount in (initial_balances or {}).items()
        }
        self._fills: Dict[str, PaperFill] = {}

    @property
    def balances(self) -> Dict[str, Decimal]:
        return dict(self._balances)

    @property
    def fills(self) -> list[PaperFill]:
        return list(self._fills.values())

    # ════════════════════════════════════════════════════════════════
    #  IBalanceSource
    # ════════════════════════════════════════════════════════════════

    async def get_balance(self, asset: str) -> Decimal:
        return self._balances.get(asset.upper(), ZERO)

    # ════════════════════════════════════════════════════════════════
    #  ITradeExecutor
    # ════════════════════════════════════════════════════════════════

    async def execute_trade(
        self,
        symbol: str,
        side: OrderSide,
        quantity: Decimal,
        limit_price: Optional[Decimal] = None,
    ) -> str:
        intent = TradeIntent(symbol=symbol, side=side, quantity=quantity, limit_price=limit_price)
        pair = Symbol.parse(symbol)

        price = intent.limit_price or await self._last_price(symbol)
        notional = intent.quantity * price

        logger.info(
            "Ejecutando orden %s %s %s @ %s",
            intent.side.value, intent.quantity, symbol, limit_price or "MARKET",
        )

        if intent.side is OrderSide.BUY:
            available = self._balances.get(pair.quote, ZERO)
            if available < notional:
                raise TradeExecutionError(
                    f"Saldo {pair.quote} insuficiente: {available} < {notional}",
                    symbol=symbol,
                    side=intent.side.value,
                )
            self._balances[pair.quote] = available - notional
            self._balances[pair.base] = self._balances.get(pair.base, ZERO) + intent.quantity
        else:
            available = self._balances.get(pair.base, ZERO)
            if available < intent.quantity:
                raise TradeExecutionError(
                    f"Saldo {pair.base} insuficiente: {available} < {intent.quantity}",
                    symbol=symbol,
                    side=intent.side.value,
                )
            self._balances[pair.base] = available - intent.quantity
            self._balances[pair.quote] = self._balances.get(pair.quote, ZERO) + notional

        fill = PaperFill(
            order_id=uuid.uuid4().hex[:16],
            symbol=symbol,
            side=intent.side,
            quantity=intent.quantity,
            price=price,
            filled_at=datetime.now(timezone.utc),
        )
        self._fills[fill.order_id] = fill
        logger.info("Orden ejecutada. Order ID: %s", fill.order_id)
        return fill.order_id

    async def cancel_order(self, order_id: str) -> bool:
        if order_id in self._fills:
            logger.warning("Orden %s ya ejecutada – no se puede cancelar", order_id)
        else:
            logger.warning("Orden %s desconocida", order_id)
        return False

    async def _last_price(self, symbol: str) -> Decimal:
        latest = await self._candles.get_latest(symbol, limit=1)
        if not latest:
            raise TradeExecutionError(
                f"Sin precio de referencia para {symbol}", symbol=symbol,
            )
        price = latest[-1].close
        if price <= 0:
            raise ValidationError(f"Precio de referencia inválido: {price}", field="price", value=price)
        return price
