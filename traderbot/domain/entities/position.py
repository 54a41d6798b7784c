"""
TraderBot – Domain Entity: Position
=====================================
Posición del bot sobre un símbolo.

═══════════════════════════════════════════════════════════════
            CICLO DE VIDA DE LA POSICIÓN
═══════════════════════════════════════════════════════════════

  orden de apertura confirmada
       │
       ▼
  Position(is_open=True) ──(cada vela)──▸ mark(close)  → solo reporte
       │
       ├── profit% > take_profit  ──▸ close()
       └── profit% < -stop_loss   ──▸ close()

  Una posición se crea al abrir y se actualiza al cerrar; NUNCA se borra.

POR QUÉ NO frozen=True:
  Igual que un trade, la posición tiene ciclo de vida mutable
  (current_price cambia, luego se cierra). Las transiciones son
  métodos controlados y close() solo es válido una vez.

CÁLCULO DE PnL:

  BUY (long):   pnl = (price - entry) × qty
  SELL (short): pnl = (entry - price) × qty
  pnl% = pnl / (entry × qty)

  Ejemplo: entry=100, qty=2, price=102 → pnl=4, pnl%=0.02
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from traderbot.domain.value_objects.trade_intent import OrderSide


class Position:
    """Posición abierta o cerrada (historial)."""

    __slots__ = (
        "id", "symbol", "quantity", "entry_price", "current_price",
        "side", "martingale_step", "opened_at", "closed_at", "is_open",
        "open_order_id", "close_order_id", "realized_pnl",
    )

    def __init__(
        self,
        symbol: str,
        quantity: Decimal,
        entry_price: Decimal,
        side: OrderSide = OrderSide.BUY,
        martingale_step: int = 0,
        opened_at: Optional[datetime] = None,
        current_price: Optional[Decimal] = None,
        open_order_id: Optional[str] = None,
    ) -> None:
        self.id: Optional[int] = None   # lo asigna el ledger en el primer save
        self.symbol = symbol
        self.quantity = quantity
        self.entry_price = entry_price
        self.current_price = current_price if current_price is not None else entry_price
        self.side = side
        self.martingale_step = martingale_step
        self.opened_at: datetime = opened_at or datetime.now(timezone.utc)
        self.closed_at: Optional[datetime] = None
        self.is_open = True
        self.open_order_id = open_order_id
        self.close_order_id: Optional[str] = None
        self.realized_pnl: Optional[Decimal] = None

    # ════════════════════════════════════════════════════════════════
    #  CÁLCULOS
    # ════════════════════════════════════════════════════════════════

    @property
    def notional(self) -> Decimal:
        return self.entry_price * self.quantity

    def profit_loss(self, price: Decimal) -> Decimal:
        diff = price - self.entry_price
        if self.side is OrderSide.SELL:
            diff = -diff
        return diff * self.quantity

    def profit_percent(self, price: Decimal) -> Optional[Decimal]:
        """PnL relativo al nocional. None si el nocional es 0 (no dividir)."""
        notional = self.notional
        if notional == 0:
            return None
        return self.profit_loss(price) / notional

    # ════════════════════════════════════════════════════════════════
    #  TRANSICIONES
    # ════════════════════════════════════════════════════════════════

    def mark(self, price: Decimal) -> None:
        """Actualiza el precio actual (solo reporte, no cierra)."""
        self.current_price = price

    def close(
        self,
        price: Decimal,
        order_id: Optional[str] = None,
        closed_at: Optional[datetime] = None,
    ) -> None:
        assert self.is_open, f"close() sobre posición ya cerrada id={self.id}"
        self.current_price = price
        self.realized_pnl = self.profit_loss(price)
        self.close_order_id = order_id
        self.closed_at = closed_at or datetime.now(timezone.utc)
        self.is_open = False

    def copy(self) -> "Position":
        """Copia superficial (los repos en memoria no comparten instancias)."""
        clone = Position.__new__(Position)
        for name in Position.__slots__:
            setattr(clone, name, getattr(self, name))
        return clone

    def to_dict(self) -> dict:
        """Serialización para API / eventos."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": str(self.quantity),
            "entry_price": str(self.entry_price),
            "current_price": str(self.current_price),
            "martingale_step": self.martingale_step,
            "opened_at": self.opened_at.isoformat(),
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
            "is_open": self.is_open,
            "open_order_id": self.open_order_id,
            "close_order_id": self.close_order_id,
            "realized_pnl": str(self.realized_pnl) if self.realized_pnl is not None else None,
        }

    def __repr__(self) -> str:
        return (
            f"<Position(id={self.id}, symbol='{self.symbol}', side={self.side.value}, "
            f"qty={self.quantity}, entry={self.entry_price}, open={self.is_open})>"
        )
