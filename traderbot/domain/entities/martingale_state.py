"""
TraderBot – Domain Entity: MartingaleState
============================================
Estado de progresión de martingala del motor de decisión.

- step: "próximo paso a usar" al abrir. Es DISTINTO del
  martingale_step grabado en la posición que se acaba de cerrar.
- equity_peak: máximo de balance observado, referencia del drawdown.

Invariantes:
  - 0 ≤ step ≤ max_steps
  - equity_peak nunca decrece
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class MartingaleState:
    max_steps: int
    step: int = 0
    equity_peak: Decimal = Decimal("0")

    def reset(self) -> None:
        """Cierre con ganancia → volver al paso 0."""
        self.step = 0

    def advance(self) -> None:
        """Cierre con pérdida que califica → siguiente paso (acotado)."""
        self.step = min(self.step + 1, self.max_steps)

    def restore(self, step: int) -> None:
        """Recupera el paso desde una posición persistida (reinicio del proceso)."""
        self.step = max(0, min(step, self.max_steps))

    def observe_equity(self, balance: Decimal) -> None:
        if balance > self.equity_peak:
            self.equity_peak = balance

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "max_steps": self.max_steps,
            "equity_peak": str(self.equity_peak),
        }
