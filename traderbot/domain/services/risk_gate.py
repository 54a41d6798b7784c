"""
TraderBot – Domain Service: Risk Gate
========================================
Reglas de riesgo puras para la política de martingala.

FÓRMULAS:
- Tamaño:   balance × base_fraction × multiplier^step   (0 si step ≥ max)
- Drawdown: (peak - balance) / peak                      (0 si balance ≥ peak)

El crecimiento es EXPONENCIAL en el paso: con multiplier=2 y 5 pasos,
el paso 4 arriesga 16 veces el tamaño base. Ese es el riesgo
característico de la política y el límite de pasos es el único freno.

Sin estado mutable: se evalúa en cada decisión, nunca se cachea.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from traderbot.domain.exceptions.domain_errors import RiskManagementError

ZERO = Decimal("0")


@dataclass(frozen=True)
class RiskConfig:
    """Configuración de gestión de riesgo."""

    max_drawdown: Decimal = Decimal("0.20")
    max_martingale_steps: int = 5
    martingale_multiplier: Decimal = Decimal("2.0")
    base_position_fraction: Decimal = Decimal("0.01")
    take_profit_threshold: Decimal = Decimal("0.02")
    stop_loss_threshold: Decimal = Decimal("0.01")

    @classmethod
    def from_settings(cls, settings) -> "RiskConfig":
        return cls(
            max_drawdown=Decimal(str(settings.max_drawdown)),
            max_martingale_steps=int(settings.max_martingale_steps),
            martingale_multiplier=Decimal(str(settings.martingale_multiplier)),
            base_position_fraction=Decimal(str(settings.base_position_fraction)),
            take_profit_threshold=Decimal(str(settings.take_profit_threshold)),
            stop_loss_threshold=Decimal(str(settings.stop_loss_threshold)),
        )


class RiskGate:
    """
    Compuerta de riesgo.

    RESPONSABILIDAD:
    Decidir si se puede abrir, con qué tamaño, y si una pérdida
    escala la martingala. NO tiene dependencias externas.
    """

    def __init__(self, config: RiskConfig | None = None):
        self._config = config or RiskConfig()
        self._validate(self._config)

    @property
    def config(self) -> RiskConfig:
        return self._config

    @staticmethod
    def _validate(cfg: RiskConfig) -> None:
        if cfg.max_martingale_steps < 0:
            raise RiskManagementError("max_martingale_steps no puede ser negativo", rule="max_steps")
        if cfg.martingale_multiplier < 1:
            raise RiskManagementError("martingale_multiplier debe ser ≥ 1", rule="multiplier")
        if not ZERO < cfg.base_position_fraction <= 1:
            raise RiskManagementError("base_position_fraction debe estar en (0, 1]", rule="base_fraction")
        if cfg.max_drawdown < 0:
            raise RiskManagementError("max_drawdown no puede ser negativo", rule="max_drawdown")
        if cfg.take_profit_threshold <= 0 or cfg.stop_loss_threshold <= 0:
            raise RiskManagementError("Umbrales TP/SL deben ser positivos", rule="tp_sl")

    # ════════════════════════════════════════════════════════════════
    #  REGLAS
    # ════════════════════════════════════════════════════════════════

    def can_open_position(self, account_balance: Decimal, current_drawdown: Decimal) -> bool:
        """Falla cerrado: sin balance o con drawdown excedido no se abre."""
        if current_drawdown > self._config.max_drawdown:
            return False
        if account_balance <= 0:
            return False
        return True

    def calculate_position_size(self, account_balance: Decimal, martingale_step: int) -> Decimal:
        """
        Tamaño (en moneda quote) de la próxima posición.

        Returns:
            0 si el paso alcanzó el máximo → "no abrir".
        """
        if martingale_step >= self._config.max_martingale_steps:
            return ZERO

        base_size = account_balance * self._config.base_position_fraction
        multiplier = self._config.martingale_multiplier ** martingale_step
        return base_size * multiplier

    def should_apply_martingale(self, current_step: int, loss: Decimal) -> bool:
        """Solo se escala con pérdida realizada y por debajo del tope."""
        return current_step < self._config.max_martingale_steps and loss < 0

    @staticmethod
    def current_drawdown(equity_peak: Decimal, balance: Decimal) -> Decimal:
        """Caída fraccional desde el pico de equity."""
        if equity_peak <= 0 or balance >= equity_peak:
            return ZERO
        return (equity_peak - balance) / equity_peak

    # ════════════════════════════════════════════════════════════════
    #  UMBRALES DE CIERRE
    # ════════════════════════════════════════════════════════════════

    def hits_take_profit(self, profit_percent: Decimal) -> bool:
        return profit_percent > self._config.take_profit_threshold

    def hits_stop_loss(self, profit_percent: Decimal) -> bool:
        return profit_percent < -self._config.stop_loss_threshold
