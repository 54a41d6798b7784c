"""
TraderBot – Domain Exceptions
================================
Excepciones específicas del dominio de negocio.

JERARQUÍA:
    DomainError (base)
    ├── ValidationError          → datos inválidos, se rechaza sin reintento
    ├── RiskManagementError      → configuración de riesgo inválida
    ├── ExternalServiceError     → fallo transitorio de un colaborador externo
    │   └── TradeExecutionError  → el exchange rechazó la orden
    └── LedgerConsistencyError   → estado del ledger incoherente (fatal para el ciclo)

Los no-ops del ciclo de vida (start con el bot corriendo, stop con el
bot detenido) NO son excepciones: se reportan como LifecycleResult.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
        }


class ValidationError(DomainError):
    """Error de validación general de datos de dominio."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field
        self.value = value


class RiskManagementError(DomainError):
    """Error cuando se viola una regla de gestión de riesgo."""

    def __init__(self, message: str, rule: str | None = None):
        super().__init__(message, code="RISK_VIOLATION")
        self.rule = rule


class ExternalServiceError(DomainError):
    """Fallo (normalmente transitorio) de un servicio externo: red, exchange, feed."""

    def __init__(self, message: str, service: str | None = None, code: str = "EXTERNAL_SERVICE_ERROR"):
        super().__init__(message, code=code)
        self.service = service


class TradeExecutionError(ExternalServiceError):
    """El exchange rechazó o no confirmó una orden."""

    def __init__(self, message: str, symbol: str | None = None, side: str | None = None):
        super().__init__(message, service="trade_executor", code="TRADE_EXECUTION_ERROR")
        self.symbol = symbol
        self.side = side


class LedgerConsistencyError(DomainError):
    """
    El ledger de posiciones quedó (o quedaría) incoherente.

    Caso típico: la orden fue confirmada por el exchange pero el save
    posterior falló → posición fantasma no registrada.
    """

    def __init__(self, message: str, symbol: str | None = None, order_id: str | None = None):
        super().__init__(message, code="LEDGER_INCONSISTENCY")
        self.symbol = symbol
        self.order_id = order_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["symbol"] = self.symbol
        data["order_id"] = self.order_id
        return data
