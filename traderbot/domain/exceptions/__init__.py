"""Domain exceptions - Business rule violations."""

from traderbot.domain.exceptions.domain_errors import (
    DomainError,
    ValidationError,
    RiskManagementError,
    ExternalServiceError,
    TradeExecutionError,
    LedgerConsistencyError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "RiskManagementError",
    "ExternalServiceError",
    "TradeExecutionError",
    "LedgerConsistencyError",
]
