"""
Domain services - Pure business logic without external dependencies.
"""

from traderbot.domain.services.risk_gate import RiskConfig, RiskGate

__all__ = ["RiskConfig", "RiskGate"]
