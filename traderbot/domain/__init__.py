"""
TraderBot – Domain Layer
==========================
Núcleo puro del sistema. CERO dependencias externas.

Este módulo contiene:
- entities/: Entidades de negocio (Candle, Position, MartingaleState)
- value_objects/: Objetos inmutables (Symbol, TimeFrame, AnalysisSignal, TradeIntent)
- services/: Servicios de dominio puros (RiskGate)
- repositories/: Interfaces abstractas (ABCs)
- events/: Eventos de dominio
- exceptions/: Excepciones de dominio

REGLA DE DEPENDENCIA:
Este módulo NO puede importar de application/, infrastructure/,
presentation/ ni de frameworks externos.
"""

from traderbot.domain.entities.candle import Candle
from traderbot.domain.entities.martingale_state import MartingaleState
from traderbot.domain.entities.position import Position
from traderbot.domain.services.risk_gate import RiskConfig, RiskGate

__all__ = [
    "Candle",
    "MartingaleState",
    "Position",
    "RiskConfig",
    "RiskGate",
]
