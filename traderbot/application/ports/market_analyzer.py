"""
TraderBot – Application Port: Market Analyzer
===============================================
Fuente opaca de señales "tipo + confianza". El motor no sabe cómo se
genera la señal, solo la consume.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from traderbot.domain.entities.candle import Candle
from traderbot.domain.value_objects.analysis_signal import AnalysisSignal


class IMarketAnalyzer(ABC):

    @abstractmethod
    async def analyze(self, candles: Sequence[Candle]) -> AnalysisSignal:
        """
        Args:
            candles: Velas recientes en orden ascendente de timestamp.

        Returns:
            AnalysisSignal (HOLD si no hay datos suficientes).
        """
        pass
