"""
TraderBot – Dow Theory Analyzer
=================================
Analizador base: tendencia por máximos y mínimos de swing.

REGLAS:
  Tendencia alcista  = máximos de swing crecientes Y mínimos crecientes → BUY
  Tendencia bajista  = máximos decrecientes Y mínimos decrecientes     → SELL
  Cualquier otra cosa                                                  → HOLD 0.5

CONFIANZA (tendencia confirmada):
  base 0.6
  + 0.1  ruptura: el último cierre supera el último swing (en la dirección)
  + 0.1  volumen: las velas a favor mueven más volumen medio que las en contra
  → máximo 0.8

Swing high en i: high[i] > high[i-1] y high[i] >= high[i+1] (simétrico para lows).
La última vela no puede ser swing (no tiene vecino derecho).

No es una estrategia productiva: es la señal por defecto del bot.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Sequence

from traderbot.application.ports.market_analyzer import IMarketAnalyzer
from traderbot.domain.entities.candle import Candle
from traderbot.domain.value_objects.analysis_signal import AnalysisSignal, SignalKind

MIN_CANDLES = 5

BASE_CONFIDENCE = Decimal("0.6")
BREAKOUT_BONUS = Decimal("0.1")
VOLUME_BONUS = Decimal("0.1")
NEUTRAL_CONFIDENCE = Decimal("0.5")


def swing_highs(candles: Sequence[Candle]) -> List[Decimal]:
    return [
        candles[i].high
        for i in range(1, len(candles) - 1)
        if candles[i].high > candles[i - 1].high and candles[i].high >= candles[i + 1].high
    ]


def swing_lows(candles: Sequence[Candle]) -> List[Decimal]:
    return [
        candles[i].low
        for i in range(1, len(candles) - 1)
        if candles[i].low < candles[i - 1].low and candles[i].low <= candles[i + 1].low
    ]


def _rising(values: List[Decimal]) -> bool:
    return len(values) >= 2 and all(b > a for a, b in zip(values, values[1:]))


def _falling(values: List[Decimal]) -> bool:
    return len(values) >= 2 and all(b < a for a, b in zip(values, values[1:]))


def _mean_volume(candles: List[Candle]) -> Decimal:
    if not candles:
        return Decimal("0")
    return sum((c.volume for c in candles), Decimal("0")) / len(candles)


class DowTheoryAnalyzer(IMarketAnalyzer):

    async def analyze(self, candles: Sequence[Candle]) -> AnalysisSignal:
        if len(candles) < MIN_CANDLES:
            return AnalysisSignal.hold(f"insufficient data ({len(candles)} candles)")

        ordered = sorted(candles, key=lambda c: c.timestamp)
        highs = swing_highs(ordered)
        lows = swing_lows(ordered)
        last = ordered[-1]

        up = [c for c in ordered if c.close > c.open]
        down = [c for c in ordered if c.close < c.open]

        if _rising(highs) and _rising(lows):
            confidence = BASE_CONFIDENCE
            reasons = ["higher highs and higher lows"]
            if last.close > highs[-1]:
                confidence += BREAKOUT_BONUS
                reasons.append("breakout above last swing high")
            if _mean_volume(up) > _mean_volume(down):
                confidence += VOLUME_BONUS
                reasons.append("volume confirms")
            return AnalysisSignal(SignalKind.BUY, confidence, ", ".join(reasons))

        if _falling(highs) and _falling(lows):
            confidence = BASE_CONFIDENCE
            reasons = ["lower highs and lower lows"]
            if last.close < lows[-1]:
                confidence += BREAKOUT_BONUS
                reasons.append("breakdown below last swing low")
            if _mean_volume(down) > _mean_volume(up):
                confidence += VOLUME_BONUS
                reasons.append("volume confirms")
            return AnalysisSignal(SignalKind.SELL, confidence, ", ".join(reasons))

        return AnalysisSignal(SignalKind.HOLD, NEUTRAL_CONFIDENCE, "no clear trend")
