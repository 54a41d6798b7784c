"""Domain value objects - Immutable objects without identity."""

from traderbot.domain.value_objects.analysis_signal import AnalysisSignal, SignalKind
from traderbot.domain.value_objects.bot_status import BotStatus
from traderbot.domain.value_objects.symbol import Symbol
from traderbot.domain.value_objects.timeframe import TimeFrame, TIMEFRAME_SECONDS
from traderbot.domain.value_objects.trade_intent import OrderSide, TradeIntent

__all__ = [
    "AnalysisSignal",
    "SignalKind",
    "BotStatus",
    "Symbol",
    "TimeFrame",
    "TIMEFRAME_SECONDS",
    "OrderSide",
    "TradeIntent",
]
