"""Application services - Orchestration around the decision engine."""
from traderbot.application.services.balance_query import BalanceQuery
from traderbot.application.services.bot_lifecycle import BotLifecycle, LifecycleOutcome, LifecycleResult
from traderbot.application.services.candle_pipeline import CandlePipeline
from traderbot.application.services.position_ledger import PositionLedger

__all__ = [
    "BalanceQuery",
    "BotLifecycle",
    "CandlePipeline",
    "LifecycleOutcome",
    "LifecycleResult",
    "PositionLedger",
]
