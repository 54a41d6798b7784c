"""Application use cases - Business logic orchestration."""

from traderbot.application.use_cases.decision_engine import (
    DecisionAction,
    DecisionEngine,
    DecisionResult,
)

__all__ = [
    "DecisionAction",
    "DecisionEngine",
    "DecisionResult",
]
