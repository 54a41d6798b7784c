import itertools
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from traderbot.application.services.balance_query import BalanceQuery
from traderbot.application.services.position_ledger import PositionLedger
from traderbot.application.use_cases.decision_engine import DecisionEngine
from traderbot.domain.services.risk_gate import RiskGate
from traderbot.domain.value_objects.analysis_signal import AnalysisSignal, SignalKind
from traderbot.infrastructure.persistence.repositories.memory_repository import (
    InMemoryCandleRepository,
    InMemoryPositionRepository,
)

from tests.helpers import SYMBOL, RecordingPublisher


@pytest.fixture
def candle_repo():
    return InMemoryCandleRepository()


@pytest.fixture
def position_repo():
    return InMemoryPositionRepository()


@pytest.fixture
def ledger(position_repo):
    return PositionLedger(position_repo)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def analyzer():
    mock = MagicMock()
    mock.analyze = AsyncMock(return_value=AnalysisSignal(SignalKind.BUY, Decimal("0.9"), "test"))
    return mock


@pytest.fixture
def executor():
    ids = itertools.count(1)
    mock = MagicMock()
    mock.execute_trade = AsyncMock(side_effect=lambda *args, **kwargs: f"order-{next(ids)}")
    mock.cancel_order = AsyncMock(return_value=False)
    return mock


@pytest.fixture
def balance_source():
    mock = MagicMock()
    mock.get_balance = AsyncMock(return_value=Decimal("1000"))
    return mock


@pytest.fixture
def no_sleep():
    return AsyncMock()


@pytest.fixture
def balance_query(balance_source, no_sleep):
    return BalanceQuery(balance_source, trading_enabled=True, sleep=no_sleep)


@pytest.fixture
def engine_factory(ledger, balance_query, analyzer, executor, candle_repo, publisher):
    def build(**overrides):
        kwargs = dict(
            symbol=SYMBOL,
            risk_gate=RiskGate(),
            ledger=ledger,
            balance_query=balance_query,
            analyzer=analyzer,
            executor=executor,
            candle_repository=candle_repo,
            event_publisher=publisher,
            initial_capital=Decimal("1000"),
        )
        kwargs.update(overrides)
        return DecisionEngine(**kwargs)

    return build


@pytest.fixture
def engine(engine_factory):
    return engine_factory()
