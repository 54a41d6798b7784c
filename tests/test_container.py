from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from traderbot.container import Container, get_container, init_container, reset_container
from traderbot.domain.exceptions.domain_errors import ValidationError
from traderbot.domain.value_objects.analysis_signal import AnalysisSignal, SignalKind
from traderbot.domain.value_objects.bot_status import BotStatus
from traderbot.infrastructure.external.paper_exchange import PaperExchange
from traderbot.infrastructure.persistence.repositories.memory_repository import (
    InMemoryCandleRepository,
    InMemoryPositionRepository,
)
from traderbot.shared.config.settings import Settings

from tests.helpers import SYMBOL, FakeFeed, make_candle, wait_until


@pytest.fixture
def settings():
    return Settings(db_enabled=False, trading_enabled=True, initial_capital=Decimal("1000"))


def test_memory_storage_without_database(settings):
    container = Container(settings=settings)

    assert isinstance(container.candle_repository, InMemoryCandleRepository)
    assert isinstance(container.position_repository, InMemoryPositionRepository)
    assert isinstance(container.trade_executor, PaperExchange)
    assert container.trade_executor is container.balance_source


def test_instances_are_reused(settings):
    container = Container(settings=settings)

    assert container.bot_lifecycle is container.bot_lifecycle
    assert container.decision_engine.symbol == SYMBOL


def test_live_execution_not_available(settings):
    container = Container(settings=settings.model_copy(update={"paper_trading": False}))

    with pytest.raises(ValidationError):
        _ = container.trade_executor


def test_override_unknown_dependency_rejected(settings):
    with pytest.raises(ValueError):
        Container(settings=settings).override("nope", object())


def test_global_container_helpers(settings):
    container = init_container(settings)
    assert get_container() is container

    reset_container()
    assert get_container() is not container
    reset_container()


@pytest.mark.asyncio
async def test_paper_session_opens_and_takes_profit(settings):
    """Feed → pipeline → motor → exchange simulado → ledger, de punta a punta."""
    container = Container(settings=settings)
    feed = FakeFeed()
    analyzer = MagicMock()
    analyzer.analyze = AsyncMock(return_value=AnalysisSignal(SignalKind.BUY, Decimal("0.9")))
    container.override("market_data_feed", feed)
    container.override("market_analyzer", analyzer)
    lifecycle = container.bot_lifecycle

    await lifecycle.start()
    assert lifecycle.status is BotStatus.RUNNING

    await feed.push(make_candle(0, close="100"))
    await feed.push(make_candle(1, close="103"))
    await wait_until(lambda: container.candle_pipeline.snapshot()[SYMBOL]["processed"] == 2)
    await lifecycle.stop()

    positions = await container.position_ledger.list_all(SYMBOL)
    assert len(positions) == 1
    assert not positions[0].is_open
    assert positions[0].realized_pnl == Decimal("0.3")
    assert container.paper_exchange.balances["USDT"] == Decimal("1000.3")
    assert container.decision_engine.martingale_state.step == 0
