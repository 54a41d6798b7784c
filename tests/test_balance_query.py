from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, call

import pytest

from traderbot.application.services.balance_query import BalanceQuery
from traderbot.domain.exceptions.domain_errors import ValidationError


@pytest.fixture
def source():
    mock = MagicMock()
    mock.get_balance = AsyncMock(return_value=Decimal("250"))
    return mock


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.mark.asyncio
async def test_returns_balance_on_first_attempt(source, sleep):
    query = BalanceQuery(source, sleep=sleep)

    assert await query.get_balance("USDT") == Decimal("250")
    source.get_balance.assert_awaited_once_with("USDT")
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retries_with_exponential_backoff_then_succeeds(source, sleep):
    """Dos fallos transitorios, éxito al tercer intento."""
    source.get_balance.side_effect = [ConnectionError("a"), ConnectionError("b"), Decimal("5")]
    query = BalanceQuery(source, max_retries=3, initial_delay=2.0, sleep=sleep)

    assert await query.get_balance("USDT") == Decimal("5")
    assert source.get_balance.await_count == 3
    assert sleep.await_args_list == [call(2.0), call(4.0)]


@pytest.mark.asyncio
async def test_fail_closed_reraises_last_error_after_all_attempts(source, sleep):
    last = ConnectionError("down for good")
    source.get_balance.side_effect = [ConnectionError("1"), ConnectionError("2"), last]
    query = BalanceQuery(source, max_retries=3, require_balance_check=True, sleep=sleep)

    with pytest.raises(ConnectionError) as exc_info:
        await query.get_balance("USDT")

    assert exc_info.value is last
    assert source.get_balance.await_count == 3
    assert sleep.await_args_list == [call(2.0), call(4.0)]


@pytest.mark.asyncio
async def test_fail_open_returns_zero_after_all_attempts(source, sleep):
    source.get_balance.side_effect = ConnectionError("down")
    query = BalanceQuery(source, max_retries=3, require_balance_check=False, sleep=sleep)

    assert await query.get_balance("USDT") == Decimal("0")
    assert source.get_balance.await_count == 3


@pytest.mark.asyncio
async def test_constant_delay_without_backoff(source, sleep):
    source.get_balance.side_effect = ConnectionError("down")
    query = BalanceQuery(
        source, max_retries=3, initial_delay=1.5, use_exponential_backoff=False, sleep=sleep,
    )

    await query.get_balance("USDT")

    assert sleep.await_args_list == [call(1.5), call(1.5)]


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt(source, sleep):
    source.get_balance.side_effect = ConnectionError("down")
    query = BalanceQuery(source, max_retries=0, sleep=sleep)

    assert await query.get_balance("USDT") == 0
    assert source.get_balance.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_trading_disabled_never_contacts_source(source, sleep):
    query = BalanceQuery(source, trading_enabled=False, require_balance_check=True, sleep=sleep)

    assert await query.get_balance("USDT") == 0
    assert await query.get_all_balances(["BTC", "USDT"]) == {}
    source.get_balance.assert_not_awaited()


@pytest.mark.asyncio
async def test_validation_error_is_not_retried(source, sleep):
    source.get_balance.side_effect = ValidationError("bad asset", field="asset")
    query = BalanceQuery(source, max_retries=3, sleep=sleep)

    with pytest.raises(ValidationError):
        await query.get_balance("???")
    assert source.get_balance.await_count == 1


@pytest.mark.asyncio
async def test_get_all_balances_isolates_failing_asset(source, sleep):
    """Un activo que falla queda en 0 sin abortar el resto, incluso con fail closed."""

    async def by_asset(asset):
        if asset == "BTC":
            raise ConnectionError("btc endpoint down")
        return Decimal("10")

    source.get_balance.side_effect = by_asset
    query = BalanceQuery(source, max_retries=2, require_balance_check=True, sleep=sleep)

    balances = await query.get_all_balances(["BTC", "USDT"])

    assert balances == {"BTC": Decimal("0"), "USDT": Decimal("10")}


def test_negative_retries_rejected(source):
    with pytest.raises(ValidationError):
        BalanceQuery(source, max_retries=-1)


def test_from_settings_reads_trading_fields(source, sleep):
    from traderbot.shared.config.settings import Settings

    query = BalanceQuery.from_settings(source, Settings(trading_enabled=True), sleep=sleep)
    assert query.trading_enabled
