from decimal import Decimal

import pytest

from traderbot.domain.value_objects.analysis_signal import SignalKind
from traderbot.infrastructure.analysis.dow_theory_analyzer import (
    DowTheoryAnalyzer,
    swing_highs,
    swing_lows,
)

from tests.helpers import make_candle


def _series(rows):
    """rows: (open, high, low, close, volume)."""
    return [
        make_candle(i, open_=o, high=h, low=lo, close=c, volume=v)
        for i, (o, h, lo, c, v) in enumerate(rows)
    ]


UPTREND = _series([
    ("9.8", "10", "9", "9.2", "1"),
    ("11", "12", "11", "11.9", "2"),
    ("10.8", "11", "10", "10.2", "1"),
    ("12", "13", "12", "12.9", "2"),
    ("11.8", "12", "11", "11.2", "1"),
    ("13", "14", "13", "13.9", "2"),
    ("12.8", "13", "12", "12.2", "1"),
    ("14", "15", "14", "14.9", "2"),
])

DOWNTREND = _series([
    ("19.2", "20", "19", "19.8", "1"),
    ("17.9", "18", "17", "17.1", "2"),
    ("18.2", "19", "18", "18.8", "1"),
    ("16.9", "17", "16", "16.1", "2"),
    ("17.2", "18", "17", "17.8", "1"),
    ("15.9", "16", "15", "15.1", "2"),
    ("16.2", "17", "16", "16.8", "1"),
    ("14.9", "15", "14", "14.2", "2"),
])


@pytest.fixture
def analyzer():
    return DowTheoryAnalyzer()


def test_swing_points_exclude_last_candle():
    assert swing_highs(UPTREND) == [Decimal("12"), Decimal("13"), Decimal("14")]
    assert swing_lows(UPTREND) == [Decimal("10"), Decimal("11"), Decimal("12")]


@pytest.mark.asyncio
async def test_confirmed_uptrend_with_breakout_and_volume_is_buy(analyzer):
    signal = await analyzer.analyze(UPTREND)

    assert signal.kind is SignalKind.BUY
    assert signal.confidence == Decimal("0.8")
    assert "breakout" in signal.reason


@pytest.mark.asyncio
async def test_input_order_does_not_matter(analyzer):
    signal = await analyzer.analyze(list(reversed(UPTREND)))

    assert signal.kind is SignalKind.BUY


@pytest.mark.asyncio
async def test_confirmed_downtrend_is_sell(analyzer):
    signal = await analyzer.analyze(DOWNTREND)

    assert signal.kind is SignalKind.SELL
    assert signal.confidence == Decimal("0.8")


@pytest.mark.asyncio
async def test_flat_market_is_neutral_hold(analyzer):
    signal = await analyzer.analyze([make_candle(i) for i in range(10)])

    assert signal.kind is SignalKind.HOLD
    assert signal.confidence == Decimal("0.5")


@pytest.mark.asyncio
async def test_too_few_candles_is_hold_without_confidence(analyzer):
    signal = await analyzer.analyze(UPTREND[:4])

    assert signal.kind is SignalKind.HOLD
    assert signal.confidence == 0
