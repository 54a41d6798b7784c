from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from traderbot.domain.entities.candle import Candle
from traderbot.domain.entities.martingale_state import MartingaleState
from traderbot.domain.entities.position import Position
from traderbot.domain.exceptions.domain_errors import ValidationError
from traderbot.domain.value_objects.analysis_signal import AnalysisSignal, SignalKind
from traderbot.domain.value_objects.symbol import Symbol
from traderbot.domain.value_objects.timeframe import TimeFrame
from traderbot.domain.value_objects.trade_intent import OrderSide, TradeIntent

from tests.helpers import make_candle


# ─── Candle ─────────────────────────────────────────────────────────────


def test_candle_timestamp_normalized_to_utc():
    naive = Candle("BTCUSDT", datetime(2024, 1, 1, 12), 1, 1, 1, 1, 1)
    shifted = Candle(
        "BTCUSDT",
        datetime(2024, 1, 1, 14, tzinfo=timezone(timedelta(hours=2))),
        1, 1, 1, 1, 1,
    )

    assert naive.key == shifted.key
    assert isinstance(naive.close, Decimal)


@pytest.mark.parametrize("kwargs", [{"close": "0"}, {"close": "-5"}, {"volume": "-1"}])
def test_candle_validate_rejects_bad_values(kwargs):
    with pytest.raises(ValidationError):
        make_candle(0, **kwargs).validate()


def test_candle_to_dict_keeps_decimal_precision():
    assert make_candle(0, close="100.12345678").to_dict()["close"] == "100.12345678"


# ─── Position ───────────────────────────────────────────────────────────


def test_long_position_pnl():
    position = Position("BTCUSDT", Decimal("2"), Decimal("100"))

    assert position.profit_loss(Decimal("102")) == Decimal("4")
    assert position.profit_percent(Decimal("102")) == Decimal("0.02")


def test_short_position_pnl_sign_is_inverted():
    position = Position("BTCUSDT", Decimal("1"), Decimal("100"), side=OrderSide.SELL)

    assert position.profit_loss(Decimal("95")) == Decimal("5")
    assert position.profit_percent(Decimal("105")) == Decimal("-0.05")


def test_zero_notional_has_no_profit_percent():
    assert Position("BTCUSDT", Decimal("0"), Decimal("100")).profit_percent(Decimal("1")) is None


def test_close_records_realized_pnl_once():
    position = Position("BTCUSDT", Decimal("1"), Decimal("100"))

    position.close(Decimal("97"), order_id="c-1")

    assert not position.is_open
    assert position.realized_pnl == Decimal("-3")
    assert position.close_order_id == "c-1"
    with pytest.raises(AssertionError):
        position.close(Decimal("90"))


def test_copy_is_independent():
    position = Position("BTCUSDT", Decimal("1"), Decimal("100"))
    clone = position.copy()

    clone.mark(Decimal("110"))

    assert position.current_price == Decimal("100")


# ─── MartingaleState ────────────────────────────────────────────────────


def test_martingale_state_is_bounded():
    state = MartingaleState(max_steps=2)

    state.advance()
    state.advance()
    state.advance()
    assert state.step == 2

    state.reset()
    assert state.step == 0

    state.restore(9)
    assert state.step == 2
    state.restore(-3)
    assert state.step == 0


def test_equity_peak_never_decreases():
    state = MartingaleState(max_steps=5, equity_peak=Decimal("100"))

    state.observe_equity(Decimal("150"))
    state.observe_equity(Decimal("90"))

    assert state.equity_peak == Decimal("150")


# ─── Value objects ──────────────────────────────────────────────────────


@pytest.mark.parametrize("raw, base, quote", [
    ("BTCUSDT", "BTC", "USDT"),
    ("ethusd", "ETH", "USD"),
])
def test_symbol_parse(raw, base, quote):
    symbol = Symbol.parse(raw)
    assert (symbol.base, symbol.quote) == (base, quote)


@pytest.mark.parametrize("raw", ["", "USDT", "BTCEUR"])
def test_symbol_parse_rejects_unknown(raw):
    with pytest.raises(ValidationError):
        Symbol.parse(raw)


def test_timeframe_parse():
    assert TimeFrame.parse("5M") is TimeFrame.FIVE_MINUTES
    assert TimeFrame.parse("1h").seconds == 3600
    with pytest.raises(ValidationError):
        TimeFrame.parse("7m")


def test_signal_confidence_range():
    assert AnalysisSignal("BUY", "0.75").kind is SignalKind.BUY
    with pytest.raises(ValidationError):
        AnalysisSignal(SignalKind.BUY, Decimal("1.2"))


def test_trade_intent_requires_positive_quantity():
    assert TradeIntent("BTCUSDT", OrderSide.BUY, Decimal("0.1")).order_type == "MARKET"
    with pytest.raises(ValidationError):
        TradeIntent("BTCUSDT", OrderSide.BUY, Decimal("0"))
    assert OrderSide.BUY.opposite is OrderSide.SELL
