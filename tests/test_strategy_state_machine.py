from datetime import datetime

import pytest

from reversal_backtest.config import StrategyConfig
from reversal_backtest.models import Candle, Direction, ExitReason
from reversal_backtest.strategy import TradeSimulator, detect_signals


def _c(hh: int, mm: int, o: float, h: float, l: float, c: float, day: int = 4, ss: int = 0) -> Candle:
    return Candle(timestamp=datetime(2024, 3, day, hh, mm, ss), open=o, high=h, low=l, close=c)


def _run(candles, cfg=None):
    dirs = detect_signals(candles)
    trades, skipped = TradeSimulator(candles, dirs, cfg).run()
    return dirs, trades, skipped


def _scenario_head():
    return [
        _c(9, 0, 100, 101, 99, 100),
        _c(9, 5, 100, 102, 97, 99),
        _c(9, 10, 98, 104, 97, 103),   # long outside bar
        _c(9, 15, 103, 105, 101, 104),  # entry candle
    ]


def test_scenario_time_exit():
    candles = _scenario_head() + [_c(14, 5, 110, 111, 109, 110)]
    dirs, trades, skipped = _run(candles)

    assert dirs == [None, None, Direction.LONG, None, None]
    assert len(trades) == 1
    assert skipped.total() == 0

    t = trades[0]
    assert t.direction == Direction.LONG
    assert t.entry_time == datetime(2024, 3, 4, 9, 15)
    assert t.entry_price == 103
    assert t.stop == 97
    assert t.risk == 6
    assert t.exit_reason == ExitReason.TIME_EXIT
    assert t.exit_price == 110
    assert abs(t.r_multiple - 7 / 6) < 1e-12
    assert t.hold_minutes == 290
    assert t.signal_time == datetime(2024, 3, 4, 9, 10)
    assert t.signal_direction == Direction.LONG


def test_scenario_truncated_is_no_exit():
    _, trades, skipped = _run(_scenario_head())
    assert trades == []
    assert skipped.no_exit == 1
    assert skipped.total() == 1


def test_stop_loss_exits_at_stop_price():
    candles = _scenario_head() + [_c(10, 0, 100, 101, 96, 100.5)]
    _, trades, skipped = _run(candles)
    assert skipped.total() == 0
    t = trades[0]
    assert t.exit_reason == ExitReason.STOP_LOSS
    assert t.exit_price == 97
    assert t.r_multiple == -1.0
    assert t.hold_minutes == 45


def test_opposing_signal_takes_profit_at_close():
    candles = _scenario_head() + [
        _c(9, 20, 104, 109, 103.5, 108.5),
        _c(9, 25, 109, 109.5, 103, 103.5),  # short outside bar
    ]
    dirs, trades, skipped = _run(candles)
    assert dirs[5] == Direction.SHORT
    t = trades[0]
    assert t.exit_reason == ExitReason.TAKE_PROFIT
    assert t.exit_price == 103.5
    assert abs(t.r_multiple - 0.5 / 6) < 1e-12
    assert t.exit_time == datetime(2024, 3, 4, 9, 25)
    # the short signal on the last candle has nothing to enter on
    assert skipped.total() == 0


def test_stop_and_opposing_on_same_candle_invalidates():
    candles = _scenario_head() + [_c(9, 20, 105, 106, 96, 102)]
    dirs, trades, skipped = _run(candles)
    assert dirs[4] == Direction.SHORT
    assert trades == []
    assert skipped.invalid_same_candle == 1
    assert skipped.total() == 1


def test_time_exit_has_priority_over_stop():
    candles = _scenario_head() + [_c(14, 0, 95, 96, 90, 95.5)]
    _, trades, _ = _run(candles)
    t = trades[0]
    assert t.exit_reason == ExitReason.TIME_EXIT
    assert t.exit_price == 95
    assert t.r_multiple == (95 - 103) / 6


def test_scan_never_crosses_day_boundary():
    candles = _scenario_head() + [_c(9, 0, 90, 91, 80, 85, day=5)]
    _, trades, skipped = _run(candles)
    assert trades == []
    assert skipped.no_exit == 1


def test_short_trade_uses_highest_high():
    candles = [
        _c(9, 0, 100, 101, 99, 100),
        _c(9, 5, 100, 103, 98, 101),
        _c(9, 10, 102, 103, 96, 97),  # short outside bar
        _c(9, 15, 97, 99, 95, 96),
        _c(14, 5, 94, 95, 93, 94),
    ]
    dirs, trades, skipped = _run(candles)
    assert dirs[2] == Direction.SHORT
    t = trades[0]
    assert t.direction == Direction.SHORT
    assert t.stop == 103
    assert t.risk == 6
    assert t.exit_reason == ExitReason.TIME_EXIT
    assert t.r_multiple == 0.5


def test_entry_window_boundary_inclusive():
    def build(ss: int):
        return [
            _c(9, 0, 100, 101, 99, 100),
            _c(9, 5, 100, 102, 97, 99),
            _c(11, 29, 98, 104, 97, 103),
            _c(11, 30, 103, 105, 101, 104, ss=ss),
            _c(14, 5, 110, 111, 109, 110),
        ]

    _, trades, skipped = _run(build(0))
    assert len(trades) == 1
    assert skipped.outside_window == 0

    _, trades, skipped = _run(build(1))
    assert trades == []
    assert skipped.outside_window == 1


def test_insufficient_history():
    candles = [
        _c(9, 0, 100, 101, 99, 100),
        _c(9, 5, 99, 102, 98, 101),  # long outside bar at index 1
        _c(9, 10, 101, 102, 100, 101.5),
        _c(14, 5, 103, 104, 102, 103),
    ]
    dirs, trades, skipped = _run(candles)
    assert dirs[1] == Direction.LONG
    assert trades == []
    assert skipped.insufficient_history == 1
    assert skipped.total() == 1


def test_non_positive_risk_is_skipped():
    candles = _scenario_head()[:3] + [
        _c(9, 15, 96, 97, 95, 96.5),  # opens below the 97 stop
        _c(14, 5, 110, 111, 109, 110),
    ]
    _, trades, skipped = _run(candles)
    assert trades == []
    assert skipped.invalid_risk == 1
    assert skipped.total() == 1


def test_signal_on_last_candle_is_dropped_silently():
    _, trades, skipped = _run(_scenario_head()[:3])
    assert trades == []
    assert skipped.total() == 0


def test_custom_session_clock():
    cfg = StrategyConfig(entry_window_end="09:00", time_exit="10:00")
    candles = _scenario_head() + [_c(14, 5, 110, 111, 109, 110)]
    _, trades, skipped = _run(candles, cfg)
    assert trades == []
    assert skipped.outside_window == 1


def test_zero_lookback_rejected():
    candles = _scenario_head()
    with pytest.raises(ValueError, match="stop_lookback"):
        TradeSimulator(candles, detect_signals(candles), StrategyConfig(stop_lookback=0))
