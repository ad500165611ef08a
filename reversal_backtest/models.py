from __future__ import annotations
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .formatters import fmt_time


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"

    def opposite(self) -> "Direction":
        return Direction.SHORT if self is Direction.LONG else Direction.LONG


class ExitReason(str, Enum):
    TAKE_PROFIT = "tp"
    STOP_LOSS = "sl"
    TIME_EXIT = "time"


@dataclass(frozen=True)
class Candle:
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float

    @property
    def body_low(self) -> float:
        return min(self.open, self.close)

    @property
    def body_high(self) -> float:
        return max(self.open, self.close)


@dataclass(frozen=True)
class Trade:
    entry_time: datetime
    exit_time: datetime
    direction: Direction
    entry_price: float
    exit_price: float
    stop: float
    risk: float
    r_multiple: float
    exit_reason: ExitReason
    signal_time: datetime
    signal_direction: Direction
    hold_minutes: int
    signal_index: int = 0  # ordering key only, never serialised

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_time": fmt_time(self.entry_time),
            "exit_time": fmt_time(self.exit_time),
            "direction": self.direction.value,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "sl": self.stop,
            "risk": self.risk,
            "r_multiple": self.r_multiple,
            "exit_reason": self.exit_reason.value,
            "x_time": fmt_time(self.signal_time),
            "x_direction": self.signal_direction.value,
            "hold_minutes": self.hold_minutes,
        }


@dataclass
class Skipped:
    outside_window: int = 0
    insufficient_history: int = 0
    invalid_risk: int = 0
    invalid_same_candle: int = 0
    no_exit: int = 0

    def total(self) -> int:
        return (
            self.outside_window
            + self.insufficient_history
            + self.invalid_risk
            + self.invalid_same_candle
            + self.no_exit
        )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class Summary:
    candles: int
    timeframe_minutes: Optional[int]
    trades: int
    wins: int
    losses: int
    breakeven: int
    win_rate: float
    total_r: float
    avg_r: float
    avg_win_r: float
    avg_loss_r: float
    profit_factor: Optional[float]
    max_drawdown_r: float
    max_consecutive_wins: int
    max_consecutive_losses: int
    tp_exits: int
    sl_exits: int
    time_exits: int
    avg_hold_minutes: float
    start_time: str
    end_time: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Report:
    summary: Summary
    skipped: Skipped
    trades: List[Trade]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "skipped": self.skipped.to_dict(),
            "trades": [t.to_dict() for t in self.trades],
        }
