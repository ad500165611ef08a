from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Report


TIME_FMT = "%Y-%m-%d %H:%M"


def fmt_time(dt: datetime) -> str:
    return dt.strftime(TIME_FMT)


def _fmt_r(val: Optional[float]) -> str:
    if val is None:
        return "-"
    return f"{val:+.2f}R"


def _fmt_pct(val: float) -> str:
    return f"{val * 100:.1f}%"


def format_report_text(report: "Report", *, max_trades: int = 20) -> str:
    """Plain-text rendering of a report for terminal output."""
    s = report.summary
    sk = report.skipped
    tf = f"{s.timeframe_minutes}m" if s.timeframe_minutes is not None else "unknown"
    pf = f"{s.profit_factor:.2f}" if s.profit_factor is not None else "-"

    lines = [
        f"Range: {s.start_time} -> {s.end_time}  ({s.candles} candles, tf {tf})",
        f"Trades: {s.trades}  W/L/BE: {s.wins}/{s.losses}/{s.breakeven}  Win rate: {_fmt_pct(s.win_rate)}",
        f"Total: {_fmt_r(s.total_r)}  Avg: {_fmt_r(s.avg_r)}  Avg win: {_fmt_r(s.avg_win_r)}  Avg loss: {_fmt_r(s.avg_loss_r)}",
        f"Profit factor: {pf}  Max DD: {_fmt_r(s.max_drawdown_r)}",
        f"Streaks: {s.max_consecutive_wins} wins / {s.max_consecutive_losses} losses",
        f"Exits: tp={s.tp_exits} sl={s.sl_exits} time={s.time_exits}  Avg hold: {s.avg_hold_minutes:.1f} min",
        (
            f"Skipped: outside_window={sk.outside_window} insufficient_history={sk.insufficient_history} "
            f"invalid_risk={sk.invalid_risk} invalid_same_candle={sk.invalid_same_candle} no_exit={sk.no_exit}"
        ),
    ]

    if report.trades:
        lines.append("")
        for t in report.trades[:max_trades]:
            lines.append(
                f"{fmt_time(t.entry_time)} {t.direction.value.upper():5s} "
                f"in={t.entry_price:g} sl={t.stop:g} out={t.exit_price:g} "
                f"{t.exit_reason.value:4s} {_fmt_r(t.r_multiple)} ({t.hold_minutes}m)"
            )
        hidden = len(report.trades) - max_trades
        if hidden > 0:
            lines.append(f"... {hidden} more")

    return "\n".join(lines)
