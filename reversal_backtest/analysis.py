from __future__ import annotations

import logging
from typing import Optional

from .config import StrategyConfig
from .errors import AnalysisError
from .indicators import infer_timeframe_minutes
from .loader import parse_candles
from .models import Report
from .spreadsheet import is_spreadsheet_name, spreadsheet_to_csv
from .stats import summarize
from .strategy import TradeSimulator, detect_signals

log = logging.getLogger("analysis")


def analyze_input(data: bytes, file_name: Optional[str] = None, cfg: Optional[StrategyConfig] = None) -> Report:
    """Analyse an upload; `.numbers` / `.zip` names are decoded to CSV first."""
    if is_spreadsheet_name(file_name):
        data = spreadsheet_to_csv(data, cfg)
    return analyze_csv(data, cfg)


def analyze_csv(data: bytes, cfg: Optional[StrategyConfig] = None) -> Report:
    cfg = cfg or StrategyConfig()

    candles = parse_candles(data, cfg)
    if not candles:
        raise AnalysisError("No valid rows parsed from input.")

    timeframe = infer_timeframe_minutes(candles)
    directions = detect_signals(candles)
    trades, skipped = TradeSimulator(candles, directions, cfg).run()
    summary = summarize(candles, timeframe, trades)

    log.info(
        "analysis_done candles=%d signals=%d trades=%d skipped=%d total_r=%.4f",
        len(candles),
        sum(1 for d in directions if d is not None),
        len(trades),
        skipped.total(),
        summary.total_r,
    )
    return Report(summary=summary, skipped=skipped, trades=trades)
