from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from .analysis import analyze_input
from .config import load_config
from .errors import AnalysisError
from .formatters import format_report_text
from .server import run_server


def _setup_logging(level: str) -> None:
    lvl = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Reversal Backtester - outside-bar intraday backtest")
    p.add_argument("--config", help="Path to YAML config (defaults apply when omitted)")
    p.add_argument("--input", help="Analyse this CSV/.numbers file and exit instead of serving")
    p.add_argument("--json", action="store_true", help="Print the full JSON report (with --input)")
    args = p.parse_args(argv)

    cfg = load_config(args.config)
    _setup_logging(cfg.app.log_level)

    if not args.input:
        try:
            run_server(cfg)
            return 0
        except KeyboardInterrupt:
            return 0

    try:
        with open(args.input, "rb") as f:
            data = f.read()
        report = analyze_input(data, os.path.basename(args.input), cfg.strategy)
    except AnalysisError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        logging.getLogger("main").exception("fatal err=%s", e)
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(format_report_text(report))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
