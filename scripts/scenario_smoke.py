from __future__ import annotations

from reversal_backtest.analysis import analyze_csv
from reversal_backtest.formatters import format_report_text


# Source times are one hour behind; the loader shifts them to 09:00.. local.
SCENARIO = """Downloaded from example feed
time,open,high,low,close
2024-03-04 08:00,100,101,99,100
2024-03-04 08:05,100,102,97,99
2024-03-04 08:10,98,104,97,103
2024-03-04 08:15,103,105,101,104
2024-03-04 13:05,110,111,109,110
"""


def run_case(name: str, text: str) -> None:
    report = analyze_csv(text.encode("utf-8"))
    print(f"== {name}")
    print(format_report_text(report))
    print()


def main():
    run_case("time_exit", SCENARIO)
    run_case("no_exit", "\n".join(SCENARIO.splitlines()[:-1]) + "\n")


if __name__ == "__main__":
    main()
