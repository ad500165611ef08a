from __future__ import annotations


class AnalysisError(ValueError):
    """Run-level failure: nothing usable could be analysed, no report is produced."""
