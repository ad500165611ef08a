from __future__ import annotations

import csv
import io
import logging
import os
import tempfile
from datetime import datetime
from typing import Any, List, Optional

from numbers_parser import Document

from .config import StrategyConfig
from .errors import AnalysisError
from .loader import parse_candles

log = logging.getLogger("spreadsheet")

_ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")


def is_spreadsheet_name(file_name: Optional[str]) -> bool:
    if not file_name:
        return False
    lower = file_name.lower()
    return lower.endswith(".numbers") or lower.endswith(".zip")


def looks_like_zip(data: bytes) -> bool:
    return data.startswith(_ZIP_SIGNATURES)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return str(value)


def _table_to_csv(rows: List[List[Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    for row in rows:
        writer.writerow([_cell_text(v) for v in row])
    return buf.getvalue()


def _extract_tables(data: bytes) -> List[str]:
    with tempfile.TemporaryDirectory(prefix="reversal-") as tmp:
        path = os.path.join(tmp, "upload.numbers")
        with open(path, "wb") as f:
            f.write(data)
        try:
            doc = Document(path)
            return [
                _table_to_csv(table.rows(values_only=True))
                for sheet in doc.sheets
                for table in sheet.tables
            ]
        except Exception as e:
            raise AnalysisError(f"failed to parse .numbers file: {e}") from e


def spreadsheet_to_csv(data: bytes, cfg: Optional[StrategyConfig] = None) -> bytes:
    """Pick the table of a Numbers document that yields the most candles, as CSV bytes."""
    if not looks_like_zip(data):
        raise AnalysisError(
            "This .numbers file looks like a package directory. Export as CSV or compress it to .zip first."
        )

    tables = _extract_tables(data)
    if not tables:
        raise AnalysisError("No tables found in .numbers file.")

    best: Optional[str] = None
    best_len = 0
    for idx, text in enumerate(tables):
        n = len(parse_candles(text.encode("utf-8"), cfg))
        log.debug("spreadsheet_table idx=%d candles=%d", idx, n)
        if n > best_len:
            best_len = n
            best = text

    if best is None:
        raise AnalysisError("No valid table found in .numbers file.")
    log.info("spreadsheet_selected tables=%d candles=%d", len(tables), best_len)
    return best.encode("utf-8")
