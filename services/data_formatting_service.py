"""
Data Formatting Service
Handles numeric detection and locale-style formatting of result cells.

Numbers are rendered the way a browser's default en-US locale does: thousands
separators and at most three fraction digits. Anything that is not a number
passes through unchanged; no HTML escaping is applied.
"""

import math
import numbers
import re
from decimal import Decimal
from typing import Any, Optional

import pandas as pd

INT_RE = re.compile(r"^[+-]?\d+$")


def parse_number(value: Any) -> Optional[int | float]:
    """
    Return value as a number, or None if it is not numeric.

    Accepts ints, floats, Decimals and numeric strings; booleans, empty
    strings, NaN and infinities are not numeric.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, (numbers.Real, Decimal)):
        v = float(value)
        return v if math.isfinite(v) else None
    if isinstance(value, str):
        s = value.strip()
        if not s or '_' in s:
            return None
        if INT_RE.match(s):
            return int(s)
        try:
            v = float(s)
        except ValueError:
            return None
        return v if math.isfinite(v) else None
    return None


def is_numeric(value: Any) -> bool:
    return parse_number(value) is not None


def format_number(value: int | float) -> str:
    """Format with thousands separators and up to three decimals."""
    if isinstance(value, int):
        return f"{value:,}"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip('0').rstrip('.')


class DataFormattingService:
    """Service for formatting result data for display."""

    @staticmethod
    def format_cell(value: Any) -> Any:
        """
        Format one result cell.

        Args:
            value: Raw cell value from the result set

        Returns:
            "" for nulls, formatted string for numbers, value unchanged otherwise
        """
        if value is None:
            return ""
        try:
            if pd.isna(value):
                return ""
        except (TypeError, ValueError):
            pass
        number = parse_number(value)
        if number is None:
            return value
        return format_number(number)

    def format_result_frame(self, df: pd.DataFrame, max_rows: Optional[int] = None) -> pd.DataFrame:
        """
        Format every cell of a result DataFrame for display.

        Args:
            df: Result rows as a DataFrame
            max_rows: Optional cap on displayed rows

        Returns:
            New DataFrame of display strings
        """
        out = df.head(max_rows).copy() if max_rows is not None else df.copy()
        for c in out.columns:
            out[c] = out[c].astype(object).map(self.format_cell)
        return out
