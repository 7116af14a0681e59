"""
File Parsing Service
Turns uploaded CSV/Excel bytes into row mappings.
"""

import io
import os
import pandas as pd
from typing import Optional

from .config_service import ConfigService
from .error_handling_service import UnsupportedFileTypeError


class FileParsingService:
    """Service for reading uploaded files into a list of row dictionaries."""

    def parse(self, filename: str, data: bytes) -> list[dict[str, Optional[str]]]:
        """
        Parse an uploaded file by extension.

        Args:
            filename: Original file name (extension decides the parser)
            data: Raw file bytes

        Returns:
            Rows as dictionaries sharing the same keys; cell values are
            strings, empty cells are None (Excel) or "" (CSV)

        Raises:
            UnsupportedFileTypeError: for anything but .csv, .xlsx, .xls
        """
        ext = os.path.splitext(filename or "")[1].lower()
        if ext not in ConfigService.SUPPORTED_EXTENSIONS:
            raise UnsupportedFileTypeError(filename)

        if ext == '.csv':
            df = self.read_csv(data)
        else:
            df = self.read_excel(data)
        return self.to_rows(df)

    @staticmethod
    def read_csv(data: bytes) -> pd.DataFrame:
        return pd.read_csv(
            io.BytesIO(data),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )

    def read_excel(self, data: bytes, sheet_name=0) -> pd.DataFrame:
        """Read the first sheet, re-reading with a better header row if needed."""
        df = pd.read_excel(io.BytesIO(data), sheet_name=sheet_name, dtype=str)
        header_row = self._detect_header_row(df, data, sheet_name)
        if header_row:
            df = pd.read_excel(io.BytesIO(data), sheet_name=sheet_name, dtype=str, header=header_row)
        return df

    @staticmethod
    def _detect_header_row(df: pd.DataFrame, data: bytes, sheet_name=0) -> Optional[int]:
        """
        Find the real header row when most detected headers are 'Unnamed'.

        Title rows above a table make pandas name columns 'Unnamed: n'; the
        row among the first few with the most distinct labels wins.
        """
        if len(df.columns) == 0:
            return None
        unnamed = sum(str(c).startswith('Unnamed') for c in df.columns)
        if unnamed / max(len(df.columns), 1) <= ConfigService.UNNAMED_HEADER_RATIO:
            return None

        raw_head = pd.read_excel(
            io.BytesIO(data), sheet_name=sheet_name, header=None,
            nrows=ConfigService.HEADER_SCAN_ROWS
        )
        best_i, best_score = None, -1
        for i in range(min(ConfigService.HEADER_SCAN_ROWS, len(raw_head))):
            vals = raw_head.iloc[i].fillna("").map(str).str.strip().str.lower().tolist()
            ok = [v for v in vals if v and v not in ('nan', 'none') and not v.startswith('unnamed') and len(v) > 1]
            score = len(set(ok))
            if score > best_score:
                best_i, best_score = i, score
        if best_i is not None and best_score > 0:
            return best_i
        return None

    @staticmethod
    def to_rows(df: pd.DataFrame) -> list[dict[str, Optional[str]]]:
        df = df.copy()
        df.columns = [str(c) for c in df.columns]
        df = df.astype(object).where(pd.notna(df), None)
        return df.to_dict('records')
