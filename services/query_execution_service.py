"""
Query Execution Service
Runs generated SQL against a dataset session and returns ordered rows.
"""

from dataclasses import dataclass, field
from typing import Any

import duckdb
import pandas as pd

from .dataset_service import DatasetSession
from .error_handling_service import ErrorCategory, ErrorHandlingService, QueryExecutionError


@dataclass(frozen=True)
class QueryResult:
    """Rows of one executed query; column order equals the SELECT projection."""
    sql: str
    columns: tuple[str, ...]
    rows: tuple[dict[str, Any], ...] = field(default_factory=tuple)
    fingerprint: str = ""

    def __len__(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.rows), columns=list(self.columns))


class QueryExecutionService:
    """Service for executing SQL on the loaded DuckDB table."""

    def execute(self, session: DatasetSession, sql: str) -> QueryResult:
        """
        Execute sql on session's connection.

        Args:
            session: Dataset session the SQL was generated for
            sql: Single SQL statement

        Returns:
            QueryResult tagged with the session fingerprint

        Raises:
            QueryExecutionError: wrapping the store's error message
        """
        try:
            cursor = session.connection.execute(sql)
            columns = tuple(d[0] for d in (cursor.description or []))
            records = cursor.fetchall() if columns else []
        except duckdb.Error as e:
            ErrorHandlingService.log_error(
                f"SQL execution error: {e}",
                category=ErrorCategory.DATA_PROCESSING,
                context="execute",
                log_level="ERROR",
            )
            raise QueryExecutionError(str(e), sql=sql) from e

        rows = tuple(dict(zip(columns, record)) for record in records)
        return QueryResult(sql=sql, columns=columns, rows=rows, fingerprint=session.fingerprint)
