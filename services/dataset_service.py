"""
Dataset Service
Loads parsed rows into an in-memory DuckDB table and tracks the active schema.

Each upload produces a new DatasetSession (its own DuckDB connection). The
SchemaRegistry holds the current session and is replaced wholesale on the
next successful upload; results computed against a replaced session are
recognisable through the session fingerprint.
"""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

import duckdb
import pandas as pd

from .config_service import ConfigService
from .error_handling_service import (
    EmptyDatasetError,
    ErrorCategory,
    ErrorHandlingService,
    QueryExecutionError,
)


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


@dataclass
class DatasetSession:
    """The loaded table plus everything needed to query it."""
    connection: duckdb.DuckDBPyConnection
    table_name: str
    schema: tuple[str, ...]
    row_count: int
    source_name: str = ""
    loaded_at: str = field(default_factory=lambda: datetime.now().isoformat())
    fingerprint: str = ""

    def close(self) -> None:
        self.connection.close()


class SchemaRegistry:
    """Holds the active dataset session. Never partially mutated."""

    def __init__(self):
        self._current: Optional[DatasetSession] = None

    @property
    def current(self) -> Optional[DatasetSession]:
        return self._current

    @property
    def schema(self) -> tuple[str, ...]:
        return self._current.schema if self._current else ()

    def replace(self, session: DatasetSession) -> Optional[DatasetSession]:
        """Install session as current; returns the previous one."""
        previous, self._current = self._current, session
        return previous

    def is_current(self, fingerprint: str) -> bool:
        return self._current is not None and self._current.fingerprint == fingerprint


class DatasetService:
    """Service for creating dataset sessions from parsed rows."""

    @staticmethod
    def compute_fingerprint(schema: Sequence[str], row_count: int, source_name: str, loaded_at: str) -> str:
        """
        Compute a stable hash identifying one loaded dataset.

        Hash includes: column names in order, row count, file name and load time.

        Returns:
            SHA256 hash string (hex)
        """
        fingerprint_parts = [
            f"cols:{','.join(schema)}",
            f"rows:{row_count}",
            f"source:{source_name}",
            f"loaded:{loaded_at}",
        ]
        fingerprint = '|'.join(fingerprint_parts)
        return hashlib.sha256(fingerprint.encode('utf-8')).hexdigest()

    @staticmethod
    def _cell(value: Any) -> Optional[str]:
        """Stored cell value: missing or falsy becomes NULL, the rest text."""
        if value is None:
            return None
        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            pass
        if not value:
            return None
        return str(value)

    def create_session(
        self,
        rows: Sequence[Mapping[str, Any]],
        source_name: str = "",
        table_name: Optional[str] = None
    ) -> DatasetSession:
        """
        Create a DuckDB table holding rows, with every column as text.

        The schema is the key order of the first row; values missing from
        later rows are stored as NULL.

        Args:
            rows: Parsed rows sharing one key set
            source_name: Uploaded file name (for display and fingerprint)
            table_name: Override of the configured table name

        Returns:
            New DatasetSession

        Raises:
            EmptyDatasetError: if rows is empty
            QueryExecutionError: if the store rejects the table
        """
        if not rows:
            raise EmptyDatasetError()

        table_name = table_name or ConfigService.TABLE_NAME
        schema = tuple(str(c) for c in rows[0].keys())
        frame = pd.DataFrame(
            [[self._cell(row.get(col)) for col in schema] for row in rows],
            columns=list(schema),
            dtype=object,
        )

        con = duckdb.connect()
        try:
            self._enable_text_arithmetic(con)
            column_defs = ", ".join(f"{quote_identifier(c)} VARCHAR" for c in schema)
            con.execute(f"CREATE TABLE {table_name} ({column_defs})")

            con.register("upload_frame", frame)
            casts = ", ".join(f"CAST({quote_identifier(c)} AS VARCHAR)" for c in schema)
            con.execute(f"INSERT INTO {table_name} SELECT {casts} FROM upload_frame")
            con.unregister("upload_frame")
        except duckdb.Error as e:
            con.close()
            ErrorHandlingService.log_error(
                f"Failed to create table from upload: {e}",
                category=ErrorCategory.DATA_PROCESSING,
                context="create_session",
            )
            raise QueryExecutionError(str(e)) from e

        session = DatasetSession(
            connection=con,
            table_name=table_name,
            schema=schema,
            row_count=len(rows),
            source_name=source_name,
        )
        session.fingerprint = self.compute_fingerprint(
            schema, session.row_count, source_name, session.loaded_at
        )
        ErrorHandlingService.log_error(
            f"Loaded {session.row_count} rows into {table_name} with columns: {', '.join(schema)}",
            category=ErrorCategory.DATA,
            log_level="INFO",
            context="create_session",
        )
        return session

    @staticmethod
    def _enable_text_arithmetic(con: duckdb.DuckDBPyConnection) -> None:
        # Columns are text; lets comparisons against numeric literals cast implicitly
        try:
            con.execute("SET old_implicit_casting = true")
        except duckdb.Error as e:
            ErrorHandlingService.log_error(
                f"Implicit text casting not supported by this DuckDB build: {e}",
                category=ErrorCategory.DATA_PROCESSING,
                log_level="WARNING",
                context="create_session",
            )

    def load(
        self,
        registry: SchemaRegistry,
        rows: Sequence[Mapping[str, Any]],
        source_name: str = ""
    ) -> DatasetSession:
        """
        Create a session and install it; the registry is untouched on failure.

        The replaced session's connection is closed. Results already taken
        from it keep its fingerprint, so they are still reported as stale.
        """
        session = self.create_session(rows, source_name)
        previous = registry.replace(session)
        if previous is not None:
            previous.close()
            ErrorHandlingService.log_error(
                f"Replaced dataset '{previous.source_name}' with '{source_name}'",
                category=ErrorCategory.DATA,
                log_level="INFO",
                context="load",
            )
        return session
