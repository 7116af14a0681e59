"""
Column Detection Service
Maps free-text mentions in a question to a concrete schema column.
"""

from typing import Optional, Sequence


class ColumnDetectionService:
    """Service for resolving which uploaded column a question is about."""

    # (question keywords, column keywords): a column matches a pair when the
    # question mentions any question keyword and the column name contains
    # any column keyword.
    SYNONYM_PAIRS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
        (('name', 'title'), ('name', 'title', 'software')),
        (('category', 'type'), ('category', 'type', 'kind')),
        (('install', 'software'), ('install', 'software', 'app', 'program')),
        (('status',), ('status',)),
        (('date', 'time'), ('date', 'time', 'created')),
    )

    # Column name fragments that usually mark a categorical column
    CATEGORICAL_KEYWORDS: tuple[str, ...] = (
        'name', 'title', 'software', 'app', 'program',
        'category', 'type', 'status'
    )

    def resolve(
        self,
        question: str,
        schema: Sequence[str],
        exclude_column: Optional[str] = None
    ) -> Optional[str]:
        """
        Find the column a question refers to.

        Strategies run in strict priority order and the first hit wins:
        exact substring, synonym pairs, categorical fallback, first column.
        When exclude_column is given only the first two strategies run over
        the remaining columns, so the result may be None.

        Args:
            question: Raw question text
            schema: Ordered column names of the loaded table
            exclude_column: Column already used by the caller

        Returns:
            Column name, or None when nothing can be resolved
        """
        q = (question or "").lower()
        cols = [c for c in schema if c != exclude_column] if exclude_column is not None else list(schema)
        if not cols:
            return None

        # Strategy 1: Exact match
        column = self.find_exact(q, cols)
        if column:
            return column

        # Strategy 2: Synonyms
        column = self.find_by_synonym(q, cols)
        if column:
            return column

        if exclude_column is not None:
            return None

        # Strategy 3: Likely categorical column
        column = self.find_categorical(cols)
        if column:
            return column

        # Strategy 4: First column
        return cols[0]

    @staticmethod
    def find_exact(q: str, cols: Sequence[str]) -> Optional[str]:
        """First column (schema order) whose lower-cased name appears in q."""
        for c in cols:
            if c.lower() in q:
                return c
        return None

    def find_by_synonym(self, q: str, cols: Sequence[str]) -> Optional[str]:
        for c in cols:
            lc = c.lower()
            for question_words, column_words in self.SYNONYM_PAIRS:
                if any(w in q for w in question_words) and any(w in lc for w in column_words):
                    return c
        return None

    def find_categorical(self, cols: Sequence[str]) -> Optional[str]:
        for c in cols:
            lc = c.lower()
            if any(k in lc for k in self.CATEGORICAL_KEYWORDS):
                return c
        return None
