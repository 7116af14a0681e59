"""
Insight Service
Derives readable insights and summary metrics from query results.

These artifacts are for presentation only; they never change the query or
its rows.
"""

from typing import Any, Mapping, Optional, Sequence

from .config_service import ConfigService
from .data_formatting_service import DataFormattingService, format_number, parse_number


COUNT_FIELD = "count"


class InsightService:
    """Service for calculating insights and metric cards from result rows."""

    def generate_insights(
        self,
        rows: Sequence[Mapping[str, Any]],
        sql: str = "",
        question: str = ""
    ) -> list[str]:
        """
        Build insight sentences for a result.

        Rows with a `count` field get: total row count, sum of counts, the
        top row's first-column value with its count and, for more than five
        rows, the share of the top five counts in the total. Average
        questions report the average, GROUP BY results report the number of
        groups and the highest non-count value, and a single cell is echoed.

        Args:
            rows: Result rows in projection order
            sql: SQL that produced rows
            question: Question the rows answer

        Returns:
            List of insight strings (empty when nothing applies)
        """
        if not rows:
            return []

        insights = self._count_insights(rows) if COUNT_FIELD in rows[0] else []
        q = (question or "").lower()
        first_value = next(iter(rows[0].values()), None)

        if 'avg' in q or 'average' in q:
            average = parse_number(first_value)
            if average is not None:
                insights.append(f"Average value: {format_number(average)}")

        if 'GROUP BY' in (sql or "").upper() and len(rows) > 1:
            insights.append(f"Found {len(rows)} distinct groups in your data")
            insights.extend(self._highest_group(rows))

        if len(rows) == 1 and len(rows[0]) == 1:
            insights.append(f"Single result: {DataFormattingService.format_cell(first_value)}")

        return insights

    @staticmethod
    def _highest_group(rows: Sequence[Mapping[str, Any]]) -> list[str]:
        keys = list(rows[0].keys())
        if len(keys) < 2 or keys[1] == COUNT_FIELD:
            return []
        label_col, value_col = keys[0], keys[1]
        if parse_number(rows[0].get(value_col)) is None:
            return []
        top = max(rows, key=lambda row: parse_number(row.get(value_col)) or 0)
        value = parse_number(top.get(value_col)) or 0
        return [f"Highest value: {top.get(label_col)} ({format_number(value)})"]

    @staticmethod
    def _count_insights(rows: Sequence[Mapping[str, Any]]) -> list[str]:
        counts = [parse_number(row.get(COUNT_FIELD)) or 0 for row in rows]
        total = sum(counts)
        insights = [
            f"Total rows: {format_number(len(rows))}",
            f"Total count across all groups: {format_number(total)}",
        ]

        top_row = rows[0]
        first_column = next(iter(top_row.keys()))
        insights.append(
            f"Top value: {top_row.get(first_column)} ({format_number(counts[0])})"
        )

        top_n = ConfigService.TOP_SHARE_GROUPS
        if len(rows) > top_n and total:
            share = sum(counts[:top_n]) / total * 100
            insights.append(f"Top {top_n} groups account for {share:.1f}% of the total")

        return insights

    def extract_metrics(self, rows: Sequence[Mapping[str, Any]]) -> list[dict[str, str]]:
        """
        Build metric cards for a single-row result.

        Returns:
            List of {'label', 'value'} dictionaries, one per numeric field
        """
        if len(rows) != 1:
            return []

        metrics = []
        for key, value in rows[0].items():
            number = parse_number(value)
            if number is None:
                continue
            metrics.append({
                'label': str(key).replace('_', ' ').upper(),
                'value': format_number(number),
            })
        return metrics

    @staticmethod
    def detected_column_note(question: str, column: Optional[str]) -> str:
        """Suffix for chat replies to chart questions naming the grouping column."""
        q = (question or "").lower()
        if column and ('chart' in q or 'bar' in q):
            return f' (Detected column for grouping: "{column}")'
        return ""
