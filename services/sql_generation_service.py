"""
SQL Generation Service
Rule-based translation of natural language questions into SQL.

Questions are matched against an ordered table of intent patterns. The first
pattern whose trigger matches and whose builder produces SQL wins; a builder
that cannot resolve a column or a value is skipped and evaluation falls
through to the next pattern. The last pattern always matches, so synthesis
never fails.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .column_detection_service import ColumnDetectionService
from .config_service import ConfigService
from .dataset_service import quote_identifier
from .error_handling_service import ErrorHandlingService, ErrorCategory, NoColumnResolvedError
from .value_extraction_service import ValueExtractionService


SHOW_WORDS = ('show', 'display', 'view')
CHART_WORDS = ('chart', 'graph', 'plot')
SHOW_CHART_WORDS = ('chart', 'graph', 'bar', 'plot')
GROUP_WORDS = ('group', 'by')
AVERAGE_WORDS = ('average', 'avg', 'mean')
SUM_WORDS = ('sum', 'total')
MAX_WORDS = ('maximum', 'max', 'highest')
MIN_WORDS = ('minimum', 'min', 'lowest')
DISTINCT_WORDS = ('unique', 'distinct')
GREATER_WORDS = ('greater than', '>', 'more than')
LESS_WORDS = ('less than', '<', 'below')
SORT_WORDS = ('sort', 'order')
DESC_WORDS = ('desc', 'descending', 'highest')
SEARCH_WORDS = ('find', 'search', 'where')


@dataclass(frozen=True)
class QueryContext:
    """Everything a pattern builder may look at for one question."""
    question: str
    q: str
    schema: tuple[str, ...]
    table: str


@dataclass(frozen=True)
class IntentPattern:
    """A keyword-triggered rule mapping a class of questions to one SQL shape."""
    name: str
    trigger: Callable[[str], bool]
    build: Callable[['SQLGenerationService', QueryContext], Optional[str]]


def _has_any(q: str, words: Sequence[str]) -> bool:
    return any(w in q for w in words)


def _alias(prefix: str, column: str) -> str:
    """Aggregate alias; non-word characters become underscores."""
    return f"{prefix}_{re.sub(r'[^0-9A-Za-z_]', '_', column)}"


def _escape_literal(value: str) -> str:
    return value.replace("'", "''")


def _numeric(column: str) -> str:
    """Column read as a number; values that are not numeric become NULL."""
    return f"TRY_CAST({quote_identifier(column)} AS DOUBLE)"


# Builders

def _grouped_count(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
    col = quote_identifier(svc.require_column(ctx))
    return (
        f'SELECT {col}, COUNT(*) AS count FROM {ctx.table} '
        f'GROUP BY {col} ORDER BY count DESC'
    )


def _first_rows(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
    n = ValueExtractionService.extract_number(ctx.q)
    if n is None:
        n = ConfigService.DEFAULT_TOP_LIMIT
    return f"SELECT * FROM {ctx.table} LIMIT {n}"


def _all_rows(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
    return f"SELECT * FROM {ctx.table}"


def _row_count(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
    return f"SELECT COUNT(*) AS total_rows FROM {ctx.table}"


def _grouped_aggregate(func: str, alias_prefix: str):
    def build(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
        col = svc.require_column(ctx)
        group_col = quote_identifier(svc.require_column(ctx, exclude_column=col))
        alias = _alias(alias_prefix, col)
        return (
            f'SELECT {group_col}, {func}({_numeric(col)}) AS {alias} FROM {ctx.table} '
            f'GROUP BY {group_col} ORDER BY {alias} DESC'
        )
    return build


def _aggregate(func: str, alias_prefix: str):
    def build(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
        col = svc.require_column(ctx)
        return f'SELECT {func}({_numeric(col)}) AS {_alias(alias_prefix, col)} FROM {ctx.table}'
    return build


def _extreme_row(direction: str):
    def build(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
        col = quote_identifier(svc.require_column(ctx))
        return f'SELECT * FROM {ctx.table} ORDER BY {col} {direction} LIMIT 1'
    return build


def _distinct_values(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
    col = quote_identifier(svc.require_column(ctx))
    return f'SELECT DISTINCT {col} FROM {ctx.table} ORDER BY {col}'


def _comparison(operator: str, direction: str):
    def build(svc: 'SQLGenerationService', ctx: QueryContext) -> Optional[str]:
        col = quote_identifier(svc.require_column(ctx))
        value = ValueExtractionService.extract_number(ctx.q)
        if value is None:
            return None
        return (
            f'SELECT * FROM {ctx.table} WHERE {col} {operator} {value} '
            f'ORDER BY {col} {direction}'
        )
    return build


def _sorted_rows(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
    col = quote_identifier(svc.require_column(ctx))
    direction = 'DESC' if _has_any(ctx.q, DESC_WORDS) else 'ASC'
    return f'SELECT * FROM {ctx.table} ORDER BY {col} {direction}'


def _search(svc: 'SQLGenerationService', ctx: QueryContext) -> Optional[str]:
    col = quote_identifier(svc.require_column(ctx))
    # Quoted value comes from the original text so its casing is kept
    value = ValueExtractionService.extract_quoted_value(ctx.question)
    if value is None:
        return None
    return f"SELECT * FROM {ctx.table} WHERE {col} LIKE '%{_escape_literal(value)}%'"


def _sample_rows(svc: 'SQLGenerationService', ctx: QueryContext) -> str:
    return f"SELECT * FROM {ctx.table} LIMIT {ConfigService.DEFAULT_SAMPLE_LIMIT}"


INTENT_PATTERNS: tuple[IntentPattern, ...] = (
    IntentPattern('chart', lambda q: _has_any(q, CHART_WORDS), _grouped_count),
    IntentPattern(
        'show_chart',
        lambda q: _has_any(q, SHOW_WORDS) and _has_any(q, SHOW_CHART_WORDS),
        _grouped_count,
    ),
    IntentPattern('show_by', lambda q: _has_any(q, SHOW_WORDS) and ' by ' in q, _grouped_count),
    IntentPattern(
        'show_first',
        lambda q: _has_any(q, SHOW_WORDS) and _has_any(q, ('first', 'top')),
        _first_rows,
    ),
    IntentPattern('show_all', lambda q: _has_any(q, SHOW_WORDS) and 'all' in q, _all_rows),
    IntentPattern('count_group', lambda q: 'count' in q and _has_any(q, GROUP_WORDS), _grouped_count),
    IntentPattern('count', lambda q: 'count' in q, _row_count),
    IntentPattern(
        'average_group',
        lambda q: _has_any(q, AVERAGE_WORDS) and _has_any(q, GROUP_WORDS),
        _grouped_aggregate('AVG', 'avg'),
    ),
    IntentPattern('average', lambda q: _has_any(q, AVERAGE_WORDS), _aggregate('AVG', 'average')),
    IntentPattern(
        'sum_group',
        lambda q: _has_any(q, SUM_WORDS) and _has_any(q, GROUP_WORDS),
        _grouped_aggregate('SUM', 'total'),
    ),
    IntentPattern('sum', lambda q: _has_any(q, SUM_WORDS), _aggregate('SUM', 'total')),
    IntentPattern('max', lambda q: _has_any(q, MAX_WORDS), _extreme_row('DESC')),
    IntentPattern('min', lambda q: _has_any(q, MIN_WORDS), _extreme_row('ASC')),
    IntentPattern('distinct', lambda q: _has_any(q, DISTINCT_WORDS), _distinct_values),
    IntentPattern('greater_than', lambda q: _has_any(q, GREATER_WORDS), _comparison('>', 'DESC')),
    IntentPattern('less_than', lambda q: _has_any(q, LESS_WORDS), _comparison('<', 'ASC')),
    IntentPattern('sort', lambda q: _has_any(q, SORT_WORDS), _sorted_rows),
    IntentPattern('search', lambda q: _has_any(q, SEARCH_WORDS), _search),
    IntentPattern('group_by', lambda q: ' by ' in q, _grouped_count),
    IntentPattern('sample', lambda q: True, _sample_rows),
)


class SQLGenerationService:
    """Service for synthesizing SQL from questions without an AI backend."""

    def __init__(
        self,
        column_detector: Optional[ColumnDetectionService] = None,
        table_name: Optional[str] = None,
        patterns: Sequence[IntentPattern] = INTENT_PATTERNS
    ):
        self.column_detector = column_detector or ColumnDetectionService()
        self.table_name = table_name or ConfigService.TABLE_NAME
        self.patterns = tuple(patterns)

    def require_column(self, ctx: QueryContext, exclude_column: Optional[str] = None) -> str:
        """Resolve a column for ctx or raise NoColumnResolvedError."""
        column = self.column_detector.resolve(ctx.question, ctx.schema, exclude_column=exclude_column)
        if column is None:
            raise NoColumnResolvedError(
                f"No column matched for question: {ctx.question[:80]}"
            )
        return column

    def classify(self, question: str, schema: Sequence[str]) -> tuple[str, str]:
        """
        Run the pattern table and return the winning pattern with its SQL.

        Args:
            question: Raw question text
            schema: Ordered column names of the loaded table

        Returns:
            Tuple of (pattern_name, sql)
        """
        ctx = QueryContext(
            question=question or "",
            q=(question or "").lower(),
            schema=tuple(schema),
            table=self.table_name,
        )
        for pattern in self.patterns:
            if not pattern.trigger(ctx.q):
                continue
            try:
                sql = pattern.build(self, ctx)
            except NoColumnResolvedError:
                continue
            if sql:
                return pattern.name, sql

        # Only reachable with a custom pattern table lacking a catch-all
        ErrorHandlingService.log_error(
            "No intent pattern produced SQL; using sample query",
            category=ErrorCategory.VALIDATION,
            log_level="WARNING",
            context="classify",
        )
        return 'sample', _sample_rows(self, ctx)

    def synthesize(self, question: str, schema: Sequence[str]) -> str:
        """Translate question into one SELECT statement. Never raises."""
        return self.classify(question, schema)[1]
