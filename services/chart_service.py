"""
Chart Service
Decides whether a result can be charted and builds the Plotly figure.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

import pandas as pd
import plotly.express as px

from .config_service import ConfigService
from .data_formatting_service import is_numeric, parse_number


@dataclass(frozen=True)
class ChartSpec:
    type: str
    label_column: str
    value_column: str

    @property
    def title(self) -> str:
        return f"{self.value_column.replace('_', ' ')} by {self.label_column.replace('_', ' ')}"


def _has_text(rows: Sequence[Mapping[str, Any]], column: str) -> bool:
    return any(row.get(column) is not None and not is_numeric(row.get(column)) for row in rows)


def _has_number(rows: Sequence[Mapping[str, Any]], column: str) -> bool:
    return any(is_numeric(row.get(column)) for row in rows)


class ChartService:
    """Service for chart-type decisions and figure building."""

    def determine_chart(
        self,
        rows: Sequence[Mapping[str, Any]],
        columns: Optional[Sequence[str]] = None
    ) -> Optional[ChartSpec]:
        """
        Return a bar chart spec for label/value shaped results.

        Eligible only with at least two rows (and no more than
        MAX_CHART_ROWS), exactly two columns, one holding a non-numeric value
        and the other a numeric value.
        """
        if len(rows) < 2 or len(rows) > ConfigService.MAX_CHART_ROWS:
            return None
        columns = list(columns) if columns is not None else list(rows[0].keys())
        if len(columns) != 2:
            return None

        first, second = columns
        for label, value in ((first, second), (second, first)):
            if _has_text(rows, label) and _has_number(rows, value):
                return ChartSpec(type='bar', label_column=label, value_column=value)
        return None

    @staticmethod
    def build_figure(rows: Sequence[Mapping[str, Any]], spec: Optional[ChartSpec]):
        """Build a Plotly bar figure for spec, or None."""
        if spec is None or spec.type != 'bar':
            return None
        table = pd.DataFrame({
            spec.label_column: [str(row.get(spec.label_column)) for row in rows],
            spec.value_column: [parse_number(row.get(spec.value_column)) or 0 for row in rows],
        })
        fig = px.bar(table, x=spec.label_column, y=spec.value_column, title=spec.title)
        fig.update_layout(margin=dict(l=8, r=8, t=40, b=8), height=360, showlegend=False)
        fig.update_layout(yaxis=dict(rangemode='tozero'))
        fig.update_traces(marker_line_width=0)
        return fig
