"""
Chart Selection Service
Turns a query result plus optional suggestions into chart specs
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import ValidationError

from analytics_dashboard.schemas import ChartConfig, QueryResult

logger = logging.getLogger(__name__)

SUPPORTED_CHART_TYPES = ("line", "bar", "area", "pie", "scatter")

NO_DATA_MESSAGE = "Keine Daten zum Anzeigen"

Suggestion = Union[str, Dict[str, Any], ChartConfig]


@dataclass
class ChartRenderState:
    """
    What the presentation layer should draw

    kind:
        no_data  - empty result, show the placeholder message
        raw_only - rows exist but no chart could be derived
        charts   - render every entry of ``charts``
    """
    kind: Literal["no_data", "raw_only", "charts"]
    charts: List[ChartConfig] = field(default_factory=list)
    message: Optional[str] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ChartService:
    """Heuristic chart selection; no LLM involved"""

    def select_charts(
        self,
        result: QueryResult,
        suggestions: Optional[Sequence[Suggestion]] = None,
    ) -> List[ChartConfig]:
        """
        Derive chart specs for a result

        Args:
            result: Query result (columns in display order)
            suggestions: Chart type names or chart config dicts from the classifier or workflow

        Returns:
            List of ChartConfig; empty when nothing sensible can be drawn
        """
        columns = list(result.columns)
        if len(columns) < 2:
            return []

        charts = self._wrap_suggestions(columns, suggestions or [])
        if charts:
            return charts

        x_axis = columns[0]
        y_axis = next(
            (col for col in columns[1:] if any(_is_number(row.get(col)) for row in result.data)),
            columns[1],
        )
        logger.debug(f"No usable chart suggestion, falling back to bar chart {y_axis} by {x_axis}")
        return [ChartConfig(type="bar", x_axis=x_axis, y_axis=y_axis, title=f"{y_axis} by {x_axis}")]

    def _wrap_suggestions(self, columns: List[str], suggestions: Sequence[Suggestion]) -> List[ChartConfig]:
        charts: List[ChartConfig] = []
        for suggestion in suggestions:
            if isinstance(suggestion, ChartConfig):
                charts.append(suggestion)
                continue

            if isinstance(suggestion, dict):
                try:
                    chart = ChartConfig.model_validate(suggestion)
                except ValidationError:
                    logger.info(f"Dropping unsupported chart suggestion: {suggestion.get('type')}")
                    continue
                charts.append(chart.model_copy(update={
                    "x_axis": chart.x_axis or columns[0],
                    "y_axis": chart.y_axis or columns[1],
                    "title": chart.title or f"{chart.type.capitalize()} Chart",
                }))
                continue

            chart_type = str(suggestion).strip().lower()
            if chart_type not in SUPPORTED_CHART_TYPES:
                logger.info(f"Dropping unsupported chart suggestion: {suggestion}")
                continue
            charts.append(ChartConfig(
                type=chart_type,
                x_axis=columns[0],
                y_axis=columns[1],
                title=f"{chart_type.capitalize()} Chart",
            ))
        return charts

    def render_state(
        self,
        result: Optional[QueryResult],
        suggestions: Optional[Sequence[Suggestion]] = None,
    ) -> ChartRenderState:
        """Never raises; empty or missing data yields the no_data placeholder"""
        if result is None or not result.data:
            return ChartRenderState(kind="no_data", message=NO_DATA_MESSAGE)

        charts = self.select_charts(result, suggestions)
        if not charts:
            return ChartRenderState(kind="raw_only")
        return ChartRenderState(kind="charts", charts=charts)

    @staticmethod
    def pie_series(config: ChartConfig, data: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Name/value pairs for a pie chart

        Without an explicit dataKey the value is the second key of each row,
        so the result depends on the row's key order.
        """
        series = []
        for row in data:
            values = list(row.values())
            if config.data_key:
                value = row.get(config.data_key)
            else:
                value = values[1] if len(values) > 1 else None
            if config.x_axis:
                name = row.get(config.x_axis)
            else:
                name = values[0] if values else None
            series.append({**row, "name": name, "value": value})
        return series
