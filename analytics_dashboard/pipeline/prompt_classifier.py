"""
Prompt Classifier / SQL Synthesizer
Maps free text to one of a few canned SQL templates by keyword matching
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from analytics_dashboard.schemas import ChartConfig, QueryGenerationResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryTemplate:
    name: str
    keywords: Tuple[str, ...]  # lowercase; any substring hit selects the template
    sql: str
    explanation: str
    complexity: str
    charts: List[dict] = field(default_factory=list)

    def matches(self, normalized_prompt: str) -> bool:
        return any(k in normalized_prompt for k in self.keywords)


MONTHLY_REVENUE = QueryTemplate(
    name="monthly_revenue",
    keywords=("revenue", "umsatz"),
    sql="""SELECT
  DATE_TRUNC('month', created_at) as month,
  SUM(amount) as total_revenue,
  COUNT(*) as order_count
FROM orders
WHERE created_at >= DATE_SUB(NOW(), INTERVAL 6 MONTH)
GROUP BY DATE_TRUNC('month', created_at)
ORDER BY month;""",
    explanation="Diese Abfrage analysiert die Umsatzentwicklung über die letzten 6 Monate, gruppiert nach Monaten.",
    complexity="low",
    charts=[
        {"type": "line", "xAxis": "month", "yAxis": "total_revenue", "title": "Umsatzentwicklung"},
        {"type": "bar", "xAxis": "month", "yAxis": "order_count", "title": "Anzahl Bestellungen"},
    ],
)

CATEGORY_BREAKDOWN = QueryTemplate(
    name="category_breakdown",
    keywords=("category", "kategorie"),
    sql="""SELECT
  category,
  COUNT(*) as product_count,
  AVG(price) as avg_price,
  SUM(sales_count) as total_sales
FROM products
GROUP BY category
ORDER BY total_sales DESC
LIMIT 10;""",
    explanation="Diese Abfrage analysiert Produktkategorien nach Verkaufszahlen und durchschnittlichen Preisen.",
    complexity="low",
    charts=[
        {"type": "pie", "dataKey": "total_sales", "title": "Verkäufe nach Kategorie"},
        {"type": "bar", "xAxis": "category", "yAxis": "avg_price", "title": "Durchschnittspreis nach Kategorie"},
    ],
)

REGIONAL_JOIN = QueryTemplate(
    name="regional_join",
    keywords=("region", "standort"),
    sql="""SELECT
  r.region_name,
  COUNT(DISTINCT c.customer_id) as customer_count,
  SUM(o.amount) as total_revenue,
  AVG(o.amount) as avg_order_value
FROM regions r
JOIN customers c ON r.region_id = c.region_id
JOIN orders o ON c.customer_id = o.customer_id
WHERE o.created_at >= DATE_SUB(NOW(), INTERVAL 1 YEAR)
GROUP BY r.region_name
ORDER BY total_revenue DESC;""",
    explanation="Diese Abfrage analysiert Kundensegmente und Umsätze nach geografischen Regionen.",
    complexity="high",
    charts=[
        {"type": "bar", "xAxis": "region_name", "yAxis": "total_revenue", "title": "Umsatz nach Region"},
        {"type": "scatter", "xAxis": "customer_count", "yAxis": "avg_order_value", "title": "Kunden vs. Bestellwert"},
    ],
)

DAILY_TREND = QueryTemplate(
    name="daily_trend",
    keywords=("trend", "entwicklung"),
    sql="""SELECT
  DATE(created_at) as date,
  COUNT(*) as daily_orders,
  SUM(amount) as daily_revenue,
  AVG(amount) as avg_order_value,
  LAG(COUNT(*)) OVER (ORDER BY DATE(created_at)) as prev_day_orders
FROM orders
WHERE created_at >= DATE_SUB(NOW(), INTERVAL 30 DAY)
GROUP BY DATE(created_at)
ORDER BY date;""",
    explanation="Diese Abfrage zeigt tägliche Trends für die letzten 30 Tage mit Vergleichswerten.",
    complexity="medium",
    charts=[
        {"type": "line", "xAxis": "date", "yAxis": "daily_revenue", "title": "Täglicher Umsatz"},
        {"type": "area", "xAxis": "date", "yAxis": "daily_orders", "title": "Tägliche Bestellungen"},
    ],
)

GENERIC_FALLBACK = QueryTemplate(
    name="generic",
    keywords=(),
    sql="""SELECT
  'sample_metric' as metric,
  COUNT(*) as count,
  AVG(value) as average_value
FROM sample_table
WHERE created_at >= DATE_SUB(NOW(), INTERVAL 1 MONTH)
GROUP BY metric
ORDER BY count DESC
LIMIT 10;""",
    explanation=(
        "Beispielabfrage für die eingegebene Anfrage. Für bessere Ergebnisse verwenden Sie "
        "spezifische Begriffe wie \"Umsatz\", \"Kategorie\" oder \"Region\"."
    ),
    complexity="low",
    charts=[
        {"type": "bar", "xAxis": "metric", "yAxis": "count", "title": "Metriken Übersicht"},
    ],
)

# Priority order: a prompt naming both revenue and trend maps to revenue
TEMPLATES: Tuple[QueryTemplate, ...] = (
    MONTHLY_REVENUE,
    CATEGORY_BREAKDOWN,
    REGIONAL_JOIN,
    DAILY_TREND,
)


def select_template(prompt: str) -> QueryTemplate:
    """First template whose keyword occurs in the lowercased prompt, else the fallback"""
    normalized = prompt.lower()
    for template in TEMPLATES:
        if template.matches(normalized):
            return template
    return GENERIC_FALLBACK


def generate_sql_from_prompt(prompt: Optional[str]) -> QueryGenerationResponse:
    """
    Translate a prompt into a canned SQL query

    Args:
        prompt: Natural-language request, must be non-empty

    Returns:
        QueryGenerationResponse with sql, explanation, complexity and chart suggestions

    Raises:
        ValueError: If prompt is empty
    """
    if not prompt or not prompt.strip():
        raise ValueError("Prompt is required")

    template = select_template(prompt)
    logger.info(f"Prompt '{prompt[:50]}' mapped to template '{template.name}'")

    return QueryGenerationResponse(
        sql_query=template.sql,
        explanation=template.explanation,
        estimated_complexity=template.complexity,
        suggested_charts=[ChartConfig.model_validate(c) for c in template.charts],
    )
