"""Tests for keyword-based prompt → SQL template mapping."""

import pytest

from analytics_dashboard.pipeline.prompt_classifier import (
    CATEGORY_BREAKDOWN,
    DAILY_TREND,
    GENERIC_FALLBACK,
    MONTHLY_REVENUE,
    REGIONAL_JOIN,
    generate_sql_from_prompt,
    select_template,
)


class TestSelectTemplate:

    @pytest.mark.parametrize("prompt", ["Show revenue", "Umsatz pro Monat", "REVENUE by month"])
    def test_revenue_prompts_map_to_monthly_revenue(self, prompt):
        assert select_template(prompt) is MONTHLY_REVENUE

    def test_category_prompt(self):
        assert select_template("Verkäufe nach Kategorie") is CATEGORY_BREAKDOWN

    def test_region_prompt(self):
        assert select_template("Kunden pro Standort") is REGIONAL_JOIN

    def test_trend_prompt(self):
        assert select_template("daily trend please") is DAILY_TREND

    def test_revenue_beats_trend(self):
        assert select_template("revenue trend") is MONTHLY_REVENUE

    def test_unmatched_prompt_falls_back(self):
        assert select_template("hello world") is GENERIC_FALLBACK


class TestGenerateSqlFromPrompt:

    def test_revenue_is_low_complexity(self):
        result = generate_sql_from_prompt("Show me revenue")

        assert result.estimated_complexity == "low"
        assert "orders" in result.sql_query

    def test_german_development_question_groups_by_month(self):
        result = generate_sql_from_prompt("Wie hat sich der Umsatz entwickelt?")

        assert "DATE_TRUNC('month'" in result.sql_query
        assert "GROUP BY" in result.sql_query
        assert result.estimated_complexity == "low"
        assert any(chart.type == "line" for chart in result.suggested_charts)

    def test_region_join_is_high_complexity(self):
        assert generate_sql_from_prompt("region split").estimated_complexity == "high"

    def test_chart_suggestions_are_chart_configs(self):
        result = generate_sql_from_prompt("category split")

        pie = result.suggested_charts[0]
        assert pie.type == "pie"
        assert pie.data_key == "total_sales"

    @pytest.mark.parametrize("prompt", [None, "", "   "])
    def test_empty_prompt_raises(self, prompt):
        with pytest.raises(ValueError, match="Prompt is required"):
            generate_sql_from_prompt(prompt)

    def test_deterministic(self):
        assert generate_sql_from_prompt("Umsatz") == generate_sql_from_prompt("Umsatz")
