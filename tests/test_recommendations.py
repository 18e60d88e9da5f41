"""Tests for rule-driven predictive recommendations."""

from __future__ import annotations

import pytest

from devhub.intelligence.models import DevelopmentMetrics, Priority, RecommendationCategory
from devhub.intelligence.recommendations import (
    RULES,
    evaluate_rules,
    generate_recommendations,
    fixed_catalog,
    metrics_context,
)
from devhub.pipeline_config import RecommendationMode


class TestMetricsContext:
    def test_derived_values(self) -> None:
        metrics = DevelopmentMetrics(
            total_commits=10,
            total_code_reviews=4,
            lines_added=300,
            lines_removed=200,
            action_items_created=4,
            action_items_completed=1,
        )
        context = metrics_context(metrics, [{"type": "quality_trend", "direction": "declining"}])

        assert context["churn"] == 500
        assert context["review_ratio"] == 0.4
        assert context["review_pct"] == pytest.approx(40.0)
        assert context["completion_rate"] == 25.0
        assert context["quality_trend"] == "declining"

    def test_no_commits_counts_as_fully_reviewed(self) -> None:
        assert metrics_context(DevelopmentMetrics())["review_ratio"] == 1.0


class TestEvaluateRules:
    def test_quiet_period_produces_nothing(self) -> None:
        assert evaluate_rules(DevelopmentMetrics()) == []

    def test_one_recommendation_per_group_in_order(self) -> None:
        metrics = DevelopmentMetrics(
            total_commits=40,
            total_code_reviews=0,
            lines_added=6000,
            average_code_quality=5.0,
            action_items_created=10,
            action_items_completed=2,
        )
        titles = [r.title for r in evaluate_rules(metrics)]

        assert titles == [
            "Performance Regression Watch",
            "Code Quality Recovery",
            "Unreviewed Changes Risk",
            "Action Item Follow-Through",
        ]

    def test_descriptions_are_filled_from_metrics(self) -> None:
        metrics = DevelopmentMetrics(total_commits=8, total_code_reviews=2)
        (risk,) = evaluate_rules(metrics)

        assert risk.title == "Review Coverage Gap"
        assert risk.description.startswith("Only 25% of commits were reviewed")
        assert risk.priority is Priority.HIGH
        assert risk.category is RecommendationCategory.SECURITY

    def test_action_steps_are_numbered(self) -> None:
        (rec,) = evaluate_rules(DevelopmentMetrics(total_commits=3, total_code_reviews=0))
        assert [s.number for s in rec.action_steps] == [1, 2]

    def test_every_rule_template_formats(self) -> None:
        context = metrics_context(DevelopmentMetrics(total_commits=1), [])
        for rule in RULES:
            assert rule.build(context).description


class TestGenerateRecommendations:
    def test_catalog_mode_is_fixed(self) -> None:
        recs = generate_recommendations(DevelopmentMetrics(), RecommendationMode.CATALOG)

        assert [r.title for r in recs] == [r.title for r in fixed_catalog()]
        assert len(recs) == 4
        assert recs[2].priority is Priority.CRITICAL

    def test_rules_mode_uses_historical_trend(self) -> None:
        metrics = DevelopmentMetrics(total_commits=2, total_code_reviews=2, average_code_quality=7.0)
        (quality,) = generate_recommendations(metrics)

        assert quality.title == "Code Quality Improvement"
        assert "trend: improving" in quality.description
