"""Tests for development summary assembly, health scoring and rendering."""

from __future__ import annotations

import pytest

from devhub.intelligence.models import (
    DateRange,
    DevelopmentMetrics,
    DevelopmentSummary,
    IntelligenceInsight,
    PredictiveRecommendation,
    Priority,
    QualityAssessment,
    RecommendationCategory,
    TimeFrame,
)
from devhub.intelligence.report import (
    assemble_summary,
    assess_collaboration,
    assess_performance,
    assess_quality,
    calculate_health_score,
    executive_summary,
    leadership_actions,
    render_full_report,
    risks_from,
)
from tests.conftest import ScriptedLLM

HEALTHY = DevelopmentMetrics(
    total_commits=12,
    total_code_reviews=6,
    average_code_quality=8.2,
    action_items_created=10,
    action_items_completed=9,
)


def _rec(title: str, priority: Priority) -> PredictiveRecommendation:
    return PredictiveRecommendation(
        title=title,
        description=f"{title} description",
        category=RecommendationCategory.SECURITY,
        priority=priority,
        confidence=0.8,
        time_frame=TimeFrame.IMMEDIATE,
    )


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------


class TestHealthScore:
    def test_all_thresholds_met(self) -> None:
        assert HEALTHY.action_item_completion_rate == pytest.approx(90.0)
        assert calculate_health_score(HEALTHY) == 100

    def test_baseline(self) -> None:
        assert calculate_health_score(DevelopmentMetrics()) == 50

    @pytest.mark.parametrize(
        ("metrics", "expected"),
        [
            (DevelopmentMetrics(total_commits=11), 65),
            (DevelopmentMetrics(total_code_reviews=6), 65),
            (DevelopmentMetrics(action_items_created=10, action_items_completed=7), 50),
            (DevelopmentMetrics(action_items_created=10, action_items_completed=8), 70),
        ],
    )
    def test_each_threshold(self, metrics: DevelopmentMetrics, expected: int) -> None:
        assert calculate_health_score(metrics) == expected

    def test_completion_rate_zero_when_nothing_created(self) -> None:
        assert DevelopmentMetrics(action_items_completed=3).action_item_completion_rate == 0.0


class TestLeadershipActions:
    def test_healthy_team(self) -> None:
        summary = assemble_summary(DateRange.last_days(7), HEALTHY, [], [])
        assert summary.overall_health_score == 100
        assert leadership_actions(summary) == ["Continue current excellent practices"]

    def test_struggling_team(self) -> None:
        summary = DevelopmentSummary(
            title="t",
            period=DateRange.last_days(7),
            overall_health_score=50,
            quality=QualityAssessment(overall_score=5.0),
        )
        assert leadership_actions(summary) == [
            "Schedule team health assessment and improvement planning session",
            "Review and optimize action item tracking and follow-up processes",
            "Invest in code quality training and tooling improvements",
        ]


# ---------------------------------------------------------------------------
# Assessments
# ---------------------------------------------------------------------------


class TestAssessments:
    def test_quality_review_coverage(self) -> None:
        quality = assess_quality(DevelopmentMetrics(total_commits=10, total_code_reviews=3, average_code_quality=8.0))

        assert quality.review_coverage == pytest.approx(30.0)
        assert quality.overall_score == 8.0
        assert quality.improvements == ["Review scores are consistently good"]
        assert quality.concerns == ["Only 30% of commits were reviewed"]

    def test_quality_bugs_outnumber_features(self) -> None:
        quality = assess_quality(DevelopmentMetrics(bugs_fixed=3, features_completed=1))
        assert "Bug fixes outnumber completed features" in quality.concerns

    def test_performance_velocity(self) -> None:
        trends = assess_performance(DevelopmentMetrics(total_commits=14, features_completed=2), DateRange.last_days(7))

        assert trends.velocity_score == 10.0
        assert trends.velocity_trend == "Stable"
        assert trends.wins == ["2 features completed"]

    def test_performance_stalled(self) -> None:
        trends = assess_performance(DevelopmentMetrics(lines_added=6000), DateRange.last_days(7))
        assert trends.velocity_trend == "Stalled"
        assert trends.concerns == ["High code churn this period"]

    def test_collaboration(self) -> None:
        insights = assess_collaboration(
            DevelopmentMetrics(total_commits=4, total_code_reviews=2, total_meetings=2, average_meeting_engagement=72.6)
        )

        assert insights.collaboration_score == 5.0
        assert insights.meeting_effectiveness == 72
        assert insights.strengths == ["Active code reviews", "Regular meetings"]
        assert insights.gaps == ["Meetings are not producing action items"]

    def test_risks_keep_high_and_critical(self) -> None:
        risks = risks_from([_rec("a", Priority.LOW), _rec("b", Priority.HIGH), _rec("c", Priority.CRITICAL)])
        assert [(r.mitigation, r.level) for r in risks] == [("b", Priority.HIGH), ("c", Priority.CRITICAL)]


# ---------------------------------------------------------------------------
# Assembly and rendering
# ---------------------------------------------------------------------------


class TestAssembleSummary:
    def test_caps_insights_and_predictions(self) -> None:
        insights = [IntelligenceInsight(title=f"i{n}", description="d") for n in range(15)]
        predictions = [_rec(f"r{n}", Priority.MEDIUM) for n in range(8)]

        summary = assemble_summary(DateRange.last_days(30), HEALTHY, insights, predictions, ["GitHub"])

        assert summary.title == "Development Intelligence Report - 30 Day Analysis"
        assert len(summary.insights) == 10
        assert len(summary.predictions) == 5
        assert summary.data_sources == ["GitHub"]
        assert summary.executive_summary == ""


class TestRenderFullReport:
    def test_sections(self) -> None:
        summary = assemble_summary(DateRange.last_days(7), HEALTHY, [], [_rec("Patch auth", Priority.CRITICAL)], ["Jira"])
        summary.executive_summary = "All good."

        report = render_full_report(summary)

        assert report.startswith("# Development Intelligence Report - 7 Day Analysis")
        assert "**Overall Health Score:** 100/100" in report
        assert "| Commits | 12 |" in report
        assert "| Action Item Completion | 90.0% |" in report
        assert "- No insights this period" in report
        assert "## Risks" in report
        assert "- [Critical] Patch auth description" in report
        assert "## Executive Summary\n\nAll good." in report
        assert report.rstrip().endswith("_Data sources: Jira_")

    def test_no_risks_section_without_high_priorities(self) -> None:
        summary = assemble_summary(DateRange.last_days(7), DevelopmentMetrics(), [], [])
        report = render_full_report(summary)
        assert "## Risks" not in report
        assert "- No recommendations" in report


class TestExecutiveSummary:
    @pytest.mark.asyncio
    async def test_prompt_carries_focus_and_metrics(self) -> None:
        llm = ScriptedLLM({"executive summary for senior leadership": "  Security posture is improving.  "})
        summary = assemble_summary(
            DateRange.last_days(7),
            HEALTHY,
            [IntelligenceInsight(title="Cross-Reference Insight", description="Found 2 strong cross-system correlations")],
            [_rec("Patch auth", Priority.CRITICAL)],
        )

        text = await executive_summary(summary, llm, "Security")

        assert text == "Security posture is improving."
        prompt = llm.prompts[0]
        assert "Focus Area: Security" in prompt
        assert "- Health Score: 100/100" in prompt
        assert "- Action Item Completion: 90.0%" in prompt
        assert "• Cross-Reference Insight: Found 2 strong cross-system correlations" in prompt
        assert "• Patch auth: Patch auth description" in prompt
