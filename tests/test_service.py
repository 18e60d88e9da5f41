"""Tests for the session-level intelligence service."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from devhub.errors import ErrorKind, OperationResult
from devhub.integrations.github import GitHubCommit
from devhub.integrations.jira import JiraTicket
from devhub.intelligence.models import CrossReferenceEntity, CrossReferenceType, DevelopmentMetrics, EntityType
from devhub.intelligence.service import MAX_HISTORY, IntelligenceService
from devhub.meetings.models import MeetingAnalysisResult, MeetingTranscript
from devhub.pipeline_config import CorrelationStrategy, PipelineConfig, RecommendationMode
from devhub.review.models import CodeReviewResult, ReviewType
from tests.conftest import ScriptedLLM

EXEC_MARKER = "executive summary for senior leadership"


def _meeting(title: str = "Payment gateway incident", topics: list[str] | None = None) -> MeetingAnalysisResult:
    return MeetingAnalysisResult(
        transcript=MeetingTranscript(content="Alice: hello", title=title),
        key_topics=topics or ["payment gateway credentials rotation"],
    )


def _github(commits: list[GitHubCommit]) -> MagicMock:
    github = MagicMock()
    github.recent_commits = AsyncMock(return_value=OperationResult.success(commits))
    return github


def _jira(tickets: list[JiraTicket]) -> MagicMock:
    jira = MagicMock()
    jira.recent_tickets = AsyncMock(return_value=OperationResult.success(tickets))
    return jira


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


class TestCollection:
    def test_data_sources(self) -> None:
        service = IntelligenceService(ScriptedLLM(), github=_github([]), jira=_jira([]))
        assert service.data_sources == ["GitHub", "Jira"]

        service.add_meeting(_meeting())
        assert service.data_sources == ["GitHub", "Jira", "Meetings"]

    @pytest.mark.asyncio
    async def test_entities_from_every_source(self) -> None:
        service = IntelligenceService(
            ScriptedLLM(),
            github=_github([GitHubCommit("a" * 40, "Rotate payment gateway credentials")]),
            jira=_jira([JiraTicket(key="OPS-9", title="Gateway credentials leaked")]),
        )
        service.add_meeting(_meeting())

        entities = await service.collect_entities()

        assert [e.entity_type for e in entities] == [EntityType.CODE_REVIEW, EntityType.MEETING, EntityType.JIRA_TICKET]

    @pytest.mark.asyncio
    async def test_source_failure_degrades_to_empty(self) -> None:
        github = MagicMock()
        github.recent_commits = AsyncMock(
            return_value=OperationResult.failure(ErrorKind.EXTERNAL_SERVICE, "HTTP 502")
        )
        service = IntelligenceService(ScriptedLLM(), github=github)

        assert await service.collect_entities() == []

    @pytest.mark.asyncio
    async def test_metrics_include_recorded_meetings(self) -> None:
        service = IntelligenceService(ScriptedLLM())
        service.add_meeting(_meeting())
        service.add_meeting(_meeting("Retro"))

        metrics = await service.collect_metrics(7)

        assert metrics.total_meetings == 2
        assert metrics.total_commits == 0


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


class TestAnalyzeCrossReferences:
    @pytest.mark.asyncio
    async def test_results_and_insights_are_kept(self) -> None:
        service = IntelligenceService(ScriptedLLM(), PipelineConfig(correlation_strategy=CorrelationStrategy.FIXED))
        entities = [
            CrossReferenceEntity(EntityType.CODE_REVIEW, "Commit"),
            CrossReferenceEntity(EntityType.MEETING, "Meeting"),
        ]

        result = await service.analyze_cross_references(CrossReferenceType.CODE_TO_MEETING, entities)

        assert len(result.connections) == 1
        assert service.analyses == [result]
        assert [i.description for i in service.insights] == ["Identified 1 topic-based relationships"]
        assert service.insights[0].sources == ["CodeToMeeting"]

    @pytest.mark.asyncio
    async def test_detect_patterns_filters_by_name(self) -> None:
        service = IntelligenceService(ScriptedLLM(), PipelineConfig(correlation_strategy=CorrelationStrategy.FIXED))
        service.add_meeting(_meeting())
        service.jira = _jira([JiraTicket(key="OPS-1", title="a"), JiraTicket(key="OPS-2", title="b")])

        assert [p.name for p in await service.detect_patterns("topic")] == ["TopicSimilarity Pattern"]
        assert await service.detect_patterns("direct") == []

    @pytest.mark.asyncio
    async def test_code_meeting_correlations_without_data(self) -> None:
        report = await IntelligenceService(ScriptedLLM()).analyze_code_meeting_correlations()
        assert report.startswith("No significant correlations found")


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class TestGenerateReport:
    @pytest.mark.asyncio
    async def test_report_with_executive_summary(self) -> None:
        llm = ScriptedLLM({EXEC_MARKER: "Steady progress."})
        service = IntelligenceService(llm)
        service.add_meeting(_meeting())

        summary = await service.generate_report(7)

        assert summary.title == "Development Intelligence Report - 7 Day Analysis"
        assert summary.metrics.total_meetings == 1
        assert summary.executive_summary == "Steady progress."
        assert summary.data_sources == ["Meetings"]
        assert len(service.analyses) == 1

    @pytest.mark.asyncio
    async def test_failure_is_recorded_not_raised(self) -> None:
        llm = ScriptedLLM({EXEC_MARKER: RuntimeError("model overloaded")})

        summary = await IntelligenceService(llm).generate_report(14)

        assert summary.title == "Development Intelligence Report - 14 Day Analysis"
        assert summary.executive_summary == "Error generating intelligence report: model overloaded"

    @pytest.mark.asyncio
    async def test_executive_summary_uses_focus_area(self) -> None:
        llm = ScriptedLLM({EXEC_MARKER: "Security looks fine."})

        text = await IntelligenceService(llm).create_executive_summary("Security")

        assert text == "Security looks fine."
        assert len(llm.prompts) == 1
        assert "Focus Area: Security" in llm.prompts[0]


# ---------------------------------------------------------------------------
# Predictions
# ---------------------------------------------------------------------------


class TestGeneratePredictions:
    @pytest.mark.asyncio
    async def test_rules_follow_metrics(self) -> None:
        service = IntelligenceService(ScriptedLLM())

        predictions = await service.generate_predictions(DevelopmentMetrics(total_commits=25))

        assert [p.title for p in predictions] == ["Unreviewed Changes Risk", "Process Automation Opportunity"]
        assert service.recommendations == predictions

    @pytest.mark.asyncio
    async def test_catalog_mode(self) -> None:
        config = PipelineConfig(recommendation_mode=RecommendationMode.CATALOG)
        service = IntelligenceService(ScriptedLLM(), config)

        predictions = await service.generate_predictions()

        assert len(predictions) == 4
        assert predictions[0].title == "Performance Optimization Opportunity"


# ---------------------------------------------------------------------------
# Session history
# ---------------------------------------------------------------------------


class TestHistory:
    @pytest.mark.asyncio
    async def test_report_fetches_each_source_once(self) -> None:
        github = _github([GitHubCommit("a" * 40, "Rotate payment gateway credentials")])
        jira = _jira([JiraTicket(key="OPS-9", title="Gateway credentials leaked")])
        service = IntelligenceService(ScriptedLLM({EXEC_MARKER: "ok"}), github=github, jira=jira)

        summary = await service.generate_report(7)

        assert github.recent_commits.await_count == 1
        assert jira.recent_tickets.await_count == 1
        assert summary.metrics.total_commits == 1
        assert summary.metrics.total_jira_tickets == 1
        assert len(service.analyses[0].entities) == 2

    @pytest.mark.asyncio
    async def test_repeated_reports_replace_insights(self) -> None:
        config = PipelineConfig(correlation_strategy=CorrelationStrategy.FIXED)
        service = IntelligenceService(ScriptedLLM(), config, jira=_jira([JiraTicket(key="OPS-1", title="a")]))
        service.add_meeting(_meeting())

        await service.generate_report(7, include_summary=False)
        first = [i.description for i in service.insights]
        await service.generate_report(7, include_summary=False)

        assert [i.description for i in service.insights] == first
        assert len(service.analyses) == 2

    @pytest.mark.asyncio
    async def test_predictions_replace_previous_set(self) -> None:
        service = IntelligenceService(ScriptedLLM())

        await service.generate_predictions(DevelopmentMetrics(total_commits=25))
        await service.generate_predictions(DevelopmentMetrics(total_commits=25))

        assert len(service.recommendations) == 2

    def test_review_of_same_target_replaces_older(self) -> None:
        service = IntelligenceService(ScriptedLLM())
        service.add_review(CodeReviewResult(ReviewType.COMMIT, "abc", overall_score=4))
        service.add_review(CodeReviewResult(ReviewType.COMMIT, "abc", overall_score=8))

        assert [r.overall_score for r in service.reviews] == [8]

    def test_history_is_capped(self) -> None:
        service = IntelligenceService(ScriptedLLM())
        for n in range(MAX_HISTORY + 10):
            service.add_review(CodeReviewResult(ReviewType.COMMIT, f"sha{n}"))
            service.add_meeting(_meeting(f"Meeting {n}"))

        assert len(service.reviews) == MAX_HISTORY
        assert len(service.meetings) == MAX_HISTORY
        assert service.reviews[0].target == "sha10"
