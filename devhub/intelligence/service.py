"""Session-level development intelligence.

``IntelligenceService`` gathers commits, tickets, analyzed meetings and
code reviews, runs the correlator and the recommendation rules, and builds
development reports. Meetings, reviews, analyses and insights live in memory
for the lifetime of the service, each capped at the newest ``MAX_HISTORY``
entries.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from devhub.integrations.github import GitHubClient, GitHubCommit
from devhub.integrations.jira import JiraClient, JiraTicket
from devhub.intelligence.correlator import analyze_cross_references, correlation_report, make_scorer
from devhub.intelligence.entities import build_metrics, commit_entity, meeting_entity, ticket_entity
from devhub.intelligence.models import (
    CrossReferenceEntity,
    CrossReferencePattern,
    CrossReferenceResult,
    CrossReferenceType,
    DateRange,
    DevelopmentMetrics,
    DevelopmentSummary,
    InsightType,
    IntelligenceInsight,
    PredictiveRecommendation,
    Priority,
)
from devhub.intelligence.recommendations import generate_recommendations
from devhub.intelligence.report import MAX_INSIGHTS, assemble_summary, executive_summary
from devhub.meetings.models import MeetingAnalysisResult
from devhub.pipeline_config import PipelineConfig
from devhub.review.models import CodeReviewResult

logger = logging.getLogger(__name__)

COMMIT_SAMPLE = 50
ENTITY_WINDOW_DAYS = 30
MAX_HISTORY = 50


def _within(moment: datetime | None, since: datetime) -> bool:
    return moment is None or moment >= since


def _trim(items: list) -> None:
    """Drop the oldest entries beyond ``MAX_HISTORY``."""
    del items[:-MAX_HISTORY]


class TextLLM(Protocol):
    async def invoke(self, prompt: str) -> str: ...


class IntelligenceService:
    def __init__(
        self,
        llm: TextLLM,
        config: PipelineConfig | None = None,
        github: GitHubClient | None = None,
        jira: JiraClient | None = None,
    ) -> None:
        self.llm = llm
        self.config = config or PipelineConfig()
        self.github = github
        self.jira = jira
        self.scorer = make_scorer(self.config.correlation_strategy, self.config.correlation_min_strength)

        self.meetings: list[MeetingAnalysisResult] = []
        self.reviews: list[CodeReviewResult] = []
        self.analyses: list[CrossReferenceResult] = []
        self.insights: list[IntelligenceInsight] = []
        self.recommendations: list[PredictiveRecommendation] = []

    def add_meeting(self, result: MeetingAnalysisResult) -> None:
        self.meetings = [m for m in self.meetings if m.id != result.id] + [result]
        _trim(self.meetings)

    def add_review(self, review: CodeReviewResult) -> None:
        """Record ``review``; a newer review of the same target replaces the older one."""
        self.reviews = [r for r in self.reviews if (r.review_type, r.target) != (review.review_type, review.target)]
        self.reviews.append(review)
        _trim(self.reviews)

    @property
    def data_sources(self) -> list[str]:
        sources = []
        if self.github is not None:
            sources.append("GitHub")
        if self.jira is not None:
            sources.append("Jira")
        if self.meetings:
            sources.append("Meetings")
        return sources

    # ── Collection ─────────────────────────────────────────────────────────

    async def _commits(self, since: datetime) -> list[GitHubCommit]:
        if self.github is None:
            return []
        fetched = await self.github.recent_commits(COMMIT_SAMPLE)
        if not fetched.ok or fetched.value is None:
            logger.warning("Could not collect commits: %s", fetched.message)
            return []
        return [c for c in fetched.value if c.date is None or c.date >= since]

    async def _tickets(self, days: int) -> list[JiraTicket]:
        if self.jira is None:
            return []
        fetched = await self.jira.recent_tickets(days)
        if not fetched.ok or fetched.value is None:
            logger.warning("Could not collect Jira tickets: %s", fetched.message)
            return []
        return fetched.value

    def _meetings_since(self, since: datetime) -> list[MeetingAnalysisResult]:
        return [m for m in self.meetings if m.analyzed_at >= since]

    def _entities(
        self, since: datetime, commits: list[GitHubCommit], tickets: list[JiraTicket]
    ) -> list[CrossReferenceEntity]:
        reviews = {r.target: r for r in self.reviews}
        entities = [commit_entity(c, reviews.get(c.sha)) for c in commits if _within(c.date, since)]
        entities += [meeting_entity(m) for m in self._meetings_since(since)]
        entities += [ticket_entity(t) for t in tickets if _within(t.updated_at or t.created_at, since)]
        return entities

    def _metrics(self, since: datetime, commits: list[GitHubCommit], tickets: list[JiraTicket]) -> DevelopmentMetrics:
        return build_metrics(
            [c for c in commits if _within(c.date, since)],
            self.reviews,
            self._meetings_since(since),
            [t for t in tickets if _within(t.updated_at or t.created_at, since)],
        )

    async def collect_entities(self, days: int = ENTITY_WINDOW_DAYS) -> list[CrossReferenceEntity]:
        """Entities from every configured source over the last ``days`` days."""
        since = DateRange.last_days(days).start
        return self._entities(since, await self._commits(since), await self._tickets(days))

    async def collect_metrics(self, days: int = 7) -> DevelopmentMetrics:
        since = DateRange.last_days(days).start
        return self._metrics(since, await self._commits(since), await self._tickets(days))

    # ── Analysis ───────────────────────────────────────────────────────────

    async def analyze_cross_references(
        self,
        analysis_type: CrossReferenceType = CrossReferenceType.FULL_SYSTEM,
        entities: list[CrossReferenceEntity] | None = None,
    ) -> CrossReferenceResult:
        """Correlate entities and keep the result and its insights in memory.

        Insights from an earlier analysis of the same type are replaced.
        """
        if entities is None:
            entities = await self.collect_entities()
        result = analyze_cross_references(entities, analysis_type, self.scorer)

        self.analyses.append(result)
        _trim(self.analyses)
        self.insights = [i for i in self.insights if i.sources != [analysis_type.value]]
        self.insights += [
            IntelligenceInsight(
                title="Cross-Reference Insight",
                description=text,
                insight_type=InsightType.CORRELATION,
                confidence=result.confidence,
                priority=Priority.MEDIUM,
                sources=[analysis_type.value],
            )
            for text in result.insights
        ]
        _trim(self.insights)
        logger.info("%s", result.summary)
        return result

    async def generate_predictions(self, metrics: DevelopmentMetrics | None = None) -> list[PredictiveRecommendation]:
        """Recommendations for ``metrics``; they replace the previous set."""
        if metrics is None:
            metrics = await self.collect_metrics()
        self.recommendations = generate_recommendations(metrics, self.config.recommendation_mode)
        return self.recommendations

    async def generate_report(self, days: int = 7, include_summary: bool = True) -> DevelopmentSummary:
        """Build a development report for the last ``days`` days.

        Commits and tickets are fetched once and shared by the metrics and
        the cross-reference pass. Failures while collecting data or writing
        the executive summary are recorded in ``executive_summary`` rather
        than raised.
        """
        period = DateRange.last_days(days)
        summary = DevelopmentSummary(title=f"Development Intelligence Report - {days} Day Analysis", period=period)
        try:
            window = max(days, ENTITY_WINDOW_DAYS)
            commits = await self._commits(DateRange.last_days(window).start)
            tickets = await self._tickets(window)

            metrics = self._metrics(period.start, commits, tickets)
            entities = self._entities(DateRange.last_days(ENTITY_WINDOW_DAYS).start, commits, tickets)
            await self.analyze_cross_references(CrossReferenceType.FULL_SYSTEM, entities)
            predictions = await self.generate_predictions(metrics)

            newest_first = list(reversed(self.insights))[:MAX_INSIGHTS]
            summary = assemble_summary(period, metrics, newest_first, predictions, self.data_sources)
            if include_summary:
                summary.executive_summary = await executive_summary(summary, self.llm)
        except Exception as exc:
            logger.exception("Intelligence report failed")
            summary.executive_summary = f"Error generating intelligence report: {exc}"
        return summary

    async def create_executive_summary(self, focus_area: str = "Overall") -> str:
        """Executive summary of the last 7 days scoped to one focus area."""
        report = await self.generate_report(7, include_summary=False)
        return await executive_summary(report, self.llm, focus_area)

    async def detect_patterns(self, pattern_type: str = "All") -> list[CrossReferencePattern]:
        """Patterns from a fresh full-system analysis, filtered by name unless ``All``."""
        result = await self.analyze_cross_references()
        if pattern_type.casefold() == "all":
            return result.patterns
        wanted = pattern_type.casefold()
        return [p for p in result.patterns if wanted in p.name.casefold()]

    async def analyze_code_meeting_correlations(self) -> str:
        result = await self.analyze_cross_references(CrossReferenceType.CODE_TO_MEETING)
        return correlation_report(result)
