"""Development summary assembly and rendering.

Combines metrics, cross-reference insights and recommendations into a
``DevelopmentSummary``, scores overall health, and renders either a full
markdown report or an LLM-written executive summary for one focus area.
"""

from __future__ import annotations

import logging
from typing import Protocol

from devhub.intelligence.models import (
    CollaborationInsights,
    DateRange,
    DevelopmentMetrics,
    DevelopmentSummary,
    IntelligenceInsight,
    PerformanceTrends,
    PredictiveRecommendation,
    Priority,
    QualityAssessment,
    RiskItem,
)

logger = logging.getLogger(__name__)

MAX_INSIGHTS = 10
MAX_PREDICTIONS = 5

EXECUTIVE_SUMMARY_PROMPT = """\
Write a concise executive summary for senior leadership from this development \
intelligence data.

Focus Area: {focus_area}
Period: {period}

Development Metrics:
- Health Score: {health}/100
- Commits: {commits}
- Code Reviews: {reviews}
- Meetings: {meetings}
- Jira Tickets: {tickets}
- Action Item Completion: {completion:.1f}%
- Average Code Quality: {quality:.1f}/10

Key Insights:
{insights}

Top Recommendations:
{recommendations}

The summary should:
1. Highlight the findings that matter most for {focus_area}
2. Explain business impact and strategic implications
3. Give clear, actionable next steps
4. Stay within 3-4 paragraphs
"""


class TextLLM(Protocol):
    async def invoke(self, prompt: str) -> str: ...


# ── Scores ─────────────────────────────────────────────────────────────────


def calculate_health_score(metrics: DevelopmentMetrics) -> int:
    """Score overall development health from activity thresholds, 0-100."""
    score = 50
    if metrics.total_commits > 10:
        score += 15
    if metrics.total_code_reviews > 5:
        score += 15
    if metrics.action_item_completion_rate > 70:
        score += 20
    return max(0, min(100, score))


def leadership_actions(summary: DevelopmentSummary) -> list[str]:
    actions: list[str] = []
    if summary.overall_health_score < 70:
        actions.append("Schedule team health assessment and improvement planning session")
    if summary.metrics.action_item_completion_rate < 80:
        actions.append("Review and optimize action item tracking and follow-up processes")
    if summary.quality.overall_score < 7.0:
        actions.append("Invest in code quality training and tooling improvements")
    return actions or ["Continue current excellent practices"]


# ── Assessments ────────────────────────────────────────────────────────────


def assess_quality(metrics: DevelopmentMetrics) -> QualityAssessment:
    coverage = min(100.0, metrics.total_code_reviews / metrics.total_commits * 100) if metrics.total_commits else 0.0
    assessment = QualityAssessment(overall_score=round(metrics.average_code_quality, 1), review_coverage=coverage)

    if metrics.average_code_quality >= 7.5:
        assessment.improvements.append("Review scores are consistently good")
    elif metrics.average_code_quality > 0:
        assessment.concerns.append(f"Average review score is {metrics.average_code_quality:.1f}/10")
    if metrics.total_commits and coverage < 50:
        assessment.concerns.append(f"Only {coverage:.0f}% of commits were reviewed")
    if metrics.bugs_fixed > metrics.features_completed:
        assessment.concerns.append("Bug fixes outnumber completed features")
    return assessment


def assess_performance(metrics: DevelopmentMetrics, period: DateRange) -> PerformanceTrends:
    days = max(1, period.days)
    velocity = round(min(10.0, metrics.total_commits / days * 5), 1)
    trends = PerformanceTrends(velocity_score=velocity, velocity_trend="Stable" if metrics.total_commits else "Stalled")

    if metrics.features_completed:
        trends.wins.append(f"{metrics.features_completed} features completed")
    if metrics.bugs_fixed:
        trends.wins.append(f"{metrics.bugs_fixed} bugs fixed")
    if metrics.lines_added + metrics.lines_removed > 5000:
        trends.concerns.append("High code churn this period")
    return trends


def assess_collaboration(metrics: DevelopmentMetrics) -> CollaborationInsights:
    touchpoints = metrics.total_code_reviews + metrics.total_meetings
    score = round(min(10.0, touchpoints / max(1, metrics.total_commits) * 5), 1) if touchpoints else 0.0
    insights = CollaborationInsights(
        collaboration_score=score,
        meeting_effectiveness=int(metrics.average_meeting_engagement),
    )

    if metrics.total_code_reviews:
        insights.strengths.append("Active code reviews")
    if metrics.total_meetings:
        insights.strengths.append("Regular meetings")
    if metrics.total_meetings and metrics.action_items_created == 0:
        insights.gaps.append("Meetings are not producing action items")
    if metrics.action_items_created and metrics.action_item_completion_rate < 70:
        insights.gaps.append("Meeting follow-through is weak")
    return insights


def risks_from(predictions: list[PredictiveRecommendation]) -> list[RiskItem]:
    return [
        RiskItem(description=p.description, level=p.priority, mitigation=p.title)
        for p in predictions
        if p.priority in (Priority.HIGH, Priority.CRITICAL)
    ]


# ── Assembly ───────────────────────────────────────────────────────────────


def assemble_summary(
    period: DateRange,
    metrics: DevelopmentMetrics,
    insights: list[IntelligenceInsight],
    predictions: list[PredictiveRecommendation],
    data_sources: list[str] | None = None,
) -> DevelopmentSummary:
    """Build a DevelopmentSummary without its LLM-written executive summary.

    Args:
        period: Date range covered.
        metrics: Aggregated counts for the period.
        insights: Cross-reference insights (first 10 are kept).
        predictions: Recommendations (first 5 are kept).
        data_sources: Names of the systems that contributed data.

    Returns:
        The populated summary.
    """
    summary = DevelopmentSummary(
        title=f"Development Intelligence Report - {period.days} Day Analysis",
        period=period,
        metrics=metrics,
        insights=insights[:MAX_INSIGHTS],
        predictions=predictions[:MAX_PREDICTIONS],
        data_sources=data_sources or [],
    )
    summary.overall_health_score = calculate_health_score(metrics)
    summary.quality = assess_quality(metrics)
    summary.performance = assess_performance(metrics, period)
    summary.collaboration = assess_collaboration(metrics)
    summary.risks = risks_from(summary.predictions)
    summary.leadership_actions = leadership_actions(summary)
    return summary


async def executive_summary(summary: DevelopmentSummary, llm: TextLLM, focus_area: str = "Overall") -> str:
    """Ask the LLM for an executive summary scoped to ``focus_area``."""
    insights = "\n".join(f"• {i.title}: {i.description}" for i in summary.insights[:3]) or "• None"
    recommendations = "\n".join(f"• {r.title}: {r.description}" for r in summary.predictions[:3]) or "• None"
    m = summary.metrics

    prompt = EXECUTIVE_SUMMARY_PROMPT.format(
        focus_area=focus_area,
        period=summary.period.label,
        health=summary.overall_health_score,
        commits=m.total_commits,
        reviews=m.total_code_reviews,
        meetings=m.total_meetings,
        tickets=m.total_jira_tickets,
        completion=m.action_item_completion_rate,
        quality=summary.quality.overall_score,
        insights=insights,
        recommendations=recommendations,
    )
    return (await llm.invoke(prompt)).strip()


# ── Rendering ──────────────────────────────────────────────────────────────


def _format_metrics(m: DevelopmentMetrics) -> str:
    rows = [
        ("Commits", m.total_commits),
        ("Pull Requests", m.total_pull_requests),
        ("Code Reviews", m.total_code_reviews),
        ("Meetings", m.total_meetings),
        ("Jira Tickets", m.total_jira_tickets),
        ("Lines Added / Removed", f"{m.lines_added} / {m.lines_removed}"),
        ("Bugs Fixed", m.bugs_fixed),
        ("Features Completed", m.features_completed),
        ("Average Code Quality", f"{m.average_code_quality:.1f}/10"),
        ("Action Items (done / created)", f"{m.action_items_completed} / {m.action_items_created}"),
        ("Action Item Completion", f"{m.action_item_completion_rate:.1f}%"),
    ]
    lines = ["| Metric | Value |", "|---|---|"]
    lines += [f"| {name} | {value} |" for name, value in rows]
    return "\n".join(lines)


def render_full_report(summary: DevelopmentSummary) -> str:
    """Render the whole summary as markdown."""
    sections = [
        f"# {summary.title}\n\n_Period: {summary.period.label}_\n",
        f"**Overall Health Score:** {summary.overall_health_score}/100\n",
        "## Metrics\n",
        _format_metrics(summary.metrics),
        "\n## Insights\n",
    ]
    sections += [f"- {i.title}: {i.description}" for i in summary.insights] or ["- No insights this period"]

    sections.append("\n## Recommendations\n")
    sections += [f"- {p.display()}" for p in summary.predictions] or ["- No recommendations"]

    sections.append("\n## Assessments\n")
    sections.append(
        f"- Quality: {summary.quality.overall_score:.1f}/10, review coverage {summary.quality.review_coverage:.0f}%"
    )
    sections.append(
        f"- Performance: velocity {summary.performance.velocity_score:.1f}/10 ({summary.performance.velocity_trend})"
    )
    sections.append(f"- Collaboration: {summary.collaboration.collaboration_score:.1f}/10")
    for concern in summary.quality.concerns + summary.performance.concerns + summary.collaboration.gaps:
        sections.append(f"  - ⚠️ {concern}")

    if summary.risks:
        sections.append("\n## Risks\n")
        sections += [f"- [{r.level}] {r.description}" for r in summary.risks]

    if summary.executive_summary:
        sections.append("\n## Executive Summary\n")
        sections.append(summary.executive_summary)

    sections.append("\n## Leadership Actions\n")
    sections += [f"- {a}" for a in summary.leadership_actions]

    if summary.data_sources:
        sections.append(f"\n_Data sources: {', '.join(summary.data_sources)}_")

    return "\n".join(sections)
