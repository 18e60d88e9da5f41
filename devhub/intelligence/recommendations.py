"""Forward-looking recommendations driven by observed development metrics.

Recommendations come from a declarative rule table. Rules are grouped into
four generators (performance, quality, risk, process); within a group the
first rule whose condition holds produces the group's single
recommendation. ``fixed_catalog`` returns a fixed four-item list for
callers that need stable output.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

from devhub.intelligence.models import (
    ActionStep,
    DevelopmentMetrics,
    Priority,
    PredictiveRecommendation,
    RecommendationCategory,
    TimeFrame,
)
from devhub.pipeline_config import RecommendationMode

GROUPS = ("performance", "quality", "risk", "process")


@dataclass(frozen=True)
class Rule:
    """Condition over metrics -> recommendation template."""

    group: str
    when: Callable[[dict[str, Any]], bool]
    title: str
    description: str  # str.format template over the metrics context
    category: RecommendationCategory
    priority: Priority
    confidence: float
    time_frame: TimeFrame
    steps: tuple[str, ...] = ()
    success_metric: str = ""

    def build(self, context: dict[str, Any]) -> PredictiveRecommendation:
        return PredictiveRecommendation(
            title=self.title,
            description=self.description.format(**context),
            category=self.category,
            priority=self.priority,
            confidence=self.confidence,
            time_frame=self.time_frame,
            action_steps=[ActionStep(number=i, description=step) for i, step in enumerate(self.steps, start=1)],
            success_metrics=[self.success_metric] if self.success_metric else [],
        )


RULES: tuple[Rule, ...] = (
    # Performance
    Rule(
        group="performance",
        when=lambda m: m["churn"] > 5000,
        title="Performance Regression Watch",
        description="{churn} lines changed this period; profile hot paths before the next release",
        category=RecommendationCategory.PERFORMANCE,
        priority=Priority.HIGH,
        confidence=0.75,
        time_frame=TimeFrame.NEXT_SPRINT,
        steps=("Identify the most-changed modules", "Add benchmarks for their critical paths"),
        success_metric="No latency regression in release benchmarks",
    ),
    Rule(
        group="performance",
        when=lambda m: m["total_commits"] > 30 and m["features_completed"] < m["total_commits"] * 0.1,
        title="Delivery Throughput Bottleneck",
        description="{total_commits} commits produced only {features_completed} completed features",
        category=RecommendationCategory.PERFORMANCE,
        priority=Priority.MEDIUM,
        confidence=0.7,
        time_frame=TimeFrame.NEXT_SPRINT,
        steps=("Review work-in-progress limits", "Split large features into shippable slices"),
    ),
    # Quality
    Rule(
        group="quality",
        when=lambda m: 0 < m["average_code_quality"] < 6.0,
        title="Code Quality Recovery",
        description="Average review score is {average_code_quality:.1f}/10; focus review effort on the lowest-scoring files",
        category=RecommendationCategory.CODE_QUALITY,
        priority=Priority.HIGH,
        confidence=0.78,
        time_frame=TimeFrame.THIS_SPRINT,
        steps=("List files scoring below 6/10", "Pair on refactoring the worst offenders"),
        success_metric="Average review score above 7/10",
    ),
    Rule(
        group="quality",
        when=lambda m: 6.0 <= m["average_code_quality"] < 7.5,
        title="Code Quality Improvement",
        description="Average review score of {average_code_quality:.1f}/10 (trend: {quality_trend}) leaves room for stricter review standards",
        category=RecommendationCategory.CODE_QUALITY,
        priority=Priority.MEDIUM,
        confidence=0.68,
        time_frame=TimeFrame.THIS_SPRINT,
    ),
    Rule(
        group="quality",
        when=lambda m: m["bugs_fixed"] > 0 and m["bugs_fixed"] > m["features_completed"],
        title="Test Coverage Investment",
        description="{bugs_fixed} bug fixes outnumber {features_completed} features; add regression tests around recent fixes",
        category=RecommendationCategory.TESTING,
        priority=Priority.MEDIUM,
        confidence=0.7,
        time_frame=TimeFrame.THIS_SPRINT,
    ),
    # Risk
    Rule(
        group="risk",
        when=lambda m: m["total_commits"] > 0 and m["total_code_reviews"] == 0,
        title="Unreviewed Changes Risk",
        description="{total_commits} commits landed without any code review; schedule a security review of recent changes",
        category=RecommendationCategory.SECURITY,
        priority=Priority.CRITICAL,
        confidence=0.82,
        time_frame=TimeFrame.IMMEDIATE,
        steps=("Review recent commits touching authentication and input handling", "Require review before merge"),
    ),
    Rule(
        group="risk",
        when=lambda m: m["total_commits"] > 0 and m["review_ratio"] < 0.5,
        title="Review Coverage Gap",
        description="Only {review_pct:.0f}% of commits were reviewed; unreviewed code raises security and defect risk",
        category=RecommendationCategory.SECURITY,
        priority=Priority.HIGH,
        confidence=0.76,
        time_frame=TimeFrame.THIS_SPRINT,
    ),
    # Process
    Rule(
        group="process",
        when=lambda m: m["action_items_created"] > 0 and m["completion_rate"] < 70,
        title="Action Item Follow-Through",
        description="Only {completion_rate:.0f}% of meeting action items were completed; track owners and due dates",
        category=RecommendationCategory.PROCESS_IMPROVEMENT,
        priority=Priority.HIGH,
        confidence=0.74,
        time_frame=TimeFrame.THIS_SPRINT,
        steps=("Create tickets for open action items", "Review open items at the start of each meeting"),
        success_metric="Action item completion above 80%",
    ),
    Rule(
        group="process",
        when=lambda m: m["total_meetings"] > 0 and m["action_items_created"] == 0,
        title="Meeting Outcome Definition",
        description="{total_meetings} meetings produced no action items; close each meeting with owners and next steps",
        category=RecommendationCategory.TEAM_COLLABORATION,
        priority=Priority.MEDIUM,
        confidence=0.69,
        time_frame=TimeFrame.THIS_SPRINT,
    ),
    Rule(
        group="process",
        when=lambda m: m["total_commits"] > 20,
        title="Process Automation Opportunity",
        description="At {total_commits} commits per period, automating the deployment pipeline would cut release time and manual errors",
        category=RecommendationCategory.AUTOMATION,
        priority=Priority.MEDIUM,
        confidence=0.71,
        time_frame=TimeFrame.THIS_QUARTER,
    ),
)


def metrics_context(
    metrics: DevelopmentMetrics, patterns: list[dict[str, Any]] | None = None
) -> dict[str, Any]:
    """Flatten metrics, derived ratios and trend directions into a dict for rule conditions and templates."""
    context = asdict(metrics)
    trends = {p["type"]: p.get("direction", "unknown") for p in (patterns or []) if "type" in p}
    context["quality_trend"] = trends.get("quality_trend", "unknown")
    review_ratio = metrics.total_code_reviews / metrics.total_commits if metrics.total_commits else 1.0
    context.update(
        completion_rate=metrics.action_item_completion_rate,
        churn=metrics.lines_added + metrics.lines_removed,
        review_ratio=review_ratio,
        review_pct=review_ratio * 100,
    )
    return context


def evaluate_rules(
    metrics: DevelopmentMetrics,
    rules: tuple[Rule, ...] = RULES,
    patterns: list[dict[str, Any]] | None = None,
) -> list[PredictiveRecommendation]:
    """Return at most one recommendation per group, in group order."""
    context = metrics_context(metrics, patterns)
    recommendations: list[PredictiveRecommendation] = []
    for group in GROUPS:
        for rule in rules:
            if rule.group == group and rule.when(context):
                recommendations.append(rule.build(context))
                break
    return recommendations


def historical_patterns() -> list[dict[str, Any]]:
    """Summary of historical trends; currently a single fixed observation."""
    return [{"type": "quality_trend", "direction": "improving", "confidence": 0.8}]


def fixed_catalog() -> list[PredictiveRecommendation]:
    """The fixed four-recommendation catalog, independent of any metrics."""
    return [
        PredictiveRecommendation(
            title="Performance Optimization Opportunity",
            description="Based on current trends, implementing caching strategies could improve response times by 30%",
            category=RecommendationCategory.PERFORMANCE,
            priority=Priority.HIGH,
            confidence=0.75,
            time_frame=TimeFrame.NEXT_SPRINT,
        ),
        PredictiveRecommendation(
            title="Code Quality Improvement",
            description="Increasing test coverage in authentication modules will prevent 2-3 future bugs",
            category=RecommendationCategory.CODE_QUALITY,
            priority=Priority.MEDIUM,
            confidence=0.68,
            time_frame=TimeFrame.THIS_SPRINT,
        ),
        PredictiveRecommendation(
            title="Security Risk Mitigation",
            description="Recent patterns suggest vulnerability in user input validation - recommend security review",
            category=RecommendationCategory.SECURITY,
            priority=Priority.CRITICAL,
            confidence=0.82,
            time_frame=TimeFrame.IMMEDIATE,
        ),
        PredictiveRecommendation(
            title="Process Automation Opportunity",
            description="Automating deployment pipeline could reduce release time by 50% and eliminate manual errors",
            category=RecommendationCategory.PROCESS_IMPROVEMENT,
            priority=Priority.MEDIUM,
            confidence=0.71,
            time_frame=TimeFrame.THIS_QUARTER,
        ),
    ]


def generate_recommendations(
    metrics: DevelopmentMetrics,
    mode: RecommendationMode = RecommendationMode.RULES,
    patterns: list[dict[str, Any]] | None = None,
) -> list[PredictiveRecommendation]:
    """Produce recommendations from metrics (rules) or the fixed catalog."""
    if mode == RecommendationMode.CATALOG:
        return fixed_catalog()
    return evaluate_rules(metrics, patterns=historical_patterns() if patterns is None else patterns)
