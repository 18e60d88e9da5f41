"""Data models for cross-reference analysis, recommendations and reports."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


# ── Enums ──────────────────────────────────────────────────────────────────


class EntityType(StrEnum):
    """Tags for the three source systems; entity_type itself is a free string."""

    CODE_REVIEW = "CodeReview"
    MEETING = "Meeting"
    JIRA_TICKET = "JiraTicket"


class CrossReferenceType(StrEnum):
    CODE_TO_MEETING = "CodeToMeeting"
    MEETING_TO_JIRA = "MeetingToJira"
    CODE_TO_JIRA = "CodeToJira"
    FULL_SYSTEM = "FullSystemAnalysis"

    @classmethod
    def parse(cls, value: str) -> CrossReferenceType:
        """Case-insensitive lookup by value."""
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        raise ValueError(f"Unknown analysis type: {value}")


class ConnectionType(StrEnum):
    DIRECT_REFERENCE = "DirectReference"
    TOPIC_SIMILARITY = "TopicSimilarity"
    PERSON_INVOLVEMENT = "PersonInvolvement"
    TIME_CORRELATION = "TimeCorrelation"
    IMPACT_RELATION = "ImpactRelation"
    DEPENDENCY_RELATION = "DependencyRelation"
    CAUSATION_RELATION = "CausationRelation"
    COMPLETION_RELATION = "CompletionRelation"
    DISCUSSION_RELATION = "DiscussionRelation"
    IMPLEMENTATION_RELATION = "ImplementationRelation"


class ConnectionDirection(StrEnum):
    BIDIRECTIONAL = "Bidirectional"
    SOURCE_TO_TARGET = "SourceToTarget"
    TARGET_TO_SOURCE = "TargetToSource"


class InsightType(StrEnum):
    CORRELATION = "Correlation"
    PATTERN = "Pattern"
    ANOMALY = "Anomaly"
    RECOMMENDATION = "Recommendation"
    PREDICTION = "Prediction"
    RISK = "Risk"
    OPPORTUNITY = "Opportunity"
    TREND = "Trend"


class Priority(StrEnum):
    """Shared priority / risk scale for insights, recommendations and risks."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class RecommendationCategory(StrEnum):
    PERFORMANCE = "Performance"
    SECURITY = "Security"
    CODE_QUALITY = "CodeQuality"
    PROCESS_IMPROVEMENT = "ProcessImprovement"
    TESTING = "Testing"
    DOCUMENTATION = "Documentation"
    ARCHITECTURE = "Architecture"
    TEAM_COLLABORATION = "TeamCollaboration"
    AUTOMATION = "Automation"
    MONITORING = "Monitoring"
    DEPLOYMENT = "Deployment"
    MAINTENANCE = "Maintenance"


class TimeFrame(StrEnum):
    IMMEDIATE = "Immediate"
    THIS_SPRINT = "ThisSprint"
    NEXT_SPRINT = "NextSprint"
    THIS_QUARTER = "ThisQuarter"
    LONG_TERM = "LongTerm"


# ── Cross-reference ────────────────────────────────────────────────────────


@dataclass
class CrossReferenceEntity:
    """A commit, meeting or ticket normalized for correlation."""

    entity_type: str
    title: str
    description: str = ""
    key: str = ""  # ticket key or commit sha, when the source has one
    owner: str = ""
    status: str = ""
    relevance: float = 1.0
    references: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    @property
    def text(self) -> str:
        return f"{self.title} {self.description}"


@dataclass
class EntityConnection:
    source_id: str
    target_id: str
    connection_type: ConnectionType
    strength: float
    confidence: float
    direction: ConnectionDirection = ConnectionDirection.BIDIRECTIONAL
    description: str = ""
    evidence: list[str] = field(default_factory=list)


@dataclass
class CrossReferencePattern:
    name: str
    description: str
    frequency: int
    confidence: float


@dataclass
class CrossReferenceResult:
    """Output of one correlator run."""

    analysis_type: CrossReferenceType
    entities: list[CrossReferenceEntity] = field(default_factory=list)
    connections: list[EntityConnection] = field(default_factory=list)
    confidence: float = 0.0
    insights: list[str] = field(default_factory=list)
    patterns: list[CrossReferencePattern] = field(default_factory=list)
    summary: str = ""
    analyzed_at: datetime = field(default_factory=_now)

    def entity(self, entity_id: str) -> CrossReferenceEntity | None:
        return next((e for e in self.entities if e.id == entity_id), None)


@dataclass
class IntelligenceInsight:
    title: str
    description: str
    insight_type: InsightType = InsightType.CORRELATION
    confidence: float = 0.0
    priority: Priority = Priority.MEDIUM
    sources: list[str] = field(default_factory=list)
    related_entities: list[str] = field(default_factory=list)
    recommended_actions: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    generated_at: datetime = field(default_factory=_now)


# ── Recommendations ────────────────────────────────────────────────────────


@dataclass
class ActionStep:
    number: int
    description: str
    responsible_role: str = ""
    estimated_time: str = ""


@dataclass
class PredictiveRecommendation:
    title: str
    description: str
    category: RecommendationCategory
    priority: Priority
    confidence: float
    time_frame: TimeFrame
    action_steps: list[ActionStep] = field(default_factory=list)
    success_metrics: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    predicted_outcome: str = ""
    risk_if_ignored: str = ""
    id: str = field(default_factory=_new_id)
    generated_at: datetime = field(default_factory=_now)

    def display(self) -> str:
        return f"[{self.priority}] {self.title} ({self.category}, {self.time_frame}, {self.confidence:.0%}): {self.description}"


# ── Report ─────────────────────────────────────────────────────────────────


@dataclass
class DateRange:
    start: datetime
    end: datetime

    @classmethod
    def last_days(cls, days: int) -> DateRange:
        end = _now()
        return cls(start=end - timedelta(days=days), end=end)

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    @property
    def label(self) -> str:
        return f"{self.start:%b %d} - {self.end:%b %d, %Y}"


@dataclass
class DevelopmentMetrics:
    total_commits: int = 0
    total_pull_requests: int = 0
    total_code_reviews: int = 0
    total_meetings: int = 0
    total_jira_tickets: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    bugs_fixed: int = 0
    features_completed: int = 0
    average_code_quality: float = 0.0
    average_meeting_engagement: float = 0.0
    action_items_created: int = 0
    action_items_completed: int = 0

    @property
    def action_item_completion_rate(self) -> float:
        if self.action_items_created == 0:
            return 0.0
        return self.action_items_completed / self.action_items_created * 100


@dataclass
class RiskItem:
    description: str
    level: Priority = Priority.MEDIUM
    mitigation: str = ""


@dataclass
class QualityAssessment:
    overall_score: float = 0.0
    review_coverage: float = 0.0
    improvements: list[str] = field(default_factory=list)
    concerns: list[str] = field(default_factory=list)


@dataclass
class PerformanceTrends:
    velocity_score: float = 0.0
    velocity_trend: str = "Stable"
    wins: list[str] = field(default_factory=list)
    concerns: list[str] = field(default_factory=list)


@dataclass
class CollaborationInsights:
    collaboration_score: float = 0.0
    meeting_effectiveness: int = 0
    strengths: list[str] = field(default_factory=list)
    gaps: list[str] = field(default_factory=list)


@dataclass
class DevelopmentSummary:
    """Top-level development intelligence report."""

    title: str
    period: DateRange
    overall_health_score: int = 0
    metrics: DevelopmentMetrics = field(default_factory=DevelopmentMetrics)
    insights: list[IntelligenceInsight] = field(default_factory=list)
    predictions: list[PredictiveRecommendation] = field(default_factory=list)
    risks: list[RiskItem] = field(default_factory=list)
    quality: QualityAssessment = field(default_factory=QualityAssessment)
    performance: PerformanceTrends = field(default_factory=PerformanceTrends)
    collaboration: CollaborationInsights = field(default_factory=CollaborationInsights)
    executive_summary: str = ""
    leadership_actions: list[str] = field(default_factory=list)
    data_sources: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    generated_at: datetime = field(default_factory=_now)
