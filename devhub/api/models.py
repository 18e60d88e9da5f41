"""Pydantic request/response schemas for the DevHub API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from devhub.intelligence.models import CrossReferencePattern, CrossReferenceResult, DevelopmentSummary
from devhub.meetings.models import ActionItem, MeetingAnalysisResult, Participant


class TranscriptRequest(BaseModel):
    """Request body carrying raw transcript text."""

    text: str = Field(min_length=1)
    title: str = "Direct Input"


class ParticipantResponse(BaseModel):
    name: str
    role: str = ""
    speaking_turns: int = 0
    participation_level: str
    is_organizer: bool = False

    @classmethod
    def from_participant(cls, p: Participant) -> ParticipantResponse:
        return cls(
            name=p.name,
            role=p.role,
            speaking_turns=p.speaking_turns,
            participation_level=p.participation_level.value,
            is_organizer=p.is_organizer,
        )


class ActionItemResponse(BaseModel):
    description: str
    assigned_to: str = ""
    priority: str
    due_date: datetime | None = None
    status: str

    @classmethod
    def from_item(cls, item: ActionItem) -> ActionItemResponse:
        return cls(
            description=item.description,
            assigned_to=item.assigned_to,
            priority=item.priority.name,
            due_date=item.due_date,
            status=item.status.value,
        )


class MeetingAnalysisResponse(BaseModel):
    """Response body for /api/meetings/analyze."""

    id: str
    title: str
    summary: str
    participants: list[ParticipantResponse]
    action_items: list[ActionItemResponse]
    key_topics: list[str]
    decisions: list[str]
    open_questions: list[str]
    sentiment: str
    confidence_score: int
    transcript_quality: int
    effectiveness_score: int
    follow_up_recommendations: list[str] = []
    warnings: list[str] = []
    quality_issues: list[str] = []
    processing_time: float = 0.0

    @classmethod
    def from_result(cls, result: MeetingAnalysisResult) -> MeetingAnalysisResponse:
        return cls(
            id=result.id,
            title=result.transcript.title,
            summary=result.summary,
            participants=[ParticipantResponse.from_participant(p) for p in result.participants],
            action_items=[ActionItemResponse.from_item(i) for i in result.action_items],
            key_topics=result.key_topics,
            decisions=result.decisions,
            open_questions=result.open_questions,
            sentiment=result.sentiment.name,
            confidence_score=result.confidence_score,
            transcript_quality=result.transcript_quality,
            effectiveness_score=result.effectiveness_score(),
            follow_up_recommendations=result.follow_up_recommendations,
            warnings=result.warnings,
            quality_issues=result.validate(),
            processing_time=result.processing_time,
        )


class SummaryResponse(BaseModel):
    summary: str


class CodeReviewRequest(BaseModel):
    """Request body for /api/review/code."""

    code: str = Field(min_length=1)
    language: str = "C#"
    mode: Literal["analyze", "improve", "standards"] = "analyze"
    focus: str = "general"
    standard: str = "Language Default"


class CodeReviewResponse(BaseModel):
    language: str
    mode: str
    review: str


class FileReviewResponse(BaseModel):
    filename: str
    language: str
    score: int
    issues: list[str] = []
    suggestions: list[str] = []


class CommitReviewResponse(BaseModel):
    """Response body for a commit or pull request review."""

    review_type: str
    target: str
    title: str = ""
    summary: str
    overall_score: int
    files: list[FileReviewResponse]
    key_issues: list[str] = []
    recommendations: list[str] = []
    skipped_files: list[str] = []
    report: str


class CrossReferenceRequest(BaseModel):
    """Request body for /api/intelligence/cross-references."""

    analysis_type: str = "FullSystemAnalysis"


class ConnectionResponse(BaseModel):
    source: str
    target: str
    connection_type: str
    strength: float
    confidence: float
    description: str = ""


class PatternResponse(BaseModel):
    name: str
    description: str
    frequency: int
    confidence: float

    @classmethod
    def from_pattern(cls, pattern: CrossReferencePattern) -> PatternResponse:
        return cls(
            name=pattern.name,
            description=pattern.description,
            frequency=pattern.frequency,
            confidence=pattern.confidence,
        )


class CrossReferenceResponse(BaseModel):
    analysis_type: str
    summary: str
    confidence: float
    entity_count: int
    connections: list[ConnectionResponse]
    patterns: list[PatternResponse]
    insights: list[str]

    @classmethod
    def from_result(cls, result: CrossReferenceResult) -> CrossReferenceResponse:
        def title(entity_id: str) -> str:
            entity = result.entity(entity_id)
            return entity.title if entity else entity_id

        return cls(
            analysis_type=result.analysis_type.value,
            summary=result.summary,
            confidence=result.confidence,
            entity_count=len(result.entities),
            connections=[
                ConnectionResponse(
                    source=title(c.source_id),
                    target=title(c.target_id),
                    connection_type=c.connection_type.value,
                    strength=c.strength,
                    confidence=c.confidence,
                    description=c.description,
                )
                for c in result.connections
            ],
            patterns=[PatternResponse.from_pattern(p) for p in result.patterns],
            insights=result.insights,
        )


class ReportResponse(BaseModel):
    """Response body for /api/intelligence/report."""

    title: str
    period: str
    health_score: int
    executive_summary: str
    leadership_actions: list[str]
    data_sources: list[str]
    report: str

    @classmethod
    def from_summary(cls, summary: DevelopmentSummary, report: str) -> ReportResponse:
        return cls(
            title=summary.title,
            period=summary.period.label,
            health_score=summary.overall_health_score,
            executive_summary=summary.executive_summary,
            leadership_actions=summary.leadership_actions,
            data_sources=summary.data_sources,
            report=report,
        )


class ExecutiveSummaryResponse(BaseModel):
    focus_area: str
    summary: str


class CorrelationsResponse(BaseModel):
    report: str


class WorkflowRequest(BaseModel):
    """Request body for /api/workflows/run."""

    description: str = Field(min_length=1)


class SprintPlanningRequest(BaseModel):
    goals: list[str] = []


class WorkflowResponse(BaseModel):
    """Outcome of any workflow; failures come back with ``ok`` false and an ``error``."""

    workflow: str
    ok: bool
    report: str
    error: str = ""
    started_at: datetime
    finished_at: datetime | None = None
