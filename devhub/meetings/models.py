"""Data models for meeting transcripts and their analysis results."""

from __future__ import annotations

import re
import statistics
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import IntEnum, StrEnum
from pathlib import Path
from typing import Any


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


# ── Enums ──────────────────────────────────────────────────────────────────


class TranscriptStatus(StrEnum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"
    ARCHIVED = "Archived"


class ParticipationLevel(StrEnum):
    SILENT = "Silent"
    MINIMAL = "Minimal"
    ACTIVE = "Active"
    HIGHLY_ACTIVE = "Highly_Active"


class ActionItemPriority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    URGENT = 4

    @classmethod
    def parse(cls, value: str | None) -> ActionItemPriority:
        """Case-insensitive name (or ordinal) lookup, defaulting to MEDIUM."""
        if not value:
            return cls.MEDIUM
        text = value.strip()
        if text.isdigit():
            number = int(text)
            return cls(number) if number in cls._value2member_map_ else cls.MEDIUM
        try:
            return cls[text.upper()]
        except KeyError:
            return cls.MEDIUM


class ActionItemStatus(StrEnum):
    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    ON_HOLD = "OnHold"


class Sentiment(IntEnum):
    VERY_NEGATIVE = -2
    NEGATIVE = -1
    NEUTRAL = 0
    POSITIVE = 1
    VERY_POSITIVE = 2


PRIORITY_EMOJI = {
    ActionItemPriority.URGENT: "🔴",
    ActionItemPriority.HIGH: "🟠",
    ActionItemPriority.MEDIUM: "🟡",
    ActionItemPriority.LOW: "🟢",
}


# ── Transcript ─────────────────────────────────────────────────────────────


@dataclass
class MeetingTranscript:
    """A meeting transcript awaiting or undergoing analysis."""

    content: str
    title: str = "Untitled Meeting"
    meeting_date: datetime = field(default_factory=_now)
    duration_minutes: int = 0
    file_path: str = ""
    participants: list[str] = field(default_factory=list)
    status: TranscriptStatus = TranscriptStatus.PENDING
    meeting_type: str = "General"
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    processed_at: datetime | None = None

    @classmethod
    def from_file(cls, path: str | Path, content: str) -> MeetingTranscript:
        """Build a transcript whose title and date come from the filename."""
        return cls(
            content=content,
            title=title_from_filename(path),
            meeting_date=date_from_filename(path),
            file_path=str(path),
        )

    def mark_processing(self) -> None:
        self.status = TranscriptStatus.PROCESSING

    def mark_completed(self) -> None:
        self.status = TranscriptStatus.COMPLETED
        self.processed_at = _now()

    def mark_failed(self) -> None:
        self.status = TranscriptStatus.FAILED
        self.processed_at = _now()

    def mark_archived(self) -> None:
        self.status = TranscriptStatus.ARCHIVED


def title_from_filename(path: str | Path) -> str:
    """Derive a readable meeting title from a transcript filename.

    ``meeting_transcript_sprint_planning_20240115_1030.txt`` becomes
    ``sprint planning``.
    """
    stem = Path(path).stem
    title = stem.replace("meeting_transcript_", "").replace("transcript_", "").replace("_", " ")
    title = re.sub(r"\d{8} \d{4}", "", title).strip()
    return title or stem


def date_from_filename(path: str | Path) -> datetime:
    """Parse a ``YYYYMMDD_HHMM`` stamp from a filename, else return now."""
    match = re.search(r"(\d{8})_(\d{4})", Path(path).name)
    if match:
        try:
            return datetime.strptime(match.group(1) + match.group(2), "%Y%m%d%H%M").replace(tzinfo=UTC)
        except ValueError:
            pass
    return _now()


# ── Participants and action items ──────────────────────────────────────────


@dataclass
class Participant:
    """A speaker detected in a transcript."""

    name: str
    role: str = ""
    speaking_turns: int = 0
    participation_level: ParticipationLevel = ParticipationLevel.ACTIVE
    is_organizer: bool = False
    is_presenter: bool = False
    key_contributions: list[str] = field(default_factory=list)

    def display(self) -> str:
        text = f"👤 {self.name}"
        if self.role:
            text += f" ({self.role})"
        if self.speaking_turns > 0:
            text += f" - {self.speaking_turns} contributions"
        flags = []
        if self.is_organizer:
            flags.append("📋 Organizer")
        if self.is_presenter:
            flags.append("🎤 Presenter")
        if flags:
            text += f" [{', '.join(flags)}]"
        return text


@dataclass
class ActionItem:
    """A task extracted from a meeting."""

    description: str
    assigned_to: str = ""
    priority: ActionItemPriority = ActionItemPriority.MEDIUM
    due_date: datetime | None = None
    status: ActionItemStatus = ActionItemStatus.OPEN
    category: str = "General"
    estimated_effort: str = ""
    dependencies: list[str] = field(default_factory=list)
    notes: str = ""
    source_transcript_id: str = ""
    source_quote: str = ""
    tags: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @property
    def is_assigned(self) -> bool:
        return bool(self.assigned_to.strip())

    def mark_completed(self) -> None:
        self.status = ActionItemStatus.COMPLETED
        self.updated_at = _now()

    def display(self) -> str:
        emoji = PRIORITY_EMOJI.get(self.priority, "⚪")
        text = f"{emoji} {self.priority.name}: {self.description}"
        if self.is_assigned:
            text += f" (Assigned: {self.assigned_to})"
        if self.due_date:
            text += f" [Due: {self.due_date:%Y-%m-%d}]"
        return text


# ── Analysis result ────────────────────────────────────────────────────────


@dataclass
class MeetingAnalysisResult:
    """Everything extracted from one transcript, plus heuristic scores."""

    transcript: MeetingTranscript
    summary: str = ""
    key_topics: list[str] = field(default_factory=list)
    decisions: list[str] = field(default_factory=list)
    open_questions: list[str] = field(default_factory=list)
    key_quotes: list[str] = field(default_factory=list)
    participants: list[Participant] = field(default_factory=list)
    action_items: list[ActionItem] = field(default_factory=list)
    sentiment: Sentiment = Sentiment.NEUTRAL
    confidence_score: int = 0
    transcript_quality: int = 0
    processing_time: float = 0.0
    warnings: list[str] = field(default_factory=list)
    follow_up_recommendations: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    analyzed_at: datetime = field(default_factory=_now)

    def action_items_by_priority(self) -> dict[ActionItemPriority, list[ActionItem]]:
        """Group action items by priority, highest priority first."""
        grouped: dict[ActionItemPriority, list[ActionItem]] = {}
        for item in sorted(self.action_items, key=lambda i: i.priority, reverse=True):
            grouped.setdefault(item.priority, []).append(item)
        return grouped

    def action_items_for(self, assignee: str) -> list[ActionItem]:
        wanted = assignee.casefold()
        items = [i for i in self.action_items if i.assigned_to.casefold() == wanted]
        return sorted(items, key=lambda i: i.priority, reverse=True)

    def most_active_participants(self, count: int = 5) -> list[Participant]:
        return sorted(self.participants, key=lambda p: p.speaking_turns, reverse=True)[:count]

    def effectiveness_score(self) -> int:
        """Blend outcome counts, participation balance and scores into 0-100."""
        factors = [min(100, len(self.action_items) * 20)]
        if self.participants:
            turns = [p.speaking_turns for p in self.participants]
            factors.append(max(0, 100 - int(statistics.pstdev(turns) * 10)))
        factors.append(min(100, len(self.decisions) * 25))
        factors.append(self.confidence_score)
        factors.append(self.transcript_quality)
        return int(sum(factors) / len(factors))

    def validate(self) -> list[str]:
        """Return a list of quality issues with this result (empty if none)."""
        issues: list[str] = []
        if not self.summary.strip():
            issues.append("Missing meeting summary")
        if not self.participants:
            issues.append("No participants identified")
        if not self.action_items and not self.decisions:
            issues.append("No actionable outcomes identified")
        if self.confidence_score < 50:
            issues.append("Low confidence in analysis results")
        if self.transcript_quality < 60:
            issues.append("Poor transcript quality may affect accuracy")
        return issues

    def format_summary(self) -> str:
        """Render a human-readable, emoji-annotated analysis report.

        Action items are listed highest priority first and participants
        by speaking turns; ``validate`` gaps close the report.
        """
        t = self.transcript
        by_priority = [item for items in self.action_items_by_priority().values() for item in items]
        lines = [
            "📋 **Meeting Analysis Results**",
            f"🎤 **Meeting:** {t.title}",
            f"📅 **Date:** {t.meeting_date:%Y-%m-%d %H:%M}",
            f"⏱️ **Duration:** {t.duration_minutes} minutes",
            f"👥 **Participants:** {len(self.participants)}",
            "",
            "**📝 Summary:**",
            self.summary,
            "",
            "**🎯 Key Topics:**",
            *[f"• {topic}" for topic in self.key_topics],
            "",
            f"**✅ Action Items ({len(self.action_items)}):**",
            *[f"  {item.display()}" for item in by_priority[:5]],
        ]
        if len(self.action_items) > 5:
            lines.append(f"  ... and {len(self.action_items) - 5} more")
        lines += [
            "",
            "**👥 Participants:**",
            *[f"  {p.display()}" for p in self.most_active_participants(len(self.participants))],
            "",
            "**🎯 Decisions Made:**",
            *[f"• {d}" for d in self.decisions],
            "",
            "**❓ Open Questions:**",
            *[f"• {q}" for q in self.open_questions],
            "",
            "**📊 Analysis Metrics:**",
            f"• Confidence Score: {self.confidence_score}%",
            f"• Transcript Quality: {self.transcript_quality}%",
            f"• Processing Time: {self.processing_time:.1f}s",
            f"• Sentiment: {self.sentiment.name.title().replace('_', ' ')}",
        ]
        if self.warnings:
            lines += ["", "⚠️ **Warnings:**", *[f"• {w}" for w in self.warnings]]
        if self.follow_up_recommendations:
            lines += ["", "🔄 **Recommendations:**", *[f"• {r}" for r in self.follow_up_recommendations]]
        issues = self.validate()
        if issues:
            lines += ["", "🔎 **Quality Checks:**", *[f"• {i}" for i in issues]]
        return "\n".join(lines)
