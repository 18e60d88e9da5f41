"""Parsers that turn delimited LLM replies back into typed records.

None of these raise on malformed input: unknown shapes degrade to empty
lists or default enum values.
"""

from __future__ import annotations

import re
from typing import Any

from devhub.meetings.models import ActionItem, ActionItemPriority, Participant, Sentiment
from devhub.meetings.prompts import NO_ACTION_ITEMS

MAX_LIST_ITEMS = 10
BULLET_CHARS = "-*•"

URGENT_KEYWORDS = ("urgent", "asap", "immediately", "critical", "emergency", "blocker")
HIGH_KEYWORDS = ("important", "priority", "soon", "deadline", "required")
LOW_KEYWORDS = ("research", "investigate", "consider", "explore", "future", "nice to have")

ASSIGNMENT_PATTERNS = [
    re.compile(r"assigned?\s+to\s+([a-zA-Z]+)"),
    re.compile(r"([a-zA-Z]+)\s+will\s+"),
    re.compile(r"([a-zA-Z]+)\s+should\s+"),
    re.compile(r"([a-zA-Z]+)\s+to\s+handle"),
    re.compile(r"([a-zA-Z]+)'s?\s+responsibility"),
]

SENTIMENT_LABELS = {
    "VERY_POSITIVE": Sentiment.VERY_POSITIVE,
    "POSITIVE": Sentiment.POSITIVE,
    "NEUTRAL": Sentiment.NEUTRAL,
    "NEGATIVE": Sentiment.NEGATIVE,
    "VERY_NEGATIVE": Sentiment.VERY_NEGATIVE,
}


def parse_list_response(text: str, sentinel: str | None = None, limit: int = MAX_LIST_ITEMS) -> list[str]:
    """Split a one-item-per-line reply into a clean list.

    Bullet prefixes are stripped and blank lines dropped. If ``sentinel``
    appears anywhere in the reply the result is empty.
    """
    if sentinel and sentinel in text:
        return []

    items: list[str] = []
    for line in text.split("\n"):
        cleaned = line.strip().lstrip(BULLET_CHARS).strip()
        if cleaned:
            items.append(cleaned)
    return items[:limit]


def parse_sentiment(text: str) -> Sentiment:
    """Map a sentiment label to the enum; anything unrecognised is NEUTRAL."""
    return SENTIMENT_LABELS.get(text.strip().upper(), Sentiment.NEUTRAL)


def determine_priority(text: str) -> ActionItemPriority:
    """Infer a priority from urgency keywords in free text."""
    lowered = text.lower()
    if any(keyword in lowered for keyword in URGENT_KEYWORDS):
        return ActionItemPriority.URGENT
    if any(keyword in lowered for keyword in HIGH_KEYWORDS):
        return ActionItemPriority.HIGH
    if any(keyword in lowered for keyword in LOW_KEYWORDS):
        return ActionItemPriority.LOW
    return ActionItemPriority.MEDIUM


def extract_assignee(text: str, participants: list[Participant]) -> str:
    """Find a participant named in an assignment phrase, or return ""."""
    by_lower = {p.name.lower(): p.name for p in participants}
    lowered = text.lower()
    for pattern in ASSIGNMENT_PATTERNS:
        match = pattern.search(lowered)
        if match and match.group(1) in by_lower:
            return by_lower[match.group(1)]
    return ""


def _label_value(line: str, label: str) -> str | None:
    if line[: len(label)].upper() == label:
        return line[len(label) :].strip()
    return None


def parse_action_items(
    text: str,
    participants: list[Participant] | None = None,
    source_transcript_id: str = "",
) -> list[ActionItem]:
    """Parse ``ITEM:/ASSIGNED:/PRIORITY:/NOTES:`` blocks separated by ``---``.

    Args:
        text: The raw LLM reply.
        participants: Known participants, used to infer an assignee when a
            block has no ASSIGNED line at all.
        source_transcript_id: Stamped onto every parsed item.

    Returns:
        Parsed action items; blocks without a description are dropped.
    """
    if NO_ACTION_ITEMS in text:
        return []

    items: list[ActionItem] = []
    for block in text.split("---"):
        description = ""
        assignee: str | None = None
        priority: ActionItemPriority | None = None
        notes = ""

        for raw_line in block.split("\n"):
            line = raw_line.strip()
            if (value := _label_value(line, "ITEM:")) is not None:
                description = value
            elif (value := _label_value(line, "ASSIGNED:")) is not None:
                assignee = "" if value == "Unassigned" else value
            elif (value := _label_value(line, "PRIORITY:")) is not None:
                priority = ActionItemPriority.parse(value)
            elif (value := _label_value(line, "NOTES:")) is not None:
                notes = value

        if not description.strip():
            continue

        if assignee is None:
            assignee = extract_assignee(f"{description} {notes}", participants or [])
        if priority is None:
            priority = determine_priority(f"{description} {notes}")

        items.append(
            ActionItem(
                description=description,
                assigned_to=assignee,
                priority=priority,
                notes=notes,
                source_transcript_id=source_transcript_id,
            )
        )
    return items


def action_items_from_tool(data: dict[str, Any], source_transcript_id: str = "") -> list[ActionItem]:
    """Convert a ``store_action_items`` tool payload into ActionItems."""
    items: list[ActionItem] = []
    for entry in data.get("action_items", []):
        if not isinstance(entry, dict):
            continue
        description = str(entry.get("description") or "").strip()
        if not description:
            continue
        assignee = str(entry.get("assignee") or "").strip()
        items.append(
            ActionItem(
                description=description,
                assigned_to="" if assignee.lower() == "unassigned" else assignee,
                priority=ActionItemPriority.parse(entry.get("priority")),
                notes=str(entry.get("notes") or ""),
                source_transcript_id=source_transcript_id,
            )
        )
    return items
