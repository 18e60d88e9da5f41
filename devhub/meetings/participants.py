"""Deterministic speaker detection for meeting transcripts."""

from __future__ import annotations

import re

from devhub.meetings.models import Participant, ParticipationLevel

# Tried in order; the first pattern that matches a line decides the speaker,
# even if the captured name is later rejected.
SPEAKER_PATTERNS = [
    re.compile(r"^([A-Za-z\s]+):\s*(.+)$"),  # Alice: ...
    re.compile(r"^\[([A-Za-z\s]+)\]:\s*(.+)$"),  # [Alice]: ...
    re.compile(r"^([A-Za-z\s]+)\s*-\s*(.+)$"),  # Alice - ...
]

NAME_CHARS = re.compile(r"^[A-Za-z\s.]+$")

NON_NAME_WORDS = (
    "meeting",
    "transcript",
    "recording",
    "start",
    "end",
    "time",
    "date",
    "agenda",
    "notes",
    "action",
    "summary",
    "moderator",
)

ORGANIZER_KEYWORDS = ("welcome everyone", "let's start", "agenda", "next item", "wrap up", "thank you all")
PRESENTER_KEYWORDS = ("i'll present", "my presentation", "next slide", "as you can see", "in conclusion")

MIN_CONTRIBUTION_LENGTH = 20


def is_valid_participant_name(name: str) -> bool:
    """Return True if ``name`` looks like a person rather than a transcript artifact."""
    if not name.strip() or len(name) < 2 or len(name) > 50:
        return False
    lowered = name.lower()
    if any(word in lowered for word in NON_NAME_WORDS):
        return False
    return bool(NAME_CHARS.match(name))


def _match_speaker(line: str) -> tuple[str, str] | None:
    for pattern in SPEAKER_PATTERNS:
        match = pattern.match(line)
        if match:
            return match.group(1).strip(), match.group(2).strip()
    return None


def _note_role(participant: Participant, utterance: str) -> None:
    lowered = utterance.lower()
    if any(keyword in lowered for keyword in ORGANIZER_KEYWORDS):
        participant.is_organizer = True
    if any(keyword in lowered for keyword in PRESENTER_KEYWORDS):
        participant.is_presenter = True
    if len(utterance) > MIN_CONTRIBUTION_LENGTH:
        participant.key_contributions.append(utterance)


def determine_participation_levels(participants: list[Participant]) -> None:
    """Assign each participant a level relative to the group's average turn count.

    Must run after every participant is known, since the thresholds depend
    on the whole group.
    """
    if not participants:
        return

    average = sum(p.speaking_turns for p in participants) / len(participants)
    for participant in participants:
        turns = participant.speaking_turns
        if turns == 0:
            level = ParticipationLevel.SILENT
        elif turns < average * 0.5:
            level = ParticipationLevel.MINIMAL
        elif turns > average * 1.5:
            level = ParticipationLevel.HIGHLY_ACTIVE
        else:
            level = ParticipationLevel.ACTIVE
        participant.participation_level = level


def extract_participants(text: str) -> list[Participant]:
    """Scan a transcript for ``Speaker: utterance`` lines and build participants.

    Args:
        text: Raw transcript text.

    Returns:
        Participants in order of first appearance, with speaking turns, role
        flags, key contributions and participation level filled in.
    """
    found: dict[str, Participant] = {}

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        matched = _match_speaker(line)
        if matched is None:
            continue

        name, utterance = matched
        if not is_valid_participant_name(name):
            continue

        participant = found.setdefault(name, Participant(name=name))
        participant.speaking_turns += 1
        _note_role(participant, utterance)

    participants = list(found.values())
    determine_participation_levels(participants)
    return participants
