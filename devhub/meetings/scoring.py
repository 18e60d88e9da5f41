"""Heuristic scores for transcripts and analysis results.

These are pure functions of their inputs; no LLM output feeds them other
than the list lengths already stored on the result.
"""

from __future__ import annotations

import re

from devhub.meetings.models import MeetingAnalysisResult, Sentiment

SPEAKER_LABEL = re.compile(r"\b[A-Z][a-z]+:")
SENTENCE_SPLIT = re.compile(r"[.!?]")


def assess_transcript_quality(text: str) -> int:
    """Score how well-formed a transcript is, from 0 to 100.

    Longer text, speaker markup and sentence structure all raise the score.
    """
    score = 50

    if len(text) > 1000:
        score += 20
    if len(text) > 5000:
        score += 10

    if ":" in text:
        score += 15
    if len(SPEAKER_LABEL.findall(text)) > 2:
        score += 15

    if len(SENTENCE_SPLIT.split(text)) > 10:
        score += 10

    return min(100, score)


def _length_factor(length: int) -> int:
    if length < 500:
        return 40
    if length < 2000:
        return 70
    if length < 10000:
        return 90
    return 95


def _participant_factor(count: int) -> int:
    if count == 0:
        return 20
    if count == 1:
        return 50
    if count <= 8:
        return 90
    return 70


def calculate_confidence_score(result: MeetingAnalysisResult) -> int:
    """Average four bucketed factors into a 0-100 confidence score.

    Args:
        result: An analysis result whose lists have been populated.

    Returns:
        Integer confidence; identical inputs always give identical output.
    """
    factors = [
        _length_factor(len(result.transcript.content)),
        _participant_factor(len(result.participants)),
        80 if result.action_items else 60,
        85 if result.key_topics and result.decisions else 70,
    ]
    return int(sum(factors) / len(factors))


def follow_up_recommendations(result: MeetingAnalysisResult) -> list[str]:
    """Suggest next steps based on gaps in the analysis result."""
    recommendations: list[str] = []

    if not result.action_items:
        recommendations.append("Schedule follow-up meeting to define clear action items")

    if any(not item.is_assigned for item in result.action_items):
        recommendations.append("Assign ownership to unassigned action items")

    if not result.decisions:
        recommendations.append("Document and communicate key decisions made")

    if result.open_questions:
        recommendations.append(f"Follow up on {len(result.open_questions)} unanswered questions")

    if result.sentiment in (Sentiment.NEGATIVE, Sentiment.VERY_NEGATIVE):
        recommendations.append("Address concerns and conflicts raised in the meeting")

    return recommendations or ["Continue with planned next steps"]
