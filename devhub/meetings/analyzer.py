"""Meeting transcript analysis pipeline.

Runs participant detection, then a sequence of LLM extractions (summary,
action items, topics, decisions, open questions, sentiment), then the
heuristic scorers. ``analyze_transcript`` never raises: failures are recorded
as warnings on the returned result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Protocol

from devhub.errors import ErrorKind, OperationResult
from devhub.integrations.filesystem import TranscriptStore
from devhub.meetings import prompts
from devhub.meetings.models import (
    ActionItem,
    MeetingAnalysisResult,
    MeetingTranscript,
    Participant,
    Sentiment,
)
from devhub.meetings.parsing import (
    action_items_from_tool,
    parse_action_items,
    parse_list_response,
    parse_sentiment,
)
from devhub.meetings.participants import extract_participants
from devhub.meetings.scoring import (
    assess_transcript_quality,
    calculate_confidence_score,
    follow_up_recommendations,
)
from devhub.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)

# Phrases that suggest a field should not be empty. Two or more hits with
# an empty extraction produce a "possible missed" warning.
MISSED_CUES: dict[str, tuple[str, ...]] = {
    "action items": ("action item", "i'll ", " will ", "todo", "follow up", "assigned to", "needs to"),
    "decisions": ("decided", "agreed", "we'll go with", "approved", "decision"),
    "open questions": ("?",),
}


class TextLLM(Protocol):
    async def invoke(self, prompt: str) -> str: ...

    async def invoke_tool(self, prompt: str, tool: dict[str, Any]) -> dict[str, Any] | None: ...


def _count_cues(text: str, cues: tuple[str, ...]) -> int:
    lowered = text.lower()
    return sum(lowered.count(cue) for cue in cues)


def missed_extraction_warnings(result: MeetingAnalysisResult) -> list[str]:
    """Flag fields that came back empty although the transcript hints otherwise."""
    text = result.transcript.content
    fields = {
        "action items": result.action_items,
        "decisions": result.decisions,
        "open questions": result.open_questions,
    }
    warnings: list[str] = []
    for name, values in fields.items():
        if values:
            continue
        hits = _count_cues(text, MISSED_CUES[name])
        if hits > 1:
            warnings.append(
                f"Possible missed {name}: transcript has {hits} cue phrases but none were extracted"
            )
    return warnings


class MeetingAnalyzer:
    """Extracts structured facts from meeting transcripts using an LLM."""

    def __init__(
        self,
        llm: TextLLM,
        config: PipelineConfig | None = None,
        store: TranscriptStore | None = None,
    ) -> None:
        self.llm = llm
        self.config = config or PipelineConfig()
        self.store = store

    # ── Individual extractions ─────────────────────────────────────────────

    def identify_participants(self, text: str) -> list[Participant]:
        return extract_participants(text)

    async def summarize(self, text: str) -> str:
        reply = await self.llm.invoke(prompts.SUMMARY_PROMPT.format(transcript=text))
        return reply.strip()

    async def extract_action_items(
        self,
        text: str,
        participants: list[Participant] | None = None,
        transcript_id: str = "",
    ) -> list[ActionItem]:
        """Extract action items, via tool-use when enabled, else the delimited format.

        Args:
            text: Transcript text.
            participants: Participants to list in the prompt. Detected from
                ``text`` when omitted.
            transcript_id: Stamped onto each item as its source.

        Returns:
            Parsed action items; empty when the model reports none.
        """
        if participants is None:
            participants = extract_participants(text)

        prompt = prompts.ACTION_ITEMS_PROMPT.format(
            participants=", ".join(p.name for p in participants),
            transcript=text,
        )

        if self.config.structured_extraction:
            data = await self.llm.invoke_tool(prompt, prompts.ACTION_ITEM_TOOL)
            if data is not None:
                return action_items_from_tool(data, source_transcript_id=transcript_id)
            logger.info("Structured extraction returned nothing; falling back to delimited format")

        reply = await self.llm.invoke(prompt)
        return parse_action_items(reply, participants, source_transcript_id=transcript_id)

    async def extract_key_topics(self, text: str) -> list[str]:
        reply = await self.llm.invoke(prompts.TOPICS_PROMPT.format(transcript=text))
        return parse_list_response(reply)

    async def extract_decisions(self, text: str) -> list[str]:
        reply = await self.llm.invoke(prompts.DECISIONS_PROMPT.format(transcript=text))
        return parse_list_response(reply, sentinel=prompts.NO_DECISIONS)

    async def extract_open_questions(self, text: str) -> list[str]:
        reply = await self.llm.invoke(prompts.OPEN_QUESTIONS_PROMPT.format(transcript=text))
        return parse_list_response(reply, sentinel=prompts.NO_QUESTIONS)

    async def analyze_sentiment(self, text: str) -> Sentiment:
        reply = await self.llm.invoke(prompts.SENTIMENT_PROMPT.format(transcript=text))
        return parse_sentiment(reply)

    # ── Full pipeline ──────────────────────────────────────────────────────

    async def _extract_secondary(self, text: str) -> tuple[list[str], list[str], list[str], Sentiment]:
        if self.config.parallel_extraction:
            topics, decisions, questions, sentiment = await asyncio.gather(
                self.extract_key_topics(text),
                self.extract_decisions(text),
                self.extract_open_questions(text),
                self.analyze_sentiment(text),
            )
            return topics, decisions, questions, sentiment

        topics = await self.extract_key_topics(text)
        decisions = await self.extract_decisions(text)
        questions = await self.extract_open_questions(text)
        sentiment = await self.analyze_sentiment(text)
        return topics, decisions, questions, sentiment

    async def analyze_transcript(self, transcript: MeetingTranscript) -> MeetingAnalysisResult:
        """Run the full analysis pipeline on one transcript.

        Args:
            transcript: The transcript to analyze. Its status is updated.

        Returns:
            A populated MeetingAnalysisResult. On failure the partial result
            is returned with a warning and a confidence score of 0.
        """
        started = time.perf_counter()
        result = MeetingAnalysisResult(transcript=transcript)
        text = transcript.content
        transcript.mark_processing()

        try:
            result.participants = extract_participants(text)
            transcript.participants = [p.name for p in result.participants]

            result.summary = await self.summarize(text)
            result.action_items = await self.extract_action_items(
                text, result.participants, transcript_id=transcript.id
            )
            (
                result.key_topics,
                result.decisions,
                result.open_questions,
                result.sentiment,
            ) = await self._extract_secondary(text)

            result.confidence_score = calculate_confidence_score(result)
            result.transcript_quality = assess_transcript_quality(text)
            result.follow_up_recommendations = follow_up_recommendations(result)
            result.warnings.extend(missed_extraction_warnings(result))
            transcript.mark_completed()
        except Exception as exc:
            logger.exception("Analysis failed for transcript %s", transcript.id)
            result.warnings.append(f"Analysis failed: {exc}")
            result.confidence_score = 0
            transcript.mark_failed()

        result.processing_time = time.perf_counter() - started
        logger.info(
            "Analyzed %r: %d participants, %d action items, confidence %d",
            transcript.title,
            len(result.participants),
            len(result.action_items),
            result.confidence_score,
        )
        return result

    async def analyze_text(self, text: str, title: str = "Direct Input") -> MeetingAnalysisResult:
        return await self.analyze_transcript(MeetingTranscript(content=text, title=title))

    async def analyze_file(self, path: str | Path) -> OperationResult[MeetingAnalysisResult]:
        """Read a transcript file from the store and analyze it."""
        if self.store is None:
            return OperationResult.failure(ErrorKind.CONFIGURATION, "No transcript store configured")

        created = self.store.create_transcript(path)
        if not created.ok or created.value is None:
            return OperationResult(ok=False, error_kind=created.error_kind, message=created.message)

        result = await self.analyze_transcript(created.value)
        return OperationResult.success(result)

    async def analyze_sample(self, index: int = 0) -> OperationResult[MeetingAnalysisResult]:
        """Analyze one of the template transcripts; ``index`` is clamped into range."""
        if self.store is None:
            return OperationResult.failure(ErrorKind.CONFIGURATION, "No transcript store configured")

        templates = self.store.list_templates()
        if not templates:
            return OperationResult.failure(
                ErrorKind.NOT_FOUND, f"No sample transcripts found in {self.store.templates}"
            )

        index = max(0, min(index, len(templates) - 1))
        return await self.analyze_file(templates[index])
