"""Meeting endpoints: full transcript analysis, participants, summary."""

from __future__ import annotations

from anthropic import APIStatusError
from fastapi import APIRouter, Depends, HTTPException

from devhub.api.deps import get_analyzer, get_intelligence
from devhub.api.models import MeetingAnalysisResponse, ParticipantResponse, SummaryResponse, TranscriptRequest
from devhub.intelligence.service import IntelligenceService
from devhub.meetings.analyzer import MeetingAnalyzer
from devhub.meetings.participants import extract_participants

router = APIRouter()


@router.post("/api/meetings/analyze", response_model=MeetingAnalysisResponse)
async def analyze_meeting(
    request: TranscriptRequest,
    analyzer: MeetingAnalyzer = Depends(get_analyzer),
    intelligence: IntelligenceService = Depends(get_intelligence),
) -> MeetingAnalysisResponse:
    """Analyze a transcript and keep the result for intelligence reports.

    Extraction failures do not fail the request; they come back as warnings
    with a confidence score of 0.
    """
    result = await analyzer.analyze_text(request.text, request.title)
    intelligence.add_meeting(result)
    return MeetingAnalysisResponse.from_result(result)


@router.post("/api/meetings/participants", response_model=list[ParticipantResponse])
async def identify_participants(request: TranscriptRequest) -> list[ParticipantResponse]:
    """Detect speakers from ``Name:`` lines. No LLM call."""
    return [ParticipantResponse.from_participant(p) for p in extract_participants(request.text)]


@router.post("/api/meetings/summary", response_model=SummaryResponse)
async def summarize_meeting(
    request: TranscriptRequest,
    analyzer: MeetingAnalyzer = Depends(get_analyzer),
) -> SummaryResponse:
    try:
        summary = await analyzer.summarize(request.text)
    except APIStatusError as exc:
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc.message}") from exc
    return SummaryResponse(summary=summary)
