"""Development intelligence endpoints: cross-references, patterns, correlations, reports and summaries."""

from __future__ import annotations

from anthropic import APIStatusError
from fastapi import APIRouter, Depends, HTTPException, Query

from devhub.api.deps import get_intelligence
from devhub.api.models import (
    CorrelationsResponse,
    CrossReferenceRequest,
    CrossReferenceResponse,
    ExecutiveSummaryResponse,
    PatternResponse,
    ReportResponse,
)
from devhub.intelligence.models import CrossReferenceType
from devhub.intelligence.report import render_full_report
from devhub.intelligence.service import IntelligenceService

router = APIRouter()


@router.post("/api/intelligence/cross-references", response_model=CrossReferenceResponse)
async def cross_references(
    request: CrossReferenceRequest,
    intelligence: IntelligenceService = Depends(get_intelligence),
) -> CrossReferenceResponse:
    """Correlate commits, meetings and tickets for one analysis type."""
    try:
        analysis_type = CrossReferenceType.parse(request.analysis_type)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    result = await intelligence.analyze_cross_references(analysis_type)
    return CrossReferenceResponse.from_result(result)


@router.get("/api/intelligence/patterns", response_model=list[PatternResponse])
async def patterns(
    pattern_type: str = "All",
    intelligence: IntelligenceService = Depends(get_intelligence),
) -> list[PatternResponse]:
    """Recurring connection patterns from a fresh full-system analysis."""
    found = await intelligence.detect_patterns(pattern_type)
    return [PatternResponse.from_pattern(p) for p in found]


@router.get("/api/intelligence/correlations", response_model=CorrelationsResponse)
async def correlations(intelligence: IntelligenceService = Depends(get_intelligence)) -> CorrelationsResponse:
    return CorrelationsResponse(report=await intelligence.analyze_code_meeting_correlations())


@router.get("/api/intelligence/report", response_model=ReportResponse)
async def report(
    days: int = Query(default=7, ge=1, le=365),
    intelligence: IntelligenceService = Depends(get_intelligence),
) -> ReportResponse:
    summary = await intelligence.generate_report(days)
    return ReportResponse.from_summary(summary, render_full_report(summary))


@router.get("/api/intelligence/executive-summary", response_model=ExecutiveSummaryResponse)
async def executive_summary(
    focus_area: str = "Overall",
    intelligence: IntelligenceService = Depends(get_intelligence),
) -> ExecutiveSummaryResponse:
    try:
        summary = await intelligence.create_executive_summary(focus_area)
    except APIStatusError as exc:
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc.message}") from exc
    return ExecutiveSummaryResponse(focus_area=focus_area, summary=summary)
