"""Code review endpoints: snippets, commits and pull requests."""

from __future__ import annotations

from anthropic import APIStatusError
from fastapi import APIRouter, Depends, HTTPException

from devhub.api.deps import get_intelligence, get_reviewer, unwrap_or_raise
from devhub.api.models import CodeReviewRequest, CodeReviewResponse, CommitReviewResponse, FileReviewResponse
from devhub.errors import OperationResult
from devhub.intelligence.service import IntelligenceService
from devhub.review.models import CodeReviewResult
from devhub.review.reviewer import CodeReviewer

router = APIRouter()


def _commit_response(result: CodeReviewResult) -> CommitReviewResponse:
    return CommitReviewResponse(
        review_type=result.review_type.value,
        target=result.target,
        title=result.title,
        summary=result.summary,
        overall_score=result.overall_score,
        files=[
            FileReviewResponse(
                filename=f.filename,
                language=f.language,
                score=f.score,
                issues=f.issues,
                suggestions=f.suggestions,
            )
            for f in result.file_reviews
        ],
        key_issues=result.key_issues,
        recommendations=result.recommendations,
        skipped_files=result.skipped_files,
        report=result.format_report(),
    )


@router.post("/api/review/code", response_model=CodeReviewResponse)
async def review_code(
    request: CodeReviewRequest,
    reviewer: CodeReviewer = Depends(get_reviewer),
) -> CodeReviewResponse:
    """Review a code snippet.

    ``mode`` selects a general analysis, improvement suggestions for
    ``focus``, or a coding-standards check against ``standard``.
    """
    try:
        if request.mode == "improve":
            result = await reviewer.suggest_improvements(request.code, request.focus, request.language)
        elif request.mode == "standards":
            result = await reviewer.check_coding_standards(request.code, request.standard, request.language)
        else:
            result = await reviewer.analyze_code(request.code, request.language)
    except APIStatusError as exc:
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc.message}") from exc

    review = unwrap_or_raise(result)
    return CodeReviewResponse(language=request.language, mode=request.mode, review=review)


async def _record(result: OperationResult[CodeReviewResult], intelligence: IntelligenceService) -> CommitReviewResponse:
    review = unwrap_or_raise(result)
    intelligence.add_review(review)
    return _commit_response(review)


@router.post("/api/review/commits/{sha}", response_model=CommitReviewResponse)
async def review_commit(
    sha: str,
    reviewer: CodeReviewer = Depends(get_reviewer),
    intelligence: IntelligenceService = Depends(get_intelligence),
) -> CommitReviewResponse:
    return await _record(await reviewer.review_commit(sha), intelligence)


@router.post("/api/review/pulls/{number}", response_model=CommitReviewResponse)
async def review_pull_request(
    number: int,
    reviewer: CodeReviewer = Depends(get_reviewer),
    intelligence: IntelligenceService = Depends(get_intelligence),
) -> CommitReviewResponse:
    return await _record(await reviewer.review_pull_request(number), intelligence)
