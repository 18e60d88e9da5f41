"""FastAPI dependencies: process-wide clients and services built from Settings.

The intelligence service keeps analyses in memory, so one instance serves
the whole process. Tests replace these through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TypeVar

from fastapi import Depends, HTTPException

from devhub.config import get_settings
from devhub.errors import ErrorKind, OperationResult
from devhub.integrations.github import GitHubClient
from devhub.integrations.jira import JiraClient
from devhub.integrations.tickets import TicketWorkflow
from devhub.intelligence.service import IntelligenceService
from devhub.llm import LLMClient
from devhub.meetings.analyzer import MeetingAnalyzer
from devhub.pipeline_config import PipelineConfig
from devhub.review.reviewer import CodeReviewer
from devhub.workflows import WorkflowRunner

T = TypeVar("T")

STATUS_BY_KIND = {
    ErrorKind.CONFIGURATION: 503,
    ErrorKind.EXTERNAL_SERVICE: 502,
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PARSE: 502,
    ErrorKind.UNSUPPORTED: 400,
    ErrorKind.INTERNAL: 500,
}


def status_for(kind: ErrorKind | None) -> int:
    return STATUS_BY_KIND.get(kind, 500) if kind is not None else 500


def unwrap_or_raise(result: OperationResult[T]) -> T:
    """Return the value of a successful result, else raise the matching HTTPException."""
    if result.ok and result.value is not None:
        return result.value
    raise HTTPException(status_code=status_for(result.error_kind), detail=result.message)


@lru_cache(maxsize=1)
def get_llm() -> LLMClient:
    return LLMClient(get_settings())


def get_pipeline_config() -> PipelineConfig:
    return PipelineConfig.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_github() -> GitHubClient | None:
    settings = get_settings()
    if not settings.github_enabled:
        return None
    return GitHubClient(settings)


@lru_cache(maxsize=1)
def get_jira() -> JiraClient | None:
    settings = get_settings()
    if not settings.jira_enabled:
        return None
    return JiraClient(settings)


def get_analyzer(
    llm: LLMClient = Depends(get_llm),
    config: PipelineConfig = Depends(get_pipeline_config),
) -> MeetingAnalyzer:
    return MeetingAnalyzer(llm, config)


def get_reviewer(llm: LLMClient = Depends(get_llm)) -> CodeReviewer:
    return CodeReviewer(llm, get_github())


@lru_cache(maxsize=1)
def _intelligence_service() -> IntelligenceService:
    return IntelligenceService(get_llm(), get_pipeline_config(), get_github(), get_jira())


def get_intelligence() -> IntelligenceService:
    return _intelligence_service()


def get_tickets(llm: LLMClient = Depends(get_llm)) -> TicketWorkflow | None:
    jira = get_jira()
    if jira is None:
        return None
    settings = get_settings()
    return TicketWorkflow(jira, llm, settings.ticket_rate_limit_seconds, settings.link_rate_limit_seconds)


def get_workflows(
    llm: LLMClient = Depends(get_llm),
    reviewer: CodeReviewer = Depends(get_reviewer),
    intelligence: IntelligenceService = Depends(get_intelligence),
    tickets: TicketWorkflow | None = Depends(get_tickets),
) -> WorkflowRunner:
    return WorkflowRunner(reviewer, intelligence, llm, tickets)
