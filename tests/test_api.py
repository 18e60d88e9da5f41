"""Tests for API endpoints (LLM and GitHub replaced through dependency overrides)."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from anthropic import APIStatusError
from fastapi import HTTPException
from fastapi.testclient import TestClient

from devhub.api.deps import (
    get_analyzer,
    get_intelligence,
    get_llm,
    get_reviewer,
    get_tickets,
    status_for,
    unwrap_or_raise,
)
from devhub.api.main import app
from devhub.errors import ConfigurationError, ErrorKind, OperationResult
from devhub.integrations.github import GitHubCommit, GitHubFile, PullRequest
from devhub.intelligence.service import IntelligenceService
from devhub.meetings.analyzer import MeetingAnalyzer
from devhub.review.reviewer import CodeReviewer
from tests.conftest import MEETING_REPLIES, SAMPLE_TRANSCRIPT, ScriptedLLM

REVIEW = "1. **Code Quality Assessment**: 7/10\n3. **Issues Found**:\n- Missing null check\n"

REPLIES = {
    **MEETING_REPLIES,
    "expert code reviewer": REVIEW,
    "concise review summary for this change set": "Reasonable change.",
    "executive summary for senior leadership": "Delivery is on track.",
}


def _overloaded() -> APIStatusError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return APIStatusError("Overloaded", response=httpx.Response(529, request=request), body=None)


def _github() -> MagicMock:
    github = MagicMock()
    commit = GitHubCommit(
        sha="feedface00000000000000000000000000000000",
        message="Load config",
        files=[GitHubFile("src/Config.cs", patch="+var a = Load();"), GitHubFile("notes.txt", patch="+x")],
    )
    github.commit = AsyncMock(return_value=OperationResult.success(commit))
    github.recent_commits = AsyncMock(return_value=OperationResult.success([commit]))
    github.pull_request = AsyncMock(
        return_value=OperationResult.success(
            PullRequest(7, "OPS-12 Load config", files=[GitHubFile("src/Config.cs", patch="+var a = Load();")])
        )
    )
    return github


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM(dict(REPLIES))


@pytest.fixture
def intelligence(llm: ScriptedLLM) -> IntelligenceService:
    return IntelligenceService(llm)


@pytest.fixture
def client(llm: ScriptedLLM, intelligence: IntelligenceService) -> Iterator[TestClient]:
    github = _github()
    app.dependency_overrides[get_analyzer] = lambda: MeetingAnalyzer(llm)
    app.dependency_overrides[get_reviewer] = lambda: CodeReviewer(llm, github)
    app.dependency_overrides[get_intelligence] = lambda: intelligence
    app.dependency_overrides[get_llm] = lambda: llm
    app.dependency_overrides[get_tickets] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert set(body["integrations"]) == {"llm", "github", "jira"}


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("kind", "status"),
        [
            (ErrorKind.CONFIGURATION, 503),
            (ErrorKind.EXTERNAL_SERVICE, 502),
            (ErrorKind.VALIDATION, 422),
            (ErrorKind.NOT_FOUND, 404),
            (ErrorKind.UNSUPPORTED, 400),
            (None, 500),
        ],
    )
    def test_status_for(self, kind: ErrorKind | None, status: int) -> None:
        assert status_for(kind) == status

    def test_unwrap_or_raise(self) -> None:
        assert unwrap_or_raise(OperationResult.success("ok")) == "ok"
        with pytest.raises(HTTPException) as info:
            unwrap_or_raise(OperationResult.failure(ErrorKind.NOT_FOUND, "No such commit"))
        assert (info.value.status_code, info.value.detail) == (404, "No such commit")

    def test_dependency_configuration_error(self, client: TestClient) -> None:
        def missing_key() -> MeetingAnalyzer:
            raise ConfigurationError("ANTHROPIC_API_KEY is required", details={"missing": ["ANTHROPIC_API_KEY"]})

        app.dependency_overrides[get_analyzer] = missing_key
        response = client.post("/api/meetings/summary", json={"text": "Alice: hi"})

        assert response.status_code == 503
        assert response.json() == {
            "error": "configuration",
            "message": "ANTHROPIC_API_KEY is required",
            "details": {"missing": ["ANTHROPIC_API_KEY"]},
        }


# ---------------------------------------------------------------------------
# Meetings
# ---------------------------------------------------------------------------


class TestMeetingEndpoints:
    def test_analyze(self, client: TestClient, intelligence: IntelligenceService) -> None:
        response = client.post("/api/meetings/analyze", json={"text": SAMPLE_TRANSCRIPT, "title": "Sprint review"})

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Sprint review"
        assert body["sentiment"] == "POSITIVE"
        assert [i["priority"] for i in body["action_items"]] == ["MEDIUM", "URGENT"]
        assert body["decisions"] == ["Block the release until the injection fix is merged"]
        assert 0 < body["confidence_score"] <= 100
        assert len(intelligence.meetings) == 1

    def test_analyze_rejects_empty_text(self, client: TestClient) -> None:
        assert client.post("/api/meetings/analyze", json={"text": ""}).status_code == 422

    def test_analyze_failure_comes_back_as_warning(self, client: TestClient, llm: ScriptedLLM) -> None:
        llm.replies["concise but comprehensive summary"] = RuntimeError("model overloaded")

        response = client.post("/api/meetings/analyze", json={"text": SAMPLE_TRANSCRIPT})

        assert response.status_code == 200
        assert response.json()["confidence_score"] == 0
        assert response.json()["warnings"] == ["Analysis failed: model overloaded"]

    def test_participants_without_llm(self, client: TestClient, llm: ScriptedLLM) -> None:
        response = client.post("/api/meetings/participants", json={"text": SAMPLE_TRANSCRIPT})

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Alice", "Bob", "Carol"]
        assert llm.prompts == []

    def test_summary(self, client: TestClient) -> None:
        response = client.post("/api/meetings/summary", json={"text": SAMPLE_TRANSCRIPT})
        assert response.json() == {"summary": MEETING_REPLIES["concise but comprehensive summary"]}

    def test_summary_llm_unavailable(self, client: TestClient, llm: ScriptedLLM) -> None:
        llm.replies["concise but comprehensive summary"] = _overloaded()

        response = client.post("/api/meetings/summary", json={"text": SAMPLE_TRANSCRIPT})

        assert response.status_code == 503
        assert response.json()["detail"].startswith("LLM unavailable")


# ---------------------------------------------------------------------------
# Code review
# ---------------------------------------------------------------------------


class TestReviewEndpoints:
    def test_analyze_snippet(self, client: TestClient) -> None:
        response = client.post("/api/review/code", json={"code": "var x = 1;", "language": "javascript"})

        assert response.status_code == 200
        assert response.json() == {"language": "javascript", "mode": "analyze", "review": REVIEW}

    def test_standards_mode(self, client: TestClient, llm: ScriptedLLM) -> None:
        response = client.post("/api/review/code", json={"code": "class A {}", "language": "Java", "mode": "standards"})

        assert response.status_code == 200
        assert "Oracle Java Code Conventions" in llm.prompts[-1]

    def test_unsupported_language(self, client: TestClient) -> None:
        response = client.post("/api/review/code", json={"code": "print(1)", "language": "Python"})

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Unsupported language: Python")

    def test_invalid_mode(self, client: TestClient) -> None:
        response = client.post("/api/review/code", json={"code": "x", "mode": "rewrite"})
        assert response.status_code == 422

    def test_llm_unavailable(self, client: TestClient, llm: ScriptedLLM) -> None:
        llm.replies["expert code reviewer"] = _overloaded()
        response = client.post("/api/review/code", json={"code": "var x;", "language": "C#"})
        assert response.status_code == 503

    def test_review_commit_is_recorded(self, client: TestClient, intelligence: IntelligenceService) -> None:
        response = client.post("/api/review/commits/feedface")

        assert response.status_code == 200
        body = response.json()
        assert body["review_type"] == "Commit"
        assert body["title"] == "Load config"
        assert body["overall_score"] == 7
        assert body["skipped_files"] == ["notes.txt"]
        assert body["summary"] == "Reasonable change."
        assert body["report"].startswith("🔍 **Code Review: Commit")
        assert len(intelligence.reviews) == 1

    def test_review_without_github(self, client: TestClient, llm: ScriptedLLM) -> None:
        app.dependency_overrides[get_reviewer] = lambda: CodeReviewer(llm)
        response = client.post("/api/review/commits/feedface")
        assert response.status_code == 503

    def test_pull_request_number_must_be_int(self, client: TestClient) -> None:
        assert client.post("/api/review/pulls/latest").status_code == 422


# ---------------------------------------------------------------------------
# Intelligence
# ---------------------------------------------------------------------------


class TestIntelligenceEndpoints:
    def test_cross_references(self, client: TestClient) -> None:
        response = client.post("/api/intelligence/cross-references", json={"analysis_type": "codetomeeting"})

        assert response.status_code == 200
        body = response.json()
        assert body["analysis_type"] == "CodeToMeeting"
        assert body["connections"] == []
        assert body["entity_count"] == 0

    def test_unknown_analysis_type(self, client: TestClient) -> None:
        response = client.post("/api/intelligence/cross-references", json={"analysis_type": "Everything"})

        assert response.status_code == 422
        assert response.json()["detail"] == "Unknown analysis type: Everything"

    def test_report(self, client: TestClient) -> None:
        response = client.get("/api/intelligence/report", params={"days": 14})

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Development Intelligence Report - 14 Day Analysis"
        assert body["executive_summary"] == "Delivery is on track."
        assert body["report"].startswith("# Development Intelligence Report - 14 Day Analysis")

    @pytest.mark.parametrize("days", [0, 366])
    def test_report_days_bounds(self, client: TestClient, days: int) -> None:
        assert client.get("/api/intelligence/report", params={"days": days}).status_code == 422

    def test_executive_summary(self, client: TestClient, llm: ScriptedLLM) -> None:
        response = client.get("/api/intelligence/executive-summary", params={"focus_area": "Security"})

        assert response.json() == {"focus_area": "Security", "summary": "Delivery is on track."}
        assert "Focus Area: Security" in llm.prompts[-1]

    def test_patterns(self, client: TestClient) -> None:
        response = client.get("/api/intelligence/patterns", params={"pattern_type": "TopicSimilarity"})

        assert response.status_code == 200
        assert response.json() == []

    def test_correlations(self, client: TestClient) -> None:
        response = client.get("/api/intelligence/correlations")

        assert response.status_code == 200
        assert response.json()["report"].startswith("No significant correlations found")


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


class TestWorkflowEndpoints:
    def test_run_from_description(self, client: TestClient) -> None:
        response = client.post("/api/workflows/run", json={"description": "Weekly status"})

        assert response.status_code == 200
        body = response.json()
        assert (body["workflow"], body["ok"], body["error"]) == ("General", True, "")
        assert body["report"].endswith("Delivery is on track.")
        assert body["finished_at"] is not None

    def test_run_needs_description(self, client: TestClient) -> None:
        assert client.post("/api/workflows/run", json={"description": ""}).status_code == 422

    def test_security(self, client: TestClient, intelligence: IntelligenceService) -> None:
        response = client.post("/api/workflows/security/feedface")

        body = response.json()
        assert (body["workflow"], body["ok"]) == ("Security", True)
        assert body["report"].startswith("🔒 **Security Workflow: feedface**")
        assert len(intelligence.reviews) == 1

    def test_security_without_github_reports_failure(self, client: TestClient, llm: ScriptedLLM) -> None:
        app.dependency_overrides[get_reviewer] = lambda: CodeReviewer(llm)

        body = client.post("/api/workflows/security/feedface").json()

        assert body["ok"] is False
        assert "GitHub" in body["error"]
        assert body["report"].startswith("❌ Security workflow failed for feedface")

    def test_performance(self, client: TestClient) -> None:
        response = client.post("/api/workflows/performance", params={"days": 3})

        body = response.json()
        assert (body["workflow"], body["ok"]) == ("Performance", True)
        assert body["report"].startswith("⚡ **Performance Workflow: last 3 days**")

    def test_performance_days_bounds(self, client: TestClient) -> None:
        assert client.post("/api/workflows/performance", params={"days": 0}).status_code == 422

    def test_sprint_planning(self, client: TestClient) -> None:
        response = client.post("/api/workflows/sprint-planning", json={"goals": ["Ship SSO"]})

        body = response.json()
        assert (body["workflow"], body["ok"]) == ("SprintPlanning", True)
        assert "• Ship SSO - Achievable based on current metrics" in body["report"]

    def test_pull_request(self, client: TestClient, intelligence: IntelligenceService) -> None:
        response = client.post("/api/workflows/pulls/7")

        body = response.json()
        assert (body["workflow"], body["ok"]) == ("PullRequest", True)
        assert body["report"].startswith("🎯 **PR Workflow Complete**")
        assert "**PR #7**: OPS-12 Load config" in body["report"]
        assert [r.target for r in intelligence.reviews] == ["#7"]
