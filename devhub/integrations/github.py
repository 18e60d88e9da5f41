"""GitHub REST client: commits, pull requests and repository metadata.

Only the read endpoints the code reviewer and intelligence service need are
covered. Every public method returns an ``OperationResult``.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any

import httpx

from devhub.config import Settings
from devhub.errors import ConfigurationError, ErrorKind, ExternalServiceError, OperationResult
from devhub.integrations.http import RestClient

logger = logging.getLogger(__name__)

MAX_COMMITS = 50
DEFAULT_BRANCH = "main"

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".cs": "C#",
    ".vb": "VB.NET",
    ".sql": "T-SQL",
    ".js": "JavaScript",
    ".jsx": "React",
    ".java": "Java",
    ".ts": "TypeScript",
    ".tsx": "React",
    ".py": "Python",
    ".cpp": "C++",
    ".cc": "C++",
    ".cxx": "C++",
    ".c": "C",
    ".h": "C/C++ Header",
    ".hpp": "C/C++ Header",
    ".html": "HTML",
    ".htm": "HTML",
    ".css": "CSS",
    ".json": "JSON",
    ".xml": "XML",
    ".yml": "YAML",
    ".yaml": "YAML",
    ".md": "Markdown",
    ".txt": "Text",
}

REVIEWABLE_LANGUAGES = frozenset({"C#", "VB.NET", "T-SQL", "JavaScript", "React", "Java"})

STATUS_ICONS = {"added": "➕", "modified": "📝", "removed": "❌", "renamed": "📋"}


def detect_language(filename: str) -> str:
    return LANGUAGE_BY_EXTENSION.get(PurePosixPath(filename).suffix.lower(), "Unknown")


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# ── Models ─────────────────────────────────────────────────────────────────


@dataclass
class GitHubFile:
    """One file touched by a commit or pull request."""

    filename: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GitHubFile:
        return cls(
            filename=data.get("filename", ""),
            status=data.get("status", "modified"),
            additions=data.get("additions", 0),
            deletions=data.get("deletions", 0),
            changes=data.get("changes", 0),
            patch=data.get("patch") or "",
        )

    @property
    def language(self) -> str:
        return detect_language(self.filename)

    @property
    def supported(self) -> bool:
        return self.language in REVIEWABLE_LANGUAGES

    def code_content(self) -> str:
        """The patch with hunk headers and +/- markers stripped, blank lines dropped."""
        lines = []
        for line in self.patch.split("\n"):
            if line.startswith(("@@", "diff", "index")):
                continue
            if line[:1] in ("+", "-"):
                line = line[1:]
            if line.strip():
                lines.append(line)
        return "\n".join(lines)

    def added_lines(self) -> list[str]:
        return [line[1:] for line in self.patch.split("\n") if line.startswith("+") and not line.startswith("+++")]

    def removed_lines(self) -> list[str]:
        return [line[1:] for line in self.patch.split("\n") if line.startswith("-") and not line.startswith("---")]

    def display(self) -> str:
        icon = STATUS_ICONS.get(self.status.lower(), "📄")
        return f"{icon} {self.filename} (+{self.additions}/-{self.deletions}) [{self.language}]"


@dataclass
class GitHubCommit:
    sha: str
    message: str = ""
    author: str = ""
    date: datetime | None = None
    url: str = ""
    branch: str = ""
    files: list[GitHubFile] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GitHubCommit:
        commit = data.get("commit", {})
        author = commit.get("author") or {}
        return cls(
            sha=data.get("sha", ""),
            message=commit.get("message", ""),
            author=author.get("name", ""),
            date=_parse_date(author.get("date")),
            url=data.get("html_url", ""),
            files=[GitHubFile.from_api(f) for f in data.get("files") or []],
        )

    @property
    def short_sha(self) -> str:
        return self.sha[:8]

    @property
    def title(self) -> str:
        return self.message.split("\n", 1)[0]

    @property
    def total_additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def total_deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    def display(self) -> str:
        branch = f" [{self.branch}]" if self.branch else ""
        return f"{self.short_sha} - {self.title} ({self.author}){branch}"


@dataclass
class PullRequest:
    number: int
    title: str
    description: str = ""
    author: str = ""
    state: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    url: str = ""
    files: list[GitHubFile] = field(default_factory=list)


@dataclass
class RepositoryInfo:
    name: str
    full_name: str = ""
    description: str = ""
    language: str = ""
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    default_branch: str = DEFAULT_BRANCH
    url: str = ""


# ── Client ─────────────────────────────────────────────────────────────────


class GitHubClient(RestClient):
    """Read-only access to one repository."""

    service = "GitHub"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        if not settings.github_enabled:
            raise ConfigurationError(
                "GitHub integration is not configured",
                details={"missing": ["GITHUB_TOKEN", "GITHUB_REPO_OWNER", "GITHUB_REPO_NAME"]},
            )
        super().__init__(
            settings.github_api_url,
            timeout=settings.http_timeout_seconds,
            max_retries=settings.http_max_retries,
            headers={
                "Authorization": f"Bearer {settings.github_token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "devhub",
            },
            transport=transport,
        )
        self.owner = settings.github_repo_owner
        self.repo = settings.github_repo_name

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def recent_commits(self, count: int = 10) -> OperationResult[list[GitHubCommit]]:
        """List the newest commits; ``count`` is clamped to 1-50."""
        count = max(1, min(count, MAX_COMMITS))
        try:
            data = await self._get(f"{self._repo_path}/commits", params={"per_page": count})
        except ExternalServiceError as exc:
            return OperationResult.failure(exc.kind, f"Failed to retrieve commits: {exc.message}", exc.details)
        return OperationResult.success([GitHubCommit.from_api(c) for c in (data or [])[:count]])

    async def commit(self, sha: str, with_branch: bool = True) -> OperationResult[GitHubCommit]:
        """Fetch one commit with its changed files."""
        try:
            data = await self._get(f"{self._repo_path}/commits/{sha}")
        except ExternalServiceError as exc:
            kind = ErrorKind.NOT_FOUND if exc.status_code in (404, 422) else exc.kind
            return OperationResult.failure(kind, f"Failed to get commit details for {sha}: {exc.message}", exc.details)

        commit = GitHubCommit.from_api(data)
        if with_branch:
            commit.branch = await self.commit_branch(commit.sha)
        return OperationResult.success(commit)

    async def list_commit_files(self, sha: str) -> OperationResult[list[GitHubFile]]:
        """Files changed by ``sha`` with their patches; no branch lookup."""
        try:
            data = await self._get(f"{self._repo_path}/commits/{sha}")
        except ExternalServiceError as exc:
            kind = ErrorKind.NOT_FOUND if exc.status_code in (404, 422) else exc.kind
            return OperationResult.failure(kind, f"Failed to list files for commit {sha}: {exc.message}", exc.details)
        return OperationResult.success([GitHubFile.from_api(f) for f in (data or {}).get("files") or []])

    async def commit_branch(self, sha: str) -> str:
        """Name a branch whose recent history holds ``sha``.

        Falls back to the repository's default branch, then to ``main``
        when the lookups themselves fail.
        """
        try:
            branches = await self._get(f"{self._repo_path}/branches") or []
            for branch in branches:
                name = branch.get("name", "")
                try:
                    history = await self._get(f"{self._repo_path}/commits", params={"sha": name}) or []
                except ExternalServiceError:
                    continue
                if any(c.get("sha", "").startswith(sha) for c in history):
                    return name

            repo = await self._get(self._repo_path) or {}
            return repo.get("default_branch") or DEFAULT_BRANCH
        except ExternalServiceError:
            logger.warning("Branch lookup failed for %s; assuming %s", sha, DEFAULT_BRANCH)
            return DEFAULT_BRANCH

    async def pull_request(self, number: int) -> OperationResult[PullRequest]:
        try:
            data = await self._get(f"{self._repo_path}/pulls/{number}")
            files = await self._get(f"{self._repo_path}/pulls/{number}/files") or []
        except ExternalServiceError as exc:
            kind = ErrorKind.NOT_FOUND if exc.status_code == 404 else exc.kind
            return OperationResult.failure(kind, f"Failed to get pull request {number}: {exc.message}", exc.details)

        return OperationResult.success(
            PullRequest(
                number=data.get("number", number),
                title=data.get("title", ""),
                description=data.get("body") or "",
                author=(data.get("user") or {}).get("login", ""),
                state=data.get("state", ""),
                created_at=_parse_date(data.get("created_at")),
                updated_at=_parse_date(data.get("updated_at")),
                url=data.get("html_url", ""),
                files=[GitHubFile.from_api(f) for f in files],
            )
        )

    async def file_content(self, path: str, ref: str = DEFAULT_BRANCH) -> OperationResult[str]:
        try:
            data = await self._get(f"{self._repo_path}/contents/{path}", params={"ref": ref})
        except ExternalServiceError as exc:
            kind = ErrorKind.NOT_FOUND if exc.status_code == 404 else exc.kind
            return OperationResult.failure(kind, f"Failed to get file content for {path}: {exc.message}")

        if not isinstance(data, dict) or data.get("type") != "file":
            return OperationResult.failure(ErrorKind.VALIDATION, f"Path is not a file: {path}")
        content = base64.b64decode(data.get("content", "")).decode("utf-8", errors="replace")
        return OperationResult.success(content)

    async def repository(self) -> OperationResult[RepositoryInfo]:
        try:
            data = await self._get(self._repo_path)
        except ExternalServiceError as exc:
            return OperationResult.failure(exc.kind, f"Failed to get repository info: {exc.message}", exc.details)

        return OperationResult.success(
            RepositoryInfo(
                name=data.get("name", self.repo),
                full_name=data.get("full_name", ""),
                description=data.get("description") or "",
                language=data.get("language") or "",
                stars=data.get("stargazers_count", 0),
                forks=data.get("forks_count", 0),
                open_issues=data.get("open_issues_count", 0),
                default_branch=data.get("default_branch") or DEFAULT_BRANCH,
                url=data.get("html_url", ""),
            )
        )
