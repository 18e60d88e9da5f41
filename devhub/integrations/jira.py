"""Jira Cloud REST v3 client and ticket models.

Descriptions and comments are sent as Atlassian Document Format (ADF);
``adf_to_text`` flattens them back to plain text on the way in. Priority
and issue-type names are mapped to instance-specific IDs from settings.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from devhub.config import Settings
from devhub.errors import ConfigurationError, ErrorKind, ExternalServiceError, OperationResult
from devhub.integrations.http import RestClient
from devhub.meetings.models import ActionItem, ActionItemPriority

if TYPE_CHECKING:
    from devhub.review.models import CodeReviewResult

logger = logging.getLogger(__name__)

TICKET_KEY = re.compile(r"^[A-Z]+-\d+$")
TICKET_FIELDS = (
    "summary",
    "description",
    "priority",
    "status",
    "issuetype",
    "assignee",
    "reporter",
    "created",
    "updated",
)

VALID_ISSUE_TYPES = ("Task", "Bug", "Story", "Epic", "Subtask")
VALID_PRIORITIES = ("Highest", "High", "Medium", "Low", "Lowest")
INACTIVE_STATUSES = frozenset({"DONE", "CLOSED", "RESOLVED", "CANCELLED"})
MAX_TITLE_LENGTH = 255
SEARCH_LIMIT = 50
SEARCH_PAGE_SIZE = 50


# ── ADF ────────────────────────────────────────────────────────────────────


def to_adf(text: str) -> dict[str, Any]:
    """Wrap plain text as a single-paragraph ADF document."""
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}],
    }


def adf_to_text(node: Any) -> str:
    """Concatenate every text node in an ADF tree, one space between blocks."""
    parts: list[str] = []

    def walk(n: Any) -> None:
        if isinstance(n, list):
            for item in n:
                walk(item)
        elif isinstance(n, dict):
            if n.get("type") == "text":
                parts.append(n.get("text", ""))
            if "content" in n:
                walk(n["content"])
                parts.append(" ")

    if isinstance(node, str):
        return node.strip()
    walk(node.get("content", []) if isinstance(node, dict) else node)
    return "".join(parts).strip()


# ── Models ─────────────────────────────────────────────────────────────────


@dataclass
class JiraTicket:
    key: str
    title: str
    description: str = ""
    priority: str = "Medium"
    status: str = ""
    issue_type: str = "Task"
    assignee: str = ""
    reporter: str = ""
    url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any], base_url: str) -> JiraTicket:
        fields = data.get("fields", {})
        key = data.get("key", "")
        return cls(
            key=key,
            title=fields.get("summary", ""),
            description=adf_to_text(fields["description"]) if fields.get("description") else "",
            priority=(fields.get("priority") or {}).get("name", "Medium"),
            status=(fields.get("status") or {}).get("name", "Unknown"),
            issue_type=(fields.get("issuetype") or {}).get("name", "Task"),
            assignee=(fields.get("assignee") or {}).get("displayName", ""),
            reporter=(fields.get("reporter") or {}).get("displayName", ""),
            url=f"{base_url}/browse/{key}",
            created_at=_parse_jira_date(fields.get("created")),
            updated_at=_parse_jira_date(fields.get("updated")),
        )

    @property
    def is_active(self) -> bool:
        return self.status.upper() not in INACTIVE_STATUSES

    @property
    def priority_value(self) -> int:
        """1 for high, 2 for medium, 3 for low; unknown names count as medium."""
        name = self.priority.upper()
        if name in ("HIGH", "HIGHEST"):
            return 1
        if name in ("LOW", "LOWEST"):
            return 3
        return 2

    def matches(self, pattern: str) -> bool:
        p = pattern.casefold()
        return p in self.key.casefold() or p in self.title.casefold() or p in self.description.casefold()

    def short_display(self) -> str:
        title = self.title if len(self.title) <= 50 else self.title[:47] + "..."
        return f"{self.key}: {title} [{self.priority}] ({self.status})"

    def display(self) -> str:
        return "\n".join(
            [
                f"🎫 **Jira Ticket: {self.key}**",
                f"📋 **Title**: {self.title}",
                f"🔥 **Priority**: {self.priority}",
                f"📊 **Status**: {self.status}",
                f"🏷️ **Type**: {self.issue_type}",
                f"👤 **Assignee**: {self.assignee or 'Unassigned'}",
                f"🔗 **URL**: {self.url}",
                "📝 **Description**:",
                self.description or "No description provided",
            ]
        )


def _parse_jira_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f%z")
    except ValueError:
        return None


@dataclass
class TicketCreationRequest:
    project_key: str
    title: str
    description: str
    issue_type: str = "Task"
    priority: str = "Medium"
    assignee: str = ""
    labels: list[str] = field(default_factory=list)
    due_date: datetime | None = None
    source: str = "Manual"

    @classmethod
    def from_action_item(cls, item: ActionItem, project_key: str) -> TicketCreationRequest:
        """Map a meeting action item onto a Task request.

        High, Medium and Low keep their names; any other priority becomes
        Medium.
        """
        if item.priority in (ActionItemPriority.HIGH, ActionItemPriority.MEDIUM, ActionItemPriority.LOW):
            priority = item.priority.name.title()
        else:
            priority = "Medium"

        description = "\n".join(
            [
                "Action Item from Meeting Analysis",
                "",
                f"Original Task: {item.description}",
                f"Assigned To: {item.assigned_to or 'Unassigned'}",
                f"Due Date: {item.due_date:%Y-%m-%d}" if item.due_date else "Due Date: Not specified",
                f"Notes: {item.notes or 'No additional notes'}",
                f"Generated: {datetime.now(UTC):%Y-%m-%d %H:%M}",
                "",
                "This ticket was automatically created from meeting action item analysis.",
            ]
        )
        return cls(
            project_key=project_key,
            title=item.description,
            description=description,
            priority=priority,
            assignee=item.assigned_to,
            due_date=item.due_date,
            labels=["meeting-action-item", "auto-generated"],
            source="Meeting Analysis",
        )

    @classmethod
    def from_code_review(
        cls, review: CodeReviewResult, project_key: str, commit_sha: str = ""
    ) -> TicketCreationRequest:
        score = review.overall_score
        priority = "High" if score <= 3 else "Medium" if score <= 6 else "Low"
        target = f"Commit {commit_sha[:8]}" if commit_sha else "Multiple Files"

        lines = [
            "Automated Code Review Results",
            "",
            f"Overall Score: {score}/10",
            f"Review Type: {review.review_type}",
            f"Target: {review.target}",
            "",
            "Summary:",
            review.summary,
            "",
            "Key Issues Found:",
            *([f"• {i}" for i in review.key_issues] or ["No significant issues found"]),
            "",
            "Recommendations:",
            *([f"• {r}" for r in review.recommendations] or ["No specific recommendations"]),
        ]
        return cls(
            project_key=project_key,
            title=f"Code Review Issues - {target}",
            description="\n".join(lines),
            issue_type="Bug" if score <= 5 else "Task",
            priority=priority,
            labels=["code-review", "auto-generated", "quality-improvement"],
            source="Code Review",
        )

    @classmethod
    def bug_report(cls, title: str, description: str, project_key: str, priority: str = "Medium") -> TicketCreationRequest:
        return cls(
            project_key=project_key,
            title=title,
            description=description,
            issue_type="Bug",
            priority=priority,
            labels=["bug", "needs-investigation"],
            source="Bug Report",
        )

    @classmethod
    def feature_request(
        cls, title: str, description: str, project_key: str, priority: str = "Medium"
    ) -> TicketCreationRequest:
        return cls(
            project_key=project_key,
            title=title,
            description=description,
            issue_type="Story",
            priority=priority,
            labels=["feature-request", "enhancement"],
            source="Feature Request",
        )

    def validate(self) -> list[str]:
        """Return validation errors (empty if the request can be submitted)."""
        errors: list[str] = []
        if not self.project_key.strip():
            errors.append("Project key is required")
        if not self.title.strip():
            errors.append("Title is required")
        if not self.description.strip():
            errors.append("Description is required")
        if len(self.title) > MAX_TITLE_LENGTH:
            errors.append(f"Title must be {MAX_TITLE_LENGTH} characters or less")
        if self.issue_type.casefold() not in (t.casefold() for t in VALID_ISSUE_TYPES):
            errors.append(f"Issue type must be one of: {', '.join(VALID_ISSUE_TYPES)}")
        if self.priority.casefold() not in (p.casefold() for p in VALID_PRIORITIES):
            errors.append(f"Priority must be one of: {', '.join(VALID_PRIORITIES)}")
        return errors

    def __str__(self) -> str:
        return f"{self.project_key}: {self.title} [{self.issue_type}/{self.priority}]"


@dataclass
class TicketRef:
    """Key and browse URL of a ticket the client just wrote to."""

    key: str
    url: str


# ── Client ─────────────────────────────────────────────────────────────────


class JiraClient(RestClient):
    service = "Jira"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        if not settings.jira_enabled:
            raise ConfigurationError(
                "Jira integration is not configured",
                details={"missing": ["JIRA_URL", "JIRA_EMAIL", "JIRA_API_TOKEN", "JIRA_PROJECT_KEY"]},
            )
        self.jira_url = settings.jira_url.rstrip("/")
        super().__init__(
            f"{self.jira_url}/rest/api/3",
            timeout=settings.http_timeout_seconds,
            max_retries=settings.http_max_retries,
            headers={"Accept": "application/json"},
            auth=(settings.jira_email, settings.jira_api_token),
            transport=transport,
        )
        self.project_key = settings.jira_project_key
        self.priority_ids = {k.upper(): v for k, v in settings.jira_priority_ids.items()}
        self.default_priority_id = settings.jira_default_priority_id
        self.issue_type_ids = {k.upper(): v for k, v in settings.jira_issue_type_ids.items()}
        self.default_issue_type_id = settings.jira_default_issue_type_id

    def browse_url(self, key: str) -> str:
        return f"{self.jira_url}/browse/{key}"

    def priority_id(self, name: str) -> str:
        return self.priority_ids.get(name.upper(), self.default_priority_id)

    def issue_type_id(self, name: str) -> str:
        return self.issue_type_ids.get(name.upper(), self.default_issue_type_id)

    async def test_connection(self) -> OperationResult[str]:
        """Check credentials; the value is the authenticated user's display name."""
        try:
            user = await self._get("/myself") or {}
        except ExternalServiceError as exc:
            return OperationResult.failure(exc.kind, f"Jira connection failed: {exc.message}", exc.details)
        name = user.get("displayName", "")
        return OperationResult.success(name, f"Jira connection successful! Connected as: {name}")

    async def create_ticket(
        self,
        title: str,
        description: str,
        priority: str = "Medium",
        issue_type: str = "Task",
        labels: list[str] | None = None,
    ) -> OperationResult[TicketRef]:
        fields: dict[str, Any] = {
            "project": {"key": self.project_key},
            "summary": title,
            "description": to_adf(description),
            "issuetype": {"id": self.issue_type_id(issue_type)},
            "priority": {"id": self.priority_id(priority)},
        }
        if labels:
            fields["labels"] = labels

        try:
            created = await self._post("/issue", json={"fields": fields}) or {}
        except ExternalServiceError as exc:
            return OperationResult.failure(exc.kind, f"Failed to create ticket: {exc.message}", exc.details)

        key = created.get("key", "")
        logger.info("Created Jira ticket %s", key)
        return OperationResult.success(TicketRef(key, self.browse_url(key)), f"Ticket {key} created successfully")

    async def submit(self, request: TicketCreationRequest) -> OperationResult[TicketRef]:
        """Validate a creation request and create the ticket."""
        errors = request.validate()
        if errors:
            return OperationResult.failure(ErrorKind.VALIDATION, "; ".join(errors), {"errors": errors})
        return await self.create_ticket(
            request.title,
            request.description,
            priority=request.priority,
            issue_type=request.issue_type,
            labels=request.labels,
        )

    async def add_comment(self, key: str, comment: str) -> OperationResult[TicketRef]:
        try:
            await self._post(f"/issue/{key}/comment", json={"body": to_adf(comment)})
        except ExternalServiceError as exc:
            return OperationResult.failure(exc.kind, f"Failed to add comment to {key}: {exc.message}", exc.details)
        return OperationResult.success(TicketRef(key, self.browse_url(key)), f"Comment added to ticket {key}")

    async def update_ticket(
        self,
        key: str,
        title: str | None = None,
        description: str | None = None,
        priority: str | None = None,
    ) -> OperationResult[TicketRef]:
        fields: dict[str, Any] = {}
        if title:
            fields["summary"] = title
        if description:
            fields["description"] = to_adf(description)
        if priority:
            fields["priority"] = {"id": self.priority_id(priority)}

        if not fields:
            return OperationResult.failure(ErrorKind.VALIDATION, "No fields specified for update")

        try:
            await self._put(f"/issue/{key}", json={"fields": fields})
        except ExternalServiceError as exc:
            return OperationResult.failure(exc.kind, f"Failed to update ticket {key}: {exc.message}", exc.details)
        return OperationResult.success(TicketRef(key, self.browse_url(key)), f"Ticket {key} updated successfully")

    def search_jql(self, term: str) -> str:
        """Key lookup for ``ABC-123`` style terms, else a summary match in the project."""
        if TICKET_KEY.match(term):
            return f'key = "{term}"'
        escaped = term.replace("\\", "\\\\").replace('"', '\\"')
        return f'project = "{self.project_key}" AND summary ~ "{escaped}"'

    async def _search(self, jql: str, limit: int = SEARCH_LIMIT) -> list[JiraTicket]:
        """Run ``jql`` against the enhanced search endpoint, following ``nextPageToken``.

        Raises:
            ExternalServiceError: When any page request fails.
        """
        tickets: list[JiraTicket] = []
        token: str | None = None
        while len(tickets) < limit:
            body: dict[str, Any] = {
                "jql": jql,
                "fields": list(TICKET_FIELDS),
                "maxResults": min(SEARCH_PAGE_SIZE, limit - len(tickets)),
            }
            if token:
                body["nextPageToken"] = token
            page = await self._post("/search/jql", json=body) or {}
            tickets += [JiraTicket.from_api(i, self.jira_url) for i in page.get("issues", [])]
            token = page.get("nextPageToken")
            if page.get("isLast", True) or not token:
                break
        return tickets[:limit]

    async def search_tickets(self, term: str, limit: int = SEARCH_LIMIT) -> OperationResult[list[JiraTicket]]:
        try:
            tickets = await self._search(self.search_jql(term), limit)
        except ExternalServiceError as exc:
            return OperationResult.failure(exc.kind, f"Error searching tickets: {exc.message}", exc.details)
        return OperationResult.success(tickets)

    async def get_ticket(self, key: str) -> OperationResult[JiraTicket]:
        try:
            data = await self._get(f"/issue/{key}", params={"fields": ",".join(TICKET_FIELDS)})
        except ExternalServiceError as exc:
            kind = ErrorKind.NOT_FOUND if exc.status_code == 404 else exc.kind
            return OperationResult.failure(kind, f"Error getting ticket {key}: {exc.message}", exc.details)
        return OperationResult.success(JiraTicket.from_api(data, self.jira_url))

    async def recent_tickets(self, days: int = 7, limit: int = SEARCH_LIMIT) -> OperationResult[list[JiraTicket]]:
        """Tickets in the project updated within the last ``days`` days."""
        jql = f'project = "{self.project_key}" AND updated >= -{days}d ORDER BY updated DESC'
        try:
            tickets = await self._search(jql, limit)
        except ExternalServiceError as exc:
            return OperationResult.failure(exc.kind, f"Error searching tickets: {exc.message}", exc.details)
        return OperationResult.success(tickets)
