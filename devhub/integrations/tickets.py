"""Turns meeting action items and code reviews into Jira tickets and comments.

Bulk operations pause between Jira writes to stay under rate limits. LLM
follow-up comments are best-effort: an LLM failure skips the comment but
never the ticket.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from typing import Protocol

from anthropic import APIError

from devhub.errors import DevHubError, OperationResult
from devhub.integrations.jira import JiraClient, TicketCreationRequest, TicketRef
from devhub.meetings.models import ActionItem, MeetingAnalysisResult
from devhub.review.models import CodeReviewResult

logger = logging.getLogger(__name__)

TICKET_REFERENCE = re.compile(r"\b[A-Z]+-\d+\b", re.IGNORECASE)

FOLLOW_UP_PROMPT = """\
Generate a helpful follow-up comment for a Jira ticket created from this meeting action item:

**Action Item**: {description}
**Assigned To**: {assignee}
**Priority**: {priority}
**Due Date**: {due_date}
**Context**: {notes}

Create a brief, actionable comment that:
1. Suggests next steps
2. Identifies potential blockers
3. Recommends resources or stakeholders to involve
4. Provides timeline guidance

Keep it professional and under 150 words."""

MEETING_CONTEXT_PROMPT = """\
Generate a summary comment for Jira tickets created from a meeting analysis:

**Meeting**: {title}
**Date**: {date}
**Participants**: {participants}
**Total Action Items**: {action_items}
**Tickets Created**: {created}

Briefly link this ticket to the broader meeting context and the related tickets. \
Mention the meeting outcomes and how this action item contributes to the overall goals. \
Keep it under 100 words."""

PRIORITY_PROMPT = """\
Based on this code review result, recommend whether the Jira ticket priority should be adjusted:

**Overall Score**: {score}/10
**Key Issues**: {issues}
**Files Analyzed**: {files}

Give a brief recommendation (1-2 sentences) on whether to raise the priority and why."""

DEFAULT_MEETING_COMMENT = "📋 This ticket was created from meeting action item analysis."

LOW_SCORE = 5


class TextLLM(Protocol):
    async def invoke(self, prompt: str) -> str: ...


def detect_ticket_references(text: str) -> list[str]:
    """Ticket keys like ``OPS-123`` in ``text``, uppercased, first occurrence order."""
    keys: list[str] = []
    for match in TICKET_REFERENCE.finditer(text):
        key = match.group(0).upper()
        if key not in keys:
            keys.append(key)
    if keys:
        logger.debug("Detected %d ticket references: %s", len(keys), ", ".join(keys))
    return keys


def code_review_comment(review: CodeReviewResult) -> str:
    lines = [
        f"🔍 **Code Review Results** ({review.review_type} {review.target})",
        f"**Overall Score**: {review.overall_score}/10",
        f"**Files Analyzed**: {review.files_reviewed}",
        "",
        review.summary,
    ]
    if review.key_issues:
        lines += ["", "**Key Issues**:", *[f"• {i}" for i in review.key_issues]]
    if review.recommendations:
        lines += ["", "**Recommendations**:", *[f"• {r}" for r in review.recommendations]]
    return "\n".join(lines)


class TicketWorkflow:
    """Creates and annotates Jira tickets from analysis results."""

    def __init__(
        self,
        jira: JiraClient,
        llm: TextLLM,
        rate_limit_seconds: float = 0.5,
        link_rate_limit_seconds: float = 0.3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.jira = jira
        self.llm = llm
        self.rate_limit_seconds = rate_limit_seconds
        self.link_rate_limit_seconds = link_rate_limit_seconds
        self._sleep = sleep

    async def _generate(self, prompt: str) -> str | None:
        try:
            return (await self.llm.invoke(prompt)).strip()
        except (APIError, DevHubError) as exc:
            logger.warning("Skipping generated comment: %s", exc)
            return None

    async def create_ticket_from_action_item(self, item: ActionItem) -> OperationResult[TicketRef]:
        """Create a Task for ``item`` and attach an LLM follow-up comment."""
        request = TicketCreationRequest.from_action_item(item, self.jira.project_key)
        created = await self.jira.submit(request)
        if not created.ok or created.value is None:
            logger.warning("Ticket creation failed for %r: %s", item.description, created.message)
            return created

        follow_up = await self._generate(
            FOLLOW_UP_PROMPT.format(
                description=item.description,
                assignee=item.assigned_to or "Unassigned",
                priority=item.priority.name.title(),
                due_date=f"{item.due_date:%Y-%m-%d}" if item.due_date else "Not specified",
                notes=item.notes or "No additional context",
            )
        )
        if follow_up:
            await self.jira.add_comment(created.value.key, f"🤖 **AI-Generated Follow-up**:\n\n{follow_up}")
        return created

    async def create_tickets_from_meeting(self, result: MeetingAnalysisResult) -> list[OperationResult[TicketRef]]:
        """Create one ticket per action item, then comment meeting context on each success."""
        outcomes: list[OperationResult[TicketRef]] = []
        for index, item in enumerate(result.action_items):
            if index:
                await self._sleep(self.rate_limit_seconds)
            outcomes.append(await self.create_ticket_from_action_item(item))

        created = [o.value for o in outcomes if o.ok and o.value is not None]
        logger.info("Created %d/%d tickets from meeting %r", len(created), len(outcomes), result.transcript.title)
        if not created:
            return outcomes

        context = await self._generate(
            MEETING_CONTEXT_PROMPT.format(
                title=result.transcript.title,
                date=f"{result.transcript.meeting_date:%Y-%m-%d}",
                participants=len(result.participants),
                action_items=len(result.action_items),
                created=len(created),
            )
        )
        comment = f"📋 **Meeting Context**:\n\n{context}" if context else DEFAULT_MEETING_COMMENT
        for ref in created:
            await self.jira.add_comment(ref.key, comment)
        return outcomes

    async def update_ticket_with_code_review(self, key: str, review: CodeReviewResult) -> OperationResult[TicketRef]:
        """Comment review results on ``key``; low scores also get a priority suggestion."""
        commented = await self.jira.add_comment(key, code_review_comment(review))
        if not commented.ok or review.overall_score > LOW_SCORE:
            return commented

        advice = await self._generate(
            PRIORITY_PROMPT.format(
                score=review.overall_score,
                issues=", ".join(review.key_issues) or "None",
                files=review.files_reviewed,
            )
        )
        if advice:
            await self.jira.add_comment(key, f"🔥 **Priority Recommendation**: {advice}")
        return commented

    async def link_code_review_to_tickets(
        self, review: CodeReviewResult, text: str
    ) -> list[OperationResult[TicketRef]]:
        """Comment ``review`` on every existing ticket referenced in ``text``."""
        outcomes: list[OperationResult[TicketRef]] = []
        for index, key in enumerate(detect_ticket_references(text)):
            if index:
                await self._sleep(self.link_rate_limit_seconds)
            found = await self.jira.get_ticket(key)
            if not found.ok:
                outcomes.append(OperationResult(ok=False, error_kind=found.error_kind, message=f"Ticket {key} not found"))
                continue
            outcomes.append(await self.update_ticket_with_code_review(key, review))
        return outcomes
