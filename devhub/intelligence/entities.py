"""Normalize commits, meeting results and tickets into correlation entities and metrics."""

from __future__ import annotations

import re
from statistics import mean

from devhub.integrations.github import GitHubCommit
from devhub.integrations.jira import JiraTicket
from devhub.integrations.tickets import detect_ticket_references
from devhub.intelligence.models import CrossReferenceEntity, DevelopmentMetrics, EntityType
from devhub.meetings.models import ActionItemStatus, MeetingAnalysisResult
from devhub.review.models import CodeReviewResult

BUG_FIX = re.compile(r"\b(fix(es|ed)?|bug|hotfix|patch)\b", re.IGNORECASE)
FEATURE = re.compile(r"\b(feat(ure)?|add(s|ed)?|implement(s|ed)?|introduce[sd]?)\b", re.IGNORECASE)
MERGED_PR = re.compile(r"^Merge pull request #\d+", re.IGNORECASE)


def commit_entity(commit: GitHubCommit, review: CodeReviewResult | None = None) -> CrossReferenceEntity:
    parts = [commit.message, *(f.filename for f in commit.files)]
    if review is not None:
        parts += [review.summary, *review.key_issues]
    entity = CrossReferenceEntity(
        entity_type=EntityType.CODE_REVIEW,
        title=commit.title or commit.short_sha,
        description="\n".join(p for p in parts if p),
        key=commit.sha,
        owner=commit.author,
        relevance=0.8,
        references=detect_ticket_references(commit.message),
    )
    if commit.date:
        entity.created_at = commit.date
    return entity


def meeting_entity(result: MeetingAnalysisResult) -> CrossReferenceEntity:
    """Topics, decisions and action items make up the searchable description."""
    transcript = result.transcript
    organizer = next((p.name for p in result.participants if p.is_organizer), "")
    parts = [*result.key_topics, *result.decisions, *(i.description for i in result.action_items)]
    return CrossReferenceEntity(
        entity_type=EntityType.MEETING,
        title=transcript.title,
        description="\n".join(parts),
        owner=organizer,
        status=transcript.status,
        references=detect_ticket_references(transcript.content),
        created_at=transcript.meeting_date,
    )


def ticket_entity(ticket: JiraTicket) -> CrossReferenceEntity:
    entity = CrossReferenceEntity(
        entity_type=EntityType.JIRA_TICKET,
        title=ticket.title,
        description=ticket.description,
        key=ticket.key,
        owner=ticket.assignee,
        status=ticket.status,
        relevance=1.0 if ticket.is_active else 0.5,
    )
    if ticket.created_at:
        entity.created_at = ticket.created_at
    return entity


def build_metrics(
    commits: list[GitHubCommit],
    reviews: list[CodeReviewResult],
    meetings: list[MeetingAnalysisResult],
    tickets: list[JiraTicket],
) -> DevelopmentMetrics:
    """Aggregate counts for one reporting period.

    Bug fixes and features are counted from commit message keywords; a
    commit matching both counts as a bug fix.
    """
    bugs = sum(1 for c in commits if BUG_FIX.search(c.title))
    features = sum(1 for c in commits if not BUG_FIX.search(c.title) and FEATURE.search(c.title))
    scored = [r.overall_score for r in reviews if r.overall_score > 0]
    items = [i for m in meetings for i in m.action_items]

    return DevelopmentMetrics(
        total_commits=len(commits),
        total_pull_requests=sum(1 for c in commits if MERGED_PR.match(c.message)),
        total_code_reviews=len(reviews),
        total_meetings=len(meetings),
        total_jira_tickets=len(tickets),
        lines_added=sum(c.total_additions for c in commits),
        lines_removed=sum(c.total_deletions for c in commits),
        bugs_fixed=bugs,
        features_completed=features,
        average_code_quality=mean(scored) if scored else 0.0,
        average_meeting_engagement=mean(m.effectiveness_score() for m in meetings) if meetings else 0.0,
        action_items_created=len(items),
        action_items_completed=sum(1 for i in items if i.status == ActionItemStatus.COMPLETED),
    )
