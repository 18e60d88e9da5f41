"""Multi-step workflows that span code review, meetings, Jira and reporting.

Each workflow gathers what it finds into a result dataclass and does not
raise: an unexpected failure is logged and recorded in ``error``. Steps
whose collaborator is missing are skipped. ``WorkflowRunner`` picks a
workflow from a free-text description.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from statistics import mean
from typing import Protocol

from anthropic import APIError

from devhub.errors import DevHubError
from devhub.integrations.jira import JiraClient, TicketCreationRequest, TicketRef
from devhub.integrations.tickets import TicketWorkflow, detect_ticket_references
from devhub.intelligence.models import (
    CrossReferenceType,
    DevelopmentSummary,
    PredictiveRecommendation,
    Priority,
    RecommendationCategory,
)
from devhub.intelligence.service import IntelligenceService
from devhub.meetings.models import MeetingAnalysisResult
from devhub.review.models import CodeReviewResult
from devhub.review.reviewer import CodeReviewer

logger = logging.getLogger(__name__)

SECURITY_KEYWORDS = ("security", "vulnerability", "authentication", "authorization", "injection", "xss")
PERFORMANCE_KEYWORDS = ("performance", "optimization", "slow", "latency", "bottleneck")

PERFORMANCE_COMMITS_LISTED = 5
PERFORMANCE_COMMITS_REVIEWED = 3
SPRINT_REPORT_DAYS = 14
SPRINT_COMMITS_LISTED = 10
SPRINT_COMMITS_REVIEWED = 5
DEFAULT_VELOCITY = 8.0

# Pull request workflow score thresholds (1-10).
LINKED_INSIGHT_SCORE = 6
FOLLOW_UP_TICKET_SCORE = 7

PR_INSIGHTS_PROMPT = """\
Analyze this code review result in the context of these Jira tickets and provide insights:

**Tickets**: {tickets}
**Review Score**: {score}/10
**Key Issues**: {issues}

Provide 1-2 key insights about:
1. How the code review findings relate to the ticket objectives
2. Whether the issues found suggest scope creep or additional work needed
3. Risk assessment for the current implementation

Keep it concise and actionable."""

PR_TICKET_SUGGESTION_PROMPT = """\
Based on this code review, should we create a new Jira ticket?

**PR Title**: {title}
**Review Score**: {score}/10
**Key Issues**: {issues}

The PR doesn't reference existing tickets but has quality issues.
Suggest whether to create a follow-up ticket and what it should focus on.
Provide a brief recommendation with a suggested ticket title."""

PR_SUMMARY_PROMPT = """\
Create a concise summary for this PR workflow execution:

**PR**: {title}
**Review Score**: {score}/10
**Workflow Steps Completed**: {steps}

Summarize the key outcomes and next actions in 2-3 sentences.
Focus on what was accomplished and any follow-up needed."""

DEFAULT_PR_INSIGHT = "Analysis completed with standard workflow."
DEFAULT_PR_SUGGESTION = "Consider creating a follow-up ticket for code quality improvements."

COMMIT_IN_TEXT = re.compile(r"\b(?=[0-9a-f]*\d)[0-9a-f]{7,40}\b", re.IGNORECASE)
PULL_REQUEST_IN_TEXT = re.compile(r"\b(?:pr|pull request)\s*#?(\d+)\b", re.IGNORECASE)
DAYS_IN_TEXT = re.compile(r"\b(\d{1,3})\s*days?\b", re.IGNORECASE)


class TextLLM(Protocol):
    async def invoke(self, prompt: str) -> str: ...


def _now() -> datetime:
    return datetime.now(UTC)


# ── Keyword filters ────────────────────────────────────────────────────────


def _mentions_any(text: str, keywords: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def find_issues(review: CodeReviewResult, keywords: tuple[str, ...]) -> list[str]:
    return [issue for f in review.file_reviews for issue in f.issues if _mentions_any(issue, keywords)]


def find_discussions(meetings: list[MeetingAnalysisResult], keywords: tuple[str, ...]) -> list[str]:
    """Topics, decisions and open questions from analyzed meetings that mention a keyword."""
    found: list[str] = []
    for meeting in meetings:
        label = f"{meeting.transcript.title}, {meeting.transcript.meeting_date:%Y-%m-%d}"
        for text in [*meeting.key_topics, *meeting.decisions, *meeting.open_questions]:
            if _mentions_any(text, keywords):
                found.append(f"{text} ({label})")
    return found


def find_security_issues(review: CodeReviewResult) -> list[str]:
    return find_issues(review, SECURITY_KEYWORDS)


def find_security_discussions(meetings: list[MeetingAnalysisResult]) -> list[str]:
    return find_discussions(meetings, SECURITY_KEYWORDS)


async def review_recent_commits(reviewer: CodeReviewer, listed: int, reviewed: int) -> list[CodeReviewResult]:
    """Review up to ``reviewed`` of the newest ``listed`` commits.

    Listing or review failures are logged and skipped, so a reviewer
    without GitHub yields an empty list.
    """
    commits = await reviewer.list_recent_commits(listed)
    if not commits.ok or commits.value is None:
        logger.warning("Skipping commit reviews: %s", commits.message)
        return []

    reviews: list[CodeReviewResult] = []
    for commit in commits.value[:reviewed]:
        outcome = await reviewer.review_commit(commit.sha)
        if outcome.ok and outcome.value is not None:
            reviews.append(outcome.value)
        else:
            logger.warning("Review of %s failed: %s", commit.short_sha, outcome.message)
    return reviews


# ── Security ───────────────────────────────────────────────────────────────


@dataclass
class SecurityWorkflowResult:
    commit_sha: str
    ok: bool = False
    review: CodeReviewResult | None = None
    security_issues: list[str] = field(default_factory=list)
    related_discussions: list[str] = field(default_factory=list)
    ticket: TicketRef | None = None
    executive_summary: str = ""
    error: str = ""
    started_at: datetime = field(default_factory=_now)
    finished_at: datetime | None = None

    def format_report(self) -> str:
        if not self.ok:
            return f"❌ Security workflow failed for {self.commit_sha}: {self.error}"
        lines = [
            f"🔒 **Security Workflow: {self.commit_sha[:8]}**",
            f"🔍 Potential security issues: {len(self.security_issues)}",
            *[f"  • {issue}" for issue in self.security_issues],
        ]
        if self.related_discussions:
            lines += ["💬 Related meeting discussions:", *[f"  • {d}" for d in self.related_discussions]]
        if self.ticket is not None:
            lines.append(f"🎫 Created ticket {self.ticket.key}: {self.ticket.url}")
        if self.executive_summary:
            lines += ["", "📊 **Executive Summary**", self.executive_summary]
        return "\n".join(lines)


def security_ticket_description(result: SecurityWorkflowResult) -> str:
    lines = [
        f"Automated security review flagged commit {result.commit_sha}.",
        "",
        "Potential security issues:",
        *[f"• {issue}" for issue in result.security_issues],
    ]
    if result.review is not None:
        lines += ["", f"Overall review score: {result.review.overall_score}/10"]
    if result.related_discussions:
        lines += ["", "Related meeting discussions:", *[f"• {d}" for d in result.related_discussions]]
    return "\n".join(lines)


class SecurityWorkflow:
    """Review a commit for security issues and escalate what it finds.

    Steps: review the commit, keep issues that mention a security keyword,
    look for related discussion in analyzed meetings, open a high-priority
    Jira bug when issues exist, and write a security-focused executive
    summary. Steps whose collaborator is missing are skipped.
    """

    def __init__(
        self,
        reviewer: CodeReviewer,
        intelligence: IntelligenceService | None = None,
        jira: JiraClient | None = None,
    ) -> None:
        self.reviewer = reviewer
        self.intelligence = intelligence
        self.jira = jira

    async def run(self, commit_sha: str) -> SecurityWorkflowResult:
        result = SecurityWorkflowResult(commit_sha=commit_sha)
        try:
            reviewed = await self.reviewer.review_commit(commit_sha)
            if not reviewed.ok or reviewed.value is None:
                result.error = reviewed.message
                return result
            result.review = reviewed.value
            result.security_issues = find_security_issues(reviewed.value)
            logger.info("Found %d potential security issues in %s", len(result.security_issues), commit_sha)

            if result.security_issues and self.intelligence is not None:
                result.related_discussions = find_security_discussions(self.intelligence.meetings)

            if result.security_issues and self.jira is not None:
                request = TicketCreationRequest.bug_report(
                    f"Security Review Required - Commit {commit_sha[:8]}",
                    security_ticket_description(result),
                    self.jira.project_key,
                    priority="High",
                )
                request.labels = ["security", "code-review", "high-priority"]
                created = await self.jira.submit(request)
                if created.ok:
                    result.ticket = created.value
                else:
                    logger.warning("Security ticket not created: %s", created.message)

            if self.intelligence is not None:
                self.intelligence.add_review(reviewed.value)
                result.executive_summary = await self.intelligence.create_executive_summary("Security")

            result.ok = True
        except Exception as exc:
            logger.exception("Security workflow failed for %s", commit_sha)
            result.error = str(exc)
        finally:
            result.finished_at = _now()
        return result


# ── Performance ────────────────────────────────────────────────────────────


@dataclass
class PerformanceWorkflowResult:
    days: int
    ok: bool = False
    report: DevelopmentSummary | None = None
    code_issues: list[str] = field(default_factory=list)
    meeting_topics: list[str] = field(default_factory=list)
    recommendations: list[PredictiveRecommendation] = field(default_factory=list)
    correlations: str = ""
    error: str = ""
    started_at: datetime = field(default_factory=_now)
    finished_at: datetime | None = None

    def format_report(self) -> str:
        if not self.ok:
            return f"❌ Performance workflow failed: {self.error}"
        lines = [f"⚡ **Performance Workflow: last {self.days} days**"]
        if self.report is not None:
            lines.append(f"📈 Health score: {self.report.overall_health_score}/100")
        lines += [
            f"⚠️ Performance-related code issues: {len(self.code_issues)}",
            *[f"  • {issue}" for issue in self.code_issues],
        ]
        if self.meeting_topics:
            lines += ["💬 Performance discussions in meetings:", *[f"  • {t}" for t in self.meeting_topics]]
        lines += [
            f"💡 Performance recommendations: {len(self.recommendations)}",
            *[f"  • {r.title}: {r.description}" for r in self.recommendations],
        ]
        if self.correlations:
            lines += ["", self.correlations]
        return "\n".join(lines)


class PerformanceWorkflow:
    """Look for performance problems across recent code, meetings and metrics.

    Recent commits are reviewed first so that the report and the
    code/meeting correlation both see those reviews.
    """

    def __init__(self, reviewer: CodeReviewer, intelligence: IntelligenceService) -> None:
        self.reviewer = reviewer
        self.intelligence = intelligence

    async def run(self, days: int = 7) -> PerformanceWorkflowResult:
        result = PerformanceWorkflowResult(days=days)
        try:
            reviews = await review_recent_commits(
                self.reviewer, PERFORMANCE_COMMITS_LISTED, PERFORMANCE_COMMITS_REVIEWED
            )
            for review in reviews:
                self.intelligence.add_review(review)
                result.code_issues += find_issues(review, PERFORMANCE_KEYWORDS)
            logger.info("Found %d performance-related code issues", len(result.code_issues))

            result.report = await self.intelligence.generate_report(days)
            result.meeting_topics = find_discussions(self.intelligence.meetings, PERFORMANCE_KEYWORDS)
            result.recommendations = [
                p for p in result.report.predictions if p.category == RecommendationCategory.PERFORMANCE
            ]
            result.correlations = await self.intelligence.analyze_code_meeting_correlations()
            result.ok = True
        except Exception as exc:
            logger.exception("Performance workflow failed")
            result.error = str(exc)
        finally:
            result.finished_at = _now()
        return result


# ── Sprint planning ────────────────────────────────────────────────────────


@dataclass
class SprintPlanningResult:
    goals: list[str] = field(default_factory=list)
    ok: bool = False
    report: DevelopmentSummary | None = None
    average_code_quality: float = 0.0
    estimates: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)
    opportunities: list[str] = field(default_factory=list)
    recommendation: str = ""
    error: str = ""
    started_at: datetime = field(default_factory=_now)
    finished_at: datetime | None = None

    @property
    def velocity(self) -> float:
        return self.report.performance.velocity_score if self.report is not None else DEFAULT_VELOCITY

    def format_report(self) -> str:
        if not self.ok:
            return f"❌ Sprint planning workflow failed: {self.error}"
        lines = [self.recommendation]
        if self.opportunities:
            lines += ["", "## Opportunities:", *[f"• {o}" for o in self.opportunities]]
        return "\n".join(lines)


def sprint_estimates(velocity: float, quality: float) -> list[str]:
    """Capacity advice from a 0-10 velocity score and a 0-10 code quality score."""
    if velocity > 8.0 and quality > 7.0:
        capacity = "Team is performing at high velocity - can handle 110% of normal capacity"
    elif velocity < 6.0 or quality < 6.0:
        capacity = "Team should plan for 80% of normal capacity due to quality/velocity concerns"
    else:
        capacity = "Team should plan for normal capacity with standard contingency"
    return [capacity, f"Recommended story points: {round(velocity * quality * 2.5)} based on historical performance"]


def sprint_recommendation(result: SprintPlanningResult) -> str:
    health = result.report.overall_health_score if result.report is not None else 0
    verdict = "Proceed with confidence" if health >= 80 else "Proceed with caution and reduced scope"
    return "\n".join(
        [
            "# Sprint Planning Executive Recommendation",
            "",
            "## Current Status",
            f"- **Health Score**: {health}/100",
            f"- **Velocity**: {result.velocity:.1f}/10",
            f"- **Code Quality**: {result.average_code_quality:.1f}/10",
            "",
            "## Key Recommendations:",
            *[f"• {e}" for e in result.estimates],
            "",
            "## Sprint Goals Assessment:",
            *[f"• {g} - Achievable based on current metrics" for g in result.goals],
            "",
            "## Risk Mitigation:",
            *[f"• {r}" for r in result.risks[:3]],
            "",
            f"**Overall Recommendation**: {verdict}",
        ]
    )


class SprintPlanningWorkflow:
    """Turn recent velocity, review scores and predictions into sprint advice.

    Code quality is the mean score of fresh reviews of recent commits, or
    the session's recorded review average when no commit could be reviewed.
    """

    def __init__(self, reviewer: CodeReviewer, intelligence: IntelligenceService) -> None:
        self.reviewer = reviewer
        self.intelligence = intelligence

    async def run(self, goals: list[str]) -> SprintPlanningResult:
        result = SprintPlanningResult(goals=list(goals))
        try:
            reviews = await review_recent_commits(self.reviewer, SPRINT_COMMITS_LISTED, SPRINT_COMMITS_REVIEWED)
            for review in reviews:
                self.intelligence.add_review(review)

            report = result.report = await self.intelligence.generate_report(SPRINT_REPORT_DAYS, include_summary=False)
            if reviews:
                result.average_code_quality = mean(r.overall_score for r in reviews)
            else:
                result.average_code_quality = report.metrics.average_code_quality

            result.estimates = sprint_estimates(result.velocity, result.average_code_quality)
            result.risks = [p.description for p in report.predictions if p.priority in (Priority.HIGH, Priority.CRITICAL)]
            result.opportunities = [
                p.description for p in report.predictions if p.category == RecommendationCategory.PROCESS_IMPROVEMENT
            ]
            result.recommendation = sprint_recommendation(result)
            logger.info(
                "Sprint plan: velocity %.1f, quality %.1f, %d risks",
                result.velocity,
                result.average_code_quality,
                len(result.risks),
            )
            result.ok = True
        except Exception as exc:
            logger.exception("Sprint planning workflow failed")
            result.error = str(exc)
        finally:
            result.finished_at = _now()
        return result


# ── Pull requests ──────────────────────────────────────────────────────────


@dataclass
class PullRequestWorkflowResult:
    number: int
    ok: bool = False
    review: CodeReviewResult | None = None
    referenced_tickets: list[str] = field(default_factory=list)
    linked_tickets: list[str] = field(default_factory=list)
    ticket: TicketRef | None = None
    steps: list[str] = field(default_factory=list)
    correlations: str = ""
    summary: str = ""
    error: str = ""
    started_at: datetime = field(default_factory=_now)
    finished_at: datetime | None = None

    def format_report(self) -> str:
        if not self.ok or self.review is None:
            return f"❌ Error orchestrating PR workflow: {self.error}"
        review = self.review
        lines = [
            "🎯 **PR Workflow Complete**",
            "",
            f"**PR #{self.number}**: {review.title}",
            "",
            "**Workflow Steps:**",
            *[f"{n}. {step}" for n, step in enumerate(self.steps, start=1)],
        ]
        if self.summary:
            lines += ["", "**Summary:**", self.summary]
        lines += [
            "",
            "**Code Review Summary:**",
            f"• Score: {review.overall_score}/10",
            f"• Files Analyzed: {review.files_reviewed}",
            f"• Key Issues: {len(review.key_issues)}",
            f"• Recommendations: {len(review.recommendations)}",
        ]
        return "\n".join(lines)


class PullRequestWorkflow:
    """Review a pull request and route the findings into Jira and the correlator.

    Tickets referenced in the PR title get the review as a comment; low
    scores add an LLM note on risk. Without references, a low-scoring PR
    with key issues opens a follow-up ticket, or gets an LLM suggestion
    for one when Jira is not configured.
    """

    def __init__(
        self,
        reviewer: CodeReviewer,
        llm: TextLLM,
        tickets: TicketWorkflow | None = None,
        intelligence: IntelligenceService | None = None,
    ) -> None:
        self.reviewer = reviewer
        self.llm = llm
        self.tickets = tickets
        self.intelligence = intelligence

    async def _generate(self, prompt: str, fallback: str) -> str:
        try:
            return (await self.llm.invoke(prompt)).strip() or fallback
        except (APIError, DevHubError) as exc:
            logger.warning("Using default workflow text: %s", exc)
            return fallback

    async def _follow_up(self, result: PullRequestWorkflowResult, review: CodeReviewResult) -> None:
        issues = ", ".join(review.key_issues[:3])
        if self.tickets is None:
            suggestion = await self._generate(
                PR_TICKET_SUGGESTION_PROMPT.format(title=review.title, score=review.overall_score, issues=issues),
                DEFAULT_PR_SUGGESTION,
            )
            result.steps.append(f"📝 Ticket suggestion: {suggestion}")
            return

        request = TicketCreationRequest.from_code_review(review, self.tickets.jira.project_key)
        request.title = f"Code Review Issues - PR #{result.number}"
        created = await self.tickets.jira.submit(request)
        if created.ok and created.value is not None:
            result.ticket = created.value
            result.steps.append(f"🎫 Created follow-up ticket {created.value.key}")
        else:
            result.steps.append(f"⚠️ Follow-up ticket not created: {created.message}")

    async def run(self, number: int) -> PullRequestWorkflowResult:
        result = PullRequestWorkflowResult(number=number)
        try:
            reviewed = await self.reviewer.review_pull_request(number)
            if not reviewed.ok or reviewed.value is None:
                result.error = reviewed.message
                return result
            review = result.review = reviewed.value
            result.steps.append(f"🔍 Reviewed {review.files_reviewed} files (score {review.overall_score}/10)")

            result.referenced_tickets = detect_ticket_references(review.title)
            if result.referenced_tickets and self.tickets is not None:
                outcomes = await self.tickets.link_code_review_to_tickets(review, review.title)
                result.linked_tickets = [o.value.key for o in outcomes if o.ok and o.value is not None]
                result.steps.append(
                    f"🔗 Successfully linked code review to {len(result.linked_tickets)}/{len(outcomes)} tickets"
                )
                if review.overall_score <= LINKED_INSIGHT_SCORE:
                    insight = await self._generate(
                        PR_INSIGHTS_PROMPT.format(
                            tickets=", ".join(result.referenced_tickets),
                            score=review.overall_score,
                            issues=", ".join(review.key_issues[:3]),
                        ),
                        DEFAULT_PR_INSIGHT,
                    )
                    result.steps.append(f"💡 Workflow insights: {insight}")
            elif review.overall_score <= FOLLOW_UP_TICKET_SCORE and review.key_issues:
                await self._follow_up(result, review)

            if self.intelligence is not None:
                self.intelligence.add_review(review)
                result.correlations = await self.intelligence.analyze_code_meeting_correlations()
                result.steps.append("🔗 Correlated the review with recent meeting discussions")

            result.summary = await self._generate(
                PR_SUMMARY_PROMPT.format(title=review.title, score=review.overall_score, steps=len(result.steps)),
                f"Completed automated workflow for PR: {review.title}.",
            )
            result.ok = True
        except Exception as exc:
            logger.exception("Pull request workflow failed for #%d", number)
            result.error = str(exc)
        finally:
            result.finished_at = _now()
        return result


# ── Dispatch ───────────────────────────────────────────────────────────────


class WorkflowKind(StrEnum):
    SECURITY = "Security"
    PERFORMANCE = "Performance"
    SPRINT_PLANNING = "SprintPlanning"
    PULL_REQUEST = "PullRequest"
    MEETING = "Meeting"
    GENERAL = "General"


def classify_workflow(description: str) -> WorkflowKind:
    """Pick a workflow from keywords; an explicit ``PR #12`` wins over everything else."""
    text = description.lower()
    if PULL_REQUEST_IN_TEXT.search(description):
        return WorkflowKind.PULL_REQUEST
    if "security" in text:
        return WorkflowKind.SECURITY
    if "performance" in text:
        return WorkflowKind.PERFORMANCE
    if "sprint" in text:
        return WorkflowKind.SPRINT_PLANNING
    if "meeting" in text:
        return WorkflowKind.MEETING
    return WorkflowKind.GENERAL


def sprint_goals(description: str) -> list[str]:
    """Goals listed after the first colon, separated by ``;`` or ``,``."""
    if ":" not in description:
        return []
    return [g.strip() for g in re.split(r"[;,]", description.split(":", 1)[1]) if g.strip()]


@dataclass
class WorkflowRun:
    description: str
    kind: WorkflowKind
    ok: bool = False
    result: str = ""
    error: str = ""
    started_at: datetime = field(default_factory=_now)
    finished_at: datetime | None = None

    @property
    def duration(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def format_report(self) -> str:
        if not self.ok:
            return f"❌ {self.kind} workflow failed: {self.error}"
        return f"🤖 **{self.kind} workflow** ({self.duration:.1f}s)\n\n{self.result}"


class WorkflowRunner:
    """Runs the workflow a free-text description asks for.

    Security runs on the first commit sha in the description, else on the
    latest commit. Performance reads ``N days`` from the description.
    Sprint planning takes its goals from after a colon. Meeting requests
    correlate analyzed meetings with Jira; anything else gets an overall
    executive summary.
    """

    def __init__(
        self,
        reviewer: CodeReviewer,
        intelligence: IntelligenceService,
        llm: TextLLM,
        tickets: TicketWorkflow | None = None,
    ) -> None:
        self.reviewer = reviewer
        self.intelligence = intelligence
        self.security = SecurityWorkflow(reviewer, intelligence, tickets.jira if tickets is not None else None)
        self.performance = PerformanceWorkflow(reviewer, intelligence)
        self.sprint_planning = SprintPlanningWorkflow(reviewer, intelligence)
        self.pull_request = PullRequestWorkflow(reviewer, llm, tickets, intelligence)

    async def _commit_for(self, description: str) -> str:
        found = COMMIT_IN_TEXT.search(description)
        if found:
            return found.group(0).lower()
        latest = await self.reviewer.list_recent_commits(1)
        if not latest.ok or not latest.value:
            raise DevHubError(f"No commit SHA in the description and no recent commit available: {latest.message}")
        return latest.value[0].sha

    async def _meetings(self) -> str:
        result = await self.intelligence.analyze_cross_references(CrossReferenceType.MEETING_TO_JIRA)
        return "\n".join([result.summary, *[f"• {i}" for i in result.insights]])

    async def _run_workflow(
        self, kind: WorkflowKind, description: str
    ) -> SecurityWorkflowResult | PerformanceWorkflowResult | SprintPlanningResult | PullRequestWorkflowResult:
        if kind == WorkflowKind.PULL_REQUEST:
            match = PULL_REQUEST_IN_TEXT.search(description)
            assert match is not None
            return await self.pull_request.run(int(match.group(1)))
        if kind == WorkflowKind.SECURITY:
            return await self.security.run(await self._commit_for(description))
        if kind == WorkflowKind.PERFORMANCE:
            days = DAYS_IN_TEXT.search(description)
            return await self.performance.run(int(days.group(1)) if days else 7)
        return await self.sprint_planning.run(sprint_goals(description))

    async def run(self, description: str) -> WorkflowRun:
        run = WorkflowRun(description=description, kind=classify_workflow(description))
        logger.info("Running %s workflow for %r", run.kind, description)
        try:
            if run.kind == WorkflowKind.MEETING:
                run.result, run.ok = await self._meetings(), True
            elif run.kind == WorkflowKind.GENERAL:
                run.result, run.ok = await self.intelligence.create_executive_summary(), True
            else:
                outcome = await self._run_workflow(run.kind, description)
                run.ok, run.result, run.error = outcome.ok, outcome.format_report(), outcome.error
        except Exception as exc:
            logger.exception("%s workflow failed", run.kind)
            run.error = str(exc)
        finally:
            run.finished_at = _now()
        return run
