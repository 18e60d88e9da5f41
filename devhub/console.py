"""Interactive console for DevHub.

Usage:
    python -m devhub.console
    python -m devhub.console --log-level DEBUG --data-dir data

The menu offers meeting analysis, snippet review, intelligence reports and
workflows always; GitHub and Jira entries appear only when those
integrations are configured.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from anthropic import APIError

from devhub.config import Settings, get_settings
from devhub.errors import ConfigurationError, DevHubError, OperationResult
from devhub.integrations.filesystem import TranscriptStore, TranscriptWatcher
from devhub.integrations.github import GitHubClient
from devhub.integrations.jira import JiraClient, TicketCreationRequest
from devhub.integrations.tickets import TicketWorkflow
from devhub.intelligence.models import CrossReferenceType
from devhub.intelligence.report import render_full_report
from devhub.intelligence.service import IntelligenceService
from devhub.llm import LLMClient
from devhub.logging_setup import setup_logging
from devhub.meetings.analyzer import MeetingAnalyzer, TextLLM
from devhub.meetings.models import MeetingAnalysisResult
from devhub.pipeline_config import PipelineConfig
from devhub.review.models import CodeReviewResult
from devhub.review.reviewer import SUPPORTED_LANGUAGES, CodeReviewer
from devhub.workflows import WorkflowRunner

logger = logging.getLogger(__name__)

RULE = "=" * 50
END_MARKER = "END"
PATCH_PREVIEW_LINES = 5


@dataclass
class MenuOption:
    label: str
    handler: Callable[[], Awaitable[None]]


def _failed(result: OperationResult) -> bool:
    if result.ok:
        return False
    print(f"\n❌ {result.message}")
    return True


class DevHubConsole:
    """Numbered-menu front end over the analyzers, reviewer and workflows."""

    def __init__(
        self,
        settings: Settings,
        llm: TextLLM,
        github: GitHubClient | None = None,
        jira: JiraClient | None = None,
        store: TranscriptStore | None = None,
        ask: Callable[[str], str] = input,
    ) -> None:
        config = PipelineConfig.from_settings(settings)
        self.github = github
        self.jira = jira
        self.store = store or TranscriptStore(settings.data_dir)
        self.analyzer = MeetingAnalyzer(llm, config, self.store)
        self.reviewer = CodeReviewer(llm, github)
        self.intelligence = IntelligenceService(llm, config, github, jira)
        self.tickets = (
            TicketWorkflow(jira, llm, settings.ticket_rate_limit_seconds, settings.link_rate_limit_seconds)
            if jira is not None
            else None
        )
        self.workflows = WorkflowRunner(self.reviewer, self.intelligence, llm, self.tickets)
        self.security = self.workflows.security
        self.watcher = TranscriptWatcher(self.store)
        self.last_analysis: MeetingAnalysisResult | None = None
        self.last_review: CodeReviewResult | None = None
        self._ask = ask

    # ── Input ──────────────────────────────────────────────────────────────

    async def _read(self, prompt: str) -> str:
        # Off the event loop so the file watcher keeps polling while we wait.
        return await asyncio.to_thread(self._ask, prompt)

    async def _read_block(self, what: str) -> str:
        print(f"\n📝 Enter {what}:")
        print(f"(Enter '{END_MARKER}' on a new line when finished)")
        lines: list[str] = []
        while True:
            line = await self._read("")
            if line.strip() == END_MARKER:
                break
            lines.append(line)
        return "\n".join(lines)

    async def _read_language(self) -> str:
        print(f"\nSupported languages: {', '.join(SUPPORTED_LANGUAGES)}")
        return (await self._read("Enter language (default C#): ")).strip() or "C#"

    # ── Menu ───────────────────────────────────────────────────────────────

    def options(self) -> list[MenuOption]:
        watcher_label = "Stop watching incoming folder" if self.watcher.running else "Watch incoming folder"
        options = [
            MenuOption("Analyze sample meeting transcript", self.analyze_sample),
            MenuOption("Analyze transcript file", self.analyze_file),
            MenuOption("Analyze pasted transcript", self.analyze_pasted),
            MenuOption("Process incoming transcripts", self.process_incoming),
            MenuOption(watcher_label, self.toggle_watcher),
            MenuOption("Show action items for a participant", self.participant_items),
            MenuOption("Analyze code snippet", self.analyze_code),
            MenuOption("Check coding standards", self.check_standards),
        ]
        if self.github is not None:
            options += [
                MenuOption("List recent commits", self.list_commits),
                MenuOption("Show files changed by a commit", self.commit_files),
                MenuOption("Review latest commit", self.review_latest),
                MenuOption("Review commit by SHA", self.review_commit),
                MenuOption("Review GitHub pull request", self.review_pull_request),
                MenuOption("Run pull request workflow", self.pull_request_workflow),
                MenuOption("Run security workflow on a commit", self.security_workflow),
                MenuOption("Show repository file", self.show_file),
                MenuOption("Repository info", self.repository_info),
            ]
        if self.tickets is not None:
            options += [
                MenuOption("Test Jira connection", self.test_jira),
                MenuOption("Create Jira tickets from last meeting analysis", self.create_tickets),
                MenuOption("Create feature request", self.feature_request),
                MenuOption("Search Jira tickets", self.search_tickets),
                MenuOption("Link last code review to referenced tickets", self.link_review),
            ]
        options += [
            MenuOption("Cross-reference analysis", self.cross_references),
            MenuOption("Detect patterns", self.detect_patterns),
            MenuOption("Code and meeting correlations", self.correlations),
            MenuOption("Development intelligence report", self.report),
            MenuOption("Executive summary", self.executive_summary),
            MenuOption("Performance workflow", self.performance_workflow),
            MenuOption("Sprint planning workflow", self.sprint_planning),
            MenuOption("Run workflow from description", self.run_workflow),
        ]
        return options

    def print_menu(self, options: list[MenuOption]) -> None:
        print(f"\n{RULE}")
        print("🚀 DevHub - Main Menu")
        print(RULE)
        for number, option in enumerate(options, start=1):
            print(f"{number}. {option.label}")
        print(f"{len(options) + 1}. Exit")

    async def run(self) -> None:
        try:
            while True:
                options = self.options()
                self.print_menu(options)
                try:
                    choice = (await self._read("\nEnter your choice: ")).strip()
                except EOFError:
                    break

                if choice == str(len(options) + 1):
                    print("\n👋 Thank you for using DevHub!")
                    break
                if not choice.isdigit() or not 1 <= int(choice) <= len(options):
                    print(f"\n❌ Invalid choice. Please enter 1-{len(options) + 1}.")
                    continue

                try:
                    await options[int(choice) - 1].handler()
                except (DevHubError, APIError) as exc:
                    logger.exception("Menu action failed")
                    print(f"\n❌ Error: {exc}")
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        if self.watcher.running:
            await self.watcher.stop()
        for client in (self.github, self.jira):
            if client is not None:
                await client.close()

    # ── Meetings ───────────────────────────────────────────────────────────

    def _show_analysis(self, result: MeetingAnalysisResult) -> None:
        self.last_analysis = result
        self.intelligence.add_meeting(result)
        print()
        print(result.format_summary())

    async def analyze_sample(self) -> None:
        templates = self.store.list_templates()
        if not templates:
            print(f"\n❌ No sample transcripts found in {self.store.templates}")
            return
        for number, path in enumerate(templates, start=1):
            print(f"{number}. {path.name}")
        choice = (await self._read("Choose a sample (default 1): ")).strip()
        index = int(choice) - 1 if choice.isdigit() else 0

        print("\n🔍 Analyzing sample transcript...")
        analyzed = await self.analyzer.analyze_sample(index)
        if not _failed(analyzed) and analyzed.value is not None:
            self._show_analysis(analyzed.value)

    async def analyze_file(self) -> None:
        path = (await self._read("Transcript path: ")).strip()
        print(f"\n🔍 Analyzing {path}...")
        analyzed = await self.analyzer.analyze_file(path)
        if not _failed(analyzed) and analyzed.value is not None:
            self._show_analysis(analyzed.value)

    async def analyze_pasted(self) -> None:
        text = await self._read_block("the meeting transcript")
        if not text.strip():
            print("❌ No transcript provided.")
            return
        title = (await self._read("Meeting title (optional): ")).strip() or "Direct Input"
        self._show_analysis(await self.analyzer.analyze_text(text, title))

    async def _process(self, path: Path) -> None:
        moved = self.store.move_to_processing(path.name)
        if _failed(moved) or moved.value is None:
            return
        info = self.store.file_info(moved.value)
        if info.ok and info.value is not None:
            print()
            print(info.value.display())
        analyzed = await self.analyzer.analyze_file(moved.value)
        if not _failed(analyzed) and analyzed.value is not None:
            self._show_analysis(analyzed.value)
        archived = self.store.archive_file(moved.value.name)
        if not _failed(archived):
            if analyzed.ok and analyzed.value is not None:
                analyzed.value.transcript.mark_archived()
            print(f"📦 {archived.message}")

    async def process_incoming(self) -> None:
        incoming = self.store.list_incoming()
        if not incoming:
            print(f"\n📭 No transcripts waiting in {self.store.incoming}")
            return
        print(f"\n📬 Processing {len(incoming)} transcript(s)...")
        for path in incoming:
            await self._process(path)

    async def toggle_watcher(self) -> None:
        if self.watcher.running:
            print(await self.watcher.stop())
        else:
            print(self.watcher.start(self._process))

    async def participant_items(self) -> None:
        if self.last_analysis is None:
            print("\n❌ Analyze a meeting first.")
            return
        name = (await self._read("Participant name: ")).strip()
        items = self.last_analysis.action_items_for(name)
        if not items:
            print(f"\n📭 No action items assigned to {name}.")
            return
        print(f"\n📋 Action items for {name} ({len(items)}):")
        for item in items:
            print(f"• {item.display()}")

    # ── Code review ────────────────────────────────────────────────────────

    async def analyze_code(self) -> None:
        code = await self._read_block("your code to analyze")
        if not code.strip():
            print("❌ No code provided.")
            return
        language = await self._read_language()
        print(f"\n🔍 Analyzing your {language} code...")
        analyzed = await self.reviewer.analyze_code(code, language)
        if not _failed(analyzed):
            print(f"\n📊 Analysis Result:\n{analyzed.value}")

    async def check_standards(self) -> None:
        code = await self._read_block("code to check against coding standards")
        if not code.strip():
            print("❌ No code provided.")
            return
        language = await self._read_language()
        standard = (await self._read("Coding standard (default: language default): ")).strip()
        print(f"\n📏 Checking {language} coding standards...")
        checked = await self.reviewer.check_coding_standards(code, standard or "Language Default", language)
        if not _failed(checked):
            print(f"\n📊 Standards Check Result:\n{checked.value}")

    async def list_commits(self) -> None:
        listed = await self.reviewer.list_recent_commits()
        if _failed(listed) or listed.value is None:
            return
        print(f"\n📜 Recent commits ({len(listed.value)}):")
        for commit in listed.value:
            print(commit.display())

    def _show_review(self, reviewed: OperationResult[CodeReviewResult]) -> None:
        if _failed(reviewed) or reviewed.value is None:
            return
        self.last_review = reviewed.value
        self.intelligence.add_review(reviewed.value)
        print()
        print(reviewed.value.format_report())

    async def review_latest(self) -> None:
        print("\n🔍 Reviewing latest commit...")
        self._show_review(await self.reviewer.review_latest_commit())

    async def review_commit(self) -> None:
        sha = (await self._read("Commit SHA: ")).strip()
        if not sha:
            print("❌ No commit SHA provided.")
            return
        print(f"\n🔍 Reviewing commit {sha}...")
        self._show_review(await self.reviewer.review_commit(sha))

    async def review_pull_request(self) -> None:
        number = (await self._read("Pull request number: ")).strip()
        if not number.isdigit():
            print("❌ Invalid pull request number.")
            return
        print(f"\n🔍 Reviewing Pull Request #{number}...")
        self._show_review(await self.reviewer.review_pull_request(int(number)))

    async def commit_files(self) -> None:
        assert self.github is not None
        sha = (await self._read("Commit SHA: ")).strip()
        if not sha:
            print("❌ No commit SHA provided.")
            return
        listed = await self.github.list_commit_files(sha)
        if _failed(listed) or listed.value is None:
            return
        print(f"\n📁 Files changed by {sha[:8]} ({len(listed.value)}):")
        for changed in listed.value:
            print(changed.display())
            for line in changed.added_lines()[:PATCH_PREVIEW_LINES]:
                print(f"    + {line}")
            for line in changed.removed_lines()[:PATCH_PREVIEW_LINES]:
                print(f"    - {line}")

    async def pull_request_workflow(self) -> None:
        number = (await self._read("Pull request number: ")).strip()
        if not number.isdigit():
            print("❌ Invalid pull request number.")
            return
        print(f"\n🎯 Running workflow for Pull Request #{number}...")
        result = await self.workflows.pull_request.run(int(number))
        if result.review is not None:
            self.last_review = result.review
        print()
        print(result.format_report())

    async def security_workflow(self) -> None:
        sha = (await self._read("Commit SHA: ")).strip()
        if not sha:
            print("❌ No commit SHA provided.")
            return
        print(f"\n🔒 Running security workflow for {sha}...")
        result = await self.security.run(sha)
        if result.review is not None:
            self.last_review = result.review
        print()
        print(result.format_report())

    async def show_file(self) -> None:
        assert self.github is not None
        path = (await self._read("File path in repository: ")).strip()
        if not path:
            print("❌ No file path provided.")
            return
        ref = (await self._read("Branch or commit (default main): ")).strip() or "main"
        content = await self.github.file_content(path, ref)
        if not _failed(content):
            print(f"\n📄 {path} @ {ref}:\n")
            print(content.value)

    async def repository_info(self) -> None:
        assert self.github is not None
        fetched = await self.github.repository()
        if _failed(fetched) or fetched.value is None:
            return
        repo = fetched.value
        print(f"\n📦 **{repo.full_name or repo.name}**")
        if repo.description:
            print(repo.description)
        print(f"🔤 Language: {repo.language or 'Unknown'}")
        print(f"⭐ {repo.stars}  🍴 {repo.forks}  ❗ {repo.open_issues} open issues")
        print(f"🌿 Default branch: {repo.default_branch}")
        if repo.url:
            print(f"🔗 {repo.url}")

    # ── Jira ───────────────────────────────────────────────────────────────

    async def test_jira(self) -> None:
        assert self.jira is not None
        connected = await self.jira.test_connection()
        if not _failed(connected):
            print(f"\n✅ {connected.message}")

    async def feature_request(self) -> None:
        assert self.jira is not None
        title = (await self._read("Feature title: ")).strip()
        description = await self._read_block("the feature description")
        priority = (await self._read("Priority (default Medium): ")).strip() or "Medium"
        request = TicketCreationRequest.feature_request(title, description, self.jira.project_key, priority)
        created = await self.jira.submit(request)
        if not _failed(created) and created.value is not None:
            print(f"\n✅ {created.value.key}: {created.value.url}")

    async def create_tickets(self) -> None:
        assert self.tickets is not None
        if self.last_analysis is None or not self.last_analysis.action_items:
            print("\n❌ Analyze a meeting with action items first.")
            return
        print(f"\n🎫 Creating tickets for {len(self.last_analysis.action_items)} action items...")
        for outcome in await self.tickets.create_tickets_from_meeting(self.last_analysis):
            if outcome.ok and outcome.value is not None:
                print(f"✅ {outcome.value.key}: {outcome.value.url}")
            else:
                print(f"❌ {outcome.message}")

    async def search_tickets(self) -> None:
        assert self.jira is not None
        term = (await self._read("Search term or ticket key: ")).strip()
        found = await self.jira.search_tickets(term)
        if _failed(found) or found.value is None:
            return
        print(f"\n🔍 Found {len(found.value)} ticket(s):")
        for ticket in found.value:
            print(f"• {ticket.short_display()}")

    async def link_review(self) -> None:
        assert self.tickets is not None
        if self.last_review is None:
            print("\n❌ Review a commit or pull request first.")
            return
        text = (await self._read("Text mentioning ticket keys (e.g. a commit message): ")).strip()
        outcomes = await self.tickets.link_code_review_to_tickets(self.last_review, text)
        if not outcomes:
            print("\n📭 No ticket references found.")
        for outcome in outcomes:
            print(f"✅ Commented on {outcome.value.key}" if outcome.ok and outcome.value else f"❌ {outcome.message}")

    # ── Intelligence ───────────────────────────────────────────────────────

    async def cross_references(self) -> None:
        names = ", ".join(t.value for t in CrossReferenceType)
        raw = (await self._read(f"Analysis type ({names}) [FullSystemAnalysis]: ")).strip()
        try:
            analysis_type = CrossReferenceType.parse(raw) if raw else CrossReferenceType.FULL_SYSTEM
        except ValueError as exc:
            print(f"\n❌ {exc}")
            return
        result = await self.intelligence.analyze_cross_references(analysis_type)
        print(f"\n🔗 {result.summary}")
        for insight in result.insights:
            print(f"• {insight}")
        for pattern in result.patterns:
            print(f"🧩 {pattern.name}: {pattern.description}")

    async def detect_patterns(self) -> None:
        pattern_type = (await self._read("Pattern type (default All): ")).strip() or "All"
        patterns = await self.intelligence.detect_patterns(pattern_type)
        if not patterns:
            print("\n📭 No recurring patterns found.")
            return
        print(f"\n🧩 Detected {len(patterns)} pattern(s):")
        for pattern in patterns:
            print(f"• {pattern.name} ({pattern.frequency}x, {pattern.confidence:.2f} confidence): {pattern.description}")

    async def correlations(self) -> None:
        print("\n🔗 Correlating recent code with meeting discussions...\n")
        print(await self.intelligence.analyze_code_meeting_correlations())

    async def _read_days(self) -> int:
        raw = (await self._read("Days to analyze (default 7): ")).strip()
        return int(raw) if raw.isdigit() and int(raw) > 0 else 7

    async def report(self) -> None:
        days = await self._read_days()
        print(f"\n📊 Generating {days}-day development intelligence report...")
        summary = await self.intelligence.generate_report(days)
        print()
        print(render_full_report(summary))

    async def executive_summary(self) -> None:
        focus = (await self._read("Focus area (default Overall): ")).strip() or "Overall"
        print(f"\n📋 Executive summary ({focus}):\n")
        print(await self.intelligence.create_executive_summary(focus))

    # ── Workflows ──────────────────────────────────────────────────────────

    async def performance_workflow(self) -> None:
        days = await self._read_days()
        print(f"\n⚡ Running performance workflow over {days} days...")
        result = await self.workflows.performance.run(days)
        print()
        print(result.format_report())

    async def sprint_planning(self) -> None:
        raw = (await self._read("Sprint goals (separated by ';'): ")).strip()
        goals = [g.strip() for g in raw.split(";") if g.strip()]
        print("\n🗓️ Running sprint planning workflow...")
        result = await self.workflows.sprint_planning.run(goals)
        print()
        print(result.format_report())

    async def run_workflow(self) -> None:
        description = (await self._read("Describe the workflow to run: ")).strip()
        if not description:
            print("❌ No description provided.")
            return
        run = await self.workflows.run(description)
        print()
        print(run.format_report())


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m devhub.console",
        description="DevHub interactive console: meeting analysis, code review and development intelligence.",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL setting or INFO).")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file.")
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Root of the Incoming/Processing/Archive/Templates folders (default: DATA_DIR setting).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    settings = get_settings()
    if args.data_dir:
        settings = settings.model_copy(update={"data_dir": args.data_dir})
    setup_logging(args.log_level or settings.log_level, args.log_file or settings.log_file or None)

    try:
        llm = LLMClient(settings)
    except ConfigurationError as exc:
        print(f"❌ Missing required configuration: {exc.message}. Please check your .env file.", file=sys.stderr)
        return 1

    for note in settings.disabled_features():
        logger.warning(note)

    github = GitHubClient(settings) if settings.github_enabled else None
    jira = JiraClient(settings) if settings.jira_enabled else None
    print("✅ DevHub initialized")
    print(f"🤖 Using model: {settings.llm_model}")

    asyncio.run(DevHubConsole(settings, llm, github, jira).run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
