"""Tests for the interactive console with scripted input."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from devhub.console import END_MARKER, DevHubConsole, _build_arg_parser, main
from devhub.errors import NotFoundError, OperationResult
from devhub.integrations.filesystem import TranscriptStore
from devhub.integrations.github import GitHubFile
from devhub.integrations.jira import TicketRef
from devhub.meetings.models import ActionItem, MeetingAnalysisResult, MeetingTranscript, TranscriptStatus
from tests.conftest import MEETING_REPLIES, SAMPLE_TRANSCRIPT, ScriptedLLM, make_settings


class ScriptedInput:
    """Replays canned answers, then behaves like a closed stdin."""

    def __init__(self, *answers: str) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


def _client() -> MagicMock:
    client = MagicMock()
    client.close = AsyncMock()
    return client


def _console(
    tmp_path: Path,
    ask: ScriptedInput,
    github: MagicMock | None = None,
    jira: MagicMock | None = None,
) -> DevHubConsole:
    settings = make_settings(data_dir=str(tmp_path))
    return DevHubConsole(
        settings,
        ScriptedLLM(dict(MEETING_REPLIES)),
        github=github,
        jira=jira,
        store=TranscriptStore(tmp_path),
        ask=ask,
    )


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------


class TestMenu:
    @pytest.mark.parametrize(
        ("with_github", "with_jira", "count"),
        [
            (False, False, 16),
            (True, False, 25),
            (False, True, 21),
            (True, True, 30),
        ],
    )
    def test_options_follow_integrations(
        self, tmp_path: Path, with_github: bool, with_jira: bool, count: int
    ) -> None:
        console = _console(
            tmp_path,
            ScriptedInput(),
            github=_client() if with_github else None,
            jira=_client() if with_jira else None,
        )
        assert len(console.options()) == count

    def test_print_menu_numbers_exit_last(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        console = _console(tmp_path, ScriptedInput())
        console.print_menu(console.options())

        out = capsys.readouterr().out
        assert "1. Analyze sample meeting transcript" in out
        assert "17. Exit" in out

    def test_watcher_label_toggles(self, tmp_path: Path) -> None:
        console = _console(tmp_path, ScriptedInput())
        assert console.options()[4].label == "Watch incoming folder"


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------


class TestRun:
    @pytest.mark.asyncio
    async def test_exit_closes_clients(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        github = _client()
        console = _console(tmp_path, ScriptedInput("26"), github=github)

        await console.run()

        assert "Thank you for using DevHub" in capsys.readouterr().out
        github.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_choice_reprompts(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        ask = ScriptedInput("abc", "99", "17")

        await _console(tmp_path, ask).run()

        assert capsys.readouterr().out.count("Invalid choice. Please enter 1-17.") == 2
        assert len(ask.prompts) == 3

    @pytest.mark.asyncio
    async def test_end_of_input_stops(self, tmp_path: Path) -> None:
        await _console(tmp_path, ScriptedInput()).run()

    @pytest.mark.asyncio
    async def test_handler_errors_keep_the_loop_alive(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        console = _console(tmp_path, ScriptedInput("1", "17"))
        console.analyze_sample = AsyncMock(side_effect=NotFoundError("No templates"))  # type: ignore[method-assign]

        await console.run()

        out = capsys.readouterr().out
        assert "❌ Error: No templates" in out
        assert "Thank you for using DevHub" in out

    @pytest.mark.asyncio
    async def test_pasted_transcript_is_analyzed(self, tmp_path: Path) -> None:
        lines = SAMPLE_TRANSCRIPT.strip().splitlines()
        console = _console(tmp_path, ScriptedInput("3", *lines, END_MARKER, "Standup", "17"))

        await console.run()

        assert console.last_analysis is not None
        assert console.last_analysis.transcript.title == "Standup"
        assert len(console.last_analysis.action_items) == 2
        assert console.intelligence.meetings == [console.last_analysis]


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


class TestHandlers:
    @pytest.mark.asyncio
    async def test_read_block_stops_at_marker(self, tmp_path: Path) -> None:
        console = _console(tmp_path, ScriptedInput("line one", "  line two", f"  {END_MARKER}  ", "ignored"))
        assert await console._read_block("code") == "line one\n  line two"

    @pytest.mark.asyncio
    async def test_empty_paste_is_rejected(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        console = _console(tmp_path, ScriptedInput(END_MARKER))

        await console.analyze_pasted()

        assert "No transcript provided" in capsys.readouterr().out
        assert console.last_analysis is None

    @pytest.mark.asyncio
    async def test_sample_without_templates(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        await _console(tmp_path, ScriptedInput()).analyze_sample()
        assert "No sample transcripts found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_process_incoming_archives_files(self, tmp_path: Path) -> None:
        console = _console(tmp_path, ScriptedInput())
        (console.store.incoming / "standup.txt").write_text(SAMPLE_TRANSCRIPT, encoding="utf-8")

        await console.process_incoming()

        assert console.last_analysis is not None
        assert console.store.list_incoming() == []
        assert list(console.store.processing.iterdir()) == []
        assert len(list(console.store.archive.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_processed_transcript_is_marked_archived(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        console = _console(tmp_path, ScriptedInput())
        (console.store.incoming / "standup.txt").write_text(SAMPLE_TRANSCRIPT, encoding="utf-8")

        await console.process_incoming()

        assert console.last_analysis is not None
        assert console.last_analysis.transcript.status is TranscriptStatus.ARCHIVED
        out = capsys.readouterr().out
        assert "📄 **File Information**" in out
        assert "📁 **Name:** standup.txt" in out

    @pytest.mark.asyncio
    async def test_participant_items(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        console = _console(tmp_path, ScriptedInput("bob"))
        console.last_analysis = MeetingAnalysisResult(
            transcript=MeetingTranscript(content="x"),
            action_items=[ActionItem("Update docs", assigned_to="Bob"), ActionItem("Fix build", assigned_to="Carol")],
        )

        await console.participant_items()

        out = capsys.readouterr().out
        assert "Action items for bob (1)" in out
        assert "Update docs" in out
        assert "Fix build" not in out

    @pytest.mark.asyncio
    async def test_commit_files_preview(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        github = _client()
        github.list_commit_files = AsyncMock(
            return_value=OperationResult.success(
                [GitHubFile("auth.py", additions=1, deletions=1, patch="@@ -1 +1 @@\n-old = 1\n+new = 2")]
            )
        )
        console = _console(tmp_path, ScriptedInput("abcdef1234"), github=github)

        await console.commit_files()

        github.list_commit_files.assert_awaited_once_with("abcdef1234")
        out = capsys.readouterr().out
        assert "Files changed by abcdef12 (1)" in out
        assert "    + new = 2" in out
        assert "    - old = 1" in out

    @pytest.mark.asyncio
    async def test_feature_request(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        jira = _client()
        jira.project_key = "OPS"
        jira.submit = AsyncMock(
            return_value=OperationResult.success(TicketRef("OPS-5", "https://jira.test/browse/OPS-5"))
        )
        console = _console(tmp_path, ScriptedInput("Dark mode", "Users want it", END_MARKER, ""), jira=jira)

        await console.feature_request()

        request = jira.submit.await_args.args[0]
        assert (request.title, request.description, request.issue_type) == ("Dark mode", "Users want it", "Story")
        assert request.priority == "Medium"
        assert "OPS-5: https://jira.test/browse/OPS-5" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_jira_connection(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        jira = _client()
        jira.test_connection = AsyncMock(
            return_value=OperationResult.success("Bot", "Jira connection successful! Connected as: Bot")
        )

        await _console(tmp_path, ScriptedInput(), jira=jira).test_jira()

        assert "Connected as: Bot" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_no_patterns(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        await _console(tmp_path, ScriptedInput("")).detect_patterns()
        assert "No recurring patterns found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_sprint_planning_goals(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        await _console(tmp_path, ScriptedInput("Ship SSO; Retire v1 API")).sprint_planning()

        out = capsys.readouterr().out
        assert "• Ship SSO - Achievable based on current metrics" in out
        assert "• Retire v1 API - Achievable based on current metrics" in out

    @pytest.mark.asyncio
    async def test_run_workflow_from_description(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        await _console(tmp_path, ScriptedInput("Meeting follow-up")).run_workflow()
        assert "🤖 **Meeting workflow**" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_create_tickets_needs_analysis(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        console = _console(tmp_path, ScriptedInput(), jira=_client())

        await console.create_tickets()

        assert "Analyze a meeting with action items first" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_unknown_cross_reference_type(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        await _console(tmp_path, ScriptedInput("Everything")).cross_references()
        assert "Unknown analysis type: Everything" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class TestMain:
    def test_arg_parser(self) -> None:
        args = _build_arg_parser().parse_args(["--log-level", "DEBUG", "--data-dir", "/tmp/devhub"])

        assert args.log_level == "DEBUG"
        assert args.data_dir == "/tmp/devhub"
        assert args.log_file is None

    def test_missing_api_key_exits_with_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with (
            patch("devhub.console.get_settings", return_value=make_settings(anthropic_api_key="")),
            patch("devhub.console.setup_logging"),
        ):
            assert main([]) == 1

        assert "Missing required configuration" in capsys.readouterr().err
