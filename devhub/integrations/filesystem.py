"""Transcript file store: incoming/processing/archive/templates directories.

Files move ``incoming -> processing -> archive`` as they are analyzed.
``.txt`` and ``.md`` files are read as UTF-8 text; ``.docx`` files are read
with python-docx.
"""

from __future__ import annotations

import asyncio
import io
import logging
import shutil
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import docx

from devhub.errors import ErrorKind, OperationResult
from devhub.meetings.models import MeetingTranscript

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".md", ".docx")


@dataclass
class FileInfo:
    """Metadata about a transcript file."""

    name: str
    directory: str
    size_bytes: int
    modified_at: datetime
    line_count: int
    char_count: int
    extension: str
    readable: bool

    def display(self) -> str:
        return "\n".join(
            [
                "📄 **File Information**",
                f"📁 **Name:** {self.name}",
                f"📂 **Directory:** {self.directory}",
                f"📏 **Size:** {format_file_size(self.size_bytes)}",
                f"🔄 **Modified:** {self.modified_at:%Y-%m-%d %H:%M:%S}",
                f"📝 **Lines:** {self.line_count:,}",
                f"📊 **Characters:** {self.char_count:,}",
                f"🔤 **Extension:** {self.extension}",
                f"✅ **Readable:** {self.readable}",
            ]
        )


def format_file_size(size: int) -> str:
    """Render a byte count as ``1.5 KB`` style text."""
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    number = float(size)
    index = 0
    while round(number / 1024) >= 1 and index < len(suffixes) - 1:
        number /= 1024
        index += 1
    return f"{number:.1f} {suffixes[index]}"


def is_supported_transcript(path: str | Path) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def _read_docx(path: Path) -> str:
    document = docx.Document(io.BytesIO(path.read_bytes()))
    return "\n".join(p.text for p in document.paragraphs if p.text.strip())


def _timestamp() -> str:
    return datetime.now(UTC).strftime("%Y%m%d_%H%M%S")


class TranscriptStore:
    """Directory-backed store for transcript files."""

    def __init__(self, base_dir: str | Path) -> None:
        base = Path(base_dir)
        self.incoming = base / "Incoming"
        self.processing = base / "Processing"
        self.archive = base / "Archive"
        self.templates = base / "Templates"
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for directory in (self.incoming, self.processing, self.archive, self.templates):
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info("Created directory %s", directory)

    # ── Reading ────────────────────────────────────────────────────────────

    def read_transcript(self, path: str | Path) -> OperationResult[str]:
        """Read a transcript file's text.

        Fails with NOT_FOUND, UNSUPPORTED or VALIDATION (empty file) rather
        than raising.
        """
        file_path = Path(path)
        if not file_path.is_file():
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"File not found: {file_path}")

        if not is_supported_transcript(file_path):
            return OperationResult.failure(
                ErrorKind.UNSUPPORTED,
                f"Unsupported file type: {file_path.suffix}. Supported: {', '.join(SUPPORTED_EXTENSIONS)}",
            )

        try:
            if file_path.suffix.lower() == ".docx":
                content = _read_docx(file_path)
            else:
                content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            logger.warning("Could not read %s: %s", file_path, exc)
            return OperationResult.failure(ErrorKind.INTERNAL, f"Error reading file: {exc}")

        if not content.strip():
            return OperationResult.failure(
                ErrorKind.VALIDATION, "File is empty or contains no readable content"
            )
        return OperationResult.success(content)

    def create_transcript(self, path: str | Path) -> OperationResult[MeetingTranscript]:
        """Read a file and wrap it as a MeetingTranscript (title/date from the filename)."""
        read = self.read_transcript(path)
        if not read.ok or read.value is None:
            return OperationResult(ok=False, error_kind=read.error_kind, message=read.message)
        return OperationResult.success(MeetingTranscript.from_file(path, read.value))

    def file_info(self, path: str | Path) -> OperationResult[FileInfo]:
        file_path = Path(path)
        if not file_path.is_file():
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"File not found: {file_path}")

        stat = file_path.stat()
        read = self.read_transcript(file_path)
        content = read.value or ""
        return OperationResult.success(
            FileInfo(
                name=file_path.name,
                directory=str(file_path.parent),
                size_bytes=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime),
                line_count=len([line for line in content.split("\n") if line]),
                char_count=len(content),
                extension=file_path.suffix,
                readable=is_supported_transcript(file_path),
            )
        )

    # ── Listing ────────────────────────────────────────────────────────────

    def list_incoming(self) -> list[Path]:
        """Supported files waiting in the incoming directory, oldest first."""
        files = [p for p in self.incoming.iterdir() if p.is_file() and is_supported_transcript(p)]
        return sorted(files, key=lambda p: (p.stat().st_mtime, p.name))

    def list_templates(self) -> list[Path]:
        """Sample transcripts, ordered by filename."""
        files = [p for p in self.templates.iterdir() if p.is_file() and is_supported_transcript(p)]
        return sorted(files, key=lambda p: p.name)

    # ── Moving ─────────────────────────────────────────────────────────────

    def _move(self, source: Path, target_dir: Path, collision_tag: str) -> OperationResult[Path]:
        if not source.is_file():
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"Source file not found: {source}")

        destination = target_dir / source.name
        if destination.exists():
            destination = target_dir / f"{source.stem}{collision_tag}{_timestamp()}{source.suffix}"

        try:
            shutil.move(str(source), str(destination))
        except OSError as exc:
            return OperationResult.failure(ErrorKind.INTERNAL, f"Error moving file: {exc}")

        logger.info("Moved %s -> %s", source.name, destination)
        return OperationResult.success(destination, message=f"Moved {source.name} to {target_dir.name}")

    def move_to_processing(self, filename: str) -> OperationResult[Path]:
        return self._move(self.incoming / filename, self.processing, "_")

    def archive_file(self, filename: str) -> OperationResult[Path]:
        return self._move(self.processing / filename, self.archive, "_archived_")


class TranscriptWatcher:
    """Polls the incoming directory and reports newly arrived transcripts."""

    def __init__(self, store: TranscriptStore, interval: float = 2.0) -> None:
        self.store = store
        self.interval = interval
        self._seen: dict[str, int] = self._snapshot(store.list_incoming())
        self._task: asyncio.Task[None] | None = None

    @staticmethod
    def _snapshot(paths: list[Path]) -> dict[str, int]:
        snapshot: dict[str, int] = {}
        for path in paths:
            try:
                snapshot[path.name] = path.stat().st_mtime_ns
            except FileNotFoundError:
                continue
        return snapshot

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def poll(self) -> list[Path]:
        """Return supported files that appeared or were replaced since the last poll.

        Names that left the incoming directory are forgotten, so a file
        dropped in again under the same name is reported again.
        """
        incoming = self.store.list_incoming()
        current = self._snapshot(incoming)
        new_files = [p for p in incoming if p.name in current and self._seen.get(p.name) != current[p.name]]
        self._seen = current
        for path in new_files:
            logger.info("New transcript file detected: %s", path.name)
        return new_files

    async def _run(self, on_new_file: Callable[[Path], Awaitable[None]]) -> None:
        while True:
            for path in self.poll():
                try:
                    await on_new_file(path)
                except Exception:
                    logger.exception("Failed to process %s", path.name)
            await asyncio.sleep(self.interval)

    def start(self, on_new_file: Callable[[Path], Awaitable[None]]) -> str:
        if self.running:
            return "📡 File watcher is already running"
        self._task = asyncio.create_task(self._run(on_new_file))
        return f"📡 Watching {self.store.incoming} for new transcripts"

    async def stop(self) -> str:
        if self._task is None:
            return "📡 File watcher is not running"
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        return "📡 File watcher stopped"
