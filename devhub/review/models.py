"""Data models for LLM code reviews."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class ReviewType(StrEnum):
    COMMIT = "Commit"
    PULL_REQUEST = "PullRequest"
    LATEST = "Latest"
    SNIPPET = "Snippet"


@dataclass
class FileReview:
    """Review of one changed file. ``score`` is 1-10; 0 means the review failed."""

    filename: str
    language: str
    score: int = 0
    review: str = ""
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def display(self) -> str:
        return f"{self.filename} ({self.language}): {self.score}/10"


@dataclass
class CodeReviewResult:
    review_type: ReviewType
    target: str
    title: str = ""  # commit subject or pull request title
    summary: str = ""
    overall_score: int = 0
    file_reviews: list[FileReview] = field(default_factory=list)
    key_issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def files_reviewed(self) -> int:
        return len(self.file_reviews)

    def format_report(self) -> str:
        """Render an emoji-annotated review report."""
        lines = [
            f"🔍 **Code Review: {self.review_type} {self.target}**",
            f"📊 **Overall Score:** {self.overall_score}/10",
            f"📁 **Files Reviewed:** {self.files_reviewed}",
            "",
            "**📝 Summary:**",
            self.summary,
        ]
        if self.file_reviews:
            lines += ["", "**📄 Files:**", *[f"• {f.display()}" for f in self.file_reviews]]
        if self.key_issues:
            lines += ["", "**⚠️ Key Issues:**", *[f"• {i}" for i in self.key_issues]]
        if self.recommendations:
            lines += ["", "**💡 Recommendations:**", *[f"• {r}" for r in self.recommendations]]
        if self.skipped_files:
            lines += ["", f"⏭️ Skipped {len(self.skipped_files)} unsupported files"]
        lines.append(f"\n⏱️ Review took {self.duration:.1f}s")
        return "\n".join(lines)
