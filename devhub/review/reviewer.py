"""LLM code review for snippets, commits and pull requests.

Snippet operations return the model's review text. Commit and pull-request
reviews run one snippet review per supported file, then parse each reply
for a 1-10 score and bulleted issues/suggestions, and aggregate them.
"""

from __future__ import annotations

import logging
import re
import time
from collections import Counter
from statistics import mean
from typing import Protocol

from devhub.errors import ErrorKind, OperationResult
from devhub.integrations.github import GitHubClient, GitHubCommit, GitHubFile
from devhub.review.models import CodeReviewResult, FileReview, ReviewType

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("C#", "VB.NET", "T-SQL", "JavaScript", "React", "Java")
MAX_FILES_PER_REVIEW = 10
MAX_LISTED_COMMITS = 20
DEFAULT_SCORE = 5

NOT_CONFIGURED = (
    "GitHub integration not configured. Set GITHUB_TOKEN, GITHUB_REPO_OWNER and GITHUB_REPO_NAME."
)

LANGUAGE_GUIDANCE = {
    "C#": """\
**C# Specific Focus Areas**:
- Proper use of async/await patterns
- LINQ usage and performance
- Memory management and IDisposable
- Nullable reference types
- Exception handling best practices
- XML documentation comments""",
    "VB.NET": """\
**VB.NET Specific Focus Areas**:
- Proper variable declarations (Option Strict)
- Error handling with Try/Catch
- Object lifecycle management
- .NET Framework/Core compatibility
- Performance considerations""",
    "T-SQL": """\
**T-SQL Specific Focus Areas**:
- Query performance and execution plans
- Proper indexing strategies
- SQL injection prevention
- Transaction management
- Set-based operations vs cursors
- Stored procedure best practices""",
    "JavaScript": """\
**JavaScript Specific Focus Areas**:
- ES6+ modern syntax usage
- Async/await vs Promises
- Variable scoping (let/const vs var)
- Error handling and validation
- Performance considerations
- Browser compatibility""",
    "React": """\
**React Specific Focus Areas**:
- Component lifecycle and hooks
- State management patterns
- Performance optimization (memo, useMemo, useCallback)
- Props validation and TypeScript usage
- Accessibility considerations
- Testing best practices""",
    "Java": """\
**Java Specific Focus Areas**:
- Object-oriented design principles
- Exception handling best practices
- Memory management and garbage collection
- Concurrency and thread safety
- Design patterns implementation
- Code organization and packages""",
}

CODE_FENCE = {
    "C#": "csharp",
    "VB.NET": "vbnet",
    "T-SQL": "sql",
    "JavaScript": "javascript",
    "React": "jsx",
    "Java": "java",
}

DEFAULT_STANDARDS = {
    "C#": "Microsoft C# Coding Conventions",
    "VB.NET": "Microsoft VB.NET Coding Conventions",
    "T-SQL": "SQL Server Best Practices",
    "JavaScript": "ESLint Recommended + Airbnb Style Guide",
    "React": "React Best Practices + ESLint React",
    "Java": "Oracle Java Code Conventions",
}

ANALYZE_PROMPT = """\
You are an expert code reviewer specializing in {language}. Analyze the following \
{language} code and provide:

1. **Code Quality Assessment**: Rate the overall quality (1-10) as "N/10"
2. **Strengths**: What's done well
3. **Issues Found**: Bugs, inefficiencies, or problems specific to {language}, one "- " bullet each
4. **Suggestions**: Specific improvements with {language} examples, one "- " bullet each
5. **Best Practices**: {language}-specific recommendations

{guidance}

Code to analyze:
```{fence}
{code}
```

Provide a comprehensive but concise review focusing on {language} best practices."""

IMPROVE_PROMPT = """\
Focus on {focus} improvements for this {language} code. Provide:

1. **Priority Issues**: Most important improvements needed
2. **Refactored Code**: An improved {language} version with explanations
3. **Performance Tips**: {language}-specific performance considerations
4. **Modern Patterns**: Current {language} best practices and patterns

Code:
```{fence}
{code}
```"""

STANDARDS_PROMPT = """\
Review this {language} code against {standard} coding standards. Check for:

1. **Naming Conventions**: Variables, methods, classes following {language} standards
2. **Code Structure**: Formatting, indentation, organization
3. **Documentation**: Comments and documentation appropriate for {language}
4. **Language Patterns**: Proper use of {language} features and idioms
5. **Compliance Score**: Rate adherence to {standard} (1-10)

Code to review:
```{fence}
{code}
```"""

CHANGESET_SUMMARY_PROMPT = """\
Create a concise review summary for this change set.

**Change Information:**
{header}
- Files Changed: {file_count}
- Total Additions: {additions}
- Total Deletions: {deletions}

**Review Results:**
- Overall Score: {score}/10
- Files Reviewed: {reviewed}
- Key Issues: {issues}

**File Reviews:**
{file_lines}

Cover:
1. Overall assessment of quality
2. Main strengths and concerns
3. Impact assessment
4. Key recommendations for improvement

Keep it professional and actionable."""

SCORE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"Quality Assessment[:\s*]*(\d+)/10",
        r"Assessment[:\s*]*(\d+)/10",
        r"Quality[:\s*]*(\d+)/10",
        r"Score[:\s*]*(\d+)/10",
        r"Assessment[:\s*]*(\d+)",
    )
]

_SECTION_END = r"(?=\n\*\*|\n\d+\.|\Z)"
ISSUE_SECTIONS = [
    re.compile(rf"{h}[:\s]*\n?(.+?){_SECTION_END}", re.IGNORECASE | re.DOTALL)
    for h in ("Issues Found", "Problems", "Concerns")
]
SUGGESTION_SECTIONS = [
    re.compile(rf"{h}[:\s]*\n?(.+?){_SECTION_END}", re.IGNORECASE | re.DOTALL)
    for h in ("Suggestions", "Recommendations", "Improvements")
]


class TextLLM(Protocol):
    async def invoke(self, prompt: str) -> str: ...


# ── Parsing ────────────────────────────────────────────────────────────────


def canonical_language(language: str) -> str | None:
    """Map a case-insensitive language name onto its supported spelling."""
    wanted = language.strip().casefold()
    return next((lang for lang in SUPPORTED_LANGUAGES if lang.casefold() == wanted), None)


def extract_score(analysis: str) -> int:
    """First ``N/10``-style score in the review, clamped to 1-10; 5 if absent."""
    for pattern in SCORE_PATTERNS:
        match = pattern.search(analysis)
        if match:
            return max(1, min(int(match.group(1)), 10))
    return DEFAULT_SCORE


def _bullets(analysis: str, sections: list[re.Pattern[str]]) -> list[str]:
    found: list[str] = []
    for pattern in sections:
        match = pattern.search(analysis)
        if not match:
            continue
        for line in match.group(1).split("\n"):
            line = line.strip()
            if line.startswith("-"):
                found.append(line.lstrip("-").strip())
    return found


def extract_issues(analysis: str) -> list[str]:
    return _bullets(analysis, ISSUE_SECTIONS)


def extract_suggestions(analysis: str) -> list[str]:
    return _bullets(analysis, SUGGESTION_SECTIONS)


def key_issues(reviews: list[FileReview]) -> list[str]:
    """Issues reported verbatim in more than one file."""
    counts = Counter(issue for r in reviews for issue in r.issues)
    return [f"{issue} (found in {n} files)" for issue, n in counts.items() if n > 1]


def review_recommendations(reviews: list[FileReview]) -> list[str]:
    recommendations: list[str] = []

    low = [r for r in reviews if r.score < 6]
    if low:
        recommendations.append(f"Review and improve {len(low)} files with low quality scores")

    # Issues are grouped by their first three words.
    prefixes = Counter(" ".join(issue.split()[:3]) for r in reviews for issue in r.issues)
    recommendations += [
        f"Address common issue across multiple files: {prefix}" for prefix, n in prefixes.items() if n > 1
    ]

    if any(r.language == "C#" and any("async" in i for i in r.issues) for r in reviews):
        recommendations.append("Review async/await patterns in C# code")
    if any(r.language == "JavaScript" and any("var" in i for i in r.issues) for r in reviews):
        recommendations.append("Consider using let/const instead of var in JavaScript")

    return recommendations or ["No specific recommendations - code quality looks good!"]


# ── Reviewer ───────────────────────────────────────────────────────────────


def _unsupported(language: str) -> OperationResult[str]:
    return OperationResult.failure(
        ErrorKind.UNSUPPORTED,
        f"Unsupported language: {language}. Supported languages are: {', '.join(SUPPORTED_LANGUAGES)}",
    )


class CodeReviewer:
    """Reviews code with an LLM; commit and PR reviews need a GitHub client."""

    def __init__(self, llm: TextLLM, github: GitHubClient | None = None) -> None:
        self.llm = llm
        self.github = github

    async def analyze_code(self, code: str, language: str = "C#") -> OperationResult[str]:
        lang = canonical_language(language)
        if lang is None:
            return _unsupported(language)
        prompt = ANALYZE_PROMPT.format(
            language=lang, guidance=LANGUAGE_GUIDANCE[lang], fence=CODE_FENCE[lang], code=code
        )
        return OperationResult.success(await self.llm.invoke(prompt))

    async def suggest_improvements(
        self, code: str, focus: str = "general", language: str = "C#"
    ) -> OperationResult[str]:
        lang = canonical_language(language)
        if lang is None:
            return _unsupported(language)
        prompt = IMPROVE_PROMPT.format(focus=focus, language=lang, fence=CODE_FENCE[lang], code=code)
        return OperationResult.success(await self.llm.invoke(prompt))

    async def check_coding_standards(
        self, code: str, standard: str = "Language Default", language: str = "C#"
    ) -> OperationResult[str]:
        lang = canonical_language(language)
        if lang is None:
            return _unsupported(language)
        if standard == "Language Default":
            standard = DEFAULT_STANDARDS[lang]
        prompt = STANDARDS_PROMPT.format(language=lang, standard=standard, fence=CODE_FENCE[lang], code=code)
        return OperationResult.success(await self.llm.invoke(prompt))

    async def review_file(self, file: GitHubFile) -> FileReview:
        """Review one changed file; LLM failures give a score of 0."""
        review = FileReview(filename=file.filename, language=file.language)
        if not file.patch:
            review.review, review.score = "No changes to review", 10
            return review

        code = file.code_content()
        if not code.strip():
            review.review, review.score = "No substantial code changes found", 10
            return review

        try:
            analysis = await self.analyze_code(code, file.language)
        except Exception as exc:
            logger.exception("Review failed for %s", file.filename)
            review.review, review.score = f"Error analyzing file: {exc}", 0
            return review

        if not analysis.ok or analysis.value is None:
            review.review, review.score = analysis.message, 0
            return review

        review.review = analysis.value
        review.score = extract_score(analysis.value)
        review.issues = extract_issues(analysis.value)
        review.suggestions = extract_suggestions(analysis.value)
        return review

    async def _review_files(
        self,
        review_type: ReviewType,
        target: str,
        header: str,
        files: list[GitHubFile],
    ) -> CodeReviewResult:
        started = time.perf_counter()
        result = CodeReviewResult(review_type=review_type, target=target)

        supported = [f for f in files if f.supported]
        result.skipped_files = [f.filename for f in files if not f.supported]
        for file in supported[:MAX_FILES_PER_REVIEW]:
            result.file_reviews.append(await self.review_file(file))

        result.overall_score = int(mean(r.score for r in result.file_reviews)) if result.file_reviews else 0
        result.key_issues = key_issues(result.file_reviews)
        result.recommendations = review_recommendations(result.file_reviews)
        result.summary = (
            await self.llm.invoke(
                CHANGESET_SUMMARY_PROMPT.format(
                    header=header,
                    file_count=len(files),
                    additions=sum(f.additions for f in files),
                    deletions=sum(f.deletions for f in files),
                    score=result.overall_score,
                    reviewed=result.files_reviewed,
                    issues=", ".join(result.key_issues) or "None",
                    file_lines="\n".join(f"- {r.display()}" for r in result.file_reviews) or "- None",
                )
            )
        ).strip()
        result.duration = time.perf_counter() - started
        return result

    async def review_commit(self, sha: str) -> OperationResult[CodeReviewResult]:
        """Review up to 10 supported files changed by ``sha``."""
        if self.github is None:
            return OperationResult.failure(ErrorKind.CONFIGURATION, NOT_CONFIGURED)

        fetched = await self.github.commit(sha)
        if not fetched.ok or fetched.value is None:
            return OperationResult(ok=False, error_kind=fetched.error_kind, message=fetched.message)
        commit: GitHubCommit = fetched.value

        header = f"- SHA: {commit.sha}\n- Message: {commit.message}\n- Author: {commit.author}"
        try:
            result = await self._review_files(ReviewType.COMMIT, commit.sha, header, commit.files)
            result.title = commit.title
        except Exception as exc:
            logger.exception("Commit review failed for %s", sha)
            return OperationResult.failure(ErrorKind.EXTERNAL_SERVICE, f"Error reviewing commit {sha}: {exc}")

        logger.info("Reviewed commit %s: %d files, score %d", commit.short_sha, result.files_reviewed, result.overall_score)
        return OperationResult.success(result)

    async def review_latest_commit(self) -> OperationResult[CodeReviewResult]:
        if self.github is None:
            return OperationResult.failure(ErrorKind.CONFIGURATION, NOT_CONFIGURED)

        commits = await self.github.recent_commits(1)
        if not commits.ok:
            return OperationResult(ok=False, error_kind=commits.error_kind, message=commits.message)
        if not commits.value:
            return OperationResult.failure(ErrorKind.NOT_FOUND, "No commits found in repository")

        reviewed = await self.review_commit(commits.value[0].sha)
        if reviewed.ok and reviewed.value is not None:
            reviewed.value.review_type = ReviewType.LATEST
        return reviewed

    async def review_pull_request(self, number: int) -> OperationResult[CodeReviewResult]:
        if self.github is None:
            return OperationResult.failure(ErrorKind.CONFIGURATION, NOT_CONFIGURED)

        fetched = await self.github.pull_request(number)
        if not fetched.ok or fetched.value is None:
            return OperationResult(ok=False, error_kind=fetched.error_kind, message=fetched.message)
        pr = fetched.value

        header = (
            f"- PR #{pr.number}: {pr.title}\n- Author: {pr.author}\n- State: {pr.state}\n"
            f"- Description: {pr.description or 'No description provided'}"
        )
        try:
            result = await self._review_files(ReviewType.PULL_REQUEST, f"#{pr.number}", header, pr.files)
            result.title = pr.title
        except Exception as exc:
            logger.exception("Pull request review failed for #%d", number)
            return OperationResult.failure(
                ErrorKind.EXTERNAL_SERVICE, f"Error reviewing pull request #{number}: {exc}"
            )
        return OperationResult.success(result)

    async def list_recent_commits(self, count: int = 10) -> OperationResult[list[GitHubCommit]]:
        """List recent commits; ``count`` is clamped to 1-20."""
        if self.github is None:
            return OperationResult.failure(ErrorKind.CONFIGURATION, NOT_CONFIGURED)
        return await self.github.recent_commits(max(1, min(count, MAX_LISTED_COMMITS)))
