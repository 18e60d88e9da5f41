"""Tests for the GitHub client, driven by an in-process mock transport."""

from __future__ import annotations

import base64

import httpx
import pytest

from devhub.errors import ConfigurationError, ErrorKind
from devhub.integrations.github import GitHubClient, GitHubFile, detect_language
from tests.conftest import GITHUB_SETTINGS, make_settings

SHA = "5f1e2d3c4b5a69788796a5b4c3d2e1f001234567"
REPO = "/repos/acme/webapp"

PATCH = """\
@@ -1,3 +1,3 @@
 public class Login {
-    var token = null;
+    var token = GetToken();
 }"""

COMMIT_JSON = {
    "sha": SHA,
    "html_url": f"https://github.test/acme/webapp/commit/{SHA}",
    "commit": {
        "message": "Fix token lookup\n\nUse the cache.",
        "author": {"name": "Alice", "date": "2024-03-01T09:30:00Z"},
    },
    "files": [
        {"filename": "src/Login.cs", "status": "modified", "additions": 1, "deletions": 1, "patch": PATCH},
    ],
}


def _client(routes: dict[str, object]) -> tuple[GitHubClient, list[httpx.Request]]:
    """Client whose requests are answered from ``routes`` keyed by path (plus ``?sha=`` when given)."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        key = request.url.path
        if "sha" in request.url.params:
            key += f"?sha={request.url.params['sha']}"
        if key not in routes:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json=routes[key])

    return GitHubClient(make_settings(**GITHUB_SETTINGS), transport=httpx.MockTransport(handler)), seen


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestGitHubFile:
    @pytest.mark.parametrize(
        ("filename", "language"),
        [("a/Program.cs", "C#"), ("x.TSX", "React"), ("q.sql", "T-SQL"), ("Makefile", "Unknown")],
    )
    def test_detect_language(self, filename: str, language: str) -> None:
        assert detect_language(filename) == language

    def test_patch_helpers(self) -> None:
        f = GitHubFile("src/Login.cs", patch=PATCH)

        assert f.supported
        assert f.added_lines() == ["    var token = GetToken();"]
        assert f.removed_lines() == ["    var token = null;"]
        assert "@@" not in f.code_content()
        assert f.code_content().splitlines()[0] == " public class Login {"

    def test_python_is_not_reviewable(self) -> None:
        assert not GitHubFile("tool.py").supported


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class TestGitHubClient:
    def test_requires_configuration(self) -> None:
        with pytest.raises(ConfigurationError):
            GitHubClient(make_settings())

    @pytest.mark.asyncio
    async def test_recent_commits(self) -> None:
        client, seen = _client({f"{REPO}/commits": [COMMIT_JSON]})

        fetched = await client.recent_commits(500)

        (commit,) = fetched.unwrap()
        assert commit.short_sha == SHA[:8]
        assert commit.title == "Fix token lookup"
        assert commit.author == "Alice"
        assert commit.date is not None and commit.date.year == 2024
        assert seen[0].url.params["per_page"] == "50"
        assert seen[0].headers["Authorization"] == "Bearer gh-token"
        await client.close()

    @pytest.mark.asyncio
    async def test_commit_finds_branch(self) -> None:
        client, _ = _client(
            {
                f"{REPO}/commits/{SHA}": COMMIT_JSON,
                f"{REPO}/branches": [{"name": "main"}, {"name": "feature/login"}],
                f"{REPO}/commits?sha=main": [{"sha": "ffff"}],
                f"{REPO}/commits?sha=feature/login": [{"sha": SHA}],
            }
        )

        commit = (await client.commit(SHA)).unwrap()

        assert commit.branch == "feature/login"
        assert commit.files[0].filename == "src/Login.cs"
        assert commit.total_additions == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_branch_falls_back_to_default(self) -> None:
        client, _ = _client(
            {
                f"{REPO}/branches": [{"name": "main"}],
                f"{REPO}/commits?sha=main": [],
                REPO: {"name": "webapp", "default_branch": "trunk"},
            }
        )
        assert await client.commit_branch(SHA) == "trunk"
        await client.close()

    @pytest.mark.asyncio
    async def test_unknown_commit_is_not_found(self) -> None:
        client, _ = _client({})

        fetched = await client.commit("deadbeef")

        assert not fetched.ok
        assert fetched.error_kind is ErrorKind.NOT_FOUND
        assert fetched.message.startswith("Failed to get commit details for deadbeef")
        await client.close()

    @pytest.mark.asyncio
    async def test_list_commit_files(self) -> None:
        client, seen = _client({f"{REPO}/commits/{SHA}": COMMIT_JSON})

        (file,) = (await client.list_commit_files(SHA)).unwrap()

        assert (file.filename, file.additions, file.deletions) == ("src/Login.cs", 1, 1)
        assert file.added_lines() == ["    var token = GetToken();"]
        assert len(seen) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_list_files_of_unknown_commit(self) -> None:
        client, _ = _client({})

        listed = await client.list_commit_files("deadbeef")

        assert listed.error_kind is ErrorKind.NOT_FOUND
        assert listed.message.startswith("Failed to list files for commit deadbeef")
        await client.close()

    @pytest.mark.asyncio
    async def test_pull_request(self) -> None:
        client, _ = _client(
            {
                f"{REPO}/pulls/7": {
                    "number": 7,
                    "title": "Login fixes",
                    "body": None,
                    "user": {"login": "bob"},
                    "state": "open",
                    "created_at": "2024-03-02T10:00:00Z",
                },
                f"{REPO}/pulls/7/files": COMMIT_JSON["files"],
            }
        )

        pr = (await client.pull_request(7)).unwrap()

        assert (pr.number, pr.title, pr.description, pr.author) == (7, "Login fixes", "", "bob")
        assert [f.filename for f in pr.files] == ["src/Login.cs"]
        await client.close()

    @pytest.mark.asyncio
    async def test_file_content(self) -> None:
        encoded = base64.b64encode(b"print('hi')\n").decode()
        client, seen = _client({f"{REPO}/contents/tools/run.py": {"type": "file", "content": encoded}})

        assert (await client.file_content("tools/run.py", ref="dev")).unwrap() == "print('hi')\n"
        assert seen[0].url.params["ref"] == "dev"
        await client.close()

    @pytest.mark.asyncio
    async def test_directory_is_rejected(self) -> None:
        client, _ = _client({f"{REPO}/contents/src": [{"type": "file"}]})
        fetched = await client.file_content("src")
        assert fetched.error_kind is ErrorKind.VALIDATION
        await client.close()

    @pytest.mark.asyncio
    async def test_repository(self) -> None:
        client, _ = _client({REPO: {"name": "webapp", "full_name": "acme/webapp", "stargazers_count": 12}})
        info = (await client.repository()).unwrap()
        assert (info.full_name, info.stars, info.default_branch) == ("acme/webapp", 12, "main")
        await client.close()
