"""Pytest fixtures for dpnd tests."""
import subprocess
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

from dpnd.core.config import Settings
from dpnd.core.errors import FetchError, FetchErrorKind
from dpnd.tools.base import FetchTool
from dpnd.tools.registry import ToolRegistry


class FakeTool(FetchTool):
    """In-memory stand-in for git.

    `trees` maps `(source, version)` to the files to write; unknown pairs get
    a single README. `failures` maps a source to the FetchErrorKind to raise.
    """

    name = "git"

    def __init__(self):
        self.calls: List[Tuple[str, str, Path]] = []
        self.trees: Dict[Tuple[str, str], Dict[str, str]] = {}
        self.failures: Dict[str, FetchErrorKind] = {}

    def fetch(self, source: str, version: str, target_dir: Path) -> None:
        self.calls.append((source, version, Path(target_dir)))
        if source in self.failures:
            # Leave debris behind, like a clone that died half way.
            (Path(target_dir) / "partial").write_text("")
            raise FetchError(self.failures[source], RuntimeError(f"cannot fetch {source}"))
        files = self.trees.get((source, version), {"README": f"{source}@{version}\n"})
        for rel, content in files.items():
            path = Path(target_dir) / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)


@pytest.fixture
def fake_tool() -> FakeTool:
    return FakeTool()


@pytest.fixture
def registry(fake_tool) -> ToolRegistry:
    return ToolRegistry([fake_tool])


@pytest.fixture
def settings() -> Settings:
    return Settings()


def _git(args: List[str], cwd: Path) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def _make_repo(path: Path, commits: List[Dict[str, str]]) -> List[str]:
    """Create a git repository at `path` with one commit per files dict.

    Returns:
        Commit SHAs, oldest first.
    """
    path.mkdir(parents=True)
    _git(["init"], path)
    _git(["config", "user.email", "test@example.com"], path)
    _git(["config", "user.name", "Test User"], path)

    shas = []
    for i, files in enumerate(commits):
        for rel, content in files.items():
            (path / rel).write_text(content)
        _git(["add", "."], path)
        _git(["commit", "-m", f"Commit {i}"], path)
        shas.append(_git(["rev-parse", "HEAD"], path))
    return shas


@pytest.fixture
def git_deps_fixture(tmp_path: Path) -> Dict[str, Dict[str, object]]:
    """Create local git repositories usable as dependency sources.

    Returns dict keyed by repository name, each with:
        - path: Path to repo (usable as a git source)
        - commits: commit SHAs, oldest first

    Repositories:
        - my_scripts: two commits of script.sh
        - your_scripts: one commit
        - all_scripts: one commit carrying a dpnd.txt that depends on
          my_scripts and your_scripts
    """
    srcs = tmp_path / "srcs"
    repos: Dict[str, Dict[str, object]] = {}

    def add(name: str, commits: List[Dict[str, str]]) -> None:
        path = srcs / name
        repos[name] = {"path": path, "commits": _make_repo(path, commits)}

    add("my_scripts", [
        {"script.sh": "echo 'hello world'\n"},
        {"script.sh": "echo 'hello, world!'\n"},
    ])
    add("your_scripts", [
        {"script.sh": "echo 'hello, sun!'\n"},
    ])

    nested_manifest = (
        "deps\n"
        "\n"
        f"my_scripts git {repos['my_scripts']['path']} {repos['my_scripts']['commits'][1]}\n"
        f"your_scripts git {repos['your_scripts']['path']} {repos['your_scripts']['commits'][0]}\n"
    )
    add("all_scripts", [
        {"dpnd.txt": nested_manifest, "script.sh": "echo 'hello, all!'\n"},
    ])

    return repos


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    path = tmp_path / "proj"
    path.mkdir()
    return path
