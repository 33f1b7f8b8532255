"""Pytest configuration and fixtures for Package History tests."""

import json
import os
import shutil
import subprocess
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator, Optional

import pytest

from pkghistory.models import CommitInfo, Package


def _git_env() -> Dict[str, str]:
    env = os.environ.copy()
    env.update({
        "GIT_AUTHOR_NAME": "Test User",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test User",
        "GIT_COMMITTER_EMAIL": "test@example.com",
        "GIT_CONFIG_GLOBAL": os.devnull,
        "GIT_CONFIG_SYSTEM": os.devnull,
    })
    return env


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp(prefix="pkghistory_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def git_repo(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary git repository with one unrelated commit."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    env = _git_env()

    def run_git(args: list[str]) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git"] + args,
            cwd=repo_path,
            env=env,
            check=True,
            capture_output=True,
            text=True,
        )

    run_git(["init"])
    run_git(["config", "user.name", "Test User"])
    run_git(["config", "user.email", "test@example.com"])
    run_git(["config", "commit.gpgsign", "false"])

    (repo_path / "README.md").write_text("# Test Repository\n")
    run_git(["add", "README.md"])
    run_git(["commit", "-m", "Initial commit"])

    yield repo_path


class GitRepoHelper:
    """Helper class for git repository operations in tests."""

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path
        self.env = _git_env()
        self._commit_index = 0

    def run_git(self, args: list[str], env: Optional[Dict[str, str]] = None) -> subprocess.CompletedProcess:
        """Run git command in the repository."""
        return subprocess.run(
            ["git"] + args,
            cwd=self.repo_path,
            env=env or self.env,
            check=True,
            capture_output=True,
            text=True,
        )

    def create_file(self, path: str, content: str) -> None:
        """Create a file with content."""
        file_path = self.repo_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)

    def write_json(self, path: str, data: Dict[str, Any]) -> None:
        """Write a JSON manifest."""
        self.create_file(path, json.dumps(data, indent=2) + "\n")

    def delete_file(self, path: str) -> None:
        """Delete a file."""
        file_path = self.repo_path / path
        if file_path.exists():
            file_path.unlink()

    def add_and_commit(
        self,
        message: str,
        author_name: str = "Test User",
        author_email: str = "test@example.com",
    ) -> str:
        """Stage everything and commit with a fixed, increasing author date."""
        self._commit_index += 1
        env = dict(self.env)
        env.update({
            "GIT_AUTHOR_NAME": author_name,
            "GIT_AUTHOR_EMAIL": author_email,
            "GIT_AUTHOR_DATE": f"2024-01-{self._commit_index:02d}T10:00:00+00:00",
        })
        self.run_git(["add", "-A"], env=env)
        self.run_git(["commit", "--allow-empty", "-m", message], env=env)
        return self.get_current_sha()

    def commit_manifest(self, path: str, data: Dict[str, Any], message: str = "", **author) -> str:
        """Write ``data`` to ``path`` and commit it."""
        self.write_json(path, data)
        return self.add_and_commit(message or f"Update {path}", **author)

    def commit_raw(self, path: str, content: str, message: str = "") -> str:
        """Write raw ``content`` to ``path`` and commit it."""
        self.create_file(path, content)
        return self.add_and_commit(message or f"Update {path}")

    def get_current_sha(self) -> str:
        """Get current commit SHA."""
        result = self.run_git(["rev-parse", "HEAD"])
        return result.stdout.strip()


@pytest.fixture
def git_helper(git_repo: Path) -> GitRepoHelper:
    """Create a git repository helper."""
    return GitRepoHelper(git_repo)


@pytest.fixture
def commit_info() -> CommitInfo:
    """Commit metadata used for diff tests."""
    return CommitInfo(
        commit_id="c0ffee0000000000000000000000000000000000",
        author_name="Jane Doe",
        author_email="jane@example.com",
        timestamp=datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc),
    )


def make_set(versions: Dict[str, str], dev: tuple = ()) -> Dict[str, Package]:
    """Build a package set from a name -> version mapping."""
    return {
        name: Package(name=name, version=version, is_dev=name in dev)
        for name, version in versions.items()
    }
