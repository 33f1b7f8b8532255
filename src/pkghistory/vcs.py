"""Version control system operations for the Package History tool."""

import logging
import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .config import RunConfig
from .errors import RepositoryOpenError, SnapshotNotFoundError, SnapshotReadError
from .models import CommitInfo
from .settings import get_git_executable

logger = logging.getLogger(__name__)

# author name, author email, strict ISO-8601 author date
_COMMIT_FORMAT = "%an%x00%ae%x00%aI"

_MISSING_PATH_PATTERNS = (
    re.compile(r"does not exist in"),
    re.compile(r"exists on disk, but not in"),
)


def git_command(*args: str) -> List[str]:
    """Build a git command line with deterministic output settings."""
    return [
        get_git_executable(),
        "-c",
        "core.autocrlf=false",
        "-c",
        "color.ui=false",
        *args,
    ]


def get_git_version() -> Optional[str]:
    """Return the installed git version, or None if git is unavailable."""
    try:
        result = subprocess.run(
            [get_git_executable(), "--version"],
            capture_output=True,
            text=True,
            check=True,
            timeout=10,
        )
    except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
        logger.debug("git --version check failed", exc_info=e)
        return None

    # Extract version number from "git version 2.34.1"
    match = re.search(r"git version (\d+\.\d+(?:\.\d+)?)", result.stdout)
    return match.group(1) if match else None


class GitRepository:
    """Read-only access to a local git repository."""

    def __init__(self, config: RunConfig):
        """Initialize with configuration."""
        self.config = config
        self.path = Path(config.repository_path)

    def _run_git(
        self,
        args: List[str],
        text: bool = True,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run git command with proper environment and error handling."""
        return subprocess.run(
            git_command(*args),
            cwd=self.path,
            env=self.config.git_env,
            timeout=self.config.git_timeout,
            check=check,
            capture_output=True,
            text=text,
        )

    def open(self) -> "GitRepository":
        """Verify the configured path is a git repository."""
        if not self.path.is_dir():
            raise RepositoryOpenError(str(self.path), "directory does not exist")

        try:
            result = self._run_git(["rev-parse", "--git-dir"])
        except subprocess.CalledProcessError as e:
            reason = (e.stderr or "").strip() or f"git exited with status {e.returncode}"
            raise RepositoryOpenError(str(self.path), reason) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise RepositoryOpenError(str(self.path), str(e)) from e

        logger.info(
            "Repository opened",
            extra={"repository": str(self.path), "git_dir": result.stdout.strip()},
        )
        return self

    def read_commit(self, commit_id: str) -> CommitInfo:
        """Return author metadata of ``commit_id``."""
        try:
            result = self._run_git(
                ["show", "-s", f"--format={_COMMIT_FORMAT}", commit_id, "--"]
            )
        except subprocess.CalledProcessError as e:
            reason = (e.stderr or "").strip() or "commit object not found"
            raise SnapshotReadError(commit_id, self.config.file_path, reason) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise SnapshotReadError(commit_id, self.config.file_path, str(e)) from e

        parts = result.stdout.strip("\n").split("\x00")
        if len(parts) != 3:
            raise SnapshotReadError(
                commit_id, self.config.file_path, "unexpected commit metadata format"
            )

        name, email, date = parts
        try:
            timestamp = datetime.fromisoformat(date.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise SnapshotReadError(
                commit_id, self.config.file_path, f"invalid author date {date!r}"
            ) from e

        return CommitInfo(
            commit_id=commit_id,
            author_name=name,
            author_email=email,
            timestamp=timestamp,
        )

    def read_file(self, commit_id: str, file_path: str) -> bytes:
        """Return the exact bytes of ``file_path`` as of ``commit_id``."""
        try:
            result = self._run_git(
                ["cat-file", "blob", f"{commit_id}:{file_path}"], text=False
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            if any(pattern.search(stderr) for pattern in _MISSING_PATH_PATTERNS):
                raise SnapshotNotFoundError(commit_id, file_path) from e
            raise SnapshotReadError(
                commit_id, file_path, stderr or f"git exited with status {e.returncode}"
            ) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise SnapshotReadError(commit_id, file_path, str(e)) from e

        logger.debug(
            "Snapshot read",
            extra={"commit": commit_id, "path": file_path, "bytes": len(result.stdout)},
        )
        return result.stdout
