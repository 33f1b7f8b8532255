"""Configuration management for the Package History tool."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .models import ChangeKind

MAX_QUEUE_CAPACITY = 500

OUTPUT_STDOUT = "stdout"
OUTPUT_JSON = "json"
OUTPUT_CSV = "csv"
OUTPUT_TYPES = (OUTPUT_STDOUT, OUTPUT_JSON, OUTPUT_CSV)


def normalize_file_path(path: str) -> str:
    """Return a repository-relative path suitable for ``git log -- <path>``."""
    normalized = path.strip().replace("\\", "/")
    # git log treats a leading / as an absolute path outside the work tree
    while True:
        if normalized.startswith("./"):
            normalized = normalized[2:]
        elif normalized.startswith("/"):
            normalized = normalized[1:]
        else:
            return normalized


@dataclass(frozen=True)
class RunConfig:
    """Configuration for a single history scan."""

    # Required parameters
    repository_path: str
    file_path: str

    # History window
    commits_count: int = 100

    # Manifest handling
    strategy_name: Optional[str] = None
    capture_events: Tuple[ChangeKind, ...] = field(default_factory=tuple)
    capture_dev_packages: bool = True

    # Output options
    output_type: str = OUTPUT_STDOUT
    output_path: Optional[str] = None

    # Git subprocess timeout (seconds)
    git_timeout: int = 300

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.repository_path:
            raise ValueError("repository_path is required")
        normalized = normalize_file_path(self.file_path or "")
        if not normalized:
            raise ValueError("file_path is required")
        object.__setattr__(self, "file_path", normalized)
        object.__setattr__(self, "capture_events", tuple(self.capture_events))

        if self.commits_count < 1:
            raise ValueError("commits_count must be positive")
        if self.git_timeout <= 0:
            raise ValueError("git_timeout must be positive")
        if self.output_type not in OUTPUT_TYPES:
            raise ValueError(f"output_type must be one of: {', '.join(OUTPUT_TYPES)}")
        if self.output_type != OUTPUT_STDOUT and not self.output_path:
            raise ValueError(f"output_path is required for {self.output_type} output")

    @property
    def enabled_kinds(self) -> FrozenSet[ChangeKind]:
        """Change kinds to report; requesting none means all of them."""
        if not self.capture_events:
            return frozenset(ChangeKind)
        return frozenset(self.capture_events)

    @property
    def queue_capacity(self) -> int:
        """Bound for commit identifiers buffered ahead of the consumer."""
        return min(self.commits_count, MAX_QUEUE_CAPACITY)

    @property
    def git_env(self) -> Dict[str, str]:
        """Get Git environment variables for deterministic output."""
        env = os.environ.copy()

        # Use platform-appropriate null device
        null_device = "NUL" if os.name == "nt" else "/dev/null"

        env.update(
            {
                "LC_ALL": "C",
                "GIT_CONFIG_GLOBAL": null_device,
                "GIT_CONFIG_SYSTEM": null_device,
                "GIT_TERMINAL_PROMPT": "0",
                "GIT_PAGER": "cat",
            }
        )
        return env

    def to_provenance_dict(self) -> Dict[str, Any]:
        """Convert config to provenance dictionary for output."""
        return {
            "repository_path": self.repository_path,
            "file_path": self.file_path,
            "commits_count": self.commits_count,
            "strategy_name": self.strategy_name,
            "capture_events": sorted(kind.value for kind in self.enabled_kinds),
            "capture_dev_packages": self.capture_dev_packages,
        }
