"""Core data types shared by the history pipeline."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional


@dataclass(frozen=True)
class Package:
    """A single declared dependency within one manifest snapshot."""

    name: str
    version: str
    is_dev: bool = False


# Package name -> Package for every dependency declared at one commit.
PackageSet = Dict[str, Package]


class ChangeKind(str, Enum):
    """Kind of transition a package went through between two snapshots."""

    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"

    @classmethod
    def parse(cls, value: str) -> "ChangeKind":
        """Return the kind named by ``value`` (case-insensitive)."""
        normalized = value.strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        allowed = ", ".join(kind.value for kind in cls)
        raise ValueError(f"unknown change event {value!r}, expected one of: {allowed}")


@dataclass(frozen=True)
class CommitInfo:
    """Author metadata of a commit."""

    commit_id: str
    author_name: str
    author_email: str
    timestamp: datetime


@dataclass(frozen=True)
class PackageChange:
    """One reported package transition attributed to a commit."""

    package: Package
    kind: ChangeKind
    commit_id: str
    author_name: str
    author_email: str
    timestamp: datetime
    previous_version: Optional[str] = None
