"""Snapshot diffing: turns two consecutive package sets into change events."""

import logging
from typing import Collection, FrozenSet, List, Optional

from .models import ChangeKind, CommitInfo, Package, PackageChange, PackageSet

logger = logging.getLogger(__name__)


def resolve_capture_kinds(kinds: Optional[Collection[ChangeKind]]) -> FrozenSet[ChangeKind]:
    """Return the enabled change kinds; an empty selection enables all."""
    if not kinds:
        return frozenset(ChangeKind)
    return frozenset(kinds)


def diff_snapshots(
    previous: Optional[PackageSet],
    current: PackageSet,
    commit: CommitInfo,
    kinds: Optional[Collection[ChangeKind]] = None,
) -> List[PackageChange]:
    """Compute the change events between two consecutive snapshots.

    ``previous`` is None only for the first usable snapshot of a run, which
    produces no events and just seeds the comparison for the next commit.
    Events are attributed to ``commit`` and ordered by package name.
    """
    if previous is None:
        return []

    enabled = resolve_capture_kinds(kinds)
    changes: List[PackageChange] = []

    for name in sorted(previous.keys() | current.keys()):
        before = previous.get(name)
        after = current.get(name)

        if before is not None and after is not None:
            if after.version != before.version and ChangeKind.UPDATED in enabled:
                changes.append(
                    _make_change(after, ChangeKind.UPDATED, commit, before.version)
                )
        elif after is not None:
            if ChangeKind.ADDED in enabled:
                changes.append(_make_change(after, ChangeKind.ADDED, commit))
        elif before is not None:
            if ChangeKind.DELETED in enabled:
                changes.append(_make_change(before, ChangeKind.DELETED, commit))

    if changes:
        logger.debug(
            "Snapshot diff computed",
            extra={"commit": commit.commit_id, "changes": len(changes)},
        )
    return changes


def _make_change(
    package: Package,
    kind: ChangeKind,
    commit: CommitInfo,
    previous_version: Optional[str] = None,
) -> PackageChange:
    return PackageChange(
        package=package,
        kind=kind,
        commit_id=commit.commit_id,
        author_name=commit.author_name,
        author_email=commit.author_email,
        timestamp=commit.timestamp,
        previous_version=previous_version,
    )
