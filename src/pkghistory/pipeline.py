"""History replay pipeline: commits in, package change events out."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .config import RunConfig
from .diffing import diff_snapshots
from .errors import ManifestDecodeError, PkgHistoryError, SinkError, SnapshotReadError
from .history import CommitEnumerator
from .models import ChangeKind, PackageSet
from .sinks import ChangeSink
from .strategies import Strategy, StrategyRegistry
from .vcs import GitRepository

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Counters describing one pipeline run."""

    strategy: str
    commits_seen: int = 0
    commits_skipped: int = 0
    snapshots_parsed: int = 0
    events_emitted: int = 0
    events_by_kind: Dict[str, int] = field(
        default_factory=lambda: {kind.value: 0 for kind in ChangeKind}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "commits_seen": self.commits_seen,
            "commits_skipped": self.commits_skipped,
            "snapshots_parsed": self.snapshots_parsed,
            "events_emitted": self.events_emitted,
            "events_by_kind": dict(self.events_by_kind),
        }


class HistoryPipeline:
    """Replays the history of one manifest file into a change sink."""

    def __init__(self, config: RunConfig, registry: Optional[StrategyRegistry] = None):
        self.config = config
        self.registry = registry or StrategyRegistry.default()

    def run(self, sink: ChangeSink) -> RunSummary:
        """Run the pipeline; the sink is closed on every exit path."""
        try:
            summary = self._run(sink)
        except BaseException:
            self._close_sink(sink, raise_errors=False)
            raise
        self._close_sink(sink, raise_errors=True)
        return summary

    def _run(self, sink: ChangeSink) -> RunSummary:
        config = self.config
        strategy = self.registry.resolve(config.strategy_name, config.file_path)
        logger.info(
            "Finding package changes",
            extra={"path": config.file_path, "strategy": strategy.name},
        )

        repo = GitRepository(config).open()
        kinds = config.enabled_kinds
        logger.info(
            "Capturing change events",
            extra={
                "added": ChangeKind.ADDED in kinds,
                "updated": ChangeKind.UPDATED in kinds,
                "deleted": ChangeKind.DELETED in kinds,
                "dev": config.capture_dev_packages,
            },
        )

        summary = RunSummary(strategy=strategy.name)
        previous: Optional[PackageSet] = None

        with CommitEnumerator.from_config(config) as commits:
            for commit_id in commits:
                summary.commits_seen += 1
                snapshot = self._load_snapshot(repo, strategy, commit_id)
                if snapshot is None:
                    summary.commits_skipped += 1
                    continue

                commit, packages = snapshot
                summary.snapshots_parsed += 1

                for change in diff_snapshots(previous, packages, commit, kinds):
                    try:
                        sink.write(change)
                    except PkgHistoryError:
                        raise
                    except Exception as e:
                        raise SinkError("write", str(e)) from e
                    summary.events_emitted += 1
                    summary.events_by_kind[change.kind.value] += 1

                previous = packages

        logger.info("History replay finished", extra=summary.to_dict())
        return summary

    def _load_snapshot(self, repo: GitRepository, strategy: Strategy, commit_id: str):
        """Return (commit info, package set), or None when the commit is skipped."""
        try:
            commit = repo.read_commit(commit_id)
            content = repo.read_file(commit_id, self.config.file_path)
            packages = strategy.get_packages(content, self.config.capture_dev_packages)
        except (SnapshotReadError, ManifestDecodeError) as e:
            logger.warning(
                "Skipping commit %s: %s",
                commit_id,
                e.message,
                extra={"commit": commit_id, "code": e.code},
            )
            return None

        logger.debug(
            "Snapshot parsed",
            extra={"commit": commit_id, "packages": len(packages)},
        )
        return commit, packages

    def _close_sink(self, sink: ChangeSink, raise_errors: bool) -> None:
        try:
            sink.close()
        except Exception as e:
            if raise_errors:
                if isinstance(e, PkgHistoryError):
                    raise
                raise SinkError("close", str(e)) from e
            logger.error("Closing output after failure also failed: %s", e)


def run_history(
    config: RunConfig,
    sink: ChangeSink,
    registry: Optional[StrategyRegistry] = None,
) -> RunSummary:
    """Convenience wrapper around :class:`HistoryPipeline`."""
    return HistoryPipeline(config, registry).run(sink)
