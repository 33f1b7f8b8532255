"""Change sinks: where emitted change events end up."""

import csv
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .config import OUTPUT_CSV, OUTPUT_JSON, RunConfig
from .errors import SinkError
from .models import ChangeKind, PackageChange
from .serialize import CHANGE_FIELDS, ChangeSerializer

logger = logging.getLogger(__name__)

_KIND_STYLES = {
    ChangeKind.ADDED: "green",
    ChangeKind.UPDATED: "yellow",
    ChangeKind.DELETED: "red",
}


class ChangeSink(ABC):
    """Receives change events in commit order and finalizes the output."""

    @abstractmethod
    def write(self, change: PackageChange) -> None:
        """Accept one event. Raising aborts the run."""

    @abstractmethod
    def close(self) -> None:
        """Finalize output. Called exactly once per run."""


class CollectingSink(ChangeSink):
    """Keeps every event in memory."""

    def __init__(self):
        self.changes: List[PackageChange] = []
        self.closed = False

    def write(self, change: PackageChange) -> None:
        self.changes.append(change)

    def close(self) -> None:
        self.closed = True


def format_change(change: PackageChange) -> str:
    """Render one event as a single human-readable line."""
    author = change.author_name
    if not author:
        author = change.author_email
    elif change.author_email:
        author = f"{author} ({change.author_email})"

    package = change.package
    if change.kind is ChangeKind.UPDATED:
        version_text = f"Ver: {change.previous_version} -> {package.version}"
    elif change.kind is ChangeKind.DELETED:
        version_text = f"Last ver: {package.version}"
    else:
        version_text = f"Ver: {package.version}"

    dev_prefix = "DEV-" if package.is_dev else ""
    return (
        f"[{change.timestamp.strftime('%Y-%m-%d %H:%M:%S')}] "
        f"User {author} {change.kind.value} {dev_prefix}package {package.name}. "
        f"{version_text}. Commit: {change.commit_id}"
    )


class ConsoleSink(ChangeSink):
    """Prints each event as a colored line as soon as it arrives."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False, soft_wrap=True)

    def write(self, change: PackageChange) -> None:
        style = _KIND_STYLES[change.kind]
        self.console.print(f"[{style}]{escape(format_change(change))}[/{style}]")

    def close(self) -> None:
        return None


class _BufferedFileSink(ChangeSink):
    """Accumulates events and writes them to ``path`` on close."""

    def __init__(self, path: str, serializer: Optional[ChangeSerializer] = None):
        self.path = Path(path)
        self.serializer = serializer or ChangeSerializer()
        self.changes: List[PackageChange] = []

    def write(self, change: PackageChange) -> None:
        self.changes.append(change)

    def close(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._dump()
        except OSError as e:
            raise SinkError("close", f"cannot write {self.path}: {e}") from e
        logger.info(
            "Result saved",
            extra={"path": str(self.path), "events": len(self.changes)},
        )

    @abstractmethod
    def _dump(self) -> None:
        """Write buffered events to ``self.path``."""


class JsonSink(_BufferedFileSink):
    """Writes all events as a JSON array."""

    def _dump(self) -> None:
        records = self.serializer.serialize_changes(self.changes)
        self.path.write_text(
            self.serializer.to_json_string(records) + "\n", encoding="utf-8"
        )


class CsvSink(_BufferedFileSink):
    """Writes all events as CSV rows under a header line."""

    def _dump(self) -> None:
        with self.path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=CHANGE_FIELDS, restval="")
            writer.writeheader()
            for change in self.changes:
                record = self.serializer.serialize_change(change)
                record["is_dev"] = "true" if record["is_dev"] else "false"
                writer.writerow(record)


def create_sink(config: RunConfig) -> ChangeSink:
    """Build the sink selected by the run configuration."""
    if config.output_type == OUTPUT_CSV:
        return CsvSink(config.output_path)
    if config.output_type == OUTPUT_JSON:
        return JsonSink(config.output_path)
    return ConsoleSink()
