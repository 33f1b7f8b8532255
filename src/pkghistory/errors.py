"""Error definitions and handling for the Package History tool."""

from typing import Any, Dict, Optional


class PkgHistoryError(Exception):
    """Base exception for Package History tool errors."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with code, message, and optional details."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        result = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class RepositoryOpenError(PkgHistoryError):
    """Repository could not be opened."""

    def __init__(self, repository_path: str, reason: str):
        super().__init__(
            code="REPOSITORY_OPEN_FAILED",
            message=f"Failed to open git repository {repository_path}: {reason}",
            details={"repository_path": repository_path, "reason": reason},
        )


class StrategyNotFoundError(PkgHistoryError):
    """No manifest strategy matches the requested name or file."""

    def __init__(self, lookup: str, value: str, available: Optional[list[str]] = None):
        super().__init__(
            code="STRATEGY_NOT_FOUND",
            message=f"Strategy not found by {lookup} {value!r}",
            details={"lookup": lookup, "value": value, "available": available or []},
        )


class HistoryQueryError(PkgHistoryError):
    """Listing the commits that touched the tracked file failed."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(
            code="HISTORY_QUERY_FAILED",
            message=f"Failed to list commits for {file_path}: {reason}",
            details={"file_path": file_path, "reason": reason},
        )


class SinkError(PkgHistoryError):
    """Writing or finalizing the change output failed."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            code="SINK_FAILED",
            message=f"Output {operation} failed: {reason}",
            details={"operation": operation, "reason": reason},
        )


class SnapshotReadError(PkgHistoryError):
    """The tracked file could not be read at a given commit."""

    def __init__(
        self,
        commit_id: str,
        file_path: str,
        reason: str,
        code: str = "SNAPSHOT_READ_FAILED",
    ):
        super().__init__(
            code=code,
            message=f"Failed to read {file_path} at commit {commit_id}: {reason}",
            details={"commit_id": commit_id, "file_path": file_path, "reason": reason},
        )
        self.commit_id = commit_id


class SnapshotNotFoundError(SnapshotReadError):
    """The tracked file does not exist at a given commit."""

    def __init__(self, commit_id: str, file_path: str):
        super().__init__(
            commit_id,
            file_path,
            "file does not exist at this commit",
            code="SNAPSHOT_NOT_FOUND",
        )


class ManifestDecodeError(PkgHistoryError):
    """Manifest content is not valid for the selected strategy."""

    def __init__(self, strategy: str, reason: str, errors: Optional[list] = None):
        details: Dict[str, Any] = {"strategy": strategy, "reason": reason}
        if errors:
            details["errors"] = errors
        super().__init__(
            code="MANIFEST_DECODE_FAILED",
            message=f"Invalid {strategy} manifest: {reason}",
            details=details,
        )
