"""Serialization of change events and run payloads."""

import hashlib
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from .config import RunConfig
from .models import ChangeKind, PackageChange

logger = logging.getLogger(__name__)

# Column order shared by CSV output and the flattened event record.
CHANGE_FIELDS = (
    "name",
    "version",
    "is_dev",
    "old_version",
    "author",
    "email",
    "time",
    "commit",
    "event",
)


class ChangeSerializer:
    """Turns change events into plain records and JSON documents."""

    def __init__(self, config: Optional[RunConfig] = None):
        """Initialize with the run configuration (used for provenance)."""
        self.config = config

    def serialize_change(self, change: PackageChange) -> Dict[str, Any]:
        """Serialize a single change event to a flat dictionary."""
        record: Dict[str, Any] = {
            "name": change.package.name,
            "version": change.package.version,
            "is_dev": change.package.is_dev,
        }
        if change.kind is ChangeKind.UPDATED and change.previous_version is not None:
            record["old_version"] = change.previous_version

        record.update(
            {
                "author": change.author_name,
                "email": change.author_email,
                "time": change.timestamp.isoformat(),
                "commit": change.commit_id,
                "event": change.kind.value,
            }
        )
        return record

    def serialize_changes(self, changes: Sequence[PackageChange]) -> List[Dict[str, Any]]:
        """Serialize events keeping their emission order."""
        return [self.serialize_change(change) for change in changes]

    def serialize_run(
        self,
        changes: Sequence[PackageChange],
        summary: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Serialize a whole run to a dictionary with a content checksum."""
        logger.debug(
            "Serializing run",
            extra={"events": len(changes), "strategy": summary.get("strategy")},
        )

        provenance = self.config.to_provenance_dict() if self.config else {}
        payload = {
            "provenance": provenance,
            "events": self.serialize_changes(changes),
            "summary": summary,
        }

        checksum = self._compute_checksum(payload)
        payload["provenance"]["checksum"] = checksum

        logger.debug("Serialization finished", extra={"checksum": checksum})
        return payload

    def _compute_checksum(self, payload: Dict[str, Any]) -> str:
        """Compute SHA-256 checksum of the payload, ignoring any prior checksum."""
        provenance = {
            key: value
            for key, value in payload.get("provenance", {}).items()
            if key != "checksum"
        }
        canonical = dict(payload, provenance=provenance)
        json_bytes = json.dumps(
            canonical,
            ensure_ascii=False,
            sort_keys=True,
            separators=(",", ":"),
        ).encode("utf-8", errors="replace")
        return hashlib.sha256(json_bytes).hexdigest()

    def to_json_string(self, payload: Any) -> str:
        """Convert payload to pretty-printed JSON string."""
        return json.dumps(payload, ensure_ascii=False, indent=2)

    def create_success_envelope(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create success envelope around payload."""
        return {"ok": True, "data": payload}

    def create_error_envelope(
        self, error_code: str, error_message: str, details: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """Create error envelope."""
        logger.debug("Creating error envelope", extra={"code": error_code})
        error_data = {
            "code": error_code,
            "message": error_message,
        }
        if details:
            error_data["details"] = details

        return {"ok": False, "error": error_data}
