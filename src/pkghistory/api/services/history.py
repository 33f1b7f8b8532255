"""Service layer for the Package History API."""

import logging
from typing import Any, Dict, Iterable, Optional

from ...config import RunConfig
from ...errors import PkgHistoryError
from ...models import ChangeKind
from ...pipeline import HistoryPipeline
from ...serialize import ChangeSerializer
from ...sinks import CollectingSink
from ...strategies import StrategyRegistry

logger = logging.getLogger(__name__)


class HistoryService:
    """Runs the history pipeline for API requests and wraps the result."""

    def __init__(self, registry: Optional[StrategyRegistry] = None):
        self.registry = registry or StrategyRegistry.default()

    def process_history_request(
        self,
        repository_path: str,
        file_path: str,
        commits_count: int = 100,
        strategy_name: Optional[str] = None,
        change_events: Iterable[ChangeKind] = (),
        capture_dev_packages: bool = True,
    ) -> Dict[str, Any]:
        """Process a history request and return the complete JSON response."""
        logger.info(
            "Processing history request",
            extra={"repository": repository_path, "path": file_path},
        )

        try:
            config = RunConfig(
                repository_path=repository_path,
                file_path=file_path,
                commits_count=commits_count,
                strategy_name=strategy_name,
                capture_events=tuple(change_events),
                capture_dev_packages=capture_dev_packages,
            )

            sink = CollectingSink()
            summary = HistoryPipeline(config, self.registry).run(sink)

            serializer = ChangeSerializer(config)
            payload = serializer.serialize_run(sink.changes, summary.to_dict())

            logger.info(
                "History processing succeeded",
                extra={"repository": repository_path, "events": len(sink.changes)},
            )
            return serializer.create_success_envelope(payload)

        except PkgHistoryError as exc:
            logger.warning(
                "Known history error",
                extra={"repository": repository_path, "code": exc.code},
            )
            return ChangeSerializer().create_error_envelope(
                exc.code, exc.message, exc.details
            )

        except ValueError as exc:
            return ChangeSerializer().create_error_envelope("INVALID_REQUEST", str(exc))
