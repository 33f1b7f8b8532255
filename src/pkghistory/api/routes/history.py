"""History routes for the Package History API."""

import logging
from typing import Any, Dict

from fastapi import APIRouter

from ..models import HistoryRequest
from ..services import HistoryService

router = APIRouter(tags=["history"])

logger = logging.getLogger(__name__)

history_service = HistoryService()


@router.post("/history")
def create_history(request: HistoryRequest) -> Dict[str, Any]:
    """Replay a manifest's history and return its package change events."""
    logger.info(
        "Received history request",
        extra={"repository": request.repository_path, "path": request.file_path},
    )

    result = history_service.process_history_request(
        repository_path=request.repository_path,
        file_path=request.file_path,
        commits_count=request.commits_count,
        strategy_name=request.strategy_name,
        change_events=request.change_events,
        capture_dev_packages=request.capture_dev_packages,
    )
    logger.info(
        "History request completed",
        extra={
            "repository": request.repository_path,
            "ok": result.get("ok"),
            "events": len(result.get("data", {}).get("events", [])),
        },
    )
    return result
