"""Meta endpoints for the Package History API."""

import logging

from fastapi import APIRouter

from ...strategies import StrategyRegistry
from ...vcs import get_git_version
from .. import __version__
from ..models import HealthResponse, VersionResponse

router = APIRouter(tags=["meta"])

logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    git_version = get_git_version()
    logger.info(
        "Health check invoked",
        extra={"git_available": git_version is not None, "git_version": git_version},
    )
    return HealthResponse(
        status="healthy",
        version=__version__,
        git_available=git_version is not None,
        git_version=git_version,
    )


@router.get("/version", response_model=VersionResponse)
def version_info() -> VersionResponse:
    """Version information endpoint."""
    git_version = get_git_version()
    logger.info("Version endpoint invoked", extra={"git_version": git_version})
    return VersionResponse(
        version=__version__,
        api_version="v1",
        git_version=git_version,
        strategies=StrategyRegistry.default().names(),
    )


@router.get("/", include_in_schema=False)
def root() -> dict:
    """Root endpoint providing basic API metadata."""
    logger.debug("Root endpoint served")
    return {
        "name": "Package History API",
        "version": __version__,
        "description": "Dependency change history of manifest files",
        "endpoints": {
            "history": "POST /history - Package change events of a manifest",
            "health": "GET /health - Health check",
            "version": "GET /version - Version information",
            "docs": "GET /docs - API documentation",
        },
    }
