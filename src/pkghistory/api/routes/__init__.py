"""API route registration for Package History."""

from fastapi import APIRouter

from . import history, meta

router = APIRouter()
router.include_router(meta.router)
router.include_router(history.router)

__all__ = ["router"]
