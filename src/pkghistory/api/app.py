"""FastAPI application instance for the Package History API."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..errors import PkgHistoryError
from ..logging_utils import configure_logging
from ..serialize import ChangeSerializer
from . import __version__
from .routes import router as api_router

configure_logging()

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Package History API",
    description="Dependency change history of manifest files in local git repositories",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(api_router)


@app.exception_handler(PkgHistoryError)
async def history_error_handler(request: Request, exc: PkgHistoryError):
    """Known errors that escape a route keep their own code and details."""
    logger.warning(
        "Unhandled history error",
        extra={"path": request.url.path, "code": exc.code},
    )
    error = exc.to_dict()
    return JSONResponse(
        status_code=500,
        content=ChangeSerializer().create_error_envelope(
            error["code"], error["message"], error.get("details")
        ),
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception("Unexpected API failure", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content=ChangeSerializer().create_error_envelope(
            "INTERNAL_ERROR",
            str(exc) or type(exc).__name__,
            {"exception_type": type(exc).__name__, "path": request.url.path},
        ),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
