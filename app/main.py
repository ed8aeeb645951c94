from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from app.api.children import router as children_router
from app.api.errors import from_service_error
from app.api.health import router as health_router
from app.api.videos import router as videos_router
from app.api.youtube import router as youtube_router
from app.deps.common import get_trace_id
from core.exceptions import InvalidInput
from core.logging import setup_json_logging

# Setup logging
setup_json_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Tube Guardian API", version="0.1.0")


def describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts) or "Invalid request"


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing request input is a 400 in the service error shape"""
    error = from_service_error(InvalidInput(describe_validation_errors(exc)), get_trace_id())
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


# Include routers
app.include_router(health_router)  # Health at root level
app.include_router(children_router, prefix="/api/v1")
app.include_router(youtube_router, prefix="/api/v1")
app.include_router(videos_router, prefix="/api/v1")
