"""Translation of service errors into HTTP error responses"""
import logging

from fastapi import HTTPException

from core.exceptions import ServiceError

logger = logging.getLogger(__name__)


def http_error(status_code: int, code: str, message: str, trace_id: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": code,
                "message": message,
                "trace_id": trace_id
            }
        }
    )


def from_service_error(e: ServiceError, trace_id: str) -> HTTPException:
    level = logging.ERROR if e.status_code >= 500 else logging.WARNING
    logger.log(level, "Service error", extra={
        "trace_id": trace_id,
        "error_code": e.code,
        "error_message": e.message
    })
    return http_error(e.status_code, e.code, e.message, trace_id)


def from_unexpected_error(e: Exception, trace_id: str) -> HTTPException:
    logger.error("Unexpected error", extra={
        "trace_id": trace_id,
        "error_type": type(e).__name__,
        "error_message": str(e)
    }, exc_info=True)
    return http_error(500, "INTERNAL_ERROR", "Internal server error", trace_id)
