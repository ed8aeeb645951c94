"""Health service for basic health checks"""
import logging
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.orm import Session

from service.dto import HealthResponseDTO

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def get_health(session: Session) -> HealthResponseDTO:
    """
    Get basic health status.

    Pings the database; ok is False when the ping fails.

    Returns:
        HealthResponseDTO: Health check result
    """
    try:
        session.execute(text("SELECT 1"))
        ok = True
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        ok = False

    return HealthResponseDTO(
        ok=ok,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION
    )
