"""Health check API endpoint."""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..config import get_site_config, is_blob_storage_configured, get_monday_api_key
from ..models.sql.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
def health_check_endpoint(db: Annotated[Session, Depends(get_db)]) -> Dict[str, Any]:
    """
    Check that the feedback database answers queries.

    Also reports which optional integrations are configured. Responds 503
    when the database is unreachable.
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "site": get_site_config().name,
        "database": "unknown",
        "integrations": {
            "blob_storage": is_blob_storage_configured(),
            "monday": bool(get_monday_api_key()),
        },
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        logger.error('Database health check failed: %s', e)
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        health_status["error"] = str(e)
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
