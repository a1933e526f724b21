"""
System routes: health and service introspection
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Request

from utils.date_utils import get_current_utc

router = APIRouter(prefix="/system", tags=["system"])
logger = structlog.get_logger(__name__)


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """System health check"""
    initialized = bool(getattr(request.app.state, "system_initialized", False))
    export_service = getattr(request.app.state, "export_service", None)
    stats = export_service.get_export_stats() if export_service else {}
    return {
        "status": "healthy" if initialized else "degraded",
        "system_initialized": initialized,
        "timestamp": get_current_utc().isoformat(),
        "components": {
            "export": "healthy" if export_service else "unavailable",
        },
        "formats": export_service.get_supported_formats() if export_service else [],
        "exports": {
            "total": stats.get("total_exports", 0),
            "failed": stats.get("failed_exports", 0),
        },
    }
