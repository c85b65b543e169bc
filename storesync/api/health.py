"""
Health check and status endpoints
"""
from fastapi import APIRouter, Request

from storesync.config import get_settings
from storesync import __version__
from storesync.utils.helpers import utcnow

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status(request: Request):
    """Get service status, including scheduled jobs"""
    settings = get_settings()
    scheduler = getattr(request.app.state, "scheduler", None)

    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "scheduler": {
            "enabled": settings.scheduler_enabled,
            "running": bool(scheduler and scheduler.running),
            "jobs": scheduler.get_scheduled_jobs() if scheduler and scheduler.running else []
        },
        "timestamp": utcnow().isoformat()
    }
