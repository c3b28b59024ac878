"""
Stats API Routes

Item counts and pipeline metrics.
"""

from fastapi import APIRouter, Depends

from media_match.api.main import get_system
from media_match.engine.match_engine import MediaMatchSystem

router = APIRouter()


@router.get("")
async def get_stats(system: MediaMatchSystem = Depends(get_system)):
    """Item counts by state plus recent pipeline metrics."""
    return system.get_stats()


@router.get("/recent")
async def get_recent_metrics(limit: int = 20, system: MediaMatchSystem = Depends(get_system)):
    """Most recent per-stage metrics, oldest first."""
    if system.monitor is None:
        return {"metrics": [], "enabled": False}
    return {"metrics": system.monitor.get_recent_metrics(limit), "enabled": True}
