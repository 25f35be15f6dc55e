"""API route aggregation.

All routers registered here get mounted in main.py. The WebSocket
router lives in stockroom.realtime and is mounted separately.
"""

from fastapi import APIRouter

from stockroom.api.health import router as health_router
from stockroom.api.widgets import router as widgets_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(widgets_router, tags=["widgets"])
