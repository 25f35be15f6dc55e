"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running, the
database is reachable, and reports how many live listeners are attached.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text

from stockroom import __version__
from stockroom.api.deps import get_notifier
from stockroom.db.engine import engine
from stockroom.realtime.notifier import ChangeNotifier

router = APIRouter()


@router.get("/health")
async def health_check(notifier: ChangeNotifier = Depends(get_notifier)):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"

    return {"status": status, **checks, "listeners": notifier.connection_count}
