"""Shared FastAPI dependencies.

Learn: The notifier lives on app.state (created in the lifespan), so both
HTTP routes and WebSocket handlers fetch it from the connection's app.
Tests swap it via app.dependency_overrides[get_notifier].
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from stockroom.db.engine import get_db
from stockroom.realtime.notifier import ChangeNotifier
from stockroom.services.widget_service import WidgetService


def get_notifier(conn: HTTPConnection) -> ChangeNotifier:
    notifier = getattr(conn.app.state, "notifier", None)
    if notifier is None:
        raise RuntimeError("Change notifier not initialized. Is the lifespan running?")
    return notifier


def get_widget_service(
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> WidgetService:
    return WidgetService(db, notifier)
