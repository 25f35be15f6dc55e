"""Widget service — CRUD for widgets, with change notification.

Learn: Service layer separates business logic from HTTP routing.
Every mutation follows the same order:
1. Write inside a transaction
2. Build the resulting Widget, then commit
3. Hand a ChangeEvent to the notifier (fire-and-forget)

If the commit fails nothing is published. Not-found is a normal return
value (None / False), never an exception.
"""

from typing import Optional

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.db.models import WidgetRow, now_millis
from stockroom.events.types import ChangeEvent
from stockroom.realtime.notifier import ChangeNotifier
from stockroom.schemas.widget import NewWidget, Widget

logger = structlog.get_logger()


class WidgetStoreError(Exception):
    """Raised when the database fails during a widget operation."""
    pass


class WidgetService:
    """Business logic for widget CRUD."""

    def __init__(self, db: AsyncSession, notifier: ChangeNotifier):
        self.db = db
        self.notifier = notifier

    # ─── Read ────────────────────────────────────────────

    async def list_widgets(self) -> list[Widget]:
        try:
            result = await self.db.execute(select(WidgetRow).order_by(WidgetRow.id))
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise await self._store_error("list") from e
        return [_to_widget(row) for row in rows]

    async def get_widget(self, widget_id: int) -> Optional[Widget]:
        try:
            row = await self._fetch(widget_id)
        except SQLAlchemyError as e:
            raise await self._store_error("get", widget_id=widget_id) from e
        return _to_widget(row) if row else None

    # ─── Create ──────────────────────────────────────────

    async def add_widget(self, new: NewWidget) -> Widget:
        """Insert a widget. Any id on the input is ignored."""
        row = WidgetRow(
            name=new.name,
            quantity=new.quantity,
            date_updated=now_millis(),
        )
        try:
            self.db.add(row)
            await self.db.flush()  # get auto-generated ID
            widget = _to_widget(row)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._store_error("create") from e

        logger.info("widget.created", widget_id=widget.id, name=widget.name)
        self.notifier.publish(ChangeEvent.created(widget))
        return widget

    # ─── Update ──────────────────────────────────────────

    async def update_widget(self, new: NewWidget) -> Optional[Widget]:
        """Update name/quantity of an existing widget.

        Learn: An input without an id is treated as a create. An id that
        matches no row returns None; it does NOT fall back to creating.
        """
        if new.id is None:
            return await self.add_widget(new)

        try:
            result = await self.db.execute(
                update(WidgetRow)
                .where(WidgetRow.id == new.id)
                .values(
                    name=new.name,
                    quantity=new.quantity,
                    date_updated=now_millis(),
                )
            )
            if result.rowcount == 0:
                await self.db.rollback()
                return None
            # Re-read inside the transaction so the event matches what commits
            widget = _to_widget(await self._fetch(new.id))
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._store_error("update", widget_id=new.id) from e

        logger.info("widget.updated", widget_id=widget.id, quantity=widget.quantity)
        self.notifier.publish(ChangeEvent.updated(widget))
        return widget

    # ─── Delete ──────────────────────────────────────────

    async def delete_widget(self, widget_id: int) -> bool:
        """Delete a widget. Returns whether a row was actually removed."""
        try:
            result = await self.db.execute(
                delete(WidgetRow).where(WidgetRow.id == widget_id)
            )
            removed = result.rowcount > 0
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._store_error("delete", widget_id=widget_id) from e

        if removed:
            logger.info("widget.deleted", widget_id=widget_id)
            self.notifier.publish(ChangeEvent.deleted(widget_id))
        return removed

    # ─── Helpers ─────────────────────────────────────────

    async def _fetch(self, widget_id: int) -> Optional[WidgetRow]:
        result = await self.db.execute(
            select(WidgetRow)
            .where(WidgetRow.id == widget_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def _store_error(self, operation: str, **context) -> WidgetStoreError:
        """Roll back, log the active exception, and build the error to raise."""
        await self.db.rollback()
        logger.exception("widget.store_failed", operation=operation, **context)
        return WidgetStoreError(f"Widget {operation} failed")


def _to_widget(row: WidgetRow) -> Widget:
    return Widget(
        id=row.id,
        name=row.name,
        quantity=row.quantity,
        date_updated=row.date_updated,
    )
