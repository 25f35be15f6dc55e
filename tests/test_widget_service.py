"""WidgetService tests — CRUD semantics and the events each mutation emits.

Learn: These exercise the service directly (no HTTP). Events are
published fire-and-forget, so each test drains the notifier before
looking at what the recorder received.
"""

import pytest
from sqlalchemy.exc import OperationalError

from stockroom.events.types import ChangeType
from stockroom.schemas.widget import NewWidget
from stockroom.services.widget_service import WidgetStoreError


# ═══════════════════════════════════════════════════════════
# Create / read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_add_widget_assigns_id(svc, notifier, recorder):
    created = await svc.add_widget(NewWidget(name="widget1", quantity=12))

    assert created.id == 1
    assert created.name == "widget1"
    assert created.quantity == 12
    assert created.date_updated > 0

    assert await svc.get_widget(created.id) == created

    await notifier.drain()
    assert len(recorder.events) == 1
    event = recorder.events[0]
    assert event.type == ChangeType.CREATE
    assert event.id == created.id
    assert event.entity == created


@pytest.mark.asyncio
async def test_add_widget_ignores_input_id(svc):
    created = await svc.add_widget(NewWidget(id=42, name="w", quantity=1))
    assert created.id == 1
    assert await svc.get_widget(42) is None


@pytest.mark.asyncio
async def test_list_widgets(svc):
    await svc.add_widget(NewWidget(name="widget1", quantity=10))
    await svc.add_widget(NewWidget(name="widget2", quantity=5))

    widgets = await svc.list_widgets()
    assert len(widgets) == 2
    assert {w.name for w in widgets} == {"widget1", "widget2"}
    assert {w.quantity for w in widgets} == {10, 5}


@pytest.mark.asyncio
async def test_list_widgets_empty(svc):
    assert await svc.list_widgets() == []


@pytest.mark.asyncio
async def test_get_missing_widget_returns_none(svc, notifier, recorder):
    assert await svc.get_widget(-1) is None
    await notifier.drain()
    assert recorder.events == []


# ═══════════════════════════════════════════════════════════
# Update
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_widget_changes_only_target(svc, notifier, recorder):
    target = await svc.add_widget(NewWidget(name="widget1", quantity=10))
    other = await svc.add_widget(NewWidget(name="widget2", quantity=5))

    updated = await svc.update_widget(NewWidget(id=target.id, name="updated", quantity=46))

    assert updated is not None
    assert updated.id == target.id
    assert updated.name == "updated"
    assert updated.quantity == 46
    assert updated.date_updated >= target.date_updated
    assert await svc.get_widget(target.id) == updated
    assert await svc.get_widget(other.id) == other

    await notifier.drain()
    assert [e.type for e in recorder.events] == [
        ChangeType.CREATE,
        ChangeType.CREATE,
        ChangeType.UPDATE,
    ]
    assert recorder.events[-1].id == target.id
    assert recorder.events[-1].entity == updated


@pytest.mark.asyncio
async def test_update_missing_widget_returns_none(svc, notifier, recorder):
    """An id that matches no row is not-found, and nothing gets created."""
    result = await svc.update_widget(NewWidget(id=-1, name="invalid", quantity=-1))

    assert result is None
    assert await svc.list_widgets() == []
    await notifier.drain()
    assert recorder.events == []


@pytest.mark.asyncio
async def test_update_without_id_creates(svc, notifier, recorder):
    created = await svc.update_widget(NewWidget(name="fresh", quantity=3))

    assert created is not None
    assert created.id == 1
    assert await svc.get_widget(1) == created

    await notifier.drain()
    assert [e.type for e in recorder.events] == [ChangeType.CREATE]


# ═══════════════════════════════════════════════════════════
# Delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_delete_widget_twice(svc, notifier, recorder):
    created = await svc.add_widget(NewWidget(name="widget1", quantity=12))

    assert await svc.delete_widget(created.id) is True
    assert await svc.get_widget(created.id) is None
    assert await svc.delete_widget(created.id) is False

    await notifier.drain()
    assert [e.type for e in recorder.events] == [ChangeType.CREATE, ChangeType.DELETE]
    delete_event = recorder.events[-1]
    assert delete_event.id == created.id
    assert delete_event.entity is None


@pytest.mark.asyncio
async def test_delete_missing_widget(svc, notifier, recorder):
    assert await svc.delete_widget(12345) is False
    await notifier.drain()
    assert recorder.events == []


# ═══════════════════════════════════════════════════════════
# Store failures
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_store_failure_raises_and_emits_nothing(svc, db_session, notifier, recorder, monkeypatch):
    async def broken_execute(*args, **kwargs):
        raise OperationalError("UPDATE widgets", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "execute", broken_execute)

    with pytest.raises(WidgetStoreError):
        await svc.update_widget(NewWidget(id=1, name="x", quantity=1))
    with pytest.raises(WidgetStoreError):
        await svc.delete_widget(1)
    with pytest.raises(WidgetStoreError):
        await svc.list_widgets()

    await notifier.drain()
    assert recorder.events == []


@pytest.mark.asyncio
async def test_failing_commit_emits_nothing(svc, db_session, notifier, recorder, monkeypatch):
    async def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", broken_commit)

    with pytest.raises(WidgetStoreError):
        await svc.add_widget(NewWidget(name="never", quantity=1))

    await notifier.drain()
    assert recorder.events == []


@pytest.mark.asyncio
async def test_failing_read_back_rolls_back_update(svc, notifier, recorder, monkeypatch):
    """A read error after the UPDATE must leave the old row and emit nothing."""
    created = await svc.add_widget(NewWidget(name="before", quantity=1))

    async def broken_fetch(widget_id):
        raise OperationalError("SELECT widgets", {}, Exception("disk I/O error"))

    monkeypatch.setattr(svc, "_fetch", broken_fetch)
    with pytest.raises(WidgetStoreError):
        await svc.update_widget(NewWidget(id=created.id, name="after", quantity=2))
    monkeypatch.undo()

    stored = await svc.get_widget(created.id)
    assert stored.name == "before"
    assert stored.quantity == 1

    await notifier.drain()
    assert [e.type for e in recorder.events] == [ChangeType.CREATE]


@pytest.mark.asyncio
async def test_add_widget_does_not_read_back(svc, notifier, recorder, monkeypatch):
    """Create builds its result from the flushed row, so a saved row is always announced."""
    async def broken_fetch(widget_id):
        raise OperationalError("SELECT widgets", {}, Exception("disk I/O error"))

    monkeypatch.setattr(svc, "_fetch", broken_fetch)
    widget = await svc.add_widget(NewWidget(name="ghost", quantity=1))
    monkeypatch.undo()

    assert [w.id for w in await svc.list_widgets()] == [widget.id]

    await notifier.drain()
    assert len(recorder.events) == 1
    assert recorder.events[0].type == ChangeType.CREATE
    assert recorder.events[0].entity == widget


@pytest.mark.asyncio
async def test_failing_update_commit_keeps_old_row(svc, db_session, notifier, recorder, monkeypatch):
    created = await svc.add_widget(NewWidget(name="before", quantity=1))

    async def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", broken_commit)
    with pytest.raises(WidgetStoreError):
        await svc.update_widget(NewWidget(id=created.id, name="after", quantity=2))
    monkeypatch.undo()

    assert (await svc.get_widget(created.id)).name == "before"

    await notifier.drain()
    assert [e.type for e in recorder.events] == [ChangeType.CREATE]
