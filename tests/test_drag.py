# tests/test_drag.py

from __future__ import annotations

import pytest

from boardsync.board.engine import SyncEngine, TaskNotFound
from boardsync.board.schemas import TaskStatus
from boardsync.store.client import SyncUnavailable
from boardsync.ui.drag import DragController

from .fakes import FakeFragmentStore


@pytest.mark.asyncio
async def test_start_records_origin_position(engine: SyncEngine) -> None:
    await engine.load()
    drag = DragController(engine)

    session = drag.start("b")

    assert (session.origin_status, session.target_status, session.target_index) == (
        TaskStatus.TODO, TaskStatus.TODO, 1,
    )


@pytest.mark.asyncio
async def test_drop_reorders_within_column(engine: SyncEngine) -> None:
    await engine.load()
    drag = DragController(engine)

    drag.start("b")
    drag.over(TaskStatus.TODO, 0)
    moved = await drag.drop()

    assert moved is True
    assert engine.get("b").parsed.sort == 5
    assert [t.id for t in engine.grouped()[TaskStatus.TODO]] == ["b", "a"]
    assert drag.session is None


@pytest.mark.asyncio
async def test_drop_back_in_place_is_a_no_op(engine: SyncEngine, store: FakeFragmentStore) -> None:
    await engine.load()
    store.calls.clear()
    drag = DragController(engine)

    drag.start("a")
    drag.over("in-progress", 0)
    drag.over("todo", 0)

    assert await drag.drop() is False
    assert store.calls == []


@pytest.mark.asyncio
async def test_drop_into_other_column(engine: SyncEngine) -> None:
    await engine.load()
    drag = DragController(engine)

    drag.start("a")
    drag.over("in-progress", -3)
    await drag.drop()

    parsed = engine.get("a").parsed
    assert parsed.status == TaskStatus.IN_PROGRESS
    assert parsed.sort == 2  # before c(5)


@pytest.mark.asyncio
async def test_failed_drop_propagates_after_reconcile(engine: SyncEngine, store: FakeFragmentStore) -> None:
    await engine.load()
    store.fail.add("update")
    drag = DragController(engine)

    drag.start("a")
    drag.over("done", 0)
    with pytest.raises(SyncUnavailable):
        await drag.drop()

    assert engine.get("a").parsed.status == TaskStatus.TODO
    assert drag.session is None


@pytest.mark.asyncio
async def test_cancel_and_unknown_task(engine: SyncEngine) -> None:
    await engine.load()
    drag = DragController(engine)

    with pytest.raises(TaskNotFound):
        drag.start("nope")

    drag.over("done", 0)
    assert drag.session is None

    drag.start("a")
    drag.cancel()
    assert await drag.drop() is False
