"""
Drag-and-drop session state (one drag at a time)

The view reports where the card is hovering (column + index among the other
cards of that column); drop() hands the result to the sync engine. Cursor and
drop-indicator visuals live in the view, not here.
"""

from dataclasses import dataclass

import structlog

from boardsync.board.engine import SyncEngine, TaskNotFound
from boardsync.board.schemas import TaskStatus

log = structlog.get_logger()


@dataclass
class DragSession:
    task_id: str
    origin_status: TaskStatus
    target_status: TaskStatus
    target_index: int


class DragController:
    """Owns the current DragSession"""

    def __init__(self, engine: SyncEngine):
        self._engine = engine
        self._session: DragSession | None = None

    @property
    def session(self) -> DragSession | None:
        return self._session

    def start(self, task_id: str) -> DragSession:
        """Begin dragging task_id; an unfinished previous drag is dropped on the floor"""
        task = self._engine.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)

        status = task.parsed.status
        column = self._engine.grouped().get(status, [])
        index = next((i for i, t in enumerate(column) if t.id == task_id), len(column))

        if self._session is not None:
            log.debug("Replacing unfinished drag", task_id=self._session.task_id)
        self._session = DragSession(task_id, status, status, index)
        return self._session

    def over(self, status: TaskStatus | str, index: int) -> None:
        """Card hovers over status column at index (counted without the dragged card)"""
        if self._session is None:
            return
        self._session.target_status = TaskStatus(status)
        self._session.target_index = max(0, index)

    def cancel(self) -> None:
        self._session = None

    async def drop(self) -> bool:
        """
        Commit the drag. Returns whether anything moved.

        SyncUnavailable propagates after the engine has reconciled, so the
        view can show an error toast.
        """
        session, self._session = self._session, None
        if session is None:
            return False
        return await self._engine.move_or_reorder(session.task_id, session.target_status, session.target_index)
