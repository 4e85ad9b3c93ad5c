"""
ListTasksTool: tasks on the board, optionally filtered

Deleted tasks only show up when explicitly asked for with status="deleted".
"""

from pydantic import BaseModel, Field

from boardsync.board.engine import SyncEngine
from boardsync.board.schemas import TaskPriority, TaskStatus
from boardsync.tools.base import BaseTool, ToolResult
from boardsync.tools.builtin_tools.task_view import task_to_dict


class _Params(BaseModel):
    status: TaskStatus | None = Field(default=None, description="Only tasks with this status")
    priority: TaskPriority | None = Field(default=None, description="Only tasks with this priority")


class ListTasksTool(BaseTool):
    def __init__(self, engine: SyncEngine):
        self._engine = engine

    @property
    def name(self) -> str:
        return "list_tasks"

    @property
    def description(self) -> str:
        return (
            "List tasks on the kanban board, ordered by column and position. "
            "Optional filters: status (todo, in-progress, done, deleted) and priority (low, medium, high). "
            "Deleted tasks are only listed when status is 'deleted'."
        )

    @property
    def params_model(self) -> type[BaseModel]:
        return _Params

    async def execute(self, params: _Params) -> ToolResult:
        default_tags = self._engine.config.default_tags

        if params.status == TaskStatus.DELETED:
            tasks = [t for t in self._engine.tasks if t.parsed.status == TaskStatus.DELETED]
        else:
            grouped = self._engine.grouped()
            if params.status is not None:
                tasks = grouped[params.status]
            else:
                tasks = [t for column in grouped.values() for t in column]

        if params.priority is not None:
            tasks = [t for t in tasks if t.parsed.priority == params.priority]

        return ToolResult.success(
            count=len(tasks),
            tasks=[task_to_dict(t, default_tags) for t in tasks],
        )
