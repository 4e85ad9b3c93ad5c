"""
MoveTaskTool: change a task's column; it lands at the bottom of the target column
"""

from pydantic import BaseModel, Field

from boardsync.board.engine import SyncEngine
from boardsync.board.schemas import TaskStatus
from boardsync.tools.base import BaseTool, ToolResult
from boardsync.tools.builtin_tools.task_view import BoardStatus, task_to_dict


class _Params(BaseModel):
    id: str = Field(description="Task id")
    status: BoardStatus = Field(description="Target column: todo, in-progress or done")


class MoveTaskTool(BaseTool):
    def __init__(self, engine: SyncEngine):
        self._engine = engine

    @property
    def name(self) -> str:
        return "move_task"

    @property
    def description(self) -> str:
        return "Move a task to another column (todo, in-progress, done)."

    @property
    def params_model(self) -> type[BaseModel]:
        return _Params

    @property
    def risk_level(self) -> str:
        return "write"

    async def execute(self, params: _Params) -> ToolResult:
        task = self._engine.get(params.id)
        if task is None:
            return ToolResult.fail(f"Task not found: {params.id}")

        target = TaskStatus(params.status)
        if task.parsed.status == target:
            moved = False
        else:
            end = len(self._engine.grouped()[target])
            moved = await self._engine.move_or_reorder(params.id, target, end)

        return ToolResult.success(
            moved=moved,
            task=task_to_dict(self._engine.get(params.id) or task, self._engine.config.default_tags),
        )
