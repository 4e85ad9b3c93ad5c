"""
GetTaskTool: one task by id (soft-deleted tasks included)
"""

from pydantic import BaseModel, Field

from boardsync.board.engine import SyncEngine
from boardsync.tools.base import BaseTool, ToolResult
from boardsync.tools.builtin_tools.task_view import task_to_dict


class _Params(BaseModel):
    id: str = Field(description="Task id")


class GetTaskTool(BaseTool):
    def __init__(self, engine: SyncEngine):
        self._engine = engine

    @property
    def name(self) -> str:
        return "get_task"

    @property
    def description(self) -> str:
        return "Get the full details of a single task by id, including its content."

    @property
    def params_model(self) -> type[BaseModel]:
        return _Params

    async def execute(self, params: _Params) -> ToolResult:
        task = self._engine.get(params.id)
        if task is None:
            return ToolResult.fail(f"Task not found: {params.id}")
        return ToolResult.success(task=task_to_dict(task, self._engine.config.default_tags))
