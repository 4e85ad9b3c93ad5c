"""
DeleteTaskTool: soft delete (status=deleted); the fragment stays in the store
"""

from pydantic import BaseModel, Field

from boardsync.board.engine import SyncEngine
from boardsync.tools.base import BaseTool, ToolResult


class _Params(BaseModel):
    id: str = Field(description="Task id")


class DeleteTaskTool(BaseTool):
    def __init__(self, engine: SyncEngine):
        self._engine = engine

    @property
    def name(self) -> str:
        return "delete_task"

    @property
    def description(self) -> str:
        return "Delete a task from the board. The task is archived, not destroyed."

    @property
    def params_model(self) -> type[BaseModel]:
        return _Params

    @property
    def risk_level(self) -> str:
        return "write"

    async def execute(self, params: _Params) -> ToolResult:
        if self._engine.get(params.id) is None:
            return ToolResult.fail(f"Task not found: {params.id}")
        await self._engine.soft_delete(params.id)
        return ToolResult.success(id=params.id, deleted=True)
