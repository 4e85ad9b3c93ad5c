"""
UpdateTaskTool: edit task fields; status is left alone (move_task changes it)
"""

from pydantic import BaseModel, Field

from boardsync.board.engine import SyncEngine
from boardsync.board.schemas import TaskPriority
from boardsync.tools.base import BaseTool, ToolResult
from boardsync.tools.builtin_tools.task_view import task_to_dict


class _Params(BaseModel):
    id: str = Field(description="Task id")
    title: str | None = Field(default=None, min_length=1, description="New title")
    summary: str | None = Field(default=None, description="New summary")
    priority: TaskPriority | None = Field(default=None, description="New priority")
    content: str | None = Field(default=None, description="New task body (replaces the old one)")
    tags: list[str] | None = Field(default=None, description="New tag list (replaces the old one)")


class UpdateTaskTool(BaseTool):
    def __init__(self, engine: SyncEngine):
        self._engine = engine

    @property
    def name(self) -> str:
        return "update_task"

    @property
    def description(self) -> str:
        return (
            "Update a task's title, summary, priority, content or tags. "
            "Omitted fields keep their current value. Use move_task to change status."
        )

    @property
    def params_model(self) -> type[BaseModel]:
        return _Params

    @property
    def risk_level(self) -> str:
        return "write"

    async def execute(self, params: _Params) -> ToolResult:
        if self._engine.get(params.id) is None:
            return ToolResult.fail(f"Task not found: {params.id}")

        changes = params.model_dump(exclude={"id"}, exclude_none=True)
        updated = sorted(changes)
        if "content" in changes:
            changes["body"] = changes.pop("content")

        fields = self._engine.fields_of(params.id).model_copy(update=changes)
        task = await self._engine.update(params.id, fields)
        return ToolResult.success(
            updated=updated,
            task=task_to_dict(task, self._engine.config.default_tags),
        )
