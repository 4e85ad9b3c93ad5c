"""
CreateTaskTool: new task appended to the end of its column
"""

from pydantic import BaseModel, Field

from boardsync.board.engine import SyncEngine
from boardsync.board.schemas import TaskFields, TaskPriority, TaskStatus
from boardsync.tools.base import BaseTool, ToolResult
from boardsync.tools.builtin_tools.task_view import BoardStatus, task_to_dict


class _Params(BaseModel):
    title: str = Field(min_length=1, description="Task title")
    summary: str = Field(default="", description="One-line summary shown on the card")
    status: BoardStatus = Field(default="todo", description="Column to create the task in")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="low, medium or high")
    content: str = Field(default="", description="Free-text task body")
    tags: list[str] = Field(default_factory=list, description="Tags (lower-cased automatically)")


class CreateTaskTool(BaseTool):
    def __init__(self, engine: SyncEngine):
        self._engine = engine

    @property
    def name(self) -> str:
        return "create_task"

    @property
    def description(self) -> str:
        return "Create a new task on the kanban board. Only the title is required."

    @property
    def params_model(self) -> type[BaseModel]:
        return _Params

    @property
    def risk_level(self) -> str:
        return "write"

    async def execute(self, params: _Params) -> ToolResult:
        task = await self._engine.create(TaskFields(
            title=params.title,
            summary=params.summary,
            status=TaskStatus(params.status),
            priority=params.priority,
            body=params.content,
            tags=params.tags,
        ))
        return ToolResult.success(task=task_to_dict(task, self._engine.config.default_tags))
