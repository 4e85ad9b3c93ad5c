"""
Shared shapes for the board tools: task serialisation + column status type
"""

from typing import Literal

from boardsync.board.schemas import Task

BoardStatus = Literal["todo", "in-progress", "done"]


def task_to_dict(task: Task, default_tags: list[str]) -> dict:
    """Task as returned to the agent (implicit default tags hidden)"""
    parsed = task.parsed
    return {
        "id": task.id,
        "title": task.title,
        "summary": task.summary,
        "status": parsed.status.value,
        "priority": parsed.priority.value,
        "sort": parsed.sort,
        "content": parsed.body,
        "tags": task.visible_tags(default_tags),
    }
