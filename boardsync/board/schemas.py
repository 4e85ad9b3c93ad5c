"""
Board data model

Task mirrors one remote fragment. ParsedTask is derived from Task.raw_content
on demand and never stored on its own.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    DELETED = "deleted"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Board columns, in display order
BOARD_STATUSES: tuple[TaskStatus, ...] = (TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.DONE)


class ParsedTask(BaseModel):
    """Structured view of a fragment's content"""

    model_config = ConfigDict(frozen=True)

    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    sort: int = 0
    body: str = ""


class Task(BaseModel):
    """One fragment as stored remotely"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    title: str = ""
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    raw_content: str = Field(default="", alias="content")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id_to_str(cls, v: object) -> str:
        return str(v)

    @field_validator("summary", "title", "raw_content", mode="before")
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def none_to_no_tags(cls, v: object) -> object:
        return [] if v is None else v

    @property
    def parsed(self) -> ParsedTask:
        from boardsync.board.codec import decode

        return decode(self.raw_content)

    def visible_tags(self, default_tags: list[str]) -> list[str]:
        """Tags shown to the user (implicit defaults hidden)"""
        return [t for t in self.tags if t not in default_tags]


class TaskFields(BaseModel):
    """Everything the user can edit on a task; input to create / update"""

    title: str
    summary: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    sort: int | None = None  # None: append on create, keep on update
    body: str = ""
    tags: list[str] | str = Field(default_factory=list)


def build_tags(tags: list[str] | str | None, default_tags: list[str]) -> list[str]:
    """
    Normalise user tags and merge in the defaults.

    Accepts a comma-separated string or a list; tags are stripped and
    lower-cased, empties dropped, order preserved (defaults first).
    """
    if isinstance(tags, str):
        raw = tags.split(",")
    else:
        raw = list(tags or [])

    cleaned = [t.strip().lower() for t in raw if t and t.strip()]
    return list(dict.fromkeys([*default_tags, *cleaned]))
