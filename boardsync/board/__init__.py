"""
Board core: content codec, sort-key allocation and the sync engine
"""

from boardsync.board.codec import decode, encode
from boardsync.board.engine import SyncEngine, TaskNotFound
from boardsync.board.schemas import ParsedTask, Task, TaskFields, TaskPriority, TaskStatus
from boardsync.board.sort_keys import SortKeyAllocator, allocate

__all__ = [
    "ParsedTask",
    "SortKeyAllocator",
    "SyncEngine",
    "Task",
    "TaskFields",
    "TaskNotFound",
    "TaskPriority",
    "TaskStatus",
    "allocate",
    "decode",
    "encode",
]
