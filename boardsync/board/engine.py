"""
Sync engine: the single owner of the in-memory task cache

Mutation entry points: load / create / update / move_or_reorder / soft_delete /
purge. Everything else reads through accessors.

Consistency model:
- no locking across requests; overlapping mutations race at the remote store
- move_or_reorder applies its local change before awaiting the remote call
- any failed optimistic change is reconciled by a full reload, never by
  retrying or by field-level rollback
"""

from collections.abc import Callable

import structlog
from pydantic import ValidationError

from boardsync.board.codec import encode
from boardsync.board.schemas import (
    BOARD_STATUSES,
    Task,
    TaskFields,
    TaskStatus,
    build_tags,
)
from boardsync.board.sort_keys import SortKeyAllocator, is_collision
from boardsync.config import ConnectionConfig
from boardsync.store.client import FragmentStore, SyncUnavailable

log = structlog.get_logger()

_COLUMN_TITLES = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.DONE: "Done",
}


class TaskNotFound(KeyError):
    """No cached task with this id"""


class SyncEngine:
    """Optimistic board synchronisation against the fragment store"""

    def __init__(
        self,
        store: FragmentStore,
        config: ConnectionConfig,
        allocator: SortKeyAllocator | None = None,
    ):
        self._store = store
        self._config = config
        self._allocator = allocator or SortKeyAllocator()
        self._cache: list[Task] = []
        self._listeners: list[Callable[[], None]] = []

    # ── Configuration ──

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    def reconfigure(self, config: ConnectionConfig) -> None:
        """Swap connection settings; the cache is kept until the next load()"""
        self._config = config
        self._store.reconfigure(config)
        log.info("Sync engine reconfigured", workspace_id=config.workspace_id)

    # ── Change notification ──

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a callback fired after every cache change; returns an unsubscribe function"""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                log.error("Board listener failed", error=str(e), exc_info=True)

    # ── Read accessors ──

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._cache)

    def get(self, task_id: str) -> Task | None:
        for task in self._cache:
            if task.id == task_id:
                return task
        return None

    def _require(self, task_id: str) -> Task:
        task = self.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def fields_of(self, task_id: str) -> TaskFields:
        """Current editable fields of a cached task"""
        task = self._require(task_id)
        parsed = task.parsed
        return TaskFields(
            title=task.title,
            summary=task.summary,
            status=parsed.status,
            priority=parsed.priority,
            sort=parsed.sort,
            body=parsed.body,
            tags=task.visible_tags(self._config.default_tags),
        )

    def grouped(self) -> dict[TaskStatus, list[Task]]:
        """Non-deleted tasks per board column, ascending by sort key"""
        columns: dict[TaskStatus, list[tuple[int, Task]]] = {s: [] for s in BOARD_STATUSES}
        for task in self._cache:
            parsed = task.parsed
            if parsed.status == TaskStatus.DELETED:
                continue
            column = parsed.status if parsed.status in columns else TaskStatus.TODO
            columns[column].append((parsed.sort, task))

        # sorted() is stable: equal keys keep cache order
        return {
            status: [task for _, task in sorted(entries, key=lambda e: e[0])]
            for status, entries in columns.items()
        }

    def counts(self) -> dict[TaskStatus, int]:
        return {status: len(tasks) for status, tasks in self.grouped().items()}

    def total(self) -> int:
        return sum(self.counts().values())

    def digest(self) -> str:
        """Plain-text board summary pushed to the embedded agent as context"""
        grouped = self.grouped()
        lines = [f"Kanban board ({sum(len(t) for t in grouped.values())} tasks)"]
        for status, tasks in grouped.items():
            lines.append("")
            lines.append(f"## {_COLUMN_TITLES[status]} ({len(tasks)})")
            if not tasks:
                lines.append("(empty)")
            for task in tasks:
                parsed = task.parsed
                line = f"- [{parsed.priority.value}] {task.title} (id: {task.id})"
                if task.summary:
                    line += f": {task.summary}"
                tags = task.visible_tags(self._config.default_tags)
                if tags:
                    line += f" #{' #'.join(tags)}"
                lines.append(line)
        return "\n".join(lines)

    # ── Mutations ──

    def _payload(self, fields: TaskFields, sort: int) -> dict:
        return {
            "title": fields.title,
            "summary": fields.summary or "",
            "content": encode(fields.status, fields.priority, sort, fields.body),
            "tags": build_tags(fields.tags, self._config.default_tags),
        }

    async def load(self) -> bool:
        """
        Replace the cache with the remote task list.

        Returns True when the fetched list differs from what was cached.
        Raises SyncUnavailable with the cache untouched.
        """
        fragments = await self._store.list_fragments()

        tasks: list[Task] = []
        for fragment in fragments:
            if not isinstance(fragment, dict) or fragment.get("id") in (None, ""):
                log.warning("Skipping fragment without id", fragment=str(fragment)[:200])
                continue
            try:
                tasks.append(Task.model_validate(fragment))
            except ValidationError as e:
                log.warning("Skipping malformed fragment", fragment_id=str(fragment.get("id")), error=str(e))

        changed = tasks != self._cache
        self._cache = tasks
        log.debug("Board loaded", count=len(tasks), changed=changed)
        if changed:
            self._notify()
        return changed

    async def create(self, fields: TaskFields) -> Task:
        """Create a task; without an explicit sort key it goes to the end of its column"""
        sort = fields.sort
        if sort is None:
            column = self.grouped().get(fields.status, [])
            sort = self._allocator.allocate(column[-1].parsed.sort if column else None, None)

        payload = self._payload(fields, sort)
        data = await self._store.create_fragment(payload)
        fragment = data.get("fragment", data) if isinstance(data, dict) else {}
        if not fragment.get("id"):
            raise SyncUnavailable("create: response carried no fragment id")

        task = Task.model_validate({**payload, **fragment})
        self._cache.append(task)
        log.info("Task created", task_id=task.id, status=fields.status.value)
        self._notify()
        return task

    async def update(self, task_id: str, fields: TaskFields) -> Task:
        """Write all fields of a task and patch the cached copy in place"""
        cached = self.get(task_id)
        sort = fields.sort
        if sort is None:
            sort = cached.parsed.sort if cached else 0

        payload = self._payload(fields, sort)
        await self._store.update_fragment(task_id, payload)

        # the cache may have been reloaded while we awaited
        cached = self.get(task_id)
        if cached is None:
            cached = Task.model_validate({"id": task_id, **payload})
            self._cache.append(cached)
        else:
            cached.title = payload["title"]
            cached.summary = payload["summary"]
            cached.tags = payload["tags"]
            cached.raw_content = payload["content"]

        log.info("Task updated", task_id=task_id, status=fields.status.value)
        self._notify()
        return cached

    async def move_or_reorder(self, task_id: str, new_status: TaskStatus | str, drop_index: int) -> bool:
        """
        Move a task into new_status at drop_index.

        drop_index counts positions in the target column with the moved task
        left out. Returns False (and makes no remote call) when neither the
        status nor the position changes.
        """
        new_status = TaskStatus(new_status)
        if new_status not in BOARD_STATUSES:
            raise ValueError(f"cannot move a task to {new_status.value!r}; use soft_delete")

        task = self._require(task_id)
        parsed = task.parsed

        column = self.grouped()[new_status]
        current_index = next((i for i, t in enumerate(column) if t.id == task_id), None)
        neighbours = [t for t in column if t.id != task_id]
        index = max(0, min(drop_index, len(neighbours)))

        if parsed.status == new_status and current_index == index:
            return False

        prev_key = neighbours[index - 1].parsed.sort if index > 0 else None
        next_key = neighbours[index].parsed.sort if index < len(neighbours) else None
        new_sort = self._allocator.allocate(prev_key, next_key)

        if is_collision(new_sort, prev_key, next_key):
            # integer resolution exhausted at this boundary; order among equal keys is cache order
            log.warning(
                "Sort key collision",
                task_id=task_id,
                status=new_status.value,
                prev_key=prev_key,
                next_key=next_key,
                sort=new_sort,
            )

        if parsed.status == new_status and parsed.sort == new_sort:
            return False

        # Optimistic: commit locally before the first await
        snapshot = [t.model_copy(deep=True) for t in self._cache]
        task.raw_content = encode(new_status, parsed.priority, new_sort, parsed.body)
        self._notify()

        payload = {
            "title": task.title,
            "summary": task.summary,
            "content": task.raw_content,
            "tags": list(task.tags),
        }
        try:
            await self._store.update_fragment(task_id, payload)
        except SyncUnavailable as e:
            log.warning("Move failed, reloading board", task_id=task_id, error=str(e))
            await self._reconcile(snapshot)
            raise

        log.info(
            "Task moved",
            task_id=task_id,
            from_status=parsed.status.value,
            to_status=new_status.value,
            sort=new_sort,
        )
        return True

    async def _reconcile(self, snapshot: list[Task]) -> None:
        """Drop optimistic state: reload, or fall back to the pre-mutation cache"""
        try:
            await self.load()
        except SyncUnavailable as e:
            log.error("Reconciling reload failed, restoring previous board", error=str(e))
            self._cache = snapshot
            self._notify()

    async def soft_delete(self, task_id: str, fields: TaskFields | None = None) -> Task:
        """Mark a task deleted; it stays in the store but leaves every board view"""
        fields = fields or self.fields_of(task_id)
        deleted = fields.model_copy(update={"status": TaskStatus.DELETED})
        task = await self.update(task_id, deleted)
        log.info("Task soft-deleted", task_id=task_id)
        return task

    async def purge(self, task_id: str) -> None:
        """Hard-delete the fragment and drop it from the cache"""
        await self._store.delete_fragment(task_id)
        self._cache = [t for t in self._cache if t.id != task_id]
        log.info("Task purged", task_id=task_id)
        self._notify()
