"""
Content codec: structured task fields <-> opaque fragment content

Wire format (fixed key order, one key per line):

    ---
    status: in-progress
    priority: high
    sort: 1700000000000
    ---

    free text body

decode() is total: content without a well-formed header block is all body,
with default status / priority / sort. Nothing here raises.
"""

import re

from boardsync.board.schemas import ParsedTask, TaskPriority, TaskStatus

HEADER_MARKER = "---"

# Start marker on the first line, end marker on its own line, then at most one
# blank separator line before the body.
_HEADER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---(?:\r?\n|\Z)(?:\r?\n)?(.*)\Z", re.DOTALL)
_FIELD_RE = re.compile(r"^\s*([A-Za-z_-]+)\s*:\s*(.*?)\s*$")


def encode(status: TaskStatus | str, priority: TaskPriority | str, sort: int, body: str) -> str:
    """Serialise fields into fragment content"""
    header = "\n".join([
        HEADER_MARKER,
        f"status: {TaskStatus(status).value}",
        f"priority: {TaskPriority(priority).value}",
        f"sort: {int(sort)}",
        HEADER_MARKER,
    ])
    return f"{header}\n\n{body or ''}"


def decode(raw: str | None) -> ParsedTask:
    """Parse fragment content; malformed or missing header means defaults"""
    if not raw:
        return ParsedTask()

    m = _HEADER_RE.match(raw)
    if not m:
        return ParsedTask(body=raw)

    fields: dict[str, str] = {}
    for line in m.group(1).splitlines():
        fm = _FIELD_RE.match(line)
        if fm:
            fields.setdefault(fm.group(1).lower(), fm.group(2))

    return ParsedTask(
        status=_parse_status(fields.get("status")),
        priority=_parse_priority(fields.get("priority")),
        sort=_parse_sort(fields.get("sort")),
        body=m.group(2),
    )


def _parse_status(value: str | None) -> TaskStatus:
    try:
        return TaskStatus((value or "").strip().lower())
    except ValueError:
        return TaskStatus.TODO


def _parse_priority(value: str | None) -> TaskPriority:
    try:
        return TaskPriority((value or "").strip().lower())
    except ValueError:
        return TaskPriority.MEDIUM


def _parse_sort(value: str | None) -> int:
    try:
        return int((value or "").strip())
    except ValueError:
        return 0
