"""Split a document into opaque text runs and task records."""

from datetime import date
from typing import Callable, List, Optional

from core import BodyFragment, OpaqueText, Task, TaskRecord

from .task_line_parser import parse_line

DESCRIPTION_INDENT = "    "
FENCE = "`"


def is_indented(line: str) -> bool:
    return line.startswith("\t") or line.startswith(DESCRIPTION_INDENT)


def unfence(line: str) -> str:
    text = line.strip()
    if len(text) >= 2 and text.startswith(FENCE) and text.endswith(FENCE):
        text = text[1:-1]
    return text.strip()


def segment(
    text: str,
    project_id: str = "",
    mtime: float = 0.0,
    accept: Optional[Callable[[Task], bool]] = None,
    today: Optional[date] = None,
) -> List[BodyFragment]:
    """Partition ``text`` into an ordered body.

    Consecutive non-task lines (newlines included) become one OpaqueText.
    Indented, non-blank lines right after a task line are that task's
    description. ``accept`` narrows which task lines are tracked; a rejected
    task line is kept as opaque text.
    """
    body: List[BodyFragment] = []
    opaque: List[str] = []
    current: Optional[Task] = None
    description: List[str] = []

    def close_task() -> None:
        nonlocal current, description
        if current is not None and description:
            current.description = "\n".join(description)
        current = None
        description = []

    for raw in text.splitlines(keepends=True):
        line = raw.rstrip("\r\n")
        task = parse_line(line, project_id=project_id, mtime=mtime, today=today)
        if task is not None and (accept is None or accept(task)):
            close_task()
            if opaque:
                body.append(OpaqueText("".join(opaque)))
                opaque = []
            body.append(TaskRecord(task))
            current = task
            continue
        if current is not None and task is None and line.strip() and is_indented(line):
            description.append(unfence(line))
            continue
        close_task()
        opaque.append(raw)

    close_task()
    if opaque:
        body.append(OpaqueText("".join(opaque)))
    return body
