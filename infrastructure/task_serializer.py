"""Render a document body back to text."""

from datetime import date
from itertools import groupby
from typing import Any, Callable, Dict, List, Optional, Tuple

from core import (
    PRIORITY_DEFAULT,
    BodyFragment,
    EditorSettings,
    OpaqueText,
    SortPolicy,
    Task,
    TaskRecord,
    priority_to_token,
)
from core.due_dates import date_bucket, parse_day, relative_label
from application.id_resolver import IdResolver, is_permanent_id

from .document_segmenter import FENCE

SortKey = Tuple[Any, ...]


def color_span(text: str, color: str) -> str:
    return f'<span style="color: {color}">{text}</span>'


def _priority(task: Task) -> int:
    return task.priority if task.priority is not None else PRIORITY_DEFAULT


def _due_ordinal(task: Task) -> Optional[int]:
    day = parse_day(task.due.date) if task.due else None
    return day.toordinal() if day else None


def _priority_key(task: Task) -> SortKey:
    return (task.completed, -_priority(task))


def _due_key(descending: bool) -> Callable[[Task], SortKey]:
    def key(task: Task) -> SortKey:
        ordinal = _due_ordinal(task)
        if ordinal is None:
            return (1, 0, len(task.content), -_priority(task))
        return (0, -ordinal if descending else ordinal, len(task.content), -_priority(task))

    return key


SORT_KEYS: Dict[SortPolicy, Callable[[Task], SortKey]] = {
    SortPolicy.PRIORITY: _priority_key,
    SortPolicy.DUE_ASC: _due_key(False),
    SortPolicy.DUE_DESC: _due_key(True),
}


def _runs(body: List[BodyFragment]):
    """Yield (is_task_run, fragments) for maximal runs of the same kind."""
    for is_task, run in groupby(body, key=lambda fragment: isinstance(fragment, TaskRecord)):
        yield is_task, list(run)


def sort_body(body: List[BodyFragment], policy: SortPolicy) -> List[BodyFragment]:
    """Stable sort inside each contiguous task run; opaque text never moves."""
    key = SORT_KEYS.get(policy)
    if key is None:
        return list(body)
    result: List[BodyFragment] = []
    for is_task, run in _runs(body):
        if is_task:
            run = sorted(run, key=lambda fragment: key(fragment.task))  # type: ignore[union-attr]
        result.extend(run)
    return result


def needs_reorder(body: List[BodyFragment], policy: SortPolicy) -> bool:
    key = SORT_KEYS.get(policy)
    if key is None:
        return False
    for is_task, run in _runs(body):
        if not is_task:
            continue
        keys = [key(fragment.task) for fragment in run]  # type: ignore[union-attr]
        if any(later < earlier for earlier, later in zip(keys, keys[1:])):
            return True
    return False


class BodySerializer:
    def __init__(self, settings: EditorSettings, resolver: IdResolver, today: Optional[date] = None) -> None:
        self.settings = settings
        self.resolver = resolver
        self.today = today

    def resolve(self, task: Task) -> Task:
        """Permanent id and, when synced, the snapshot's field values."""
        task_id = self.resolver.resolve(task.id)
        shown = self.resolver.rendered(task_id)
        base = shown if shown is not None else task
        return base.copy(id=task_id, mtime=task.mtime)

    def render_due(self, task: Task) -> str:
        day = parse_day(task.due.date) if task.due else None
        if day is None:
            return ""
        label = relative_label(day, self.today) if self.settings.relative_dates else day.isoformat()
        token = f"(@{label})"
        if self.settings.show_due_color:
            color = self.settings.due_color.get(date_bucket(day, self.today))
            if color:
                token = color_span(token, color)
        return token

    def render_task(self, task: Task) -> str:
        priority = _priority(task)
        content = task.content
        if self.settings.show_task_color:
            color = self.settings.priority_color.get(priority_to_token(priority))
            if color:
                content = color_span(content, color)
        parts = [f"- [{'x' if task.completed else ' '}] {content}"]
        if priority != PRIORITY_DEFAULT:
            parts.append(f"(p{priority_to_token(priority)})")
        due = self.render_due(task)
        if due:
            parts.append(due)
        parts.extend(f"#{label}" for label in task.labels)
        if is_permanent_id(task.id):
            parts.append(f"<!--{task.id}-->")
        lines = [" ".join(parts)]
        if self.settings.show_description and task.description:
            lines.extend(f"\t{FENCE}{line}{FENCE}" for line in task.description.split("\n"))
        return "".join(line + "\n" for line in lines)

    def render(self, body: List[BodyFragment], policy: Optional[SortPolicy] = None) -> str:
        chunks: List[str] = []
        for fragment in sort_body(self.resolved(body), policy or self.settings.sort):
            if isinstance(fragment, OpaqueText):
                chunks.append(fragment.text)
            else:
                chunks.append(self.render_task(fragment.task))
        return "".join(chunks).rstrip()

    def resolved(self, body: List[BodyFragment]) -> List[BodyFragment]:
        return [
            TaskRecord(self.resolve(fragment.task)) if isinstance(fragment, TaskRecord) else fragment
            for fragment in body
        ]
