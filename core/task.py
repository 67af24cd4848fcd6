from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


# Remote priority scale: 1 is the default (lowest urgency), 4 is the most urgent.
# The user-facing token "(pN)" maps to 5 - N.
PRIORITY_DEFAULT = 1
PRIORITY_MIN = 1
PRIORITY_MAX = 4


def priority_from_token(digit: int) -> int:
    return 5 - digit


def priority_to_token(priority: int) -> int:
    return 5 - priority


@dataclass
class DueDate:
    date: str
    string: str = ""
    is_recurring: bool = False
    timezone: Optional[str] = None
    lang: str = "en"

    @property
    def day(self) -> str:
        """Calendar day (YYYY-MM-DD) regardless of an attached time component."""
        return (self.date or "")[:10]

    def same_day(self, other: Optional["DueDate"]) -> bool:
        return other is not None and self.day == other.day

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "string": self.string,
            "is_recurring": self.is_recurring,
            "timezone": self.timezone,
            "lang": self.lang,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["DueDate"]:
        if not data or not data.get("date"):
            return None
        return cls(
            date=str(data["date"]),
            string=str(data.get("string") or ""),
            is_recurring=bool(data.get("is_recurring", False)),
            timezone=data.get("timezone"),
            lang=str(data.get("lang") or "en"),
        )


@dataclass
class Task:
    content: str
    id: Optional[str] = None
    completed: bool = False
    due: Optional[DueDate] = None
    priority: Optional[int] = None
    labels: List[str] = field(default_factory=list)
    description: str = ""
    project_id: str = ""
    mtime: float = 0.0  # modification time of the containing document when observed

    def copy(self, **changes: Any) -> "Task":
        labels = list(changes.pop("labels", self.labels))
        return replace(self, labels=labels, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "completed": self.completed,
            "due": self.due.to_dict() if self.due else None,
            "priority": self.priority,
            "labels": list(self.labels),
            "description": self.description,
            "project_id": self.project_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        priority = data.get("priority")
        return cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            content=str(data.get("content") or ""),
            completed=bool(data.get("completed", False)),
            due=DueDate.from_dict(data.get("due")),
            priority=int(priority) if priority is not None else None,
            labels=[str(label) for label in (data.get("labels") or [])],
            description=str(data.get("description") or ""),
            project_id=str(data.get("project_id") or ""),
        )


def labels_equal(a: List[str], b: List[str]) -> bool:
    """Multiset equality: order is irrelevant, duplicates are not."""
    return Counter(a) == Counter(b)


def due_changed(before: Optional[DueDate], after: Optional[DueDate]) -> bool:
    if before is None and after is None:
        return False
    if before is None or after is None:
        return True
    return not before.same_day(after)


def updated_fields(synced: Task, local: Task) -> Dict[str, Any]:
    """Field-level update turning ``synced`` into ``local``.

    Returns only the changed fields (remote wire names); empty dict when the
    two agree. Due dates are compared by calendar day, labels as a multiset.
    """
    update: Dict[str, Any] = {}
    if synced.content != local.content:
        update["content"] = local.content
    if due_changed(synced.due, local.due):
        update["due"] = local.due.to_dict() if local.due else None
    if synced.priority != local.priority:
        update["priority"] = local.priority
    if not labels_equal(synced.labels, local.labels):
        update["labels"] = list(local.labels)
    if (synced.description or "") != (local.description or ""):
        update["description"] = local.description
    return update


def apply_update(task: Task, update: Dict[str, Any]) -> Task:
    """Return a copy of ``task`` with a wire-format update folded in."""
    changes: Dict[str, Any] = {}
    for key, value in update.items():
        if key == "due":
            changes["due"] = DueDate.from_dict(value) if isinstance(value, dict) else None
        elif key in ("content", "priority", "labels", "description", "completed"):
            changes[key] = value
    return task.copy(**changes)
