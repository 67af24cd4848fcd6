from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .task import Task


@dataclass(frozen=True)
class OpaqueText:
    """Document text that is not a task; written back byte-for-byte."""

    text: str


@dataclass
class TaskRecord:
    task: Task


BodyFragment = Union[OpaqueText, TaskRecord]


@dataclass
class Project:
    name: str
    id: Optional[str] = None
    file_path: str = ""
    body: List[BodyFragment] = field(default_factory=list)
    has_updates: bool = False
    needs_rename: bool = False
    registered: bool = False  # inline blocks inside an arbitrary note, not a project document

    def tasks(self) -> List[Task]:
        return [fragment.task for fragment in self.body if isinstance(fragment, TaskRecord)]


@dataclass
class RemoteProject:
    id: str
    name: str
    is_inbox: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "is_inbox": self.is_inbox}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RemoteProject":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            is_inbox=bool(data.get("is_inbox", data.get("inbox_project", False))),
        )
