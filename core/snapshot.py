from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .project import RemoteProject
from .task import Task

FULL_SYNC_TOKEN = "*"


@dataclass
class SyncPayload:
    """Decoded response of one snapshot fetch."""

    sync_token: str
    full_sync: bool = True
    projects: List[RemoteProject] = field(default_factory=list)
    items: List[Task] = field(default_factory=list)
    deleted_project_ids: List[str] = field(default_factory=list)
    deleted_item_ids: List[str] = field(default_factory=list)
    temp_id_mapping: Dict[str, str] = field(default_factory=dict)


@dataclass
class RemoteSnapshot:
    """Last-known authoritative remote state."""

    projects: Dict[str, RemoteProject] = field(default_factory=dict)
    items: Dict[str, Task] = field(default_factory=dict)
    sync_token: str = FULL_SYNC_TOKEN
    inbox_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.sync_token == FULL_SYNC_TOKEN and not self.projects and not self.items

    def apply(self, payload: SyncPayload) -> None:
        if payload.full_sync:
            self.projects = {}
            self.items = {}
        for project in payload.projects:
            self.projects[project.id] = project
            if project.is_inbox:
                self.inbox_id = project.id
        for item in payload.items:
            self.items[item.id] = item
        for project_id in payload.deleted_project_ids:
            self.projects.pop(project_id, None)
        for item_id in payload.deleted_item_ids:
            self.items.pop(item_id, None)
        self.sync_token = payload.sync_token or self.sync_token

    def merge_completed(self, tasks: Iterable[Task]) -> None:
        """Archived completed tasks are missing from the item list; keep them visible."""
        for task in tasks:
            if task.id and task.id not in self.items:
                self.items[task.id] = task.copy(completed=True)

    def project_id_by_name(self, name: str) -> Optional[str]:
        for project in self.projects.values():
            if project.name == name:
                return project.id
        needle = name.lower()
        for project in self.projects.values():
            if needle in project.name.lower():
                return project.id
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sync_token": self.sync_token,
            "inbox_id": self.inbox_id,
            "projects": [project.to_dict() for project in self.projects.values()],
            "items": [item.to_dict() for item in self.items.values()],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RemoteSnapshot":
        data = data or {}
        snapshot = cls(
            sync_token=str(data.get("sync_token") or FULL_SYNC_TOKEN),
            inbox_id=data.get("inbox_id"),
        )
        for raw in data.get("projects") or []:
            project = RemoteProject.from_dict(raw)
            snapshot.projects[project.id] = project
        for raw in data.get("items") or []:
            item = Task.from_dict(raw)
            if item.id:
                snapshot.items[item.id] = item
        return snapshot
