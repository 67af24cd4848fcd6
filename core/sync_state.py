from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .task import Task


@dataclass
class SyncState:
    """Local bookkeeping persisted between passes.

    Attributes:
        registered_files: note path -> ids of tasks rendered into that note by a capture block
        completed_tasks: id -> task completed locally or archived remotely
        priority_map: id -> last rendered priority (recovers an omitted default)
        editor_fingerprint: rendering settings in effect at the end of the last pass
        previous_projects: project id -> task ids written at the last pass
        file_mtimes: document path -> modification time recorded after our last write
    """

    registered_files: Dict[str, Set[str]] = field(default_factory=dict)
    completed_tasks: Dict[str, Task] = field(default_factory=dict)
    priority_map: Dict[str, int] = field(default_factory=dict)
    editor_fingerprint: Optional[Dict[str, Any]] = None
    previous_projects: Dict[str, List[str]] = field(default_factory=dict)
    file_mtimes: Dict[str, float] = field(default_factory=dict)
    last_pull: Optional[str] = None
    last_push: Optional[str] = None

    def register_file(self, path: str, task_ids: Set[str]) -> None:
        self.registered_files.setdefault(path, set()).update(task_ids)

    def forget_task(self, task_id: str) -> None:
        self.completed_tasks.pop(task_id, None)
        self.priority_map.pop(task_id, None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registered_files": {path: sorted(ids) for path, ids in self.registered_files.items()},
            "completed_tasks": {tid: task.to_dict() for tid, task in self.completed_tasks.items()},
            "priority_map": dict(self.priority_map),
            "editor_fingerprint": self.editor_fingerprint,
            "previous_projects": {pid: list(ids) for pid, ids in self.previous_projects.items()},
            "file_mtimes": dict(self.file_mtimes),
            "last_pull": self.last_pull,
            "last_push": self.last_push,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SyncState":
        data = data or {}
        return cls(
            registered_files={
                str(path): {str(tid) for tid in (ids or [])}
                for path, ids in (data.get("registered_files") or {}).items()
            },
            completed_tasks={
                str(tid): Task.from_dict(raw) for tid, raw in (data.get("completed_tasks") or {}).items()
            },
            priority_map={str(tid): int(p) for tid, p in (data.get("priority_map") or {}).items()},
            editor_fingerprint=data.get("editor_fingerprint"),
            previous_projects={
                str(pid): [str(tid) for tid in (ids or [])]
                for pid, ids in (data.get("previous_projects") or {}).items()
            },
            file_mtimes={str(path): float(m) for path, m in (data.get("file_mtimes") or {}).items()},
            last_pull=data.get("last_pull"),
            last_push=data.get("last_push"),
        )
