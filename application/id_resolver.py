from typing import Dict, Optional

from core import RemoteSnapshot, Task


def is_permanent_id(value: Optional[str]) -> bool:
    """Remote ids are numeric; temporary ids are uuids."""
    return bool(value) and value.isdigit()  # type: ignore[union-attr]


class IdResolver:
    """Single place where temporary ids become permanent ones.

    Both the reconciler and the serializer go through ``resolve`` before
    comparing or rendering ids, and through ``synced`` to find the remote
    copy of a task.
    """

    def __init__(self, snapshot: RemoteSnapshot, completed: Optional[Dict[str, Task]] = None) -> None:
        self.snapshot = snapshot
        self.completed = completed if completed is not None else {}
        self.temp_ids: Dict[str, str] = {}
        # local values shown instead of the remote ones for this pass only
        self.overlay: Dict[str, Task] = {}

    def record(self, mapping: Dict[str, str]) -> None:
        self.temp_ids.update({str(k): str(v) for k, v in (mapping or {}).items()})

    def resolve(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return self.temp_ids.get(value, value)

    def synced(self, task_id: Optional[str]) -> Optional[Task]:
        resolved = self.resolve(task_id)
        if resolved is None:
            return None
        item = self.snapshot.items.get(resolved)
        if item is not None:
            return item
        return self.completed.get(resolved)

    def rendered(self, task_id: Optional[str]) -> Optional[Task]:
        resolved = self.resolve(task_id)
        if resolved is not None and resolved in self.overlay:
            return self.overlay[resolved]
        return self.synced(resolved)

    def project_name(self, project_id: Optional[str]) -> Optional[str]:
        resolved = self.resolve(project_id)
        project = self.snapshot.projects.get(resolved) if resolved else None
        return project.name if project else None
