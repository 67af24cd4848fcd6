"""Remote mutation commands queued during a sync pass."""

import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from .task import Task

PROJECT_ADD = "project_add"
PROJECT_UPDATE = "project_update"
PROJECT_DELETE = "project_delete"
ITEM_ADD = "item_add"
ITEM_UPDATE = "item_update"
ITEM_DELETE = "item_delete"
ITEM_COMPLETE = "item_complete"
ITEM_UNCOMPLETE = "item_uncomplete"

DEFAULT_CHUNK_SIZE = 100


def generate_uuid() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Command:
    type: str
    uuid: str
    args: Dict[str, Any] = field(default_factory=dict)
    temp_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "uuid": self.uuid, "args": dict(self.args)}
        if self.temp_id is not None:
            data["temp_id"] = self.temp_id
        return data


def item_add_args(task: Task, project_id: str) -> Dict[str, Any]:
    args: Dict[str, Any] = {
        "content": task.content,
        "priority": task.priority,
        "labels": list(task.labels),
    }
    if project_id:
        args["project_id"] = project_id
    if task.due:
        args["due"] = task.due.to_dict()
    if task.description:
        args["description"] = task.description
    return args


class CommandQueue:
    """Ordered commands of one pass; flushed in chunks, never partially applied locally."""

    def __init__(self, uuid_factory: Optional[Callable[[], str]] = None) -> None:
        self._uuid = uuid_factory or generate_uuid
        self._commands: List[Command] = []

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def clear(self) -> None:
        self._commands = []

    def chunks(self, size: int = DEFAULT_CHUNK_SIZE) -> Iterator[List[Command]]:
        if size <= 0:
            raise ValueError("chunk size must be positive")
        for start in range(0, len(self._commands), size):
            yield self._commands[start:start + size]

    def _push(self, kind: str, args: Dict[str, Any], temp_id: Optional[str] = None) -> Command:
        command = Command(type=kind, uuid=self._uuid(), args=args, temp_id=temp_id)
        self._commands.append(command)
        return command

    def project_add(self, name: str, temp_id: Optional[str] = None) -> str:
        temp_id = temp_id or self._uuid()
        self._push(PROJECT_ADD, {"name": name}, temp_id)
        return temp_id

    def project_update(self, project_id: str, name: str) -> None:
        self._push(PROJECT_UPDATE, {"id": project_id, "name": name})

    def project_delete(self, project_id: str) -> None:
        self._push(PROJECT_DELETE, {"id": project_id})

    def item_add(self, task: Task, project_id: str, temp_id: Optional[str] = None) -> str:
        temp_id = temp_id or self._uuid()
        self._push(ITEM_ADD, item_add_args(task, project_id), temp_id)
        return temp_id

    def item_update(self, task_id: str, fields: Dict[str, Any]) -> None:
        args = {"id": task_id}
        args.update(fields)
        self._push(ITEM_UPDATE, args)

    def item_delete(self, task_id: str) -> None:
        self._push(ITEM_DELETE, {"id": task_id})

    def item_complete(self, task_id: str) -> None:
        self._push(ITEM_COMPLETE, {"id": task_id})

    def item_uncomplete(self, task_id: str) -> None:
        self._push(ITEM_UNCOMPLETE, {"id": task_id})

    def of_type(self, kind: str) -> List[Command]:
        return [command for command in self._commands if command.type == kind]


@dataclass
class CommandResult:
    """Outcome of one submitted chunk: temp-id mapping and per-command errors by uuid."""

    temp_id_mapping: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, Any] = field(default_factory=dict)

    def merge(self, other: "CommandResult") -> None:
        self.temp_id_mapping.update(other.temp_id_mapping)
        self.errors.update(other.errors)
