"""Decode Todoist Sync v9 / REST v2 JSON into core values.

Malformed shapes raise ``TodoistPayloadError``; a pass never accepts part
of a response.
"""

from typing import Any, Dict, List

from core import CommandResult, DueDate, RemoteProject, SyncPayload, Task

from .errors import TodoistPayloadError


def _require_dict(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise TodoistPayloadError(f"Malformed {what}: expected object, got {type(raw).__name__}")
    return raw


def _require_list(raw: Any, what: str) -> List[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise TodoistPayloadError(f"Malformed {what}: expected list, got {type(raw).__name__}")
    return raw


def decode_due(raw: Any) -> Any:
    if raw is None:
        return None
    due = DueDate.from_dict(_require_dict(raw, "due"))
    if due is None:
        raise TodoistPayloadError("Malformed due: missing date")
    return due


def decode_item(raw: Any, completed: bool = False) -> Task:
    data = _require_dict(raw, "item")
    if data.get("id") in (None, ""):
        raise TodoistPayloadError("Malformed item: missing id")
    try:
        priority = int(data.get("priority") or 1)
    except (TypeError, ValueError) as exc:
        raise TodoistPayloadError(f"Malformed item priority: {data.get('priority')!r}") from exc
    done = completed or bool(data.get("checked") or data.get("is_completed") or data.get("completed_at"))
    return Task(
        id=str(data["id"]),
        content=str(data.get("content") or ""),
        completed=done,
        due=decode_due(data.get("due")),
        priority=priority,
        labels=[str(label) for label in _require_list(data.get("labels"), "item labels")],
        description=str(data.get("description") or ""),
        project_id=str(data.get("project_id") or ""),
    )


def decode_project(raw: Any) -> RemoteProject:
    data = _require_dict(raw, "project")
    if data.get("id") in (None, ""):
        raise TodoistPayloadError("Malformed project: missing id")
    return RemoteProject.from_dict(data)


def decode_sync(raw: Any) -> SyncPayload:
    data = _require_dict(raw, "sync response")
    token = data.get("sync_token")
    if not isinstance(token, str) or not token:
        raise TodoistPayloadError("Malformed sync response: missing sync_token")
    payload = SyncPayload(
        sync_token=token,
        full_sync=bool(data.get("full_sync", False)),
        temp_id_mapping={str(k): str(v) for k, v in (data.get("temp_id_mapping") or {}).items()},
    )
    for raw_project in _require_list(data.get("projects"), "projects"):
        project = decode_project(raw_project)
        if raw_project.get("is_deleted") or raw_project.get("is_archived"):
            payload.deleted_project_ids.append(project.id)
        else:
            payload.projects.append(project)
    for raw_item in _require_list(data.get("items"), "items"):
        item = decode_item(raw_item)
        if raw_item.get("is_deleted"):
            payload.deleted_item_ids.append(item.id)  # type: ignore[arg-type]
        else:
            payload.items.append(item)
    return payload


def decode_completed(raw: Any) -> List[Task]:
    data = _require_dict(raw, "completed response")
    tasks: List[Task] = []
    for entry in _require_list(data.get("items"), "completed items"):
        entry = _require_dict(entry, "completed item")
        item_object = entry.get("item_object")
        if item_object is None:
            item_object = dict(entry, id=entry.get("task_id") or entry.get("id"))
        tasks.append(decode_item(item_object, completed=True))
    return tasks


def decode_tasks(raw: Any) -> List[Task]:
    return [decode_item(item) for item in _require_list(raw, "tasks")]


def decode_command_result(raw: Any) -> CommandResult:
    data = _require_dict(raw, "command response")
    status = data.get("sync_status") or {}
    if not isinstance(status, dict):
        raise TodoistPayloadError("Malformed command response: sync_status")
    return CommandResult(
        temp_id_mapping={str(k): str(v) for k, v in (data.get("temp_id_mapping") or {}).items()},
        errors={str(uuid): result for uuid, result in status.items() if result != "ok"},
    )
