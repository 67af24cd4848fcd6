from .task import (
    DueDate,
    Task,
    PRIORITY_DEFAULT,
    PRIORITY_MIN,
    PRIORITY_MAX,
    priority_from_token,
    priority_to_token,
    labels_equal,
    updated_fields,
    apply_update,
)
from .project import OpaqueText, TaskRecord, BodyFragment, Project, RemoteProject
from .command import (
    Command,
    CommandResult,
    CommandQueue,
    generate_uuid,
    PROJECT_ADD,
    PROJECT_UPDATE,
    PROJECT_DELETE,
    ITEM_ADD,
    ITEM_UPDATE,
    ITEM_DELETE,
    ITEM_COMPLETE,
    ITEM_UNCOMPLETE,
    DEFAULT_CHUNK_SIZE,
)
from .snapshot import RemoteSnapshot, SyncPayload, FULL_SYNC_TOKEN
from .settings import EditorSettings, SortPolicy, DEFAULT_PRIORITY_COLOR, DEFAULT_DUE_COLOR
from .sync_state import SyncState

__all__ = [
    "DueDate",
    "Task",
    "PRIORITY_DEFAULT",
    "PRIORITY_MIN",
    "PRIORITY_MAX",
    "priority_from_token",
    "priority_to_token",
    "labels_equal",
    "updated_fields",
    "apply_update",
    # Documents
    "OpaqueText",
    "TaskRecord",
    "BodyFragment",
    "Project",
    "RemoteProject",
    # Commands
    "Command",
    "CommandResult",
    "CommandQueue",
    "generate_uuid",
    "PROJECT_ADD",
    "PROJECT_UPDATE",
    "PROJECT_DELETE",
    "ITEM_ADD",
    "ITEM_UPDATE",
    "ITEM_DELETE",
    "ITEM_COMPLETE",
    "ITEM_UNCOMPLETE",
    "DEFAULT_CHUNK_SIZE",
    # State
    "RemoteSnapshot",
    "SyncPayload",
    "FULL_SYNC_TOKEN",
    "EditorSettings",
    "SortPolicy",
    "DEFAULT_PRIORITY_COLOR",
    "DEFAULT_DUE_COLOR",
    "SyncState",
]
