from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from core import CommandQueue, EditorSettings, RemoteSnapshot, SyncState

from .id_resolver import IdResolver
from .ports import DocumentStore


@dataclass
class SyncContext:
    """Mutable state owned by exactly one in-flight pass.

    Persisted pieces (``snapshot``, ``state``) are saved explicitly at the end
    of a successful pass; ``commands`` and ``warnings`` die with the pass.
    """

    snapshot: RemoteSnapshot
    state: SyncState
    settings: EditorSettings
    store: DocumentStore
    directory: str = "todos"
    today: Optional[date] = None
    commands: CommandQueue = field(default_factory=CommandQueue)
    warnings: List[str] = field(default_factory=list)
    resolver: IdResolver = field(init=False)

    def __post_init__(self) -> None:
        self.resolver = IdResolver(self.snapshot, self.state.completed_tasks)

    @property
    def settings_changed(self) -> bool:
        return self.state.editor_fingerprint != self.settings.fingerprint()

    def warn(self, message: str) -> None:
        self.warnings.append(message)
