from typing import Iterable, List, Optional, Protocol, Tuple

from core import Command, CommandResult, RemoteSnapshot, SyncPayload, SyncState, Task


class RemoteClient(Protocol):
    def health_check(self, token: Optional[str] = None) -> bool:
        ...

    def fetch_snapshot(self, sync_token: str = "*") -> SyncPayload:
        ...

    def fetch_completed(self) -> List[Task]:
        ...

    def submit_commands(self, commands: Iterable[Command]) -> CommandResult:
        ...

    def query_by_filter(self, expression: str) -> List[Task]:
        ...


class DocumentStore(Protocol):
    def read(self, path: str) -> str:
        ...

    def write(self, path: str, text: str) -> None:
        ...

    def rename(self, old: str, new: str) -> None:
        ...

    def delete(self, path: str) -> bool:
        ...

    def list(self, directory: str, ext: str = ".md") -> List[str]:
        ...

    def stat(self, path: str) -> float:
        ...

    def exists(self, path: str) -> bool:
        ...


class StateStore(Protocol):
    def load(self) -> Tuple[SyncState, RemoteSnapshot]:
        ...

    def save(self, state: SyncState, snapshot: RemoteSnapshot) -> None:
        ...


class Notifier(Protocol):
    def __call__(self, message: str) -> None:
        ...
