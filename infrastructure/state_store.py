from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from application.ports import StateStore
from core import RemoteSnapshot, SyncState

STATE_VERSION = 1


class YamlStateStore(StateStore):
    """Ledger, caches and snapshot in one YAML file owned by the host."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError):
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> Tuple[SyncState, RemoteSnapshot]:
        data = self._read()
        return SyncState.from_dict(data.get("state")), RemoteSnapshot.from_dict(data.get("snapshot"))

    def save(self, state: SyncState, snapshot: RemoteSnapshot) -> None:
        payload = {
            "version": STATE_VERSION,
            "state": state.to_dict(),
            "snapshot": snapshot.to_dict(),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(yaml.safe_dump(payload, allow_unicode=True, sort_keys=False), encoding="utf-8")
        tmp.replace(self.path)
