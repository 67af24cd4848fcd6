from __future__ import annotations

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from core import EditorSettings

DEFAULT_CONFIG_PATH = Path.home() / ".todomd_config.yaml"
DEFAULT_DIRECTORY = "todos"
STATE_DIRNAME = ".todomd"
TOKEN_ENV = "TODOIST_API_TOKEN"
CONFIG_ENV = "TODOMD_CONFIG"


def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV, "").strip()
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def _load_config() -> Dict[str, Any]:
    path = config_path()
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def _save_config(data: Dict[str, Any]) -> None:
    path = config_path()
    if not data:
        if path.exists():
            path.unlink()
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")


def _set_value(key: str, value: str) -> None:
    data = _load_config()
    value = (value or "").strip()
    if value:
        data[key] = value
    else:
        data.pop(key, None)
    _save_config(data)


def get_user_token() -> str:
    env = os.environ.get(TOKEN_ENV, "").strip()
    if env:
        return env
    return str(_load_config().get("token", "") or "").strip()


def set_user_token(value: str) -> None:
    _set_value("token", value)


def get_vault(override: Optional[str] = None) -> Path:
    raw = override or _load_config().get("vault") or os.getcwd()
    return Path(str(raw)).expanduser()


def get_directory() -> str:
    return str(_load_config().get("directory") or DEFAULT_DIRECTORY).strip("/")


def get_state_path(vault: Path) -> Path:
    raw = _load_config().get("state_path")
    if raw:
        return Path(str(raw)).expanduser()
    return vault / STATE_DIRNAME / "state.yaml"


def get_editor_settings() -> EditorSettings:
    editor = _load_config().get("editor") or {}
    if not isinstance(editor, dict):
        return EditorSettings()
    return EditorSettings.from_dict(editor)
