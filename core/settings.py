from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class SortPolicy(Enum):
    NONE = "none"
    PRIORITY = "priority"
    DUE_ASC = "due_asc"
    DUE_DESC = "due_desc"

    @classmethod
    def from_string(cls, value: str) -> "SortPolicy":
        token = (value or "").strip().lower().replace("-", "_")
        for policy in cls:
            if policy.value == token:
                return policy
        raise ValueError(f"Invalid sort policy: {value!r}")


# Keyed by the user-facing pN digit (1 = most urgent).
DEFAULT_PRIORITY_COLOR: Dict[int, str] = {
    1: "#9b6feb",
    2: "#fad000",
    3: "#14aaf5",
    4: "#ffffff",
}

DEFAULT_DUE_COLOR: Dict[str, str] = {
    "past": "#f7b0ab",
    "today": "#6ffc97",
    "tomorrow": "#74e8f7",
    "within_week": "#a68eed",
    "future": "#bdffcc",
}


@dataclass
class EditorSettings:
    show_task_color: bool = True
    show_due_color: bool = True
    show_description: bool = True
    relative_dates: bool = True
    sort: SortPolicy = SortPolicy.NONE
    priority_color: Dict[int, str] = field(default_factory=lambda: dict(DEFAULT_PRIORITY_COLOR))
    due_color: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DUE_COLOR))

    def fingerprint(self) -> Dict[str, Any]:
        """Everything that changes rendered output; compared across passes."""
        return {
            "show_task_color": self.show_task_color,
            "show_due_color": self.show_due_color,
            "show_description": self.show_description,
            "relative_dates": self.relative_dates,
            "sort": self.sort.value,
            "priority_color": {int(k): v for k, v in self.priority_color.items()},
            "due_color": dict(self.due_color),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorSettings":
        settings = cls()
        for key in ("show_task_color", "show_due_color", "show_description", "relative_dates"):
            if key in data:
                setattr(settings, key, bool(data[key]))
        if data.get("sort"):
            settings.sort = SortPolicy.from_string(str(data["sort"]))
        for key, value in (data.get("priority_color") or {}).items():
            settings.priority_color[int(key)] = str(value)
        for key, value in (data.get("due_color") or {}).items():
            settings.due_color[str(key)] = str(value)
        return settings
