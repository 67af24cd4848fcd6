from typing import Any, Dict


def sync_status_label(snapshot: Dict[str, Any], token_present: bool) -> str:
    """One-line status for the CLI: token state plus last pull / push stamps."""
    label = "Todoist ■" if token_present else "Todoist □"
    if snapshot.get("status_reason"):
        return f"{label} ! {snapshot['status_reason']}"
    if snapshot.get("last_pull") or snapshot.get("last_push"):
        pull = snapshot.get("last_pull") or "—"
        push = snapshot.get("last_push") or "—"
        label = f"{label} pull={pull} push={push}"
    return label


__all__ = ["sync_status_label"]
