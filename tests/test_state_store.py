import yaml

from core import RemoteProject, RemoteSnapshot, SyncState, Task
from infrastructure.state_store import YamlStateStore


def test_missing_file_loads_empty_state(tmp_path):
    state, snapshot = YamlStateStore(tmp_path / "state.yaml").load()

    assert state == SyncState()
    assert snapshot.is_empty


def test_round_trip(tmp_path):
    path = tmp_path / ".todomd" / "state.yaml"
    store = YamlStateStore(path)
    state = SyncState(
        registered_files={"notes/today.md": {"10", "11"}},
        completed_tasks={"10": Task("Milk", id="10", priority=1, completed=True)},
        priority_map={"10": 1, "11": 4},
        editor_fingerprint={"relative_dates": True},
        previous_projects={"100": ["10", "11"]},
        file_mtimes={"todos/Groceries - 100.md": 1715760000.5},
        last_pull="2024-05-15T10:00:00+00:00",
    )
    snapshot = RemoteSnapshot(sync_token="tok-9", inbox_id="1")
    snapshot.projects["1"] = RemoteProject("1", "Inbox", is_inbox=True)
    snapshot.items["11"] = Task("Eggs", id="11", priority=4, labels=["dairy"], project_id="100")

    store.save(state, snapshot)
    loaded_state, loaded_snapshot = store.load()

    assert loaded_state == state
    assert loaded_snapshot == snapshot
    assert yaml.safe_load(path.read_text(encoding="utf-8"))["version"] == 1
    assert not path.with_suffix(".yaml.tmp").exists()


def test_malformed_file_loads_empty_state(tmp_path):
    path = tmp_path / "state.yaml"
    for text in (":::: [", "- just\n- a list\n"):
        path.write_text(text, encoding="utf-8")
        state, snapshot = YamlStateStore(path).load()
        assert state == SyncState()
        assert snapshot.is_empty
