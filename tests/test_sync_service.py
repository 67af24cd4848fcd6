from datetime import date

import pytest

from application.sync_service import SyncService
from core import ITEM_ADD, ITEM_COMPLETE, ITEM_UPDATE, PROJECT_ADD, EditorSettings, RemoteProject, Task
from infrastructure.state_store import YamlStateStore
from infrastructure.vault_store import FileDocumentStore

from fakes import FakeRemote, counter_uuid

TODAY = date(2024, 5, 15)
GROCERIES = "todos/Groceries - 100.md"
INBOX = "todos/Inbox - 1.md"


def default_remote(**kwargs):
    return FakeRemote(
        projects=[RemoteProject("1", "Inbox", is_inbox=True), RemoteProject("100", "Groceries")],
        items=[Task("Milk", id="10", priority=1, labels=["dairy"], project_id="100")],
        **kwargs,
    )


class Harness:
    def __init__(self, tmp_path, remote, **kwargs):
        self.remote = remote
        self.store = FileDocumentStore(tmp_path / "vault")
        self.state_store = YamlStateStore(tmp_path / "state.yaml")
        self.messages = []
        self.service = SyncService(
            remote,
            self.store,
            self.state_store,
            settings=EditorSettings(show_task_color=False, show_due_color=False, relative_dates=False),
            directory="todos",
            notifier=self.messages.append,
            today=TODAY,
            uuid_factory=counter_uuid(),
            **kwargs,
        )

    def state(self):
        return self.state_store.load()[0]


@pytest.fixture
def harness(tmp_path):
    return Harness(tmp_path, default_remote())


def test_pull_writes_one_document_per_project(harness):
    result = harness.service.pull()

    assert result.success, result.message
    assert harness.store.list("todos") == [GROCERIES, INBOX]
    assert harness.store.read(GROCERIES) == "- [ ] Milk #dairy <!--10-->"
    assert harness.store.read(INBOX) == ""
    state = harness.state()
    assert state.previous_projects == {"1": [], "100": ["10"]}
    assert state.last_pull
    assert state.file_mtimes == {}


def test_push_creates_new_task_and_writes_its_id(harness):
    harness.service.pull()
    harness.store.write(GROCERIES, "- [ ] Milk #dairy <!--10-->\n- [ ] Eggs (p1)\n")

    result = harness.service.push()

    assert result.success, result.message
    (add,) = harness.remote.commands(ITEM_ADD)
    assert add.args["project_id"] == "100"
    assert add.args["priority"] == 4
    assert harness.remote.items["1000"].content == "Eggs"
    assert harness.store.read(GROCERIES) == "- [ ] Milk #dairy <!--10-->\n- [ ] Eggs (p1) <!--1000-->"
    state = harness.state()
    assert state.previous_projects["100"] == ["10", "1000"]
    assert GROCERIES in state.file_mtimes
    assert state.last_push


def test_push_of_new_document_creates_project_and_renames_file(harness):
    harness.service.pull()
    harness.store.write("todos/Errands.md", "- [ ] Post letter\n")

    harness.service.push()

    assert [command.type for command in harness.remote.submitted[0]] == [PROJECT_ADD, ITEM_ADD]
    assert not harness.store.exists("todos/Errands.md")
    assert harness.store.read("todos/Errands - 1000.md") == "- [ ] Post letter <!--1001-->"


def test_removing_priority_token_resets_priority(tmp_path):
    remote = default_remote()
    remote.items["10"] = remote.items["10"].copy(priority=3)
    harness = Harness(tmp_path, remote)
    harness.service.pull()
    assert harness.store.read(GROCERIES) == "- [ ] Milk (p2) #dairy <!--10-->"
    harness.store.write(GROCERIES, "- [ ] Milk #dairy <!--10-->\n")

    result = harness.service.push()

    assert result.success, result.message
    assert [command.args for command in harness.remote.commands(ITEM_UPDATE)] == [{"id": "10", "priority": 1}]
    assert harness.remote.items["10"].priority == 1


def test_undecodable_document_fails_the_pass(harness):
    harness.service.pull()
    (harness.store.root / "todos" / "Broken - 100.md").write_bytes(b"- [ ] caf\xe9\n")

    result = harness.service.push()

    assert not result.success
    assert "not valid UTF-8" in result.message
    assert harness.remote.submitted == []
    assert harness.messages[-1] == result.message


def test_push_sends_completion(harness):
    harness.service.pull()
    harness.store.write(GROCERIES, "- [x] Milk #dairy <!--10-->\n")

    harness.service.push()

    assert [command.args for command in harness.remote.commands(ITEM_COMPLETE)] == [{"id": "10"}]
    assert "10" in harness.remote.archived
    assert harness.store.read(GROCERIES) == "- [x] Milk #dairy <!--10-->"
    assert "10" in harness.state().completed_tasks


def test_second_push_without_edits_sends_nothing(harness):
    harness.service.pull()
    harness.service.push()
    before = harness.remote.snapshot_calls

    result = harness.service.push()

    assert result.payload["commands"] == 0
    assert harness.remote.submitted == []
    assert harness.remote.snapshot_calls == before + 1


def test_commands_are_sent_in_chunks(harness):
    harness.service.pull()
    lines = "- [ ] Milk #dairy <!--10-->\n" + "".join(f"- [ ] Task {index}\n" for index in range(250))
    harness.store.write(GROCERIES, lines)

    result = harness.service.push()

    assert result.payload["commands"] == 250
    assert [len(chunk) for chunk in harness.remote.submitted] == [100, 100, 50]


def test_failed_chunk_aborts_pass_without_saving(harness):
    harness.service.pull()
    lines = "- [ ] Milk #dairy <!--10-->\n" + "".join(f"- [ ] Task {index}\n" for index in range(250))
    harness.store.write(GROCERIES, lines)
    harness.remote.fail_on_chunk = 1

    result = harness.service.push()

    assert not result.success
    assert "boom" in result.message
    assert len(harness.remote.submitted) == 1
    assert harness.state().last_push is None
    assert harness.store.read(GROCERIES) == lines
    assert harness.messages[-1] == result.message


def test_invalid_token_stops_before_any_request(tmp_path):
    harness = Harness(tmp_path, default_remote(healthy=False))

    result = harness.service.pull()

    assert not result.success
    assert result.auth_failed
    assert harness.remote.snapshot_calls == 0
    assert harness.messages == [result.message]


def test_only_one_pass_runs_at_a_time(tmp_path):
    class ReentrantRemote(FakeRemote):
        nested = None

        def fetch_snapshot(self, sync_token="*"):
            if self.nested is None:
                self.nested = self.service.push()
            return super().fetch_snapshot(sync_token)

    remote = ReentrantRemote(projects=[RemoteProject("100", "Groceries")])
    harness = Harness(tmp_path, remote)
    remote.service = harness.service

    result = harness.service.pull()

    assert result.success
    assert not remote.nested.success
    assert remote.nested.message == "sync already in progress"


def test_soft_pull_keeps_unsent_edit_for_next_push(harness):
    harness.service.pull()
    harness.store.write(GROCERIES, "- [ ] Oat milk #dairy <!--10-->\n")

    harness.service.soft_pull()
    assert harness.store.read(GROCERIES) == "- [ ] Oat milk #dairy <!--10-->"
    assert harness.state().file_mtimes == {}

    harness.service.push()
    (update,) = harness.remote.commands(ITEM_UPDATE)
    assert update.args == {"id": "10", "content": "Oat milk"}
    assert harness.remote.items["10"].content == "Oat milk"


def test_forced_pull_drops_unsent_edits_and_unknown_tasks(harness):
    harness.service.pull()
    harness.store.write(GROCERIES, "- [ ] Oat milk #dairy <!--10-->\n- [ ] Ghost <!--555-->\n")
    harness.store.write("todos/Old - 300.md", "- [ ] Stale\n")

    result = harness.service.forced_pull()

    assert result.payload["forced"] is True
    assert harness.store.read(GROCERIES) == "- [ ] Milk #dairy <!--10-->"
    assert not harness.store.exists("todos/Old - 300.md")
    assert harness.service.push().payload["commands"] == 0


def test_capture_block_adds_tasks_and_registers_note(harness):
    harness.service.pull()
    note = "notes/today.md"
    harness.store.write(
        note,
        "Morning notes\n"
        "```todomd\n"
        "- Buy bread\n"
        ":wholegrain\n"
        "@Errands\n"
        "- [x] Return books\n"
        "dairy\n"
        "```\n"
        "after\n",
    )

    result = harness.service.capture(note)

    assert result.success, result.message
    assert [command.type for command in harness.remote.commands()] == [
        PROJECT_ADD,
        ITEM_ADD,
        ITEM_ADD,
        ITEM_COMPLETE,
    ]
    assert harness.remote.projects["1000"].name == "Errands"
    assert harness.remote.items["1001"].project_id == "1"
    assert harness.store.read(note) == (
        "Morning notes\n"
        "- [ ] Buy bread <!--1001-->\n"
        "\t`wholegrain`\n"
        "- [x] Return books <!--1002-->\n"
        "- [ ] Milk #dairy <!--10-->\n"
        "after\n"
    )
    assert result.payload["tasks"] == ["10", "1001", "1002"]
    assert harness.state().registered_files == {note: {"10", "1001", "1002"}}


def test_capture_reports_failed_filters(harness):
    note = "notes/today.md"
    harness.store.write(note, "before\n```todomd\nbroken\n```\nafter\n")

    result = harness.service.capture(note)

    assert result.success
    assert harness.remote.submitted == []
    assert len(result.warnings) == 1
    assert harness.store.read(note) == "before\nafter\n"


def test_capture_without_blocks_changes_nothing(harness):
    note = "notes/plain.md"
    harness.store.write(note, "no blocks here\n")

    result = harness.service.capture(note)

    assert result.payload == {"blocks": 0}
    assert harness.store.read(note) == "no blocks here\n"
