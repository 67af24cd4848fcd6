import pytest

from infrastructure.vault_store import DocumentStoreError, FileDocumentStore


@pytest.fixture
def store(tmp_path):
    return FileDocumentStore(tmp_path)


def test_write_read_and_list(store):
    store.write("todos/B - 2.md", "b")
    store.write("todos/A - 1.md", "a")
    store.write("todos/notes.txt", "skip")
    store.write("todos/nested/C.md", "deeper")

    assert store.read("todos/A - 1.md") == "a"
    assert store.list("todos") == ["todos/A - 1.md", "todos/B - 2.md"]
    assert store.list("missing") == []
    assert store.exists("todos/nested/C.md")


def test_rename_and_delete(store):
    store.write("todos/Old.md", "x")

    store.rename("todos/Old.md", "todos/New - 5.md")

    assert not store.exists("todos/Old.md")
    assert store.read("todos/New - 5.md") == "x"
    assert store.delete("todos/New - 5.md") is True
    assert store.delete("todos/New - 5.md") is False


def test_missing_documents_raise(store):
    with pytest.raises(DocumentStoreError):
        store.read("todos/none.md")
    with pytest.raises(DocumentStoreError):
        store.stat("todos/none.md")
    with pytest.raises(DocumentStoreError):
        store.rename("todos/none.md", "todos/other.md")


def test_undecodable_document_raises(store):
    (store.root / "todos").mkdir()
    (store.root / "todos" / "Broken - 100.md").write_bytes(b"- [ ] caf\xe9\n")

    with pytest.raises(DocumentStoreError, match="not valid UTF-8"):
        store.read("todos/Broken - 100.md")


@pytest.mark.parametrize("path", ["../escape.md", "todos/../../escape.md", "/etc/passwd", "todos\\x.md", ""])
def test_paths_outside_the_vault_are_rejected(store, path):
    with pytest.raises(DocumentStoreError):
        store.write(path, "nope")


def test_stat_reports_mtime(store):
    store.write("a.md", "x")
    assert store.stat("a.md") == (store.root / "a.md").stat().st_mtime


def test_relative_paths(store, tmp_path, monkeypatch):
    store.write("notes/today.md", "x")

    assert store.relative(tmp_path / "notes" / "today.md") == "notes/today.md"
    assert store.relative("notes/today.md") == "notes/today.md"
    monkeypatch.chdir(tmp_path / "notes")
    assert store.relative("today.md") == "notes/today.md"
    with pytest.raises(DocumentStoreError):
        store.relative(tmp_path.parent / "elsewhere.md")
