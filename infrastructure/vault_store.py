from pathlib import Path, PurePosixPath
from typing import List

from application.ports import DocumentStore

DEFAULT_EXTENSION = ".md"


class DocumentStoreError(RuntimeError):
    pass


class FileDocumentStore(DocumentStore):
    """Markdown documents under a vault root, addressed by vault-relative posix paths."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _resolve_path(self, path: str) -> Path:
        if not path:
            raise DocumentStoreError("Empty document path")
        # SEC: reject traversal before touching the filesystem
        if "\\" in path or path.startswith("/") or ".." in PurePosixPath(path).parts:
            raise DocumentStoreError(f"Invalid document path: contains path traversal characters: {path}")
        resolved = (self.root / path).resolve()
        if not resolved.is_relative_to(self.root.resolve()):
            raise DocumentStoreError(f"Path traversal detected: {resolved} is outside {self.root}")
        return resolved

    def relative(self, path: Path) -> str:
        """Vault-relative form of an absolute or cwd-relative filesystem path."""
        candidate = Path(path)
        if not candidate.is_absolute():
            if (self.root / candidate).exists():
                return candidate.as_posix()
            candidate = candidate.resolve()
        try:
            return candidate.resolve().relative_to(self.root.resolve()).as_posix()
        except ValueError as exc:
            raise DocumentStoreError(f"{path} is outside the vault {self.root}") from exc

    def read(self, path: str) -> str:
        resolved = self._resolve_path(path)
        if not resolved.is_file():
            raise DocumentStoreError(f"Document not found: {path}")
        try:
            return resolved.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise DocumentStoreError(f"{path} is not valid UTF-8") from exc

    def write(self, path: str, text: str) -> None:
        resolved = self._resolve_path(path)
        resolved.parent.mkdir(parents=True, exist_ok=True)
        resolved.write_text(text, encoding="utf-8")

    def rename(self, old: str, new: str) -> None:
        source = self._resolve_path(old)
        target = self._resolve_path(new)
        if not source.exists():
            raise DocumentStoreError(f"Document not found: {old}")
        target.parent.mkdir(parents=True, exist_ok=True)
        source.rename(target)

    def delete(self, path: str) -> bool:
        resolved = self._resolve_path(path)
        try:
            resolved.unlink()
        except FileNotFoundError:
            return False
        return True

    def list(self, directory: str, ext: str = DEFAULT_EXTENSION) -> List[str]:
        folder = self._resolve_path(directory) if directory else self.root
        if not folder.is_dir():
            return []
        root = self.root.resolve()
        return sorted(
            file.resolve().relative_to(root).as_posix()
            for file in folder.glob(f"*{ext}")
            if file.is_file()
        )

    def stat(self, path: str) -> float:
        resolved = self._resolve_path(path)
        try:
            return resolved.stat().st_mtime
        except FileNotFoundError as exc:
            raise DocumentStoreError(f"Document not found: {path}") from exc

    def exists(self, path: str) -> bool:
        return self._resolve_path(path).is_file()
