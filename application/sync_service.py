import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from core import (
    DEFAULT_CHUNK_SIZE,
    FULL_SYNC_TOKEN,
    PRIORITY_DEFAULT,
    CommandQueue,
    EditorSettings,
    Project,
    TaskRecord,
)
from infrastructure.file_naming import to_file_name
from infrastructure.task_serializer import BodySerializer
from infrastructure.todoist import TodoistClientError
from infrastructure.vault_store import DocumentStoreError

from .capture import CaptureProcessor, find_blocks
from .context import SyncContext
from .id_resolver import is_permanent_id
from .ports import DocumentStore, Notifier, RemoteClient, StateStore
from .reconciler import Reconciler

logger = logging.getLogger("todomd.sync")

PASS_ERRORS = (TodoistClientError, DocumentStoreError, OSError)


@dataclass
class SyncResult:
    success: bool
    message: str
    warnings: List[str] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=dict)
    auth_failed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.payload)
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data


def _stamp() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class SyncService:
    """Pull / push / capture passes; one pass at a time."""

    def __init__(
        self,
        remote: RemoteClient,
        store: DocumentStore,
        state_store: StateStore,
        settings: Optional[EditorSettings] = None,
        directory: str = "todos",
        notifier: Optional[Notifier] = None,
        today: Optional[date] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        uuid_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.remote = remote
        self.store = store
        self.state_store = state_store
        self.settings = settings or EditorSettings()
        self.directory = directory
        self.notifier = notifier or (lambda message: logger.info("%s", message))
        self.today = today
        self.chunk_size = chunk_size
        self.uuid_factory = uuid_factory
        self._lock = Lock()

    # --- entry points -------------------------------------------------

    def health_check(self) -> bool:
        return self.remote.health_check()

    def pull(self, forced: bool = False) -> SyncResult:
        return self._run("pull", lambda: self._pull(forced))

    def soft_pull(self) -> SyncResult:
        return self.pull(forced=False)

    def forced_pull(self) -> SyncResult:
        return self.pull(forced=True)

    def push(self) -> SyncResult:
        return self._run("push", self._push)

    def capture(self, path: str) -> SyncResult:
        return self._run("capture", lambda: self._capture(path))

    def _run(self, name: str, body: Callable[[], SyncResult]) -> SyncResult:
        if not self._lock.acquire(blocking=False):
            return SyncResult(False, "sync already in progress")
        try:
            if not self.remote.health_check():
                message = "Todoist token is missing or invalid"
                self.notifier(message)
                return SyncResult(False, message, auth_failed=True)
            logger.info("%s started", name)
            result = body()
            logger.info("%s finished: %s", name, result.message)
            for warning in result.warnings:
                self.notifier(warning)
            return result
        except PASS_ERRORS as exc:
            message = f"{name} failed: {exc}"
            logger.warning(message)
            self.notifier(message)
            return SyncResult(False, message)
        finally:
            self._lock.release()

    # --- pass building blocks -----------------------------------------

    def _begin(self, full: bool = False) -> SyncContext:
        state, snapshot = self.state_store.load()
        if full:
            snapshot.sync_token = FULL_SYNC_TOKEN
        ctx = SyncContext(
            snapshot=snapshot,
            state=state,
            settings=self.settings,
            store=self.store,
            directory=self.directory,
            today=self.today,
            commands=CommandQueue(self.uuid_factory),
        )
        self._refresh(ctx)
        return ctx

    def _refresh(self, ctx: SyncContext) -> None:
        payload = self.remote.fetch_snapshot(ctx.snapshot.sync_token)
        ctx.snapshot.apply(payload)
        ctx.resolver.record(payload.temp_id_mapping)
        completed = self.remote.fetch_completed()
        ctx.snapshot.merge_completed(completed)
        cache = ctx.state.completed_tasks
        for task in completed:
            cache[task.id] = task  # type: ignore[index]
        for task_id in list(cache):
            item = ctx.snapshot.items.get(task_id)
            if item is not None and not item.completed:
                del cache[task_id]

    def _flush(self, ctx: SyncContext) -> int:
        """Submit queued commands chunk by chunk; the first failure aborts the rest."""
        sent = 0
        for chunk in ctx.commands.chunks(self.chunk_size):
            result = self.remote.submit_commands(chunk)
            ctx.resolver.record(result.temp_id_mapping)
            for uuid, error in result.errors.items():
                ctx.warn(f"Todoist rejected command {uuid}: {error}")
            sent += len(chunk)
        ctx.commands.clear()
        return sent

    def _write_diff(self, ctx: SyncContext, projects: List[Project], record_mtime: bool = True) -> int:
        """Render dirty projects. Without ``record_mtime`` the next push rescans every written document."""
        serializer = BodySerializer(ctx.settings, ctx.resolver, ctx.today)
        state = ctx.state
        written = 0
        for project in projects:
            if not project.has_updates:
                continue
            project_id = ctx.resolver.resolve(project.id)
            permanent = project_id if is_permanent_id(project_id) else None
            rendered = serializer.resolved(project.body)
            task_ids = [
                fragment.task.id
                for fragment in rendered
                if isinstance(fragment, TaskRecord) and is_permanent_id(fragment.task.id)
            ]
            if project.registered:
                target = project.file_path
                state.registered_files[target] = set(task_ids)  # type: ignore[arg-type]
            else:
                name = project.name
                if project.needs_rename:
                    name = ctx.resolver.project_name(project_id) or name
                target = to_file_name(name, permanent, ctx.directory)
                if permanent:
                    state.previous_projects[permanent] = task_ids  # type: ignore[assignment]
                if project.file_path and project.file_path != target:
                    logger.info("Renaming %s -> %s", project.file_path, target)
                    self.store.rename(project.file_path, target)
                    state.file_mtimes.pop(project.file_path, None)

            text = serializer.render(project.body)
            current = self.store.read(target) if self.store.exists(target) else None
            if current != text:
                self.store.write(target, text)
                written += 1
            if record_mtime:
                state.file_mtimes[target] = self.store.stat(target)
            else:
                state.file_mtimes.pop(target, None)
            for fragment in rendered:
                if isinstance(fragment, TaskRecord) and is_permanent_id(fragment.task.id):
                    task = fragment.task
                    state.priority_map[task.id] = task.priority or PRIORITY_DEFAULT  # type: ignore[index]
        return written

    def _finish(self, ctx: SyncContext, stamp_field: str) -> None:
        ctx.state.editor_fingerprint = self.settings.fingerprint()
        setattr(ctx.state, stamp_field, _stamp())
        self.state_store.save(ctx.state, ctx.snapshot)

    # --- passes ---------------------------------------------------------

    def _pull(self, forced: bool) -> SyncResult:
        ctx = self._begin(full=forced)
        projects = Reconciler(ctx).get_diff(is_push=False, can_change=forced)
        # a soft pull may render unsent local edits, so it must not mark documents clean
        written = self._write_diff(ctx, projects, record_mtime=forced)
        self._finish(ctx, "last_pull")
        kind = "forced pull" if forced else "pull"
        return SyncResult(
            True,
            f"{kind}: {written} documents updated",
            warnings=ctx.warnings,
            payload={"written": written, "forced": forced},
        )

    def _push(self) -> SyncResult:
        ctx = self._begin()
        projects = Reconciler(ctx).get_diff(is_push=True, can_change=True)
        sent = self._flush(ctx)
        if sent:
            self._refresh(ctx)
        written = self._write_diff(ctx, projects)
        self._finish(ctx, "last_push")
        return SyncResult(
            True,
            f"push: {sent} commands sent, {written} documents updated",
            warnings=ctx.warnings,
            payload={"commands": sent, "written": written},
        )

    def _capture(self, path: str) -> SyncResult:
        ctx = self._begin()
        text = self.store.read(path)
        lines = text.splitlines(keepends=True)
        blocks = find_blocks(lines)
        if not blocks:
            return SyncResult(True, f"capture: no todomd blocks in {path}", payload={"blocks": 0})

        processor = CaptureProcessor(ctx, self.remote)
        for block in blocks:
            processor.process(block)
        sent = self._flush(ctx)
        if sent:
            self._refresh(ctx)

        serializer = BodySerializer(ctx.settings, ctx.resolver, ctx.today)
        ids = set()
        for block in reversed(blocks):
            tasks = [serializer.resolve(task) for task in block.tasks()]
            replacement = [serializer.render_task(task) for task in tasks]
            lines[block.start:block.end + 1] = replacement
            ids.update(task.id for task in tasks if is_permanent_id(task.id))

        self.store.write(path, "".join(lines))
        ctx.state.register_file(path, ids)  # type: ignore[arg-type]
        ctx.state.file_mtimes[path] = self.store.stat(path)
        self._finish(ctx, "last_push")
        return SyncResult(
            True,
            f"capture: {len(ids)} tasks placed in {path}",
            warnings=ctx.warnings,
            payload={"blocks": len(blocks), "commands": sent, "tasks": sorted(ids)},
        )
