"""Diff engine: parsed local documents against the remote snapshot.

One ``Reconciler`` serves one pass. ``get_diff`` walks the registered files
and every project document, queues remote commands on push, prepares the
in-memory view for rendering on pull, and returns the projects to write.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Set

from core import PRIORITY_DEFAULT, BodyFragment, Project, Task, TaskRecord, apply_update, updated_fields
from infrastructure.document_segmenter import segment
from infrastructure.file_naming import from_file_name
from infrastructure.task_serializer import BodySerializer, needs_reorder

from .context import SyncContext
from .id_resolver import is_permanent_id

logger = logging.getLogger("todomd.reconcile")


class TodoDiffStatus(Enum):
    UNCHANGED = "unchanged"
    UPDATED = "updated"
    CREATED = "created"
    REMOVED = "removed"  # forced pull only: the task no longer exists remotely


class Reconciler:
    def __init__(self, ctx: SyncContext) -> None:
        self.ctx = ctx
        self.serializer = BodySerializer(ctx.settings, ctx.resolver, ctx.today)
        self.seen_tasks: Set[str] = set()
        self.seen_projects: Set[str] = set()
        self.registered_tasks: Dict[str, Task] = {}
        self.forced_projects: Set[str] = set()

    def get_diff(self, is_push: bool, can_change: bool) -> List[Project]:
        ctx = self.ctx
        forced = ctx.settings_changed
        registered = self._load_registered()
        projects: List[Project] = []
        for path in ctx.store.list(ctx.directory):
            project = self._diff_document(path, is_push, can_change, forced)
            if project is not None:
                projects.append(project)
        for project in registered:
            for fragment in project.body:
                if not isinstance(fragment, TaskRecord):
                    continue
                if ctx.resolver.resolve(fragment.task.id) not in self.seen_tasks:
                    self.get_diff_of_todo(fragment.task, project, is_push, can_change)
        self._diff_leftovers(projects, is_push, can_change)
        logger.info(
            "Diff ready: %s documents, %s dirty, %s commands",
            len(projects) + len(registered),
            sum(1 for project in projects if project.has_updates),
            len(ctx.commands),
        )
        return projects + registered

    def _load_registered(self) -> List[Project]:
        ctx = self.ctx
        projects: List[Project] = []
        for path in sorted(ctx.state.registered_files):
            if not ctx.store.exists(path):
                logger.warning("Registered file %s is gone; forgetting it", path)
                del ctx.state.registered_files[path]
                continue
            ids = {ctx.resolver.resolve(task_id) for task_id in ctx.state.registered_files[path]}
            mtime = ctx.store.stat(path)
            body = segment(
                ctx.store.read(path),
                mtime=mtime,
                accept=lambda task: ctx.resolver.resolve(task.id) in ids,
                today=ctx.today,
            )
            project = Project(name=path, file_path=path, body=body, has_updates=True, registered=True)
            tasks = project.tasks()
            if not tasks:
                logger.warning("Registered file %s holds none of its tasks anymore; forgetting it", path)
                del ctx.state.registered_files[path]
                continue
            changed = ctx.state.file_mtimes.get(path) != mtime
            for task in tasks:
                task_id = ctx.resolver.resolve(task.id)
                self.registered_tasks.setdefault(task_id, task)  # type: ignore[arg-type]
                synced = ctx.resolver.synced(task_id)
                if changed and synced is not None and synced.project_id:
                    self.forced_projects.add(synced.project_id)
            projects.append(project)
        return projects

    def _unchanged(self, path: str, project_id: str, mtime: float, forced: bool) -> bool:
        """Push short-circuit: the document cannot hold anything new to send."""
        state = self.ctx.state
        if forced or project_id in self.forced_projects or path not in state.file_mtimes:
            return False
        if state.file_mtimes[path] != mtime:
            return False
        written = set(state.previous_projects.get(project_id, []))
        remote = {
            task_id
            for task_id, item in self.ctx.snapshot.items.items()
            if item.project_id == project_id and not item.completed
        }
        return remote <= written

    def _diff_document(self, path: str, is_push: bool, can_change: bool, forced: bool) -> Optional[Project]:
        ctx = self.ctx
        name, project_id = from_file_name(path)
        mtime = ctx.store.stat(path)
        remote = ctx.snapshot.projects.get(project_id) if project_id else None
        project = Project(name=name, id=project_id, file_path=path)

        if remote is None or project_id in self.seen_projects:
            if is_push:
                project.id = ctx.commands.project_add(name)
                project.has_updates = True
                logger.info("New project %r from %s", name, path)
            elif can_change:
                logger.warning("Removing %s: project does not exist remotely", path)
                ctx.store.delete(path)
                return None
            else:
                logger.debug("Leaving %s alone: project not created yet", path)
                return None
        else:
            self.seen_projects.add(project_id)  # type: ignore[arg-type]
            if remote.name != name:
                if is_push:
                    ctx.commands.project_update(project_id, name)  # type: ignore[arg-type]
                elif can_change:
                    project.needs_rename = True
                    project.has_updates = True
            if is_push and self._unchanged(path, project_id, mtime, forced):  # type: ignore[arg-type]
                logger.debug("Skipping unchanged %s", path)
                self.seen_tasks.update(ctx.state.previous_projects.get(project_id, []))  # type: ignore[arg-type]
                return None

        body = segment(ctx.store.read(path), project.id or "", mtime, today=ctx.today)
        kept: List[BodyFragment] = []
        for fragment in body:
            if isinstance(fragment, TaskRecord):
                status = self.get_diff_of_todo(fragment.task, project, is_push, can_change)
                if status is not TodoDiffStatus.UNCHANGED:
                    project.has_updates = True
                if status is TodoDiffStatus.REMOVED:
                    continue
            kept.append(fragment)
        project.body = kept

        if not is_push or forced:
            project.has_updates = True
        elif not project.has_updates and needs_reorder(self.serializer.resolved(kept), ctx.settings.sort):
            project.has_updates = True
        return project

    def _fill(self, task: Task, synced: Task) -> None:
        """Recover what a rendered line leaves out."""
        if task.priority is None:
            # every non-default priority is rendered as a token
            rendered = (synced.id or "") in self.ctx.state.priority_map
            task.priority = PRIORITY_DEFAULT if rendered else synced.priority
        if not self.ctx.settings.show_description:
            task.description = synced.description

    def _registered_override(self, task: Task, synced: Task) -> Task:
        registered = self.registered_tasks.get(task.id or "")
        if registered is None or registered is task or registered.mtime <= task.mtime:
            return task
        self._fill(registered, synced)
        if not updated_fields(synced, registered) and registered.completed == synced.completed:
            return task
        logger.debug("Registered copy of %s is newer than %s", task.id, task.project_id)
        return task.copy(
            content=registered.content,
            due=registered.due,
            priority=registered.priority,
            labels=registered.labels,
            description=registered.description,
            completed=registered.completed,
        )

    def _create(self, task: Task, project: Project, is_push: bool) -> TodoDiffStatus:
        ctx = self.ctx
        if task.priority is None:
            task.priority = PRIORITY_DEFAULT
        if is_push:
            temp_id = ctx.commands.item_add(task, project.id or "")
            task.id = temp_id
            if task.completed:
                ctx.commands.item_complete(temp_id)
        else:
            task.id = None
        return TodoDiffStatus.CREATED

    def get_diff_of_todo(self, task: Task, project: Project, is_push: bool, can_change: bool) -> TodoDiffStatus:
        ctx = self.ctx
        task_id = ctx.resolver.resolve(task.id)
        synced = ctx.resolver.synced(task_id)
        if synced is None and not is_push and can_change and is_permanent_id(task_id):
            logger.info("Task %s no longer exists remotely", task_id)
            return TodoDiffStatus.REMOVED
        if task_id is None or synced is None or task_id in self.seen_tasks:
            return self._create(task, project, is_push)

        self.seen_tasks.add(task_id)
        task.id = task_id
        self._fill(task, synced)
        local = self._registered_override(task, synced)
        update = updated_fields(synced, local)
        was_completed = synced.completed or task_id in ctx.state.completed_tasks
        status = TodoDiffStatus.UNCHANGED

        if update:
            status = TodoDiffStatus.UPDATED
            if is_push:
                if was_completed:
                    message = f"Task {synced.content!r} is completed; edits to it were not sent"
                    logger.warning(message)
                    ctx.warn(message)
                else:
                    ctx.commands.item_update(task_id, update)
            elif not can_change:
                ctx.resolver.overlay[task_id] = apply_update(synced, update)

        if local.completed != was_completed:
            status = TodoDiffStatus.UPDATED
            if is_push:
                if local.completed:
                    ctx.commands.item_complete(task_id)
                    ctx.state.completed_tasks[task_id] = local.copy(completed=True)
                else:
                    ctx.commands.item_uncomplete(task_id)
                    ctx.state.completed_tasks.pop(task_id, None)
            elif not can_change:
                base = ctx.resolver.overlay.get(task_id, synced)
                ctx.resolver.overlay[task_id] = base.copy(completed=local.completed)
        return status

    def _diff_leftovers(self, projects: List[Project], is_push: bool, can_change: bool) -> None:
        """Remote entries no document mentions: deleted on push, materialized otherwise."""
        ctx = self.ctx
        delete_remote = is_push and can_change
        previous = ctx.state.previous_projects
        written = {task_id for ids in previous.values() for task_id in ids}
        owners: Dict[str, Project] = {}
        for project in projects:
            resolved = ctx.resolver.resolve(project.id)
            if resolved and not project.registered:
                owners[resolved] = project

        deleted_projects: Set[str] = set()
        for project_id, remote in list(ctx.snapshot.projects.items()):
            if project_id in self.seen_projects or project_id in owners:
                continue
            if delete_remote and project_id in previous and not remote.is_inbox:
                logger.info("Project %r was removed locally", remote.name)
                ctx.commands.project_delete(project_id)
                deleted_projects.add(project_id)
                continue
            project = Project(name=remote.name, id=project_id, has_updates=True)
            projects.append(project)
            owners[project_id] = project
            self.seen_projects.add(project_id)

        pending: Dict[str, List[BodyFragment]] = {}
        for task_id, item in ctx.snapshot.items.items():
            if task_id in self.seen_tasks or item.completed or item.project_id in deleted_projects:
                continue
            if delete_remote and task_id in written:
                logger.info("Task %r was removed locally", item.content)
                ctx.commands.item_delete(task_id)
                ctx.state.forget_task(task_id)
                continue
            if item.project_id not in owners:
                logger.debug("No document for project %s of task %s", item.project_id, task_id)
                continue
            pending.setdefault(item.project_id, []).append(TaskRecord(item.copy()))
            self.seen_tasks.add(task_id)

        for project_id, fragments in pending.items():
            owner = owners[project_id]
            owner.body[0:0] = fragments
            owner.has_updates = True
