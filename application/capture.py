"""Capture blocks: fenced ```todomd regions for bulk-adding tasks inside any note.

Inside a block:

    - Buy milk            new task (checkbox optional)
    :from the corner shop description of the task above
    @Errands              following tasks go to project "Errands"
    today & #work         anything else is a Todoist filter query
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from core import PRIORITY_DEFAULT, Task
from infrastructure.task_line_parser import parse_line
from infrastructure.todoist import TodoistClientError

from .context import SyncContext
from .ports import RemoteClient

logger = logging.getLogger("todomd.capture")

FENCE_OPEN = "```todomd"
FENCE_CLOSE = "```"


@dataclass
class CaptureBlock:
    start: int  # index of the opening fence line
    end: int  # index of the closing fence line
    lines: List[str] = field(default_factory=list)
    created: List[Tuple[Task, str]] = field(default_factory=list)
    found: List[Task] = field(default_factory=list)

    def tasks(self) -> List[Task]:
        return [task for task, _ in self.created] + self.found


def find_blocks(lines: List[str]) -> List[CaptureBlock]:
    """Closed capture blocks in document order; an unclosed fence is ignored."""
    blocks: List[CaptureBlock] = []
    start: Optional[int] = None
    for index, line in enumerate(lines):
        text = line.strip()
        if start is None:
            if text == FENCE_OPEN:
                start = index
        elif text == FENCE_CLOSE:
            blocks.append(CaptureBlock(start, index, [item.strip() for item in lines[start + 1:index]]))
            start = None
    return blocks


class CaptureProcessor:
    def __init__(self, ctx: SyncContext, remote: RemoteClient) -> None:
        self.ctx = ctx
        self.remote = remote
        self.new_projects: Dict[str, str] = {}

    def _project_for(self, name: str) -> str:
        ctx = self.ctx
        project_id = ctx.snapshot.project_id_by_name(name)
        if project_id:
            return project_id
        if name not in self.new_projects:
            self.new_projects[name] = ctx.commands.project_add(name)
            logger.info("Capture creates project %r", name)
        return self.new_projects[name]

    def process(self, block: CaptureBlock) -> None:
        """Queue commands for the block; tasks stay in the block for rendering."""
        ctx = self.ctx
        project_id = ctx.snapshot.inbox_id or ""
        for line in block.lines:
            if not line:
                continue
            if line.startswith("@") and len(line) > 1:
                project_id = self._project_for(line[1:].strip())
                continue
            if line.startswith(":"):
                if block.created:
                    task = block.created[-1][0]
                    text = line[1:].strip()
                    task.description = f"{task.description}\n{text}" if task.description else text
                continue
            task = parse_line(line, project_id=project_id, capture=True, today=ctx.today)
            if task is not None:
                if task.priority is None:
                    task.priority = PRIORITY_DEFAULT
                block.created.append((task, project_id))
                continue
            try:
                block.found.extend(self.remote.query_by_filter(line))
            except TodoistClientError as exc:
                message = f"Filter {line!r} failed: {exc}"
                logger.warning(message)
                ctx.warn(message)

        for task, owner in block.created:
            task.id = ctx.commands.item_add(task, owner)
            if task.completed:
                ctx.commands.item_complete(task.id)
