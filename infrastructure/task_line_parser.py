"""Recover a Task from one line of free-form markdown.

Line grammar::

    - [ ] <content with inline tokens> <!--12345-->

Inline tokens, each optional and in any order: ``(p1)``..``(p4)`` priority,
``(@today)`` / ``(@2024-05-01)`` due date, ``#label`` tags. A token that does
not complete is kept as literal content, so a user typing ``(p5)`` or
``(see notes)`` keeps that text.
"""

from datetime import date
from enum import Enum
from typing import List, Optional, Tuple

from core import DueDate, Task, priority_from_token
from core.due_dates import resolve_due

from .html_strip import strip_html
from .text_cursor import TextCursor

ID_OPEN = "<!--"
ID_CLOSE = "-->"


class _IdState(Enum):
    BODY = "body"
    LESS_THAN = "less_than"
    EXCLAMATION = "exclamation"
    DASH = "dash"
    ID = "id"
    ID_DASH = "id_dash"
    ID_CLOSE = "id_close"


def extract_id(line: str) -> Tuple[str, Optional[str]]:
    """Split ``line`` into (text without the id comment, id or None).

    Only ``<!--digits-->`` counts as an id; any other comment stays in the text.
    """
    cursor = TextCursor(line)
    state = _IdState.BODY
    body = ""
    digits = ""
    while not cursor.at_end():
        char = cursor.next()
        if state is _IdState.BODY:
            if char == "<":
                state = _IdState.LESS_THAN
            else:
                body += char
            continue
        if state is _IdState.LESS_THAN:
            ok, pending = char == "!", "<"
            next_state = _IdState.EXCLAMATION
        elif state is _IdState.EXCLAMATION:
            ok, pending = char == "-", "<!"
            next_state = _IdState.DASH
        elif state is _IdState.DASH:
            ok, pending = char == "-", "<!-"
            next_state = _IdState.ID
        elif state is _IdState.ID:
            if char.isdigit():
                digits += char
                continue
            ok, pending = char == "-" and bool(digits), ID_OPEN + digits
            next_state = _IdState.ID_DASH
        elif state is _IdState.ID_DASH:
            ok, pending = char == "-", ID_OPEN + digits + "-"
            next_state = _IdState.ID_CLOSE
        else:
            if char == ">":
                return body + cursor.remainder(), digits
            ok, pending = False, ID_OPEN + digits + "--"
            next_state = _IdState.BODY
        if ok:
            state = next_state
        else:
            body += pending
            digits = ""
            cursor.rewind()
            state = _IdState.BODY

    pending_by_state = {
        _IdState.LESS_THAN: "<",
        _IdState.EXCLAMATION: "<!",
        _IdState.DASH: "<!-",
        _IdState.ID: ID_OPEN + digits,
        _IdState.ID_DASH: ID_OPEN + digits + "-",
        _IdState.ID_CLOSE: ID_OPEN + digits + "--",
    }
    return body + pending_by_state.get(state, ""), None


class _LineState(Enum):
    BULLET = "bullet"
    BULLET_SPACE = "bullet_space"
    LEFT_BRACKET = "left_bracket"
    CHECK = "check"
    RIGHT_BRACKET = "right_bracket"
    BEFORE_CONTENT = "before_content"
    CONTENT = "content"
    SPACE = "space"
    LEFT_PAREN = "left_paren"
    PRIORITY = "priority"
    DUE_DATE = "due_date"
    LABEL = "label"


_PRE_CONTENT = frozenset(
    {
        _LineState.BULLET,
        _LineState.BULLET_SPACE,
        _LineState.LEFT_BRACKET,
        _LineState.CHECK,
        _LineState.RIGHT_BRACKET,
        _LineState.BEFORE_CONTENT,
    }
)


def _starts_with_checkbox(text: str) -> bool:
    return len(text) >= 4 and text[0] == "[" and text[1] in " xX" and text[2] == "]" and text[3] == " "


class _LineScanner:
    def __init__(self, body: str, capture: bool, today: Optional[date]) -> None:
        self.cursor = TextCursor(body)
        self.capture = capture
        self.today = today
        self.state = _LineState.BULLET
        self.completed = False
        self.content = ""
        self.pending = ""  # literal text to emit if the current token fails
        self.label = ""
        self.due_expr = ""
        self.due: Optional[DueDate] = None
        self.priority: Optional[int] = None
        self.labels: List[str] = []

    def _fallback(self) -> None:
        self.content += self.pending
        self.pending = ""
        self.cursor.rewind()
        self.state = _LineState.CONTENT

    def _finish_label(self) -> None:
        if self.label:
            self.labels.append(self.label)
        else:
            self.content += self.pending
        self.label = ""
        self.pending = ""

    def _finish_due(self) -> None:
        due = resolve_due(self.due_expr, self.today) if self.due_expr.strip() else None
        if due:
            self.due = due
        else:
            self.content += self.pending + self.due_expr + ")"
        self.pending = ""
        self.due_expr = ""

    def run(self) -> bool:
        cursor = self.cursor
        while not cursor.at_end():
            char = cursor.next()
            state = self.state
            if state in _PRE_CONTENT:
                if not self._step_prefix(char):
                    return False
            elif state is _LineState.CONTENT:
                if char == " ":
                    self.pending = " "
                    self.state = _LineState.SPACE
                elif char == "(":
                    self.pending = "("
                    self.state = _LineState.LEFT_PAREN
                elif char == "#":
                    self.pending = "#"
                    self.state = _LineState.LABEL
                else:
                    self.content += char
            elif state is _LineState.SPACE:
                if char == "(":
                    self.pending += "("
                    self.state = _LineState.LEFT_PAREN
                elif char == "#":
                    self.pending += "#"
                    self.state = _LineState.LABEL
                else:
                    self._fallback()
            elif state is _LineState.LEFT_PAREN:
                if char == "p":
                    self.pending += "p"
                    self.state = _LineState.PRIORITY
                elif char == "@":
                    self.pending += "@"
                    self.due_expr = ""
                    self.state = _LineState.DUE_DATE
                else:
                    self._fallback()
            elif state is _LineState.PRIORITY:
                if char in "1234" and cursor.peek() == ")":
                    cursor.next()
                    self.priority = priority_from_token(int(char))
                    self.pending = ""
                    self.state = _LineState.CONTENT
                else:
                    self._fallback()
            elif state is _LineState.DUE_DATE:
                if char == ")":
                    self._finish_due()
                    self.state = _LineState.CONTENT
                else:
                    self.due_expr += char
            elif state is _LineState.LABEL:
                if char.isascii() and char.isalpha():
                    self.label += char
                else:
                    self._finish_label()
                    cursor.rewind()
                    self.state = _LineState.CONTENT
        return self._finish()

    def _step_prefix(self, char: str) -> bool:
        state = self.state
        if state is _LineState.BULLET:
            if char != "-":
                return False
            self.state = _LineState.BULLET_SPACE
        elif state is _LineState.BULLET_SPACE:
            if char != " ":
                return False
            if self.capture and not _starts_with_checkbox(self.cursor.remainder()):
                self.state = _LineState.CONTENT
            else:
                self.state = _LineState.LEFT_BRACKET
        elif state is _LineState.LEFT_BRACKET:
            if char != "[":
                return False
            self.state = _LineState.CHECK
        elif state is _LineState.CHECK:
            if char in "xX":
                self.completed = True
            elif char != " ":
                return False
            self.state = _LineState.RIGHT_BRACKET
        elif state is _LineState.RIGHT_BRACKET:
            if char != "]":
                return False
            self.state = _LineState.BEFORE_CONTENT
        elif state is _LineState.BEFORE_CONTENT:
            if char != " ":
                return False
            self.state = _LineState.CONTENT
        return True

    def _finish(self) -> bool:
        state = self.state
        if state in _PRE_CONTENT:
            return False
        if state is _LineState.LABEL:
            self._finish_label()
        elif state is _LineState.DUE_DATE:
            # unterminated token stays literal
            self.content += self.pending + self.due_expr
        elif state in (_LineState.SPACE, _LineState.LEFT_PAREN, _LineState.PRIORITY):
            self.content += self.pending
        self.content = self.content.strip()
        return bool(self.content)


def parse_line(
    line: str,
    project_id: str = "",
    mtime: float = 0.0,
    capture: bool = False,
    today: Optional[date] = None,
) -> Optional[Task]:
    """Parse one line into a Task, or None when it is not a task line.

    ``capture`` is set for lines inside a capture block: the checkbox becomes
    optional there, so ``- Buy milk`` is a new, incomplete task.
    """
    if not line:
        return None
    body, task_id = extract_id(line.rstrip("\r\n"))
    body = strip_html(body)
    if len(body) < 3:
        return None
    scanner = _LineScanner(body, capture, today)
    if not scanner.run():
        return None
    return Task(
        id=task_id,
        content=scanner.content,
        completed=scanner.completed,
        due=scanner.due,
        priority=scanner.priority,
        labels=scanner.labels,
        project_id=project_id,
        mtime=mtime,
    )


def is_task_line(line: str, capture: bool = False) -> bool:
    return parse_line(line, capture=capture) is not None
