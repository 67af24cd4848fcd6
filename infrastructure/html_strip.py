"""Strip inline HTML-like styling tags from a task line.

Only well-formed tags are removed, and only in matching open/close pairs
(plus self-closing and void elements). Everything else, including a stray
``<`` or ``>`` typed by the user, passes through unchanged.
"""

from enum import Enum
from typing import List, NamedTuple, Optional, Union

from .text_cursor import TextCursor

VOID_ELEMENTS = frozenset({"br", "hr", "img", "wbr"})


class _TagState(Enum):
    START = "start"
    NAME = "name"
    CLOSE_START = "close_start"
    CLOSE_NAME = "close_name"
    CLOSE_TAIL = "close_tail"
    ATTRS = "attrs"
    QUOTED = "quoted"
    SELF_END = "self_end"


class Tag(NamedTuple):
    kind: str  # "open" | "close" | "self"
    name: str
    raw: str


def _is_name_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "-")


def scan_tag(text: str, start: int) -> Optional[Tag]:
    """Read a tag beginning at ``text[start] == "<"``; None when it is not one."""
    cursor = TextCursor(text)
    cursor.pos = start + 1
    state = _TagState.START
    name = ""
    quote = ""
    kind = ""
    while kind == "":
        char = cursor.next()
        if char is None:
            return None
        if state is _TagState.START:
            if char == "/":
                state = _TagState.CLOSE_START
            elif char.isascii() and char.isalpha():
                name += char
                state = _TagState.NAME
            else:
                return None
        elif state is _TagState.CLOSE_START:
            if not (char.isascii() and char.isalpha()):
                return None
            name += char
            state = _TagState.CLOSE_NAME
        elif state is _TagState.NAME:
            if _is_name_char(char):
                name += char
            elif char in " \t":
                state = _TagState.ATTRS
            elif char == "/":
                state = _TagState.SELF_END
            elif char == ">":
                kind = "open"
            else:
                return None
        elif state is _TagState.CLOSE_NAME:
            if _is_name_char(char):
                name += char
            elif char in " \t":
                state = _TagState.CLOSE_TAIL
            elif char == ">":
                kind = "close"
            else:
                return None
        elif state is _TagState.CLOSE_TAIL:
            if char == ">":
                kind = "close"
            elif char not in " \t":
                return None
        elif state is _TagState.ATTRS:
            if char == ">":
                kind = "open"
            elif char == "/" and cursor.peek() == ">":
                state = _TagState.SELF_END
            elif char in "\"'":
                quote = char
                state = _TagState.QUOTED
            elif char in "<\n":
                return None
        elif state is _TagState.QUOTED:
            if char == quote:
                state = _TagState.ATTRS
            elif char == "\n":
                return None
        elif state is _TagState.SELF_END:
            if char != ">":
                return None
            kind = "self"
    name = name.lower()
    if kind == "open" and name in VOID_ELEMENTS:
        kind = "self"
    return Tag(kind, name, text[start:cursor.pos])


def strip_html(text: str) -> str:
    tokens: List[Union[str, Tag]] = []
    literal = ""
    index = 0
    while index < len(text):
        char = text[index]
        tag = scan_tag(text, index) if char == "<" else None
        if tag is None:
            literal += char
            index += 1
            continue
        if literal:
            tokens.append(literal)
            literal = ""
        tokens.append(tag)
        index += len(tag.raw)
    if literal:
        tokens.append(literal)

    matched = set()
    open_stack: List[int] = []
    for position, token in enumerate(tokens):
        if isinstance(token, str):
            continue
        if token.kind == "self":
            matched.add(position)
        elif token.kind == "open":
            open_stack.append(position)
        else:
            for depth in range(len(open_stack) - 1, -1, -1):
                opener = open_stack[depth]
                if tokens[opener].name == token.name:  # type: ignore[union-attr]
                    matched.update((opener, position))
                    del open_stack[depth:]
                    break

    return "".join(
        token if isinstance(token, str) else ("" if position in matched else token.raw)
        for position, token in enumerate(tokens)
    )
