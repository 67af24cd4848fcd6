from typing import Optional


class TextCursor:
    """Single forward cursor over a string with a bounded one-step rewind.

    The hand-written scanners read one character at a time and, when a token
    turns out not to be one, call ``rewind()`` so the same character is read
    again in the literal-content state.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self._rewound = False

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, offset: int = 0) -> Optional[str]:
        index = self.pos + offset
        if 0 <= index < len(self.text):
            return self.text[index]
        return None

    def next(self) -> Optional[str]:
        char = self.peek()
        if char is not None:
            self.pos += 1
            self._rewound = False
        return char

    def rewind(self) -> None:
        if self._rewound or self.pos == 0:
            raise RuntimeError("TextCursor can only rewind one character after a read")
        self.pos -= 1
        self._rewound = True

    def remainder(self) -> str:
        return self.text[self.pos:]
