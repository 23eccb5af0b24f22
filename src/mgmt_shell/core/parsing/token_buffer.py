# src/mgmt_shell/core/parsing/token_buffer.py
from typing import Iterator, List, Tuple


class TokenBuffer:
    """
    Collects the characters of one token while a grammar walks the input.

    Every character remembers its offset in the input and whether it was
    delivered literally (escaped or inside quotes). Literal characters are
    never trimmed and are exempt from token validation.
    """

    def __init__(self) -> None:
        self._chars: List[str] = []
        self._literal: List[bool] = []
        self._offsets: List[int] = []

    def append(self, ch: str, offset: int, literal: bool = False) -> None:
        self._chars.append(ch)
        self._literal.append(literal)
        self._offsets.append(offset)

    def clear(self) -> None:
        self._chars.clear()
        self._literal.clear()
        self._offsets.clear()

    def __len__(self) -> int:
        return len(self._chars)

    @property
    def raw(self) -> str:
        """Everything collected so far, untrimmed."""
        return "".join(self._chars)

    @property
    def has_literal(self) -> bool:
        return any(self._literal)

    @property
    def start(self) -> int:
        """Offset of the first significant character, -1 when blank."""
        lo, hi = self._bounds()
        return self._offsets[lo] if lo < hi else -1

    def text(self) -> str:
        """The token with unescaped, unquoted surrounding whitespace removed."""
        lo, hi = self._bounds()
        return "".join(self._chars[lo:hi])

    def is_blank(self) -> bool:
        lo, hi = self._bounds()
        return lo >= hi

    def significant(self) -> Iterator[Tuple[str, int, bool]]:
        """Yields (char, offset, literal) for the trimmed token."""
        lo, hi = self._bounds()
        for i in range(lo, hi):
            yield self._chars[i], self._offsets[i], self._literal[i]

    def _bounds(self) -> Tuple[int, int]:
        lo, hi = 0, len(self._chars)
        while lo < hi and self._chars[lo].isspace() and not self._literal[lo]:
            lo += 1
        while hi > lo and self._chars[hi - 1].isspace() and not self._literal[hi - 1]:
            hi -= 1
        return lo, hi
