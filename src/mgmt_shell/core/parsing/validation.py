# src/mgmt_shell/core/parsing/validation.py
"""Token-by-token validation of node types/names, operation and property names."""
import string

from mgmt_shell.core.parsing.errors import TokenValidationError
from mgmt_shell.core.parsing.token_buffer import TokenBuffer

_WORD_CHARS = frozenset(string.ascii_letters + string.digits + "_")
# Node names are values rather than identifiers; these are accepted unescaped as well.
_NAME_EXTRA_CHARS = frozenset(".*")


def _check_char(kind: str, token: str, ch: str, position: int, offset: int, extra=frozenset()) -> None:
    if ch in _WORD_CHARS or ch in extra:
        return
    if ch == "-":
        if position > 0:
            return
        raise TokenValidationError(f"The {kind} '{token}' must not start with '-'", offset)
    raise TokenValidationError(f"Character '{ch}' is not allowed in the {kind} '{token}'", offset)


def validate_identifier(kind: str, token: str, offset: int) -> None:
    """
    Accepts [A-Za-z0-9_] anywhere and '-' anywhere but the first position.

    Args:
        kind (str): What the token is, used in the message ("operation name").
        token (str): The trimmed token.
        offset (int): Input offset of the token's first character.
    """
    if not token:
        raise TokenValidationError(f"The {kind} is missing", offset)
    for i, ch in enumerate(token):
        _check_char(kind, token, ch, i, offset + i)


def validate_node_name(buffer: TokenBuffer) -> None:
    """Like validate_identifier, plus '.' and '*'; escaped or quoted characters always pass."""
    token = buffer.text()
    for i, (ch, offset, literal) in enumerate(buffer.significant()):
        if not literal:
            _check_char("node name", token, ch, i, offset, _NAME_EXTRA_CHARS)
