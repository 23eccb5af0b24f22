# src/mgmt_shell/core/parsing/errors.py
"""Command line syntax errors with the offset of the offending character."""


class CommandSyntaxError(Exception):
    def __init__(self, message: str, offset: int = -1):
        self.message = message
        self.offset = offset
        super().__init__(message)

    def __str__(self) -> str:
        if self.offset >= 0:
            return f"{self.message} (offset {self.offset})"
        return self.message


class StructuralError(CommandSyntaxError):
    """Unbalanced quotes or brackets, misplaced separators, '..' past root, '!!'."""


class TokenValidationError(CommandSyntaxError):
    """Illegal character in a node type/name, operation or property name."""


class ValueRangeError(CommandSyntaxError):
    """Bytes literal out of range or malformed."""


class ResolutionError(CommandSyntaxError):
    """Unresolved expression in strict mode or runaway recursion."""


def format_syntax_error(error: CommandSyntaxError, line: str = "") -> str:
    """User-facing text: the message plus the line with a caret under the offset."""
    if error.offset < 0:
        return f"Error: {error.message}"
    text = f"Error at offset {error.offset}: {error.message}"
    if line:
        text += f"\n  {line}\n  {' ' * min(error.offset, len(line))}^"
    return text
