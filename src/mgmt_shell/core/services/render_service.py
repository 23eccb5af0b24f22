# src/mgmt_shell/core/services/render_service.py
"""Canonical text forms of addresses and typed values."""
import re

from mgmt_shell.core.parsing.address import Address
from mgmt_shell.model import (
    BytesValue,
    ListValue,
    ObjectValue,
    PropertyListValue,
    StringValue,
    TypedValue,
)

# Strings matching this are quoted so the value grammar reads them back as one string.
_NEEDS_QUOTES = re.compile(r'[\s,=\[\]{}()"\\$>]|^bytes\s*\{|^$')
_QUOTE_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r", "\b": "\\b", "\f": "\\f"}


def render_address(address: Address) -> str:
    return address.to_string()


def render_string(text: str) -> str:
    if not _NEEDS_QUOTES.search(text):
        return text
    return '"' + "".join(_QUOTE_ESCAPES.get(ch, ch) for ch in text) + '"'


def render_value(value: TypedValue) -> str:
    """
    Renders a typed value so that parse_value() types it back the same way.
    Names are rendered like strings.

    The one exception is an empty PropertyListValue: it has the same text
    as an empty list, "[]", and reads back as an empty ListValue.
    """
    if isinstance(value, StringValue):
        return render_string(value.text)
    if isinstance(value, ListValue):
        return "[" + ",".join(render_value(item) for item in value.items) + "]"
    if isinstance(value, ObjectValue):
        return "{" + ",".join(f"{render_string(k)}={render_value(v)}" for k, v in value.entries.items()) + "}"
    if isinstance(value, PropertyListValue):
        return "[" + ",".join(f"{render_string(k)}={render_value(v)}" for k, v in value.properties) + "]"
    if isinstance(value, BytesValue):
        return "bytes{" + ",".join(str(v) for v in value.values) + "}"
    raise TypeError(f"Cannot render {type(value).__name__}")
