# src/mgmt_shell/core/parsing/parse_result.py
"""
Accumulator for one parsed operation request line.

The operation grammar calls the semantic methods below while it walks the
line. Besides the collected address, operation, properties, headers and
output target, the result records where parsing stopped (the `ends_on_*`
flags), which is what completion and "is this command finished" checks use.
"""
from __future__ import annotations

import logging
import re
from enum import Enum, auto
from typing import Dict, List, Optional

from mgmt_shell.core.parsing.address import Address
from mgmt_shell.core.parsing.errors import StructuralError
from mgmt_shell.core.parsing.validation import validate_identifier

logger = logging.getLogger(__name__)

_HEADER = re.compile(r"([^=\s]+)\s*(?:=\s*(.*)|\s+(.*))?$", re.DOTALL)


class Separator(Enum):
    NONE = auto()
    NODE_TYPE_NAME = auto()
    NODE = auto()
    ADDRESS_OPERATION = auto()
    OPERATION_ARGUMENTS = auto()
    ARG_NAME_VALUE = auto()
    ARG = auto()
    ARG_LIST_END = auto()
    HEADERS_START = auto()
    HEADER = auto()
    NOT_OPERATOR = auto()


class ParseResult:
    """
    Args:
        prefix (Optional[Address]): Address the line is relative to (the
            shell's current node). It is copied, never modified.
        validation (bool): Validate tokens and reject structural problems.
            Completion turns this off to inspect partial input.
    """

    def __init__(self, prefix: Optional[Address] = None, validation: bool = True):
        self.prefix = prefix.copy() if prefix is not None else None
        self.validation = validation
        self.reset()

    def reset(self) -> None:
        self.address: Optional[Address] = self.prefix.copy() if self.prefix is not None else None
        self.operation_name: Optional[str] = None
        self.properties: Dict[str, Optional[str]] = {}
        self.last_parsed_property_name: Optional[str] = None
        self.last_parsed_property_value: Optional[str] = None
        self.headers_raw: Optional[str] = None
        self.headers: Dict[str, str] = {}
        self.output_target: Optional[str] = None
        self.separator = Separator.NONE
        self.last_separator_index = -1
        self.last_chunk_index = 0
        self.is_request_complete = False
        self.original_line: Optional[str] = None
        self.substituted_line: Optional[str] = None
        self._address_changed = False
        self._property_list_started = False
        self._property_list_ended = False

    def parse(self, line: str, **options) -> ParseResult:
        """Resets and parses `line`; `options` go to OperationRequestParser."""
        from mgmt_shell.core.parsing.operation_grammar import OperationRequestParser

        return OperationRequestParser(**options).parse(line, self)

    # --- Address ---

    def _ensure_address(self) -> Address:
        if self.address is None:
            self.address = Address()
        return self.address

    def _chunk(self, offset: int) -> None:
        self.separator = Separator.NONE
        self.last_chunk_index = offset

    def _separate(self, separator: Separator, index: int) -> None:
        self.separator = separator
        self.last_separator_index = index
        self.last_chunk_index = index + 1

    def root_node(self, index: int) -> None:
        if self._address_changed:
            raise StructuralError("The root '/' is only allowed at the start of the address", index)
        self._ensure_address().reset()
        self._address_changed = True
        self._separate(Separator.NODE, index)

    def node_type(self, node_type: str, offset: int) -> None:
        address = self._ensure_address()
        if self.validation:
            validate_identifier("node type", node_type, offset)
        if address.ends_on_type:
            raise StructuralError(
                f"Node type '{node_type}' follows the type-only node '{address.node_type}'", offset)
        address.to_node_type(node_type)
        self._address_changed = True
        self._chunk(offset)

    def node_name(self, node_name: str, offset: int) -> None:
        address = self._ensure_address()
        if not address.ends_on_type:
            raise StructuralError(f"Node name '{node_name}' has no node type", offset)
        address.to_node_name(node_name)
        self._address_changed = True
        self._chunk(offset)

    def node_type_or_name(self, token: str, offset: int) -> None:
        """A segment closed by '/', ':' or the end of input."""
        if self.address is not None and self.address.ends_on_type:
            self.node_name(token, offset)
        else:
            self.node_type(token, offset)

    def node_type_only(self, offset: int) -> None:
        address = self._ensure_address()
        if address.is_empty:
            raise StructuralError("'.type' needs a node to apply to", offset)
        address.to_node_type_only()
        self._address_changed = True
        self._chunk(offset)

    def parent_node(self, offset: int) -> None:
        address = self._ensure_address()
        if address.is_empty:
            raise StructuralError("Cannot go above the root node", offset)
        address.to_parent_node()
        self._address_changed = True
        self._chunk(offset)

    def node_type_name_separator(self, index: int) -> None:
        self._separate(Separator.NODE_TYPE_NAME, index)

    def node_separator(self, index: int) -> None:
        self._separate(Separator.NODE, index)

    def address_operation_separator(self, index: int) -> None:
        if self.separator is Separator.NODE_TYPE_NAME:
            raise StructuralError("Node name is missing before ':'", index)
        if self.validation and self.address is not None and self.address.ends_on_type:
            raise StructuralError(f"Node type '{self.address.node_type}' has no node name", index)
        self._separate(Separator.ADDRESS_OPERATION, index)

    # --- Operation and properties ---

    def set_operation_name(self, name: str, offset: int) -> None:
        if self.validation:
            validate_identifier("operation name", name, offset)
        elif not name:
            return
        self.operation_name = name
        self._chunk(offset)

    def property_list_start(self, index: int) -> None:
        if self.operation_name is None:
            raise StructuralError("Property list without an operation name", index)
        if self._property_list_started:
            raise StructuralError("The property list was already given", index)
        self._property_list_started = True
        self._separate(Separator.OPERATION_ARGUMENTS, index)

    def property_name_value_separator(self, index: int) -> None:
        self._separate(Separator.ARG_NAME_VALUE, index)

    def _check_property_name(self, name: str, offset: int) -> None:
        if self.validation:
            validate_identifier("property name", name, offset)

    def _store(self, name: str, value: Optional[str]) -> None:
        self.properties[name] = value
        self.last_parsed_property_name = name
        self.last_parsed_property_value = value

    def add_property(self, name: str, value: str, offset: int) -> None:
        """`name=value`; the value is kept raw."""
        if name.startswith("!"):
            raise StructuralError(f"'!' cannot be combined with a value for '{name[1:]}'", offset)
        self._check_property_name(name, offset)
        self._store(name, value)
        if value:
            self._chunk(offset)

    def add_property_name(self, name: str, offset: int) -> None:
        """A bare name cut off by the end of input; a lone '!' is kept as the pending operator."""
        negated, bare, _ = self._split_not(name, offset)
        if negated and not bare:
            self._separate(Separator.NOT_OPERATOR, offset)
            return
        self.add_property_no_value(name, offset)

    def add_property_no_value(self, name: str, offset: int) -> None:
        """A name closed by ',' or ')': "true", or "false" when negated."""
        negated, bare, bare_offset = self._split_not(name, offset)
        if negated and not bare:
            raise StructuralError("Property name is missing after '!'", offset)
        self._check_property_name(bare, bare_offset)
        self._store(bare, "false" if negated else "true")
        self._chunk(offset)

    @staticmethod
    def _split_not(name: str, offset: int):
        """Splits a leading '!' off `name`; whitespace may follow it."""
        if not name.startswith("!"):
            return False, name, offset
        rest = name[1:]
        bare = rest.lstrip()
        if bare.startswith("!"):
            raise StructuralError("'!!' is not allowed", offset)
        return True, bare, offset + 1 + len(rest) - len(bare)

    def property_separator(self, index: int) -> None:
        self._separate(Separator.ARG, index)

    def property_list_end(self, index: int) -> None:
        self._property_list_ended = True
        self.is_request_complete = True
        self._separate(Separator.ARG_LIST_END, index)

    # --- Headers and output ---

    def header_list_start(self, index: int) -> None:
        self.is_request_complete = False
        self.headers_raw = ""
        self._separate(Separator.HEADERS_START, index)

    def set_headers(self, raw: str, offset: int) -> None:
        """Splits the raw header text on top-level ';' into an ordered map."""
        from mgmt_shell.core.parser import split_commands

        self.headers_raw = raw
        self.headers = {}
        for entry in split_commands(raw, separators=(";",)):
            match = _HEADER.match(entry)
            if not match:
                raise StructuralError(f"Malformed header '{entry}'", offset)
            name, by_equals, by_space = match.groups()
            value = by_equals if by_equals is not None else by_space
            self.headers[name] = value.strip() if value is not None else "true"
        if raw.strip():
            if raw.rstrip().endswith(";"):
                self._separate(Separator.HEADER, offset + len(raw.rstrip()) - 1)
            else:
                self._chunk(offset)

    def header_list_end(self, index: int) -> None:
        self.is_request_complete = True
        self._chunk(index)

    def set_output_target(self, target: str, offset: int) -> None:
        if not target and self.validation:
            raise StructuralError("Output target is missing after '>'", offset)
        self.output_target = target or None
        self._chunk(offset)

    # --- Inspection ---

    @property
    def has_address(self) -> bool:
        return self.address is not None

    @property
    def has_operation_name(self) -> bool:
        return self.operation_name is not None

    @property
    def has_properties(self) -> bool:
        return bool(self.properties)

    @property
    def property_names(self) -> List[str]:
        return list(self.properties)

    def has_property(self, name: str) -> bool:
        return name in self.properties

    def get_property_value(self, name: str) -> Optional[str]:
        return self.properties.get(name)

    @property
    def has_headers(self) -> bool:
        return self.headers_raw is not None

    @property
    def has_output_target(self) -> bool:
        return self.output_target is not None

    @property
    def ends_on_separator(self) -> bool:
        return self.separator is not Separator.NONE

    @property
    def ends_on_node_separator(self) -> bool:
        return self.separator is Separator.NODE

    @property
    def ends_on_node_type_name_separator(self) -> bool:
        return self.separator is Separator.NODE_TYPE_NAME

    @property
    def ends_on_address_operation_name_separator(self) -> bool:
        return self.separator is Separator.ADDRESS_OPERATION

    @property
    def ends_on_property_list_start(self) -> bool:
        return self.separator is Separator.OPERATION_ARGUMENTS

    @property
    def ends_on_property_value_separator(self) -> bool:
        return self.separator is Separator.ARG_NAME_VALUE

    @property
    def ends_on_property_separator(self) -> bool:
        return self.separator is Separator.ARG

    @property
    def ends_on_property_list_end(self) -> bool:
        return self.separator is Separator.ARG_LIST_END

    @property
    def ends_on_not_operator(self) -> bool:
        return self.separator is Separator.NOT_OPERATOR

    @property
    def ends_on_header_list_start(self) -> bool:
        return self.separator is Separator.HEADERS_START

    @property
    def ends_on_header_separator(self) -> bool:
        return self.separator is Separator.HEADER

    @property
    def ends_on_type(self) -> bool:
        return self.address is not None and self.address.ends_on_type

    def __repr__(self) -> str:
        return (f"ParseResult(address={self.address!r}, operation={self.operation_name!r}, "
                f"properties={self.properties!r}, headers={self.headers!r}, "
                f"output_target={self.output_target!r}, separator={self.separator.name})")
