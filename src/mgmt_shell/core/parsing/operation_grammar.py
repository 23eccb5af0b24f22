# src/mgmt_shell/core/parsing/operation_grammar.py
"""
Address / operation grammar.

    [/]type=name/type=name[:operation[(name=value,...)][{header;...}]] [> target]

Property values and headers are kept raw here; their end is found with the
same quote/bracket/expression spans the value grammar uses, so commas
inside `[..]`, `{..}`, `(..)`, quotes or `${..}` do not split them.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional

from mgmt_shell.core.parsing.address import Address
from mgmt_shell.core.parsing.context import ParsingContext
from mgmt_shell.core.parsing.engine import (
    ParsingState,
    StateParser,
    enter,
    enter_with_content,
    escape_literal,
    escape_raw,
    leave,
    leave_and_reprocess,
    resolving,
    skip,
    skip_line_continuation,
)
from mgmt_shell.core.parsing.errors import StructuralError
from mgmt_shell.core.parsing.parse_result import ParseResult
from mgmt_shell.core.parsing.token_buffer import TokenBuffer
from mgmt_shell.core.parsing.validation import validate_node_name
from mgmt_shell.core.parsing.value_grammar import ValueSpans
from mgmt_shell.core.services.expression_service import ExpressionResolver

logger = logging.getLogger(__name__)

RAW = ValueSpans(
    "RAW",
    escape_raw,
    track_parens=True,
    wrap_dollar=lambda handler: resolving(handler, value_position=True),
)

OPERATION_REQUEST = ParsingState("OPERATION_REQUEST")
NODE = ParsingState("NODE")
QUOTED_NAME = ParsingState("QUOTED_NAME", literal_content=True, must_end="Missing closing quote")
OPERATION = ParsingState("OPERATION")
PROPERTY_LIST = ParsingState("PROPERTY_LIST", must_end="Missing closing ')'")
PROPERTY = ParsingState("PROPERTY")
PROPERTY_VALUE = ParsingState("PROPERTY_VALUE")
HEADER_LIST = ParsingState("HEADER_LIST", must_end="Missing closing '}' of the headers")
OUTPUT_TARGET = ParsingState("OUTPUT_TARGET")


def _continuation_or_enter(state: ParsingState):
    def handle(ctx: ParsingContext) -> None:
        if not skip_line_continuation(ctx):
            enter_with_content(state)(ctx)
    return handle


OPERATION_REQUEST.on_whitespace(skip)
OPERATION_REQUEST.on(":", enter(OPERATION))
OPERATION_REQUEST.on("(", enter(PROPERTY_LIST))
OPERATION_REQUEST.on("{", enter(HEADER_LIST))
OPERATION_REQUEST.on(">", enter(OUTPUT_TARGET))
OPERATION_REQUEST.on("$", resolving(enter_with_content(NODE)))
OPERATION_REQUEST.on("\\", _continuation_or_enter(NODE))
OPERATION_REQUEST.default_handler = enter_with_content(NODE)

NODE.on("/=", leave)
NODE.on(":({>", leave_and_reprocess)
NODE.on('"', enter(QUOTED_NAME))
NODE.on("\\", escape_literal)
NODE.on("$", resolving(lambda ctx: ctx.content()))

QUOTED_NAME.on('"', leave)
QUOTED_NAME.on("\\", escape_literal)

OPERATION.on("({>", leave_and_reprocess)
OPERATION.on("\\", escape_literal)
OPERATION.on("$", resolving(lambda ctx: ctx.content()))

PROPERTY_LIST.on_whitespace(skip)
PROPERTY_LIST.on(")", leave)
PROPERTY_LIST.on("\\", _continuation_or_enter(PROPERTY))
PROPERTY_LIST.on("$", resolving(enter_with_content(PROPERTY)))
PROPERTY_LIST.default_handler = enter_with_content(PROPERTY)

PROPERTY.on("=", enter(PROPERTY_VALUE))
PROPERTY.on(",", leave)
PROPERTY.on(")", leave_and_reprocess)
PROPERTY.on("\\", escape_literal)
PROPERTY.on("$", resolving(lambda ctx: ctx.content()))

RAW.wire(PROPERTY_VALUE)
PROPERTY_VALUE.on(",)", leave_and_reprocess)

HEADER_LIST.on("}", leave)
RAW.wire(HEADER_LIST)

_SPECIAL_SEGMENTS = {".", "..", ".type"}


class OperationCallbackHandler:
    """Turns grammar events into ParseResult calls."""

    def __init__(self, result: ParseResult):
        self.result = result
        self._buffer = TokenBuffer()
        self._value = TokenBuffer()
        self._token_start = 0
        self._in_value = False
        self._property_name: Optional[str] = None
        self._property_offset = 0
        self._headers_start = 0

    def _start_token(self, offset: int) -> None:
        self._buffer.clear()
        self._token_start = offset

    def _token_offset(self, buffer: TokenBuffer) -> int:
        return buffer.start if buffer.start >= 0 else self._token_start

    def entered_state(self, ctx: ParsingContext) -> None:
        state = ctx.state
        result = self.result

        if state is NODE:
            if result.has_operation_name:
                raise StructuralError(f"Unexpected '{ctx.character}' after the operation", ctx.location)
            self._start_token(ctx.location)
        elif state is OPERATION:
            result.address_operation_separator(ctx.location)
            self._start_token(ctx.location + 1)
        elif state is PROPERTY_LIST:
            result.property_list_start(ctx.location)
        elif state is PROPERTY:
            self._start_token(ctx.location)
            self._property_name = None
        elif state is PROPERTY_VALUE:
            name = self._buffer.text()
            if not name and not self._buffer.has_literal:
                raise StructuralError("Property name is missing before '='", ctx.location)
            self._property_name = name
            self._property_offset = self._token_offset(self._buffer)
            result.property_name_value_separator(ctx.location)
            self._value.clear()
            self._in_value = True
        elif state is HEADER_LIST:
            if result.operation_name is None:
                raise StructuralError("Headers without an operation name", ctx.location)
            if result.has_headers:
                raise StructuralError("The headers were already given", ctx.location)
            result.header_list_start(ctx.location)
            self._headers_start = ctx.location + 1
            self._value.clear()
            self._in_value = True
        elif state is OUTPUT_TARGET:
            self._start_token(ctx.location + 1)
        elif state is RAW.quoted and self._in_value:
            self._value.append('"', ctx.location, literal=True)

    def character(self, ctx: ParsingContext) -> None:
        literal = ctx.escaped or ctx.state.literal_content
        target = self._value if self._in_value else self._buffer
        target.append(ctx.character, ctx.location, literal=literal)

    def leaving_state(self, ctx: ParsingContext) -> None:
        state = ctx.state
        result = self.result

        if state is NODE:
            self._finish_segment(ctx)
        elif state is OPERATION:
            result.set_operation_name(self._buffer.text(), self._token_offset(self._buffer))
        elif state is PROPERTY_VALUE:
            self._in_value = False
            result.add_property(self._property_name, self._value.text(), self._property_offset)
        elif state is PROPERTY:
            if self._property_name is None:
                self._finish_bare_property(ctx)
            if ctx.character == ",":
                result.property_separator(ctx.location)
        elif state is PROPERTY_LIST:
            if not ctx.is_end_of_content:
                result.property_list_end(ctx.location)
        elif state is HEADER_LIST:
            self._in_value = False
            result.set_headers(ctx.input[self._headers_start:ctx.location], self._headers_start)
            if not ctx.is_end_of_content:
                result.header_list_end(ctx.location)
        elif state is OUTPUT_TARGET:
            result.set_output_target(self._buffer.text(), self._token_offset(self._buffer))
        elif state is RAW.quoted and self._in_value and not ctx.is_end_of_content:
            self._value.append('"', ctx.location, literal=True)

    def _finish_bare_property(self, ctx: ParsingContext) -> None:
        name = self._buffer.text()
        offset = self._token_offset(self._buffer)
        if not name:
            if self.result.validation:
                raise StructuralError("Property name is missing", ctx.location)
            return
        if ctx.is_end_of_content:
            self.result.add_property_name(name, offset)
        else:
            self.result.add_property_no_value(name, offset)

    def _finish_segment(self, ctx: ParsingContext) -> None:
        result = self.result
        buffer = self._buffer
        ender = ctx.character
        token = buffer.text()
        offset = self._token_offset(buffer)

        if buffer.is_blank():
            if ender == "/":
                result.root_node(ctx.location)
            elif ender == "=":
                raise StructuralError("Node type is missing before '='", ctx.location)
            return

        if token in _SPECIAL_SEGMENTS and not buffer.has_literal and ender != "=":
            if token == "..":
                result.parent_node(offset)
            elif token == ".type":
                result.node_type_only(offset)
        elif ender == "=":
            result.node_type(token, offset)
            result.node_type_name_separator(ctx.location)
            return
        else:
            if result.ends_on_type and result.validation:
                validate_node_name(buffer)
            result.node_type_or_name(token, offset)

        if ender == "/":
            result.node_separator(ctx.location)


_PARSER = StateParser(OPERATION_REQUEST)


class OperationRequestParser:
    """
    Parses operation request lines into a ParseResult.

    Args:
        resolver (Optional[ExpressionResolver]): Resolves `${...}` in place.
        variables (Optional[Mapping[str, str]]): Shell variables for `$name`.
        resolve_parameter_values (bool): Resolve `${...}` inside property values.
        resolve_names (bool): Resolve `${...}` in the address, operation and property names.
    """

    def __init__(
            self,
            resolver: Optional[ExpressionResolver] = None,
            variables: Optional[Mapping[str, str]] = None,
            resolve_parameter_values: bool = False,
            resolve_names: bool = False,
    ):
        self.resolver = resolver
        self.variables = variables
        self.resolve_parameter_values = resolve_parameter_values
        self.resolve_names = resolve_names

    def parse(self, line: str, result: ParseResult) -> ParseResult:
        """
        Resets `result` and fills it from `line`. With `result.validation`
        off, unterminated quotes, brackets and lists are tolerated so the
        flags describe where the partial input stopped.
        """
        result.reset()
        result.original_line = line
        ctx = _PARSER.parse(
            line,
            OperationCallbackHandler(result),
            strict=result.validation,
            resolver=self.resolver,
            variables=self.variables,
            resolve_values=self.resolve_parameter_values,
            resolve_names=self.resolve_names,
        )
        result.substituted_line = ctx.input
        logger.debug("Parsed %r: %r", line, result)
        return result


def parse_operation_request(
        line: str,
        prefix: Optional[Address] = None,
        validation: bool = True,
        **options,
) -> ParseResult:
    """Parses `line` relative to `prefix`; `options` go to OperationRequestParser."""
    return OperationRequestParser(**options).parse(line, ParseResult(prefix, validation))
