# src/mgmt_shell/core/services/request_build_service.py
import logging
from typing import Dict, Optional

from mgmt_shell.core.parsing.errors import CommandSyntaxError, StructuralError
from mgmt_shell.core.parsing.parse_result import ParseResult
from mgmt_shell.core.parsing.value_grammar import DEFAULT_MAX_DEPTH, parse_value
from mgmt_shell.core.services.expression_service import ExpressionResolver
from mgmt_shell.model import OperationRequest, StringValue, TypedValue

logger = logging.getLogger(__name__)

# Header values that are passed on as plain strings instead of being typed.
STRING_HEADERS = {"rollout"}


class RequestBuildService:
    """
    Builds a typed OperationRequest from a complete ParseResult.

    Every raw property value goes through the value grammar. With a
    resolver, `${...}` in string leaves is resolved after typing.
    """

    def __init__(self, max_value_depth: int = DEFAULT_MAX_DEPTH, resolver: Optional[ExpressionResolver] = None):
        self.max_value_depth = max_value_depth
        self.resolver = resolver

    def build(self, result: ParseResult) -> OperationRequest:
        if result.operation_name is None:
            raise StructuralError("The operation name is missing")
        if result.ends_on_type:
            raise StructuralError(f"Node type '{result.address.node_type}' has no node name")

        parameters: Dict[str, TypedValue] = {}
        for name, raw in result.properties.items():
            if not raw:
                raise StructuralError(f"The value of '{name}' is missing")
            parameters[name] = self._typed(name, raw)

        headers: Dict[str, TypedValue] = {}
        for name, raw in result.headers.items():
            if name in STRING_HEADERS:
                headers[name] = StringValue(text=raw)
            else:
                headers[name] = self._typed(name, raw)

        request = OperationRequest(
            address=list(result.address or []),
            operation=result.operation_name,
            parameters=parameters,
            headers=headers,
            output_target=result.output_target,
        )
        logger.debug("Built request %s", request)
        return request

    def _typed(self, name: str, raw: str) -> TypedValue:
        try:
            return parse_value(raw, resolver=self.resolver, max_depth=self.max_value_depth)
        except CommandSyntaxError as e:
            e.message = f"Invalid value of '{name}': {e.message}"
            raise
