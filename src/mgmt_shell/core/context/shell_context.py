# src/mgmt_shell/core/context/shell_context.py
import logging
import os
import re
from typing import Any, Dict, Optional

from mgmt_shell.core.managers.config_manager import config_manager
from mgmt_shell.core.parsing.address import Address
from mgmt_shell.core.parsing.operation_grammar import OperationRequestParser
from mgmt_shell.core.services.expression_service import ExpressionResolver, system_lookup
from mgmt_shell.core.services.request_build_service import RequestBuildService
from mgmt_shell.model import ParsingSettings

logger = logging.getLogger(__name__)

# `$name` not preceded by another `$`; `$$` is left to the expression resolver.
VARIABLE_REF = re.compile(r"(?<!\$)\$([A-Za-z_][A-Za-z0-9_]*)")


class ShellContext:
    """
    Manages session variables and the core state of the shell.

    Two kinds of named values live here: shell variables (`set name=value`,
    substituted as `$name`) and expression properties (`set -Dname=value`,
    looked up by `${name}` together with the environment).
    """

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self._vars: Dict[str, str] = {}
        self.properties: Dict[str, str] = {}
        self.environ = os.environ if environ is None else environ
        self.current_address = Address()
        self.prompt_session: Optional[Any] = None

    # --- Variables ---

    def set(self, key: str, value: str) -> None:
        """Sets a shell variable."""
        self._vars[key] = value

    def get(self, key: str) -> Optional[str]:
        """Retrieves a shell variable. Returns None if key does not exist."""
        return self._vars.get(key)

    def unset(self, key: str) -> bool:
        return self._vars.pop(key, None) is not None

    @property
    def variables(self) -> Dict[str, str]:
        return self._vars

    def set_property(self, key: str, value: str) -> None:
        self.properties[key] = value

    def expand(self, text: str, strict: bool = True) -> str:
        """Substitutes `$name` variables, then resolves `${...}` expressions."""
        text = VARIABLE_REF.sub(lambda m: self._vars.get(m.group(1), m.group(0)), text)
        resolver = self.resolver()
        return resolver.resolve(text) if strict else resolver.resolve_lax(text)

    # --- Parsing collaborators ---

    @property
    def settings(self) -> ParsingSettings:
        return config_manager.parsing_settings()

    def resolver(self) -> ExpressionResolver:
        """A resolver over the current properties and environment."""
        return ExpressionResolver(
            system_lookup(self.properties, self.environ),
            max_depth=self.settings.max_resolution_depth,
        )

    def operation_parser(self) -> OperationRequestParser:
        settings = self.settings
        return OperationRequestParser(
            resolver=self.resolver(),
            variables=self._vars,
            resolve_parameter_values=settings.resolve_parameter_values,
            resolve_names=settings.resolve_names,
        )

    def request_builder(self) -> RequestBuildService:
        # Values were already resolved in place by the operation parser.
        return RequestBuildService(self.settings.max_value_depth)

    def __repr__(self) -> str:
        return f"<ShellContext address={self.current_address} vars_count={len(self._vars)}>"
