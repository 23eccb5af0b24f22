# src/mgmt_shell/core/parsing/address.py
from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Tuple, Union

from mgmt_shell.model import Node

# Characters that never need escaping in the canonical form of a type or name.
_SAFE_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-.*")
_SPECIAL_TOKENS = {".", "..", ".type"}


def escape_token(token: str) -> str:
    """Backslash-escapes every character the address grammar would interpret."""
    out = []
    for i, ch in enumerate(token):
        if ch not in _SAFE_CHARS or (i == 0 and ch == "-"):
            out.append("\\")
        out.append(ch)
    escaped = "".join(out)
    if token in _SPECIAL_TOKENS:
        escaped = "\\" + escaped
    return escaped


class Address:
    """An ordered path of resource nodes. Only the last node may be type-only."""

    def __init__(self, nodes: Optional[Iterable[Node]] = None):
        self._nodes: List[Node] = list(nodes or [])

    @classmethod
    def of(cls, *pairs: Union[Tuple[str, Optional[str]], Tuple[str]]) -> Address:
        """Address.of(("subsystem", "logging"), ("logger",))"""
        return cls(Node(type=p[0], name=p[1] if len(p) > 1 else None) for p in pairs)

    # --- Navigation ---

    def to_node(self, node_type: str, node_name: str) -> None:
        self._nodes.append(Node(type=node_type, name=node_name))

    def to_node_type(self, node_type: str) -> None:
        self._nodes.append(Node(type=node_type))

    def to_node_name(self, node_name: str) -> None:
        last = self._nodes[-1]
        self._nodes[-1] = Node(type=last.type, name=node_name)

    def to_node_type_only(self) -> str:
        """Drops the name of the last node and returns its type."""
        last = self._nodes[-1]
        self._nodes[-1] = Node(type=last.type)
        return last.type

    def to_parent_node(self) -> Node:
        return self._nodes.pop()

    def reset(self) -> None:
        self._nodes.clear()

    def copy(self) -> Address:
        return Address(self._nodes)

    # --- Inspection ---

    @property
    def ends_on_type(self) -> bool:
        return bool(self._nodes) and self._nodes[-1].name is None

    @property
    def is_empty(self) -> bool:
        return not self._nodes

    @property
    def node_type(self) -> Optional[str]:
        return self._nodes[-1].type if self._nodes else None

    @property
    def node_name(self) -> Optional[str]:
        return self._nodes[-1].name if self._nodes else None

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return tuple(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Address):
            return self._nodes == other._nodes
        if isinstance(other, (list, tuple)):
            return self._nodes == list(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._nodes))

    def to_string(self) -> str:
        """Canonical `/type=name/...` form; a type-only last node renders as `/type`."""
        if not self._nodes:
            return "/"
        parts = []
        for node in self._nodes:
            part = "/" + escape_token(node.type)
            if node.name is not None:
                part += "=" + escape_token(node.name)
            parts.append(part)
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Address({self.to_string()!r})"
