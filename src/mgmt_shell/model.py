# src/mgmt_shell/model.py (Shell Layer)
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Node(BaseModel):
    """One `type=name` segment of a resource address; `name` is None for a type-only node."""
    model_config = ConfigDict(frozen=True)

    type: str
    name: Optional[str] = None

    @property
    def ends_on_type(self) -> bool:
        return self.name is None


# --- Typed values produced by the argument value grammar ---

class StringValue(BaseModel):
    kind: Literal["string"] = "string"
    text: str

    def to_python(self) -> Any:
        return self.text


class ListValue(BaseModel):
    kind: Literal["list"] = "list"
    items: List["TypedValue"] = Field(default_factory=list)

    def to_python(self) -> Any:
        return [item.to_python() for item in self.items]


class ObjectValue(BaseModel):
    """Ordered map; insertion order is preserved."""
    kind: Literal["object"] = "object"
    entries: Dict[str, "TypedValue"] = Field(default_factory=dict)

    def to_python(self) -> Any:
        return {name: value.to_python() for name, value in self.entries.items()}


class PropertyListValue(BaseModel):
    kind: Literal["property_list"] = "property_list"
    properties: List[Tuple[str, "TypedValue"]] = Field(default_factory=list)

    def to_python(self) -> Any:
        return [(name, value.to_python()) for name, value in self.properties]


class BytesValue(BaseModel):
    """Byte array stored as signed 8-bit integers."""
    kind: Literal["bytes"] = "bytes"
    values: List[int] = Field(default_factory=list)

    @field_validator("values")
    @classmethod
    def _check_range(cls, values: List[int]) -> List[int]:
        for v in values:
            if not -128 <= v <= 127:
                raise ValueError(f"byte value out of range: {v}")
        return values

    @property
    def data(self) -> bytes:
        return bytes(v & 0xFF for v in self.values)

    def to_python(self) -> Any:
        return self.data


TypedValue = Annotated[
    Union[StringValue, ListValue, ObjectValue, PropertyListValue, BytesValue],
    Field(discriminator="kind"),
]

ListValue.model_rebuild()
ObjectValue.model_rebuild()
PropertyListValue.model_rebuild()


class OperationRequest(BaseModel):
    """A fully typed request, ready to be handed to a management client."""
    address: List[Node] = Field(default_factory=list)
    operation: str
    parameters: Dict[str, TypedValue] = Field(default_factory=dict)
    headers: Dict[str, TypedValue] = Field(default_factory=dict)
    output_target: Optional[str] = None

    def to_python(self) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "address": [{node.type: node.name} for node in self.address],
            "operation": self.operation,
        }
        request.update({name: value.to_python() for name, value in self.parameters.items()})
        if self.headers:
            request["operation-headers"] = {name: value.to_python() for name, value in self.headers.items()}
        return request


class ParsingSettings(BaseModel):
    """The `parsing` section of settings.json."""
    model_config = ConfigDict(extra="ignore")

    validation: bool = Field(default=True, description="Validate names while parsing.")
    resolve_parameter_values: bool = Field(default=False, description="Resolve ${...} in parameter values.")
    resolve_names: bool = Field(default=False, description="Resolve ${...} in addresses and names.")
    max_value_depth: int = Field(default=64, ge=1)
    max_resolution_depth: int = Field(default=32, ge=1)
    command_separators: List[str] = Field(default_factory=lambda: [",", ";"])
