"""
Tool Call Parameters

Declarative descriptors for the arguments a tool accepts.
Descriptors are built explicitly when a tool is defined and consumed
directly by schema generation and argument coercion.
"""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class ToolCallParameterType(str, Enum):
    """Supported parameter types."""
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    LONG = "long"
    DOUBLE = "double"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    LIST = "list"
    MAP = "map"
    ANY = "any"  # Opaque, passed through untouched

    @property
    def python_type(self) -> type | None:
        return _PYTHON_TYPES.get(self)

    @property
    def string_like(self) -> bool:
        return self in _STRING_LIKE

    @property
    def json_schema_type(self) -> str:
        return _JSON_SCHEMA_TYPES[self]

    @property
    def json_schema_format(self) -> str | None:
        """Format hint for string-encoded temporal values."""
        if self in (ToolCallParameterType.DATE, ToolCallParameterType.DATETIME, ToolCallParameterType.TIME):
            return self.value.replace("datetime", "date-time")
        return None


_PYTHON_TYPES: dict[ToolCallParameterType, type] = {
    ToolCallParameterType.STRING: str,
    ToolCallParameterType.BOOLEAN: bool,
    ToolCallParameterType.INTEGER: int,
    ToolCallParameterType.LONG: int,
    ToolCallParameterType.DOUBLE: float,
    ToolCallParameterType.FLOAT: float,
    ToolCallParameterType.DECIMAL: Decimal,
    ToolCallParameterType.DATE: date,
    ToolCallParameterType.DATETIME: datetime,
    ToolCallParameterType.TIME: time,
    ToolCallParameterType.LIST: list,
    ToolCallParameterType.MAP: dict,
}

_STRING_LIKE = {
    ToolCallParameterType.STRING,
    ToolCallParameterType.DATE,
    ToolCallParameterType.DATETIME,
    ToolCallParameterType.TIME,
}

_JSON_SCHEMA_TYPES: dict[ToolCallParameterType, str] = {
    ToolCallParameterType.STRING: "string",
    ToolCallParameterType.DATE: "string",
    ToolCallParameterType.DATETIME: "string",
    ToolCallParameterType.TIME: "string",
    ToolCallParameterType.BOOLEAN: "boolean",
    ToolCallParameterType.INTEGER: "integer",
    ToolCallParameterType.LONG: "integer",
    ToolCallParameterType.DOUBLE: "number",
    ToolCallParameterType.FLOAT: "number",
    ToolCallParameterType.DECIMAL: "number",
    ToolCallParameterType.LIST: "array",
    ToolCallParameterType.MAP: "object",
    ToolCallParameterType.ANY: "object",
}


class ToolCallParameter(BaseModel):
    """A single named argument of a tool."""

    name: str = Field(
        ...,
        min_length=1,
        description="Argument name as the model must send it",
    )
    description: str = Field(
        default="",
        description="What the argument means, shown to the model",
    )
    type: ToolCallParameterType = Field(
        default=ToolCallParameterType.STRING,
        description="Declared argument type",
    )
    required: bool = Field(
        default=False,
        description="Whether the model must supply the argument",
    )
    enums: list[str] = Field(
        default_factory=list,
        description="Allowed values (string-like types only)",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _enums_only_for_strings(self) -> "ToolCallParameter":
        if self.enums and not self.type.string_like:
            raise ValueError(
                f"Parameter '{self.name}' declares enums but type {self.type.value} is not string-like"
            )
        return self

    def to_property(self) -> dict[str, Any]:
        """JSON-schema property for function-calling payloads."""
        prop: dict[str, Any] = {"type": self.type.json_schema_type}
        if self.description:
            prop["description"] = self.description
        fmt = self.type.json_schema_format
        if fmt:
            prop["format"] = fmt
        if self.enums:
            prop["enum"] = list(self.enums)
        return prop
