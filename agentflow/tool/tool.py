"""
Tool Calls

A tool is an externally invocable function an agent may request.
Each tool declares its parameters explicitly; `describe()` turns that
declaration into the input schema shown to models, and `execute()`
decodes, coerces and validates model-supplied arguments before
dispatching to the implementation.
"""

from __future__ import annotations

import inspect
import json
import logging
from abc import ABC, abstractmethod
from datetime import date, time
from typing import Any, Awaitable, Callable

from agentflow.errors import InvalidArgumentError, ToolExecutionError
from agentflow.tool.coerce import coerce
from agentflow.tool.parameter import ToolCallParameter

logger = logging.getLogger(__name__)

# OpenAI-compatible function names are limited to 64 characters
MAX_FUNCTION_NAME_LENGTH = 64


class ToolCall(ABC):
    """
    Base class for tools.

    Subclasses implement `call()` with already-coerced keyword arguments.
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: list[ToolCallParameter] | None = None,
        direct_return: bool = False,
    ):
        """
        Args:
            name: Tool name the model uses to request it
            description: What the tool does, shown to the model
            parameters: Ordered argument descriptors
            direct_return: Return the tool result as the agent output
                instead of handing it back to the model
        """
        if not name:
            raise ValueError("Tool name is required")
        if description is None:
            raise ValueError(f"Tool '{name}' requires a description")
        parameters = list(parameters or [])
        names = [p.name for p in parameters]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Tool '{name}' has duplicate parameter names: {sorted(duplicates)}")

        self.name = name
        self.description = description
        self.parameters = parameters
        self.direct_return = direct_return

    @abstractmethod
    async def call(self, **kwargs: Any) -> Any:
        """Run the tool with coerced arguments."""
        ...

    def get_parameter(self, name: str) -> ToolCallParameter | None:
        return next((p for p in self.parameters if p.name == name), None)

    def function_name(self) -> str:
        """Name truncated to what function-calling APIs accept."""
        name = self.name
        if len(name) > MAX_FUNCTION_NAME_LENGTH:
            name = name[-MAX_FUNCTION_NAME_LENGTH:]
            if "_" in name:
                name = name[name.index("_") + 1:]
        return name

    def to_function_schema(self) -> dict[str, Any]:
        """OpenAI-style function definition for binding to chat models."""
        return {
            "type": "function",
            "function": {
                "name": self.function_name(),
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {p.name: p.to_property() for p in self.parameters},
                    "required": [p.name for p in self.parameters if p.required],
                },
            },
        }

    def coerce_arguments(self, arguments: str | dict[str, Any] | None) -> dict[str, Any]:
        """
        Decode and coerce raw arguments.

        Raises:
            ToolExecutionError: If arguments are not a JSON object, a required
                argument is missing, a value is outside its enums, or
                coercion fails
        """
        if arguments is None or arguments == "":
            raw: Any = {}
        elif isinstance(arguments, str):
            try:
                raw = json.loads(arguments)
            except json.JSONDecodeError as e:
                raise ToolExecutionError(
                    "Arguments are not valid JSON", tool_name=self.name, text=arguments
                ) from e
        else:
            raw = arguments
        if not isinstance(raw, dict):
            raise ToolExecutionError(
                "Arguments must be a JSON object", tool_name=self.name, text=str(arguments)
            )

        kwargs: dict[str, Any] = {}
        for parameter in self.parameters:
            try:
                value = coerce(raw.get(parameter.name), parameter.type)
            except InvalidArgumentError as e:
                raise ToolExecutionError(
                    f"Invalid value for '{parameter.name}': {e}", tool_name=self.name
                ) from e
            if value is None:
                if parameter.required:
                    raise ToolExecutionError(
                        f"Missing required argument '{parameter.name}'", tool_name=self.name
                    )
                continue
            # Temporal enums are listed as ISO text
            listed = value.isoformat() if isinstance(value, (date, time)) else value
            if parameter.enums and listed not in parameter.enums:
                raise ToolExecutionError(
                    f"Value '{value}' for '{parameter.name}' not in {parameter.enums}",
                    tool_name=self.name,
                )
            kwargs[parameter.name] = value

        unknown = set(raw) - {p.name for p in self.parameters}
        if unknown:
            logger.warning(f"Tool {self.name} ignoring unknown arguments: {sorted(unknown)}")
        return kwargs

    async def execute(self, arguments: str | dict[str, Any] | None) -> str:
        """
        Execute the tool with raw model-supplied arguments.

        Returns:
            The tool result as text

        Raises:
            ToolExecutionError: On argument or execution failure
        """
        kwargs = self.coerce_arguments(arguments)
        logger.debug(f"Executing tool {self.name} with {kwargs}")
        try:
            result = await self.call(**kwargs)
        except ToolExecutionError:
            raise
        except Exception as e:
            raise ToolExecutionError(str(e), tool_name=self.name) from e

        if result is None:
            return ""
        if isinstance(result, str):
            return result
        return json.dumps(result, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionTool(ToolCall):
    """Tool backed by a plain Python callable (sync or async)."""

    def __init__(
        self,
        name: str,
        description: str,
        function: Callable[..., Any] | Callable[..., Awaitable[Any]],
        parameters: list[ToolCallParameter] | None = None,
        direct_return: bool = False,
    ):
        super().__init__(name, description, parameters, direct_return)
        self.function = function

    async def call(self, **kwargs: Any) -> Any:
        result = self.function(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result


def describe(tool: ToolCall) -> dict[str, Any]:
    """
    Describe a tool as a name, description and input schema.

    Property order follows the tool's declared parameter order, and
    `required` lists exactly the parameters declared required.
    """
    return {
        "name": tool.name,
        "description": tool.description,
        "input_schema": {
            "type": "object",
            "properties": [
                {
                    "name": p.name,
                    "description": p.description,
                    "type": p.type.json_schema_type,
                    "required": p.required,
                    "enums": list(p.enums),
                }
                for p in tool.parameters
            ],
            "required": [p.name for p in tool.parameters if p.required],
        },
    }
