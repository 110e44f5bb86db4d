"""Tool registry - declare tools on a handler object and look them up by name."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from web3_agent.errors import Web3AgentError
from web3_agent.llm.base import ToolDefinition
from web3_agent.tools.arguments import parse_arguments
from web3_agent.tools.results import ToolResult

logger = logging.getLogger("web3_agent.tools.registry")

_TOOL_SPEC_ATTR = "__tool_spec__"


@dataclass(frozen=True)
class ToolSpec:
    """What the :func:`tool` decorator records on a handler method."""

    name: str
    description: str
    parameters: dict[str, Any]
    args_model: type[BaseModel]
    terminal: bool = False


@dataclass
class Tool:
    name: str
    description: str
    parameters: dict[str, Any]
    args_model: type[BaseModel]
    func: Callable[..., Any] | Callable[..., Awaitable[Any]]
    is_async: bool = False
    terminal: bool = False  # a successful call ends the instruction

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    async def execute(self, payload: dict[str, Any]) -> ToolResult:
        """Validate *payload*, run the handler, and fold any failure into a result.

        Never raises: library errors become their message, anything else is
        reported as an internal error of this tool.
        """
        try:
            args = parse_arguments(self.args_model, self.name, payload)
            if self.is_async:
                data = await self.func(args)
            else:
                data = self.func(args)
        except Web3AgentError as exc:
            logger.error(f"Error executing tool {self.name}: {exc}")
            return ToolResult.failure(str(exc))
        except Exception as exc:
            logger.exception(f"Unexpected error calling handler for {self.name}")
            return ToolResult.failure(f"Internal error executing tool {self.name}: {exc}")
        return ToolResult.success(data)


class ToolRegistry:
    """Ordered catalogue of the tools available to one agent."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    @classmethod
    def from_handlers(cls, *handlers: object) -> ToolRegistry:
        """Register every :func:`tool`-decorated method of *handlers*.

        Tools are registered in class definition order, base classes first.
        """
        registry = cls()
        for handler in handlers:
            specs: dict[str, ToolSpec] = {}
            for klass in reversed(type(handler).__mro__):
                for attr_name, member in vars(klass).items():
                    spec = getattr(member, _TOOL_SPEC_ATTR, None)
                    if isinstance(spec, ToolSpec):
                        specs[attr_name] = spec
            for attr_name, spec in specs.items():
                func = getattr(handler, attr_name)
                registry.register(Tool(
                    name=spec.name,
                    description=spec.description,
                    parameters=spec.parameters,
                    args_model=spec.args_model,
                    func=func,
                    is_async=inspect.iscoroutinefunction(func),
                    terminal=spec.terminal,
                ))
        return registry

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def get_tools(self, names: list[str] | None = None) -> list[Tool]:
        if names is None:
            return list(self._tools.values())
        return [self._tools[n] for n in names if n in self._tools]

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    def definitions(self) -> list[ToolDefinition]:
        return [t.to_definition() for t in self._tools.values()]


def tool(
    name: str,
    description: str,
    parameters: dict[str, Any],
    *,
    args: type[BaseModel],
    terminal: bool = False,
):
    """Decorator to declare a handler method as a tool.

    Usage:
        @tool("getTokenAddress", "Gets a token's contract address", {...},
              args=TokenAddressArgs)
        def get_token_address(self, args: TokenAddressArgs) -> dict:
            ...
    """

    def decorator(func: Callable) -> Callable:
        setattr(func, _TOOL_SPEC_ATTR, ToolSpec(
            name=name,
            description=description,
            parameters=parameters,
            args_model=args,
            terminal=terminal,
        ))
        return func

    return decorator
