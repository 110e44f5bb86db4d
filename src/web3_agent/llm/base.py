"""Provider-neutral chat data structures and the provider base class."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

from web3_agent.errors import ArgumentParseError

Role = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True)
class ToolDefinition:
    """A tool as advertised to the model: name, description, JSON schema."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class ToolCall:
    """One tool invocation requested by the model.

    ``arguments`` is kept exactly as the provider delivered it - a JSON
    string (OpenAI) or an already-decoded mapping (Anthropic).  Decoding
    and validation happen at dispatch time so that one malformed payload
    only fails its own call.
    """

    id: str
    name: str
    arguments: dict[str, Any] | str = field(default_factory=dict)

    def arguments_json(self) -> str:
        if isinstance(self.arguments, str):
            return self.arguments
        return json.dumps(self.arguments)

    def arguments_dict(self) -> dict[str, Any]:
        """Decode ``arguments`` into a mapping or raise ``ArgumentParseError``."""
        raw = self.arguments
        if isinstance(raw, dict):
            return raw
        if not raw or not raw.strip():
            return {}
        try:
            decoded = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as exc:
            raise ArgumentParseError(
                f"Failed to parse arguments for {self.name}: {exc}"
            ) from exc
        if not isinstance(decoded, dict):
            raise ArgumentParseError(
                f"Failed to parse arguments for {self.name}: expected a JSON object"
            )
        return decoded


@dataclass(frozen=True)
class LLMMessage:
    """One conversation entry: ``system``, ``user``, ``assistant`` or ``tool``.

    Assistant messages may carry ``tool_calls``; tool messages carry the
    ``tool_call_id`` of the request they answer.
    """

    role: Role
    content: str = ""
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None

    @classmethod
    def system(cls, content: str) -> LLMMessage:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> LLMMessage:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str = "", tool_calls: list[ToolCall] | None = None) -> LLMMessage:
        return cls(
            role="assistant",
            content=content,
            tool_calls=tuple(tool_calls) if tool_calls else None,
        )

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> LLMMessage:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the OpenAI chat-completions message shape."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": tc.arguments_json()},
                }
                for tc in self.tool_calls
            ]
        if self.role == "tool":
            data["tool_call_id"] = self.tool_call_id or ""
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LLMMessage:
        """Inverse of :meth:`to_dict`; raises ``ValueError`` on malformed input."""
        if not isinstance(data, dict):
            raise ValueError(f"Message must be an object, got {type(data).__name__}")
        role = data.get("role")
        if role not in ("system", "user", "assistant", "tool"):
            raise ValueError(f"Unknown message role: {role!r}")

        content = data.get("content") or ""
        if not isinstance(content, str):
            raise ValueError("Message content must be a string")

        tool_calls = None
        raw_calls = data.get("tool_calls")
        if raw_calls:
            if not isinstance(raw_calls, list):
                raise ValueError("tool_calls must be a list")
            tool_calls = []
            for raw in raw_calls:
                if not isinstance(raw, dict):
                    raise ValueError(f"Tool call must be an object, got {type(raw).__name__}")
                function = raw.get("function") or {}
                if not isinstance(function, dict):
                    raise ValueError("Tool call 'function' must be an object")
                name = function.get("name", raw.get("name", ""))
                arguments = function.get("arguments", raw.get("arguments", {}))
                if not isinstance(name, str) or not isinstance(arguments, (str, dict)):
                    raise ValueError("Tool call name must be a string and arguments a string or object")
                tool_calls.append(ToolCall(id=str(raw.get("id", "")), name=name, arguments=arguments))
            tool_calls = tuple(tool_calls)

        tool_call_id = data.get("tool_call_id")
        if role == "tool" and not tool_call_id:
            raise ValueError("Tool messages require a tool_call_id")
        if tool_call_id is not None and not isinstance(tool_call_id, str):
            raise ValueError("tool_call_id must be a string")

        return cls(role=role, content=content, tool_calls=tool_calls, tool_call_id=tool_call_id)


@dataclass
class LLMResponse:
    """A provider's reply, normalised across backends."""

    content: str = ""
    tool_calls: list[ToolCall] | None = None
    usage: dict[str, int] | None = None
    stop_reason: str | None = None


class BaseLLMProvider(ABC):
    """Common constructor and interface for chat-completion backends."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        """Run one completion with automatic tool choice.

        Implementations raise :class:`~web3_agent.errors.ModelCallError`
        for any transport, authentication or rate-limit failure.
        """
