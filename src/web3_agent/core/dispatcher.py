"""Tool dispatcher - runs one batch of model tool calls concurrently."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from web3_agent.errors import ArgumentParseError
from web3_agent.llm.base import LLMMessage, ToolCall
from web3_agent.tools.registry import ToolRegistry
from web3_agent.tools.results import ToolResult

logger = logging.getLogger("web3_agent.dispatcher")


@dataclass(frozen=True)
class DispatchedCall:
    """A tool call paired with the result it produced."""

    request: ToolCall
    result: ToolResult
    terminal: bool = False  # the tool is a state-changing transfer

    def to_message(self) -> LLMMessage:
        return LLMMessage.tool(self.request.id, self.result.to_content())


@dataclass
class DispatchOutcome:
    """Results of one batch, ordered by request id."""

    calls: list[DispatchedCall] = field(default_factory=list)

    @property
    def terminal_action_occurred(self) -> bool:
        """True if any transfer in the batch succeeded."""
        return any(c.terminal and c.result.ok for c in self.calls)

    def tool_messages(self) -> list[LLMMessage]:
        return [c.to_message() for c in self.calls]

    def errors(self) -> list[str]:
        return [f"{c.request.name}: {c.result.error}" for c in self.calls if not c.result.ok]


class ToolDispatcher:
    """Executes tool calls against a :class:`ToolRegistry`.

    Every call yields a :class:`ToolResult`; unknown tools, undecodable
    arguments and handler failures all become error results so that one
    bad call never aborts its siblings.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def dispatch_one(self, call: ToolCall) -> DispatchedCall:
        tool = self.registry.get_tool(call.name)
        if tool is None:
            logger.warning(f"Unknown function call requested: {call.name}")
            return DispatchedCall(call, ToolResult.failure(f"Unknown function: {call.name}"))

        try:
            payload = call.arguments_dict()
        except ArgumentParseError as exc:
            logger.error(str(exc))
            return DispatchedCall(call, ToolResult.failure(str(exc)), terminal=tool.terminal)

        logger.info(f"Calling tool {call.name}({payload}) [id={call.id}]")
        result = await tool.execute(payload)
        if result.ok:
            logger.info(f"Tool {call.name} executed successfully.")
        return DispatchedCall(call, result, terminal=tool.terminal)

    async def dispatch(self, calls: list[ToolCall]) -> DispatchOutcome:
        """Run *calls* concurrently and return their results sorted by request id.

        The ordering is independent of completion order so that transcripts
        are reproducible.
        """
        dispatched = await asyncio.gather(*(self.dispatch_one(c) for c in calls))
        ordered = sorted(dispatched, key=lambda d: d.request.id)
        return DispatchOutcome(calls=ordered)
