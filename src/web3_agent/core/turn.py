"""Agent turn executor - one model round-trip plus the tool calls it requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from web3_agent.core.dispatcher import DispatchedCall, ToolDispatcher
from web3_agent.core.history import ConversationLog
from web3_agent.errors import ModelCallError
from web3_agent.llm.base import BaseLLMProvider, LLMMessage, ToolDefinition

logger = logging.getLogger("web3_agent.turn")

EMPTY_REPLY = "(no response)"


@dataclass
class AgentTurnOutcome:
    """What one turn produced.

    ``tool_messages`` is empty when the model answered in plain text or
    when the model call failed (``turn_error`` set).
    """

    assistant_message: LLMMessage
    tool_results: list[DispatchedCall] = field(default_factory=list)
    terminal_action_occurred: bool = False
    turn_error: str | None = None

    @property
    def tool_messages(self) -> list[LLMMessage]:
        return [c.to_message() for c in self.tool_results]

    @property
    def requested_tools(self) -> bool:
        return bool(self.assistant_message.tool_calls)


class AgentTurnExecutor:
    """Runs a single turn: call the model, then dispatch any tool calls.

    Parameters
    ----------
    provider:
        The language model backend.
    dispatcher:
        Executes the tool calls the model asks for.
    tools:
        The tool catalogue sent with every request.
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        dispatcher: ToolDispatcher,
        tools: list[ToolDefinition],
    ) -> None:
        self.provider = provider
        self.dispatcher = dispatcher
        self.tools = tools

    async def execute(self, history: ConversationLog) -> AgentTurnOutcome:
        logger.info(f"Calling model {self.provider.model} with {len(history)} messages")
        try:
            response = await self.provider.complete(
                messages=list(history.messages),
                tools=self.tools,
            )
        except ModelCallError as exc:
            return self._failed(str(exc))
        except Exception as exc:
            return self._failed(f"Failed to get response from model: {exc}")

        if not response.tool_calls:
            content = response.content or EMPTY_REPLY
            logger.info(f"Agent: {content[:200]}")
            return AgentTurnOutcome(assistant_message=LLMMessage.assistant(content))

        assistant = LLMMessage.assistant(response.content, response.tool_calls)
        logger.info(
            "Assistant requested tool calls: "
            + ", ".join(f"{tc.name}[{tc.id}]" for tc in response.tool_calls)
        )

        outcome = await self.dispatcher.dispatch(response.tool_calls)
        for error in outcome.errors():
            logger.warning(f"Tool error - {error}")

        return AgentTurnOutcome(
            assistant_message=assistant,
            tool_results=outcome.calls,
            terminal_action_occurred=outcome.terminal_action_occurred,
        )

    @staticmethod
    def _failed(message: str) -> AgentTurnOutcome:
        logger.error(f"Model call failed: {message}")
        return AgentTurnOutcome(
            assistant_message=LLMMessage.assistant(f"Error: {message}"),
            turn_error=message,
        )
