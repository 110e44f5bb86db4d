"""Agent - the conversation loop that turns one instruction into wallet actions."""

from __future__ import annotations

import logging
from typing import Iterable

from web3_agent.core.history import ConversationLog
from web3_agent.core.turn import AgentTurnExecutor
from web3_agent.llm.base import LLMMessage

logger = logging.getLogger("web3_agent.agent")


class Agent:
    """Drives turns until the model answers or a transfer has been submitted.

    Stop conditions, checked after each turn's messages are appended:

    * the model call failed and nothing was dispatched;
    * the model answered without requesting tools;
    * a transfer in the dispatched batch succeeded (no further model call);
    * ``max_turns`` turns have run.
    """

    def __init__(
        self,
        executor: AgentTurnExecutor,
        system_prompt: str,
        max_turns: int = 15,
    ):
        self.executor = executor
        self.system_prompt = system_prompt
        self.max_turns = max_turns
        self._conversation = ConversationLog()

    @property
    def conversation(self) -> ConversationLog:
        """The history kept by :meth:`chat`."""
        return self._conversation

    async def process_input(
        self,
        text: str,
        history: ConversationLog | Iterable[LLMMessage] = (),
    ) -> ConversationLog:
        """Process one user utterance against *history*.

        Returns the full updated history.  *history* itself is never
        modified.

        Raises
        ------
        ValueError
            If *text* is empty.
        MalformedHistoryError
            If *history* is not a well-formed tool-call log.
        """
        if not text or not text.strip():
            raise ValueError("Input text must be non-empty")

        log = history if isinstance(history, ConversationLog) else ConversationLog(history)
        log = log.with_system_prompt(self.system_prompt).append(LLMMessage.user(text))
        logger.info(f'Processing instruction: "{text}"')

        for turn in range(1, self.max_turns + 1):
            outcome = await self.executor.execute(log)
            log = log.append(outcome.assistant_message)

            if outcome.turn_error and not outcome.tool_results:
                logger.info(f"Stopping after turn {turn}: model call failed")
                return log

            if not outcome.tool_results:
                logger.info(f"Finished after turn {turn}: final answer")
                return log

            log = log.append(*outcome.tool_messages)
            if outcome.terminal_action_occurred:
                logger.info(f"Finished after turn {turn}: transfer submitted")
                return log

        logger.warning(
            f"Stopping after {self.max_turns} turns without a final answer: {text!r}"
        )
        return log

    async def chat(self, message: str) -> list[LLMMessage]:
        """Continue the agent's own conversation; return the messages it added."""
        before = len(self._conversation)
        self._conversation = await self.process_input(message, self._conversation)
        added = list(self._conversation.messages[before:])
        # Drop the system prompt and user echo from the returned slice.
        return [m for m in added if m.role in ("assistant", "tool")]

    def reset(self) -> None:
        self._conversation = ConversationLog()
