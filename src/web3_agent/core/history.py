"""Append-only conversation log."""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from web3_agent.llm.base import LLMMessage


class MalformedHistoryError(ValueError):
    """A history breaks the request/response pairing of tool calls."""


class ConversationLog:
    """Immutable, ordered sequence of :class:`LLMMessage`.

    There is no way to remove or reorder entries: :meth:`append` returns a
    new log that extends this one.  Construction validates that every tool
    message answers exactly one earlier, still-open tool-call request and
    that no request is left open when a non-tool message follows.
    """

    __slots__ = ("_messages",)

    def __init__(self, messages: Iterable[LLMMessage] = ()) -> None:
        self._messages: tuple[LLMMessage, ...] = tuple(messages)
        _validate(self._messages)

    @classmethod
    def from_dicts(cls, data: Iterable[dict[str, Any]]) -> ConversationLog:
        """Build from the OpenAI-shaped dicts produced by :meth:`to_dicts`.

        Raises ``ValueError`` (or :class:`MalformedHistoryError`) on bad input.
        """
        return cls(LLMMessage.from_dict(item) for item in data)

    def to_dicts(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self._messages]

    @property
    def messages(self) -> tuple[LLMMessage, ...]:
        return self._messages

    @property
    def last(self) -> LLMMessage | None:
        return self._messages[-1] if self._messages else None

    def append(self, *messages: LLMMessage) -> ConversationLog:
        return ConversationLog(self._messages + messages)

    def with_system_prompt(self, content: str) -> ConversationLog:
        """Ensure the log opens with a system message; existing ones are kept."""
        if self._messages and self._messages[0].role == "system":
            return self
        return ConversationLog((LLMMessage.system(content),) + self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[LLMMessage]:
        return iter(self._messages)

    def __getitem__(self, index):
        return self._messages[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ConversationLog):
            return self._messages == other._messages
        return NotImplemented

    def __repr__(self) -> str:
        return f"ConversationLog({len(self._messages)} messages)"


def _validate(messages: tuple[LLMMessage, ...]) -> None:
    open_requests: set[str] = set()
    answered: set[str] = set()
    for index, msg in enumerate(messages):
        if msg.role == "tool":
            call_id = msg.tool_call_id or ""
            if call_id not in open_requests:
                reason = "answered twice" if call_id in answered else "has no matching request"
                raise MalformedHistoryError(
                    f"Tool message {index} (tool_call_id={call_id!r}) {reason}"
                )
            open_requests.discard(call_id)
            answered.add(call_id)
            continue

        if open_requests:
            raise MalformedHistoryError(
                f"Message {index} ({msg.role}) arrives before tool calls "
                f"{sorted(open_requests)} were answered"
            )
        if msg.role == "assistant" and msg.tool_calls:
            open_requests = {tc.id for tc in msg.tool_calls}
