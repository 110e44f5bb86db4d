import pytest

from conftest import ScriptedProvider, text_reply, tool_reply
from web3_agent.core.history import ConversationLog
from web3_agent.core.turn import EMPTY_REPLY, AgentTurnExecutor
from web3_agent.errors import ModelCallError
from web3_agent.llm.base import LLMMessage


def make_executor(dispatcher, registry, responses) -> tuple[AgentTurnExecutor, ScriptedProvider]:
    provider = ScriptedProvider(responses)
    return AgentTurnExecutor(provider, dispatcher, registry.definitions()), provider


HISTORY = ConversationLog([LLMMessage.system("sys"), LLMMessage.user("hi")])


@pytest.mark.asyncio
async def test_plain_answer(dispatcher, registry) -> None:
    executor, provider = make_executor(dispatcher, registry, [text_reply("Hello!")])
    outcome = await executor.execute(HISTORY)

    assert outcome.assistant_message == LLMMessage.assistant("Hello!")
    assert outcome.tool_results == []
    assert not outcome.requested_tools
    assert outcome.turn_error is None
    assert [t.name for t in provider.tools_seen[0]] == registry.list_names()


@pytest.mark.asyncio
async def test_empty_answer_gets_placeholder(dispatcher, registry) -> None:
    executor, _ = make_executor(dispatcher, registry, [text_reply("")])
    outcome = await executor.execute(HISTORY)
    assert outcome.assistant_message.content == EMPTY_REPLY


@pytest.mark.asyncio
async def test_tool_calls_are_dispatched(dispatcher, registry) -> None:
    executor, _ = make_executor(dispatcher, registry, [
        tool_reply(("t1", "lookupAddressByName", {"name": "Bob"})),
    ])
    outcome = await executor.execute(HISTORY)

    assert outcome.requested_tools
    assert [m.tool_call_id for m in outcome.tool_messages] == ["t1"]
    assert not outcome.terminal_action_occurred


@pytest.mark.asyncio
async def test_model_failure_becomes_error_message(dispatcher, registry) -> None:
    executor, _ = make_executor(dispatcher, registry, [ModelCallError("rate limited")])
    outcome = await executor.execute(HISTORY)

    assert outcome.turn_error == "rate limited"
    assert outcome.assistant_message.content == "Error: rate limited"
    assert outcome.tool_results == []


@pytest.mark.asyncio
async def test_unexpected_provider_exception_is_contained(dispatcher, registry) -> None:
    executor, _ = make_executor(dispatcher, registry, [RuntimeError("boom")])
    outcome = await executor.execute(HISTORY)
    assert outcome.turn_error == "Failed to get response from model: boom"
