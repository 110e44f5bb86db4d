import json

import pytest

from conftest import HARDHAT_ADDRESS, WETH, BOB, FakeLedger, ScriptedProvider, text_reply, tool_reply
from web3_agent.core.agent import Agent
from web3_agent.core.history import ConversationLog
from web3_agent.core.turn import AgentTurnExecutor
from web3_agent.errors import ModelCallError
from web3_agent.llm.base import LLMMessage


def make_agent(dispatcher, registry, responses, max_turns: int = 15) -> tuple[Agent, ScriptedProvider]:
    provider = ScriptedProvider(responses)
    executor = AgentTurnExecutor(provider, dispatcher, registry.definitions())
    return Agent(executor, "You are a wallet assistant.", max_turns=max_turns), provider


@pytest.mark.asyncio
async def test_balance_question_runs_two_turns(dispatcher, registry, ledger: FakeLedger) -> None:
    ledger.balances[HARDHAT_ADDRESS.lower()] = 10**18
    agent, provider = make_agent(dispatcher, registry, [
        tool_reply(("call_1", "getEthBalance", {"addressOrName": "me"})),
        text_reply("Your balance is 1.0 ETH."),
    ])

    log = await agent.process_input("What's my ETH balance?")

    assert [m.role for m in log] == ["system", "user", "assistant", "tool", "assistant"]
    assert json.loads(log[3].content)["balance"] == "1.0"
    assert log.last.content == "Your balance is 1.0 ETH."
    assert len(provider.calls) == 2
    # The second model call sees the tool result.
    assert provider.calls[1][-1].role == "tool"


@pytest.mark.asyncio
async def test_unknown_recipient_is_reported_not_sent(dispatcher, registry, ledger: FakeLedger) -> None:
    agent, _ = make_agent(dispatcher, registry, [
        tool_reply(("call_1", "sendEthTransfer", {"recipient": "UnknownPerson", "amount": 1})),
        text_reply("I couldn't find UnknownPerson in your address book."),
    ])

    log = await agent.process_input("Send 1 ETH to UnknownPerson")

    assert len(log) == 5
    assert "error" in json.loads(log[3].content)
    assert ledger.sent == []
    assert log.last.role == "assistant"


@pytest.mark.asyncio
async def test_successful_transfer_ends_the_instruction(dispatcher, registry, ledger: FakeLedger) -> None:
    agent, provider = make_agent(dispatcher, registry, [
        tool_reply(("call_1", "sendErc20Transfer", {"recipient": "Bob", "token": "WETH", "amount": 0.01})),
        text_reply("should never be requested"),
    ])

    log = await agent.process_input("Send 0.01 WETH to Bob")

    assert [m.role for m in log] == ["system", "user", "assistant", "tool"]
    assert len(provider.calls) == 1
    assert ledger.sent[0]["token"] == WETH
    assert ledger.sent[0]["to"] == BOB
    assert ledger.sent[0]["value"] == 10**16
    assert json.loads(log.last.content)["txHash"] == ledger.sent[0]["hash"]


@pytest.mark.asyncio
async def test_lookup_then_transfer(dispatcher, registry, ledger: FakeLedger) -> None:
    agent, provider = make_agent(dispatcher, registry, [
        tool_reply(("a", "lookupAddressByName", {"name": "Charlie"})),
        tool_reply(("b", "sendEthTransfer", {"recipient": "Charlie", "amount": 0.005})),
    ])

    log = await agent.process_input("Send 0.005 ETH to Charlie")

    assert len(provider.calls) == 2
    assert len(log) == 6
    assert ledger.sent[0]["value"] == 5 * 10**15


@pytest.mark.asyncio
async def test_max_turns_bounds_the_loop(dispatcher, registry) -> None:
    responses = [tool_reply((f"c{i}", "lookupAddressByName", {"name": "Bob"})) for i in range(10)]
    agent, provider = make_agent(dispatcher, registry, responses, max_turns=3)

    log = await agent.process_input("Who is Bob?")

    assert len(provider.calls) == 3
    assert len(log) == 2 + 3 * 2


@pytest.mark.asyncio
async def test_model_failure_stops_with_error_message(dispatcher, registry) -> None:
    agent, _ = make_agent(dispatcher, registry, [ModelCallError("invalid api key")])

    log = await agent.process_input("hello")

    assert [m.role for m in log] == ["system", "user", "assistant"]
    assert log.last.content == "Error: invalid api key"


@pytest.mark.asyncio
async def test_history_is_extended_not_modified(dispatcher, registry) -> None:
    history = ConversationLog([
        LLMMessage.system("custom prompt"),
        LLMMessage.user("hi"),
        LLMMessage.assistant("hello"),
    ])
    agent, provider = make_agent(dispatcher, registry, [text_reply("sure")])

    log = await agent.process_input("thanks", history)

    assert len(history) == 3
    assert log.messages[:3] == history.messages
    assert [m.role for m in log][3:] == ["user", "assistant"]
    # An existing system message is kept, not duplicated.
    assert sum(1 for m in provider.calls[0] if m.role == "system") == 1
    assert provider.calls[0][0].content == "custom prompt"


@pytest.mark.asyncio
async def test_system_prompt_is_prepended(dispatcher, registry) -> None:
    agent, _ = make_agent(dispatcher, registry, [text_reply("ok")])
    log = await agent.process_input("hi", [LLMMessage.user("earlier"), LLMMessage.assistant("yes")])
    assert log[0] == LLMMessage.system("You are a wallet assistant.")
    assert log[1].content == "earlier"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   "])
async def test_empty_input_is_rejected(dispatcher, registry, text: str) -> None:
    agent, provider = make_agent(dispatcher, registry, [])
    with pytest.raises(ValueError):
        await agent.process_input(text)
    assert provider.calls == []


@pytest.mark.asyncio
async def test_chat_keeps_its_own_history(dispatcher, registry) -> None:
    agent, provider = make_agent(dispatcher, registry, [
        text_reply("first"),
        tool_reply(("x", "getTokenAddress", {"token": "USDC"})),
        text_reply("second"),
    ])

    added = await agent.chat("one")
    assert [m.content for m in added] == ["first"]

    added = await agent.chat("two")
    assert [m.role for m in added] == ["assistant", "tool", "assistant"]
    assert len(agent.conversation) == 7
    assert [m.role for m in provider.calls[1]] == ["system", "user", "assistant", "user"]

    agent.reset()
    assert len(agent.conversation) == 0
