"""Agent core: conversation log, tool dispatch, turns and the conversation loop."""

from web3_agent.core.agent import Agent  # noqa: F401
from web3_agent.core.dispatcher import DispatchOutcome, ToolDispatcher  # noqa: F401
from web3_agent.core.factory import build_agent, build_components  # noqa: F401
from web3_agent.core.history import ConversationLog, MalformedHistoryError  # noqa: F401
from web3_agent.core.turn import AgentTurnExecutor, AgentTurnOutcome  # noqa: F401
