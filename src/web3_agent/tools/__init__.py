"""web3-agent tools - the wallet operations exposed to the model."""

from web3_agent.tools.registry import Tool, ToolRegistry, tool  # noqa: F401
from web3_agent.tools.results import ToolResult  # noqa: F401
from web3_agent.tools.wallet_tools import WalletTools  # noqa: F401
