"""LLM provider abstraction layer for web3-agent.

Provides a unified interface for interacting with multiple LLM backends
(OpenAI, any OpenAI-compatible endpoint, and Anthropic) through a common
set of data structures and a routing layer.
"""

from web3_agent.llm.base import (
    BaseLLMProvider,
    LLMMessage,
    LLMResponse,
    ToolCall,
    ToolDefinition,
)
from web3_agent.llm.router import LLMRouter

__all__ = [
    "BaseLLMProvider",
    "LLMMessage",
    "LLMResponse",
    "LLMRouter",
    "ToolCall",
    "ToolDefinition",
]
