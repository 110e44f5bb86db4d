"""LLM provider router that maps provider names to concrete instances."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from web3_agent.config import LLMConfig, is_unset
from web3_agent.errors import ConfigurationError
from web3_agent.llm.base import BaseLLMProvider

if TYPE_CHECKING:
    from web3_agent.config import LLMProviderConfig

logger = logging.getLogger(__name__)

# Registry of supported provider names -> their implementation classes.
# Imports are deferred to avoid pulling in an SDK that is not used.
_PROVIDER_FACTORIES: dict[str, str] = {
    "openai": "web3_agent.llm.openai.OpenAIProvider",
    "anthropic": "web3_agent.llm.anthropic.AnthropicProvider",
}


def _import_provider_class(dotted_path: str) -> type[BaseLLMProvider]:
    """Dynamically import a provider class from its fully-qualified path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    if not (isinstance(cls, type) and issubclass(cls, BaseLLMProvider)):
        raise TypeError(
            f"Expected a BaseLLMProvider subclass at '{dotted_path}', "
            f"got {cls!r}"
        )
    return cls


class LLMRouter:
    """Builds (and caches) the configured LLM provider.

    Parameters
    ----------
    llm_config:
        The ``LLMConfig`` section of the agent configuration.
    """

    def __init__(self, llm_config: LLMConfig):
        self._config = llm_config
        self._providers: dict[str, BaseLLMProvider] = {}

    def _get_provider_config(self, provider_name: str) -> "LLMProviderConfig":
        """Retrieve the provider-specific config block or raise."""
        config_block = getattr(self._config, provider_name, None)
        if config_block is None:
            available = [
                attr
                for attr in _PROVIDER_FACTORIES
                if getattr(self._config, attr, None) is not None
            ]
            raise ConfigurationError(
                f"Provider '{provider_name}' is not configured. "
                f"Available configured providers: {available or 'none'}. "
                f"Add a '{provider_name}' section to your LLM configuration "
                f"or set its API key environment variable."
            )
        return config_block

    def get_provider(
        self,
        provider_name: str | None = None,
        model_override: str | None = None,
    ) -> BaseLLMProvider:
        """Get or create a provider instance.

        Parameters
        ----------
        provider_name:
            ``"openai"`` or ``"anthropic"``.  Falls back to
            ``default_provider`` from the configuration when ``None``.
        model_override:
            If given, overrides the model named in the provider's
            configuration.

        Raises
        ------
        ConfigurationError
            If the provider is unknown, not configured, or has no API key
            or model.
        """
        name = provider_name or self._config.default_provider
        cache_key = f"{name}:{model_override}" if model_override else name

        if cache_key in self._providers:
            return self._providers[cache_key]

        if name not in _PROVIDER_FACTORIES:
            raise ConfigurationError(
                f"Unknown provider '{name}'. "
                f"Supported providers: {sorted(_PROVIDER_FACTORIES.keys())}"
            )

        provider_config = self._get_provider_config(name)

        # OpenAI-compatible local endpoints (Ollama, vLLM) need no key.
        if is_unset(provider_config.api_key) and not (name == "openai" and provider_config.base_url):
            raise ConfigurationError(
                f"API key for provider '{name}' is empty. "
                f"Set it in your configuration file or via the "
                f"{name.upper()}_API_KEY environment variable."
            )

        model = model_override or provider_config.model
        if not model:
            raise ConfigurationError(
                f"No model specified for provider '{name}'. "
                f"Set a 'model' in the provider configuration."
            )

        provider_cls = _import_provider_class(_PROVIDER_FACTORIES[name])
        provider = provider_cls(
            api_key=provider_config.api_key or "unused",
            model=model,
            base_url=provider_config.base_url,
            max_tokens=provider_config.max_tokens,
        )

        self._providers[cache_key] = provider
        logger.info(
            "Created %s provider (model=%s, base_url=%s)",
            name,
            model,
            provider_config.base_url or "default",
        )
        return provider
