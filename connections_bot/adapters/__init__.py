"""Chat-completion adapters for the guessing agent.

Every adapter exposes ``call_model_with_metadata(model_name, messages, ...)``
returning ``(reply_message, metadata)``.
"""

from connections_bot.adapters.ollama_adapter import OllamaAdapter
from connections_bot.adapters.openrouter_adapter import OpenRouterAdapter, chat
from connections_bot.config import AgentConfig


def create_adapter(agent_config: AgentConfig):
    """Build the adapter for the configured provider."""
    if agent_config.provider == "ollama":
        return OllamaAdapter(agent_config.base_url, timeout=agent_config.timeout)
    if agent_config.provider == "openrouter":
        return OpenRouterAdapter(
            agent_config.api_key,
            model_mappings=agent_config.model_mappings,
            timeout=agent_config.timeout,
        )
    raise ValueError(f"Unknown agent provider: {agent_config.provider}")


__all__ = ["OllamaAdapter", "OpenRouterAdapter", "chat", "create_adapter"]
