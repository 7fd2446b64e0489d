"""AI player that proposes Connections guesses through a chat adapter."""

import logging
from typing import Dict, List, Optional

import requests

from connections_bot.config import AgentConfig
from connections_bot.errors import AgentProtocolError

logger = logging.getLogger(__name__)

EXPLAIN_PROMPT = "Explain your plays."


class AIPlayer:
    """Guessing agent backed by a chat-completion adapter.

    The player is stateless between calls: the caller owns the conversation
    and passes the whole of it every time.
    """

    def __init__(
        self,
        adapter,
        model_name: str,
        temperature: float = 0.0,
        seed: Optional[int] = None,
    ):
        self.adapter = adapter
        self.model_name = model_name
        self.temperature = temperature
        self.seed = seed
        self._last_call_metadata: Optional[Dict] = None

        logger.info(f"Created AI player with model: {model_name}")

    @classmethod
    def from_config(cls, agent_config: AgentConfig, adapter=None) -> "AIPlayer":
        """Build a player (and its adapter, unless given) from configuration."""
        if adapter is None:
            from connections_bot.adapters import create_adapter
            adapter = create_adapter(agent_config)
        return cls(
            adapter,
            agent_config.active_model,
            temperature=agent_config.temperature,
            seed=agent_config.seed,
        )

    def prepare(self, agent_config: AgentConfig) -> None:
        """Build the derived model with the system prompt, when configured."""
        if not agent_config.generate_model:
            return
        if not hasattr(self.adapter, "create_model"):
            logger.warning(f"{type(self.adapter).__name__} cannot create models, using {self.model_name} as-is")
            return
        try:
            self.adapter.create_model(
                agent_config.generated_model_name,
                agent_config.model_name,
                agent_config.system_prompt,
            )
        except requests.RequestException as e:
            raise AgentProtocolError(f"Unable to create model {agent_config.generated_model_name}: {e}") from e

    def get_last_call_metadata(self) -> Optional[Dict]:
        """Get metadata from the last AI call."""
        return self._last_call_metadata

    def next_move(self, conversation: List[Dict]) -> Dict:
        """Ask the agent for its next turn.

        Returns:
            The reply turn as ``{"role": ..., "content": ...}``

        Raises:
            AgentProtocolError: The call failed or the reply had no content
        """
        try:
            message, metadata = self.adapter.call_model_with_metadata(
                self.model_name,
                conversation,
                temperature=self.temperature,
                seed=self.seed,
            )
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error calling guessing agent ({self.model_name}): {e}")
            raise AgentProtocolError(f"Agent call failed: {e}") from e

        self._last_call_metadata = metadata

        if not isinstance(message, dict):
            logger.error(f"Invalid response from {self.model_name}: {message!r}")
            raise AgentProtocolError("Agent reply has no message")

        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            logger.error(f"Empty reply from {self.model_name}")
            raise AgentProtocolError("Agent reply has no content")

        logger.debug(f"Raw AI response: {content}")
        return {"role": message.get("role") or "assistant", "content": content}

    def explain(self, conversation: List[Dict]) -> str:
        """Ask the agent to explain a finished play-through."""
        messages = list(conversation) + [{"role": "user", "content": EXPLAIN_PROMPT}]
        reply = self.next_move(messages)
        return reply["content"]
