"""Bot configuration.

Settings live in a YAML file (``inputs/config.yml`` by default, or the path in
``CONNECTIONS_BOT_CONFIG``). Secrets and the database path can be overridden
from the environment. The loaded ``BotConfig`` is passed explicitly to the
components that need it.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("inputs") / "config.yml"
SUPPORTED_PROVIDERS = ("ollama", "openrouter")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_SYSTEM_PROMPT = """You will play a game of new york times connections
you will be provided a 4 x 4 list of items to connect separated by '--', you will respond only with the first 4 items you think are connected and no other info
The response given after will tell you if that connection is correct, if it is one away from a correct answer, or if it is not a correct connection
you will have 4 miss guesses before the game is lost
after a game is played if you see the prompt explain you will describe your choices made in the game

games start with the prompt "Play this connections game"

Please do not add any other text other than the 4 guesses, which are from the 4x4 game board, in each play response. Separate guesses with '--'
"""


@dataclass
class AgentConfig:
    """Settings for the guessing agent."""
    provider: str = "ollama"
    host: str = "http://localhost"
    port: int = 11434
    model_name: str = "llama3"
    # Build a derived model with the system prompt baked in before playing
    generate_model: bool = False
    generated_model_name: str = "connections-player"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    timeout: float = 3600.0
    seed: int = 123
    temperature: float = 0.0
    # Seed each game's conversation with the stored play of the previous game
    carry_over_history: bool = True
    api_key: Optional[str] = None
    model_mappings: Dict[str, str] = field(default_factory=dict)

    @property
    def base_url(self) -> str:
        return f"{self.host}:{self.port}" if self.port else self.host

    @property
    def active_model(self) -> str:
        return self.generated_model_name if self.generate_model else self.model_name


@dataclass
class BotConfig:
    """Top-level configuration."""
    database_path: str = "connections.duckdb"
    log_level: str = "INFO"
    bot_username: str = "Connections Bot"
    insult_username: Optional[str] = None
    footer_message: Optional[str] = None
    user_to_name_map: Dict[str, str] = field(default_factory=dict)
    solution_url_template: str = "https://www.nytimes.com/svc/connections/v2/{day}.json"
    solution_timeout: float = 30.0
    active_player_days: int = 7
    agent: AgentConfig = field(default_factory=AgentConfig)

    def validate(self) -> "BotConfig":
        """Reject settings the bot cannot start with.

        Raises:
            ValueError: Describing the first invalid setting found
        """
        if self.agent.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unknown agent provider '{self.agent.provider}', expected one of {', '.join(SUPPORTED_PROVIDERS)}"
            )
        if not self.agent.model_name:
            raise ValueError("agent.model_name must be set")
        if self.agent.generate_model and not self.agent.generated_model_name:
            raise ValueError("agent.generated_model_name must be set when generate_model is on")
        if self.agent.timeout <= 0:
            raise ValueError("agent.timeout must be positive")
        if self.solution_timeout <= 0:
            raise ValueError("solution_timeout must be positive")
        if self.active_player_days <= 0:
            raise ValueError("active_player_days must be positive")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{self.log_level}'")
        if "{day}" not in self.solution_url_template:
            raise ValueError("solution_url_template must contain '{day}'")
        if self.agent.provider == "openrouter" and not self.agent.api_key:
            raise ValueError("OPENROUTER_API_KEY environment variable not set")
        return self


def _pick(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only keys the dataclass knows about, warning on the rest."""
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {', '.join(sorted(unknown))}")
    return {k: v for k, v in data.items() if k in known}


def load_config(path: Optional[Path] = None, validate: bool = True) -> BotConfig:
    """Load configuration from YAML, then apply environment overrides.

    A missing file is not an error: defaults plus environment are used.
    """
    if path is None:
        path = Path(os.getenv("CONNECTIONS_BOT_CONFIG", str(DEFAULT_CONFIG_PATH)))
    path = Path(path)

    data: Dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {path}")
    else:
        logger.warning(f"Config file not found: {path}, using defaults")

    agent_data = data.pop("agent", None) or {}
    config = BotConfig(**_pick(BotConfig, data))
    config.agent = AgentConfig(**_pick(AgentConfig, agent_data))

    # Environment wins over the file
    if os.getenv("CONNECTIONS_BOT_DB"):
        config.database_path = os.environ["CONNECTIONS_BOT_DB"]
    if os.getenv("CONNECTIONS_BOT_LOG_LEVEL"):
        config.log_level = os.environ["CONNECTIONS_BOT_LOG_LEVEL"]
    if config.agent.provider == "openrouter" and os.getenv("OPENROUTER_API_KEY"):
        config.agent.api_key = os.environ["OPENROUTER_API_KEY"]

    if validate:
        config.validate()
    return config
