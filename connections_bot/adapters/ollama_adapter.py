"""Ollama chat adapter for the guessing agent."""

import logging
import time
from typing import Dict, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)


class OllamaAdapter:
    """Talks to a local or remote Ollama server.

    Local models can take minutes per reply, so the default timeout is long.
    There is no retry: the caller decides what a failed call means.
    """

    def __init__(self, base_url: str, timeout: float = 3600.0, keep_alive: str = "10m"):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.keep_alive = keep_alive

    def resolve_model(self, model_name: str) -> str:
        return model_name

    def create_model(self, name: str, base_model: str, system_prompt: str) -> None:
        """Create (or replace) a model with a baked-in system prompt."""
        modelfile = f'FROM {base_model}\nSYSTEM """{system_prompt}"""'
        logger.info(f"Creating Ollama model {name} from {base_model}")
        response = requests.post(
            f"{self.base_url}/api/create",
            json={"name": name, "stream": False, "modelfile": modelfile},
            timeout=self.timeout,
        )
        response.raise_for_status()

    def call_model_with_metadata(
        self,
        model_name: str,
        messages: List[Dict],
        temperature: float = 0.0,
        seed: Optional[int] = None,
    ) -> Tuple[Optional[Dict], Dict]:
        """Send the conversation to /api/chat and return (reply message, metadata)."""
        options: Dict = {"temperature": temperature}
        if seed is not None:
            options["seed"] = seed

        payload = {
            "model": model_name,
            "stream": False,
            "options": options,
            "messages": messages,
            "keep_alive": self.keep_alive,
        }

        start_time = time.time()
        response = requests.post(f"{self.base_url}/api/chat", json=payload, timeout=self.timeout)
        response.raise_for_status()
        response_data = response.json()
        if not isinstance(response_data, dict):
            raise ValueError(f"Unexpected Ollama response: {response_data!r}")
        latency_ms = (time.time() - start_time) * 1000

        # Ollama reports durations in nanoseconds
        total_duration = response_data.get("total_duration") or 0
        logger.info(f"Response took {total_duration / 60_000_000_000:.2f} min")

        metadata = {
            "model_id": model_name,
            "latency_ms": latency_ms,
            "input_tokens": response_data.get("prompt_eval_count", 0),
            "output_tokens": response_data.get("eval_count", 0),
            "total_tokens": response_data.get("prompt_eval_count", 0) + response_data.get("eval_count", 0),
        }
        return response_data.get("message"), metadata
