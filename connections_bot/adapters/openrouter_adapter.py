"""OpenRouter API adapter for the guessing agent.

Calls are made once with a generous timeout and are never retried: a failed
call ends the play attempt, it is not papered over.
"""

import logging
import time
from typing import Dict, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


def chat(
    messages: List[Dict],
    model: str,
    api_key: str,
    timeout: float = 300,
    temperature: float = 0.0,
    seed: Optional[int] = None,
) -> Dict:
    """
    Call OpenRouter Chat Completions API.

    Args:
        messages: List of message objects with 'role' and 'content'
        model: OpenRouter model ID (e.g., 'google/gemini-2.5-flash')
        api_key: OpenRouter API key
        timeout: Request timeout in seconds
        temperature: Sampling temperature
        seed: Optional sampling seed

    Returns:
        Raw API response JSON including usage and cost info

    Raises:
        requests.RequestException: On API errors
    """
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "X-Title": "Connections Bot",
    }

    payload = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "usage": {
            "include": True  # Request cost and usage information
        },
    }
    if seed is not None:
        payload["seed"] = seed

    response = requests.post(OPENROUTER_URL, json=payload, headers=headers, timeout=timeout)

    if not response.ok:
        try:
            error_msg = response.json().get("error", {}).get("message", "")
        except ValueError:
            error_msg = ""
        if error_msg:
            logger.error(f"[OpenRouter] {response.status_code} for model {model}: {error_msg}")

    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected OpenRouter response: {data!r}")
    return data


class OpenRouterAdapter:
    """Class-based adapter for calling models through OpenRouter."""

    def __init__(
        self,
        api_key: str,
        model_mappings: Optional[Dict[str, str]] = None,
        timeout: float = 300,
    ):
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY environment variable not set")
        self.api_key = api_key
        self.model_mappings = dict(model_mappings or {})
        self.timeout = timeout

    def resolve_model(self, model_name: str) -> str:
        """Resolve a short model name to an OpenRouter model ID."""
        # If not found, assume it's already a full model ID
        return self.model_mappings.get(model_name, model_name)

    def call_model_with_metadata(
        self,
        model_name: str,
        messages: List[Dict],
        temperature: float = 0.0,
        seed: Optional[int] = None,
    ) -> Tuple[Optional[Dict], Dict]:
        """Send the conversation and return (reply message, metadata)."""
        model_id = self.resolve_model(model_name)
        logger.debug(f"Calling model {model_id} (from {model_name}) with {len(messages)} messages")

        start_time = time.time()
        response_data = chat(
            messages,
            model_id,
            api_key=self.api_key,
            timeout=self.timeout,
            temperature=temperature,
            seed=seed,
        )
        latency_ms = (time.time() - start_time) * 1000

        message = None
        choices = response_data.get("choices")
        if choices:
            if not isinstance(choices, list) or not isinstance(choices[0], dict):
                raise ValueError(f"Unexpected OpenRouter choices: {choices!r}")
            message = choices[0].get("message")

        usage = response_data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        metadata = {
            "model_id": model_id,
            "latency_ms": latency_ms,
            "input_tokens": usage.get("prompt_tokens", 0),
            "output_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
            "openrouter_cost": usage.get("cost", 0.0) or 0.0,
        }

        logger.info(
            f"Model call completed. Tokens: {metadata['total_tokens']}, "
            f"Latency: {latency_ms:.1f}ms"
        )
        return message, metadata
