"""Utility modules.

- retry: Exponential backoff with HTTP 429 Retry-After support
- logging: Root logger setup for the bot and CLI
"""

from .retry import retry_with_backoff
from .logging import setup_logging

__all__ = [
    "retry_with_backoff",
    "setup_logging",
]
