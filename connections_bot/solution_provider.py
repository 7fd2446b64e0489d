"""Fetches the official daily puzzle solution."""

import logging
from datetime import date
from typing import Any, Dict, Optional, Union

import requests

from connections_bot.board import PuzzleBoard
from connections_bot.errors import SolutionUnavailable
from connections_bot.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_URL_TEMPLATE = "https://www.nytimes.com/svc/connections/v2/{day}.json"


class SolutionProvider:
    """GETs ``{day}.json`` solution payloads, retrying transport errors."""

    def __init__(self, url_template: str = DEFAULT_URL_TEMPLATE, timeout: float = 30.0, max_retries: int = 3):
        self.url_template = url_template
        self.timeout = timeout
        self.max_retries = max_retries

    def url_for(self, day: Union[date, str]) -> str:
        if isinstance(day, date):
            day = day.strftime("%Y-%m-%d")
        return self.url_template.format(day=day)

    def fetch(self, day: Optional[Union[date, str]] = None) -> Dict[str, Any]:
        """Get the raw solution payload for ``day`` (today by default).

        Raises:
            SolutionUnavailable: The request kept failing or the body was not a JSON object
        """
        url = self.url_for(day or date.today())
        logger.info(f"Fetching solution from {url}")

        @retry_with_backoff(max_retries=self.max_retries)
        def _get() -> requests.Response:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response

        try:
            response = _get()
        except requests.RequestException as e:
            raise SolutionUnavailable(f"Unable to get solution from {url}: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise SolutionUnavailable(f"Solution from {url} is not JSON") from e

        if not isinstance(payload, dict):
            raise SolutionUnavailable(f"Solution from {url} is not a JSON object")
        logger.debug(f"Solution payload: {payload}")
        return payload

    def fetch_board(self, day: Optional[Union[date, str]] = None) -> PuzzleBoard:
        """Fetch and build the board; raises MalformedSolution on a bad payload."""
        return PuzzleBoard.from_solution(self.fetch(day))
