"""Storage for per-puzzle rows: solution, category titles and the AI conversation."""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import duckdb

from connections_bot.data.database import fetch_dicts

logger = logging.getLogger(__name__)


class ConnectionGameStore:
    """One row per puzzle number."""

    def __init__(self, con: duckdb.DuckDBPyConnection):
        self.con = con

    def get_game(self, game_number: int) -> Optional[Dict[str, Any]]:
        """Get a game row with its JSON columns decoded, or None."""
        rows = fetch_dicts(
            self.con,
            "SELECT * FROM connection_game WHERE connection_game = ?",
            [game_number],
        )
        if not rows:
            return None
        row = rows[0]
        row["json_game_info"] = json.loads(row["json_game_info"]) if row["json_game_info"] else None
        row["ai_messages"] = json.loads(row["ai_messages"]) if row["ai_messages"] else None
        return row

    def create_game(self, game_number: int, timestamp: datetime) -> None:
        logger.info(f"Recording Connections game {game_number}")
        self.con.execute(
            "INSERT INTO connection_game (connection_game, date) VALUES (?, ?)",
            [game_number, timestamp],
        )

    def get_latest_game(self) -> Optional[int]:
        row = self.con.execute("SELECT max(connection_game) FROM connection_game").fetchone()
        return row[0] if row else None

    def get_latest_game_summary_posted(self) -> Optional[bool]:
        row = self.con.execute(
            "SELECT summary_posted FROM connection_game ORDER BY connection_game DESC LIMIT 1"
        ).fetchone()
        return bool(row[0]) if row else None

    def add_solution(self, game_number: int, solution: Dict[str, Any]) -> None:
        """Attach the official solution and its four category titles."""
        titles = [category["title"] for category in solution["categories"][:4]]
        self.con.execute(
            """
            UPDATE connection_game
            SET json_game_info = ?, category1 = ?, category2 = ?, category3 = ?, category4 = ?
            WHERE connection_game = ?
            """,
            [json.dumps(solution), *titles, game_number],
        )

    def store_transcript(self, game_number: int, messages: List[Dict]) -> None:
        """Save the AI conversation for a finished play-through."""
        logger.debug(f"Storing {len(messages)} messages for game {game_number}")
        self.con.execute(
            "UPDATE connection_game SET ai_messages = ? WHERE connection_game = ?",
            [json.dumps(messages), game_number],
        )

    def get_transcript(self, game_number: int) -> Optional[List[Dict]]:
        game = self.get_game(game_number)
        if game is None:
            return None
        return game["ai_messages"]

    def mark_summary_posted(self, game_number: int) -> None:
        self.con.execute(
            "UPDATE connection_game SET summary_posted = TRUE WHERE connection_game = ?",
            [game_number],
        )
