"""Storage for player-posted transcripts and their derived scores."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import duckdb

from connections_bot.data.database import fetch_dicts
from connections_bot.transcript import ScoreRecord, parse_transcript

logger = logging.getLogger(__name__)

DEFAULT_BOT_USERNAME = "Connections Bot"


class ConnectionScoreStore:
    """One row per (user, puzzle, guild, channel).

    Player queries leave out the bot's own posts.
    """

    def __init__(self, con: duckdb.DuckDBPyConnection, bot_username: str = DEFAULT_BOT_USERNAME):
        self.con = con
        self.bot_username = bot_username

    def get_score(self, user: str, game_number: int, guild_id: str, channel_id: str) -> Optional[Dict[str, Any]]:
        rows = fetch_dicts(
            self.con,
            """
            SELECT * FROM connection_score
            WHERE user_name = ? AND connection_game = ? AND guild_id = ? AND channel_id = ?
            """,
            [user, game_number, guild_id, channel_id],
        )
        return rows[0] if rows else None

    def create_score(
        self,
        user: str,
        user_tag: str,
        message: str,
        game_number: int,
        timestamp: datetime,
        guild_id: str,
        channel_id: str,
    ) -> ScoreRecord:
        """Score a transcript and store it."""
        record = parse_transcript(message)
        self.con.execute(
            """
            INSERT INTO connection_score (
                connection_game, user_name, user_tag, message,
                completed_category1, completed_category2, completed_category3, completed_category4,
                plays, score, date, guild_id, channel_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                game_number, user, user_tag, message,
                *record.completed,
                record.plays_count, record.score, timestamp, guild_id, channel_id,
            ],
        )
        logger.info(f"Recorded score {record.score} for {user} on game {game_number}")
        return record

    def get_total_players(self, guild_id: str, channel_id: str, since: datetime) -> List[str]:
        """Distinct users who posted in this channel since the cutoff."""
        rows = self.con.execute(
            """
            SELECT DISTINCT user_name FROM connection_score
            WHERE guild_id = ? AND channel_id = ? AND user_name != ? AND date > ?
            ORDER BY user_name
            """,
            [guild_id, channel_id, self.bot_username, since],
        ).fetchall()
        return [row[0] for row in rows]

    def get_players_for_game(self, game_number: int, guild_id: str, channel_id: str, since: datetime) -> List[str]:
        rows = self.con.execute(
            """
            SELECT DISTINCT user_name FROM connection_score
            WHERE connection_game = ? AND guild_id = ? AND channel_id = ? AND user_name != ? AND date > ?
            ORDER BY user_name
            """,
            [game_number, guild_id, channel_id, self.bot_username, since],
        ).fetchall()
        return [row[0] for row in rows]

    def get_player_info_for_game(self, game_number: int, guild_id: str, channel_id: str) -> List[Dict[str, Any]]:
        return fetch_dicts(
            self.con,
            """
            SELECT * FROM connection_score
            WHERE connection_game = ? AND guild_id = ? AND channel_id = ? AND user_name != ?
            ORDER BY id
            """,
            [game_number, guild_id, channel_id, self.bot_username],
        )

    def reprocess_scores(self) -> int:
        """Re-derive every stored score from its message.

        Returns:
            Number of rows whose score or flags changed
        """
        rows = fetch_dicts(
            self.con,
            """
            SELECT id, message, plays, score,
                completed_category1, completed_category2, completed_category3, completed_category4
            FROM connection_score ORDER BY id
            """,
        )
        changed = 0
        for row in rows:
            record = parse_transcript(row["message"] or "")
            stored = (
                row["plays"],
                row["score"],
                (
                    row["completed_category1"],
                    row["completed_category2"],
                    row["completed_category3"],
                    row["completed_category4"],
                ),
            )
            if stored == (record.plays_count, record.score, record.completed):
                continue
            self.con.execute(
                """
                UPDATE connection_score
                SET plays = ?, score = ?,
                    completed_category1 = ?, completed_category2 = ?,
                    completed_category3 = ?, completed_category4 = ?
                WHERE id = ?
                """,
                [record.plays_count, record.score, *record.completed, row["id"]],
            )
            changed += 1

        logger.info(f"Reprocessed {len(rows)} scores, {changed} changed")
        return changed
