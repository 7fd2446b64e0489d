"""duckdb connection and schema for game and score storage."""

import logging
from typing import Any, Dict, List, Optional

import duckdb

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS connection_game (
        connection_game INTEGER PRIMARY KEY,
        category1 VARCHAR,
        category2 VARCHAR,
        category3 VARCHAR,
        category4 VARCHAR,
        json_game_info VARCHAR,
        ai_messages VARCHAR,
        summary_posted BOOLEAN DEFAULT FALSE,
        date TIMESTAMP
    )
    """,
    "CREATE SEQUENCE IF NOT EXISTS connection_score_id_seq START 1",
    """
    CREATE TABLE IF NOT EXISTS connection_score (
        id INTEGER PRIMARY KEY DEFAULT nextval('connection_score_id_seq'),
        connection_game INTEGER NOT NULL,
        user_name VARCHAR NOT NULL,
        user_tag VARCHAR,
        message VARCHAR,
        completed_category1 BOOLEAN,
        completed_category2 BOOLEAN,
        completed_category3 BOOLEAN,
        completed_category4 BOOLEAN,
        plays INTEGER,
        score INTEGER,
        guild_id VARCHAR,
        channel_id VARCHAR,
        date TIMESTAMP,
        UNIQUE (user_name, connection_game, guild_id, channel_id)
    )
    """,
]


def create_schema(con: duckdb.DuckDBPyConnection) -> None:
    for statement in SCHEMA:
        con.execute(statement)


def connect(database_path: str = ":memory:") -> duckdb.DuckDBPyConnection:
    """Open the database (a file path or ``:memory:``) and make sure the tables exist."""
    logger.info(f"Opening database {database_path}")
    con = duckdb.connect(database_path)
    create_schema(con)
    return con


def fetch_dicts(con: duckdb.DuckDBPyConnection, query: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
    """Run a query and return its rows as column-name dicts."""
    cursor = con.execute(query, params or [])
    columns = [d[0] for d in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]
