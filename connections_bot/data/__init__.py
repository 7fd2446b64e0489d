from connections_bot.data.connection_game import ConnectionGameStore
from connections_bot.data.connection_score import ConnectionScoreStore
from connections_bot.data.database import connect

__all__ = ["ConnectionGameStore", "ConnectionScoreStore", "connect"]
