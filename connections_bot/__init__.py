"""Connections Bot - score tracking and AI play for the daily Connections puzzle.

- board: Puzzle board built from the official solution
- game_engine: Guess validation and live-play classification
- transcript: Scoring of posted emoji transcripts
- game: Play state machine driving the guessing agent
- bot: Chat-facing handlers and commands
"""

__version__ = "0.1.0"
