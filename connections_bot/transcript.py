"""Transcript parsing and scoring for human-posted Connections results.

A transcript looks like:

    Connections
    Puzzle #342
    🟨🟨🟨🟨
    🟩🟩🟩🟩
    🟦🟦🟦🟦
    🟪🟪🟪🟪

Scoring is a pure function of the text, so stored messages can be re-scored
at any time and yield the same record.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from connections_bot.board import ICONS

HEADER_LINES = 2
TITLE = "Connections"

TRANSCRIPT_REGEX = re.compile(r"Connections.*\nPuzzle.*#[0-9,]+.*\n[🟨🟩🟦🟪\r\n]+")
PUZZLE_NUMBER_REGEX = re.compile(r"#([0-9][0-9,]*)")
LINE_SPLIT_REGEX = re.compile(r"\r?\n")

# Bonus applied to a perfect board, keyed by number of plays
PERFECT_BONUS = {4: 2, 5: 1}
# Perfect boards that took this many plays score exactly this
PERFECT_OVERRIDE = {6: 3}


@dataclass(frozen=True)
class ScoreRecord:
    """Score derived from a single transcript."""
    plays_count: int
    score: int
    completed: Tuple[bool, bool, bool, bool]

    @property
    def completed_category1(self) -> bool:
        return self.completed[0]

    @property
    def completed_category2(self) -> bool:
        return self.completed[1]

    @property
    def completed_category3(self) -> bool:
        return self.completed[2]

    @property
    def completed_category4(self) -> bool:
        return self.completed[3]

    @property
    def perfect(self) -> bool:
        return all(self.completed)


def parse_transcript(text: str) -> ScoreRecord:
    """Score a transcript.

    Every category whose icon appears 4 times in a row counts 1 point. A board
    with all 4 categories completed gets +2 in 4 plays, +1 in 5 plays, and is
    pinned to 3 in 6 plays.
    """
    plays_count = len(LINE_SPLIT_REGEX.split(text)) - HEADER_LINES
    completed = tuple(icon * 4 in text for icon in ICONS)
    score = sum(completed)

    if all(completed):
        if plays_count in PERFECT_OVERRIDE:
            score = PERFECT_OVERRIDE[plays_count]
        else:
            score += PERFECT_BONUS.get(plays_count, 0)

    return ScoreRecord(plays_count=plays_count, score=score, completed=completed)


def extract_transcript(message_text: Optional[str]) -> Optional[str]:
    """Find the first transcript block in a chat message."""
    if not message_text:
        return None
    match = TRANSCRIPT_REGEX.search(message_text)
    if not match:
        return None
    return match.group(0).rstrip("\r\n")


def parse_puzzle_number(transcript: str) -> int:
    """Read the puzzle number from the second line of a transcript."""
    lines = LINE_SPLIT_REGEX.split(transcript)
    line = lines[1] if len(lines) > 1 else transcript
    match = PUZZLE_NUMBER_REGEX.search(line)
    if not match:
        raise ValueError(f"No puzzle number in transcript: {line!r}")
    return int(match.group(1).replace(",", ""))


def build_transcript(game_number: int, icon_rows: Iterable[str]) -> str:
    """Format a play-through in the same shape human players post."""
    lines = [TITLE, f"Puzzle #{game_number:,}"]
    lines.extend(icon_rows)
    return "\n".join(lines) + "\n"
