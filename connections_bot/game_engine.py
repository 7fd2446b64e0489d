"""Shared game rules for live Connections play.

This module holds the guess validation and classification used by the play
state machine. Keeping them here means the rules can be exercised without an
agent, a store, or a chat channel.
"""

from dataclasses import dataclass
from typing import Collection, Iterable, List, Optional, Sequence, Tuple

from connections_bot.board import CATEGORY_SIZE, PuzzleBoard, normalize_word
from connections_bot.errors import DuplicateGuess, UnknownWords, WrongArity

GUESS_DELIMITER = "--"


@dataclass(frozen=True)
class Correct:
    """All 4 guessed words belong to one category."""
    group_index: int
    category_name: str

    is_correct = True
    is_miss = False


@dataclass(frozen=True)
class OneAway:
    """Exactly 3 guessed words belong to one category."""

    is_correct = False
    is_miss = True


@dataclass(frozen=True)
class Incorrect:
    """No category shares 3 or more words with the guess."""

    is_correct = False
    is_miss = True


class GameEngine:
    """Core rules for a live Connections play-through.

    Single source of truth for how a guess is parsed, validated and scored.
    """

    @classmethod
    def parse_guess(cls, content: str) -> List[str]:
        """Split an agent reply into upper-cased guess entries.

        The agent is asked for 4 items separated by '--'. Surrounding
        whitespace and empty entries are dropped.
        """
        return [
            normalize_word(part)
            for part in (content or "").split(GUESS_DELIMITER)
            if part.strip()
        ]

    @classmethod
    def validate_guess(
        cls,
        guess: Sequence[str],
        valid_words: Collection[str],
        past_guesses: Iterable[Collection[str]],
    ) -> Tuple[str, ...]:
        """Check a candidate guess against the words still in play.

        Args:
            guess: Candidate entries, in the order given
            valid_words: Words not yet solved
            past_guesses: Previously accepted guesses

        Returns:
            The normalized 4-word guess

        Raises:
            WrongArity: Not exactly 4 distinct entries
            UnknownWords: Any entry outside ``valid_words``
            DuplicateGuess: Shares all 4 members with an accepted guess
        """
        normalized = [normalize_word(w) for w in guess]
        distinct = list(dict.fromkeys(normalized))
        if len(normalized) != CATEGORY_SIZE or len(distinct) != CATEGORY_SIZE:
            count = len(normalized) if len(normalized) != CATEGORY_SIZE else len(distinct)
            raise WrongArity(count)

        valid_list = [normalize_word(w) for w in valid_words]
        valid = set(valid_list)
        unknown = [w for w in normalized if w not in valid]
        if unknown:
            raise UnknownWords(unknown, valid_list)

        guess_set = set(normalized)
        for previous in past_guesses:
            if len(guess_set & {normalize_word(w) for w in previous}) >= CATEGORY_SIZE:
                raise DuplicateGuess(previous)

        return tuple(normalized)

    @classmethod
    def classify(
        cls,
        guess: Iterable[str],
        board: PuzzleBoard,
        remaining: Optional[Collection[str]] = None,
    ):
        """Classify a validated guess against the board.

        Categories are scanned in index order. The first one sharing all 4
        words gives Correct, the first one sharing 3 gives OneAway. Categories
        with none of their words left in ``remaining`` are skipped.

        Returns:
            Correct, OneAway or Incorrect
        """
        guess_set = {normalize_word(w) for w in guess}
        remaining_set = None if remaining is None else {normalize_word(w) for w in remaining}

        for category in board.categories:
            members = category.normalized_members
            if remaining_set is not None and not (members & remaining_set):
                continue
            overlap = len(guess_set & members)
            if overlap == CATEGORY_SIZE:
                return Correct(group_index=category.index, category_name=category.title)
            if overlap == CATEGORY_SIZE - 1:
                return OneAway()

        return Incorrect()
