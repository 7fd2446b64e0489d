"""Exception taxonomy for the Connections bot.

Validation errors are recoverable: the play loop turns them into feedback for
the guessing agent. The rest abort whatever operation raised them.
"""

from typing import Iterable, List


class ConnectionsError(Exception):
    """Base class for every error raised by this package."""


class MalformedSolution(ConnectionsError):
    """The solution payload cannot be turned into a playable 4x4 board."""


class SolutionUnavailable(ConnectionsError):
    """The puzzle-solution provider could not be reached or returned garbage."""


class GuessValidationError(ConnectionsError):
    """A candidate guess was rejected before evaluation."""

    def feedback(self) -> str:
        return (
            "Invalid Play Detected, Please only respond with one guess "
            "separated by '--' with 4 entries from the game and no other info."
        )


class WrongArity(GuessValidationError):
    """The guess does not contain exactly 4 distinct entries."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Expected 4 items, got {count}")

    @property
    def too_many(self) -> bool:
        return self.count > 4

    def feedback(self) -> str:
        amount = "too many items" if self.too_many else "not enough items"
        return (
            f"Invalid Play Detected, {amount}, Please only respond with one guess "
            f"separated by '--' with 4 entries from the game and no other info."
        )


class UnknownWords(GuessValidationError):
    """One or more entries are not among the words still in play."""

    def __init__(self, words: Iterable[str], valid_words: Iterable[str]):
        self.words: List[str] = list(words)
        self.valid_words: List[str] = list(valid_words)
        super().__init__(f"Unknown words: {', '.join(self.words)}")

    def feedback(self) -> str:
        return (
            f"Invalid Play Detected, invalid words detected ({', '.join(self.words)}) "
            f"are not valid guesses, Valid guesses include ({', '.join(self.valid_words)}), "
            f"Please only respond with one play separated by '--' with 4 entries "
            f"from the game and no other info."
        )


class DuplicateGuess(GuessValidationError):
    """The guess repeats a previously accepted guess."""

    def __init__(self, previous: Iterable[str]):
        self.previous = tuple(previous)
        super().__init__(f"Already played: {'--'.join(self.previous)}")

    def feedback(self) -> str:
        return "You already made this play, Please make a different guess."


class AgentProtocolError(ConnectionsError):
    """The guessing agent failed to answer or answered with no usable turn."""


class RoundCeilingExceeded(ConnectionsError):
    """The play loop used up its solicitation budget without finishing."""

    def __init__(self, rounds: int):
        self.rounds = rounds
        super().__init__(f"No result after {rounds} rounds")
