"""Play state machine for an AI play-through of a Connections board."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from connections_bot.board import COLORS, ICONS, PuzzleBoard
from connections_bot.errors import (
    AgentProtocolError,
    ConnectionsError,
    GuessValidationError,
    RoundCeilingExceeded,
)
from connections_bot.game_engine import Correct, GameEngine, OneAway
from connections_bot.transcript import build_transcript

logger = logging.getLogger(__name__)


class GameState(Enum):
    AWAITING_GUESS = "awaiting_guess"
    EVALUATING = "evaluating"
    WON = "won"
    LOST = "lost"
    ABORTED = "aborted"


TERMINAL_STATES = frozenset({GameState.WON, GameState.LOST, GameState.ABORTED})


@dataclass
class PlaySession:
    """Mutable state of one play attempt. Owned by a single play loop."""
    word_to_group: Dict[str, int]  # Words still in play
    conversation: List[Dict] = field(default_factory=list)
    past_guesses: List[Tuple[str, ...]] = field(default_factory=list)
    transcript_icons: List[str] = field(default_factory=list)
    correct_count: int = 0
    miss_count: int = 0
    round: int = 0
    state: GameState = GameState.AWAITING_GUESS
    error: Optional[ConnectionsError] = None

    @property
    def valid_words(self) -> List[str]:
        return list(self.word_to_group)

    @property
    def is_over(self) -> bool:
        return self.state in TERMINAL_STATES


@dataclass
class PlayResult:
    """What a finished play attempt reports outward."""
    game_number: int
    state: GameState
    transcript: Optional[str]
    conversation: List[Dict]
    rounds: int
    correct_count: int
    miss_count: int
    duration: float
    error: Optional[ConnectionsError] = None

    @property
    def completed(self) -> bool:
        """True for a win or a loss, False for an aborted attempt."""
        return self.state in (GameState.WON, GameState.LOST)


class ConnectionsGame:
    """Conducts one AI play-through of a board.

    Each round asks the player for a guess, validates it, scores it and
    decides whether to continue. Invalid guesses are answered with corrective
    feedback and cost no miss, but every solicitation counts toward the
    round ceiling.
    """

    MAX_CORRECT = 4
    MAX_MISSES = 4
    MAX_ROUNDS = 20

    OPENING_PROMPT = "Play this connections game, Respond with one play at a time:\n{board}"
    CORRECT_FEEDBACK = "Correct, you guessed the {color} category, which was {name}. Please Enter Next Guess"
    ONE_AWAY_FEEDBACK = (
        "Incorrect, but you are off by one. Please Enter Next Guess. "
        "Try to find the guess to replace, in your last response, to get the correct answer."
    )
    INCORRECT_FEEDBACK = "Incorrect. Please Enter Next Guess"
    WIN_MESSAGE = "Correct, You win All Categories have been guessed."
    LOSS_MESSAGE = "Incorrect, Game Over\nThe Correct Connections with their category name are:\n{solution}"

    def __init__(
        self,
        board: PuzzleBoard,
        game_number: int,
        player,
        game_store=None,
        history: Optional[List[Dict]] = None,
        progress: Optional[Callable[[int, str], None]] = None,
    ):
        self.board = board
        self.game_number = game_number
        self.player = player
        self.game_store = game_store
        self.history = list(history or [])
        self.progress = progress
        self._board_groups = board.word_to_group

    def start(self) -> PlaySession:
        """Create a fresh session with the opening prompt queued."""
        conversation = [dict(m) for m in self.history]
        conversation.append({
            "role": "user",
            "content": self.OPENING_PROMPT.format(board=self.board.render_layout()),
        })
        return PlaySession(word_to_group=dict(self._board_groups), conversation=conversation)

    def apply_guess(self, session: PlaySession, content: str) -> str:
        """Run one agent reply through validation and scoring.

        Returns:
            The message to send back to the agent: corrective feedback for an
            invalid guess, round feedback, or the final win/loss message.
        """
        if session.is_over:
            raise RuntimeError(f"Session already finished ({session.state.value})")

        try:
            guess = GameEngine.validate_guess(
                GameEngine.parse_guess(content),
                session.valid_words,
                session.past_guesses,
            )
        except GuessValidationError as e:
            logger.warning(f"Game {self.game_number} round {session.round}: invalid play ({e})")
            return e.feedback()

        session.state = GameState.EVALUATING
        session.past_guesses.append(guess)
        outcome = GameEngine.classify(guess, self.board, session.valid_words)
        session.transcript_icons.append("".join(ICONS[self._board_groups[w]] for w in guess))
        logger.info(f"Game {self.game_number} round {session.round}: {'--'.join(guess)} -> {outcome}")

        if isinstance(outcome, Correct):
            for word in guess:
                session.word_to_group.pop(word, None)
            session.correct_count += 1
            if session.correct_count >= self.MAX_CORRECT:
                session.state = GameState.WON
                return self.WIN_MESSAGE
            session.state = GameState.AWAITING_GUESS
            return self.CORRECT_FEEDBACK.format(
                color=COLORS[outcome.group_index], name=outcome.category_name
            )

        session.miss_count += 1
        if session.miss_count >= self.MAX_MISSES:
            session.state = GameState.LOST
            return self.LOSS_MESSAGE.format(solution=self.board.render_solution())
        session.state = GameState.AWAITING_GUESS
        if isinstance(outcome, OneAway):
            return self.ONE_AWAY_FEEDBACK
        return self.INCORRECT_FEEDBACK

    def abort(self, session: PlaySession, error: ConnectionsError) -> None:
        """Force the session into the aborted state."""
        logger.error(f"Game {self.game_number} aborted after {session.round} rounds: {error}")
        session.state = GameState.ABORTED
        session.error = error

    def play(self) -> PlayResult:
        """Play the board to a win, a loss or an abort."""
        start_time = time.time()
        session = self.start()
        logger.info(f"Starting Connections game {self.game_number}")

        while not session.is_over:
            if session.round >= self.MAX_ROUNDS:
                self.abort(session, RoundCeilingExceeded(session.round))
                break

            session.round += 1
            try:
                reply = self.player.next_move(session.conversation)
            except AgentProtocolError as e:
                self.abort(session, e)
                break

            session.conversation.append(reply)
            misses_before = session.miss_count
            correct_before = session.correct_count
            message = self.apply_guess(session, reply["content"])
            session.conversation.append({"role": "user", "content": message})
            self._report_progress(session, correct_before, misses_before)

        return self._finish(session, time.time() - start_time)

    def _report_progress(self, session: PlaySession, correct_before: int, misses_before: int) -> None:
        if self.progress is None:
            return
        if session.correct_count > correct_before:
            status = "Correct"
        elif session.miss_count > misses_before:
            status = "Miss"
        else:
            status = "Invalid Play"
        self.progress(session.round, f"Played {session.round}. {status}")

    def _finish(self, session: PlaySession, duration: float) -> PlayResult:
        transcript = None
        if session.state in (GameState.WON, GameState.LOST):
            transcript = build_transcript(self.game_number, session.transcript_icons)
            if self.game_store is not None:
                self.game_store.store_transcript(self.game_number, session.conversation)
            logger.info(
                f"Game {self.game_number} {session.state.value} in {session.round} rounds "
                f"({session.correct_count} correct, {session.miss_count} misses)"
            )

        return PlayResult(
            game_number=self.game_number,
            state=session.state,
            transcript=transcript,
            conversation=session.conversation,
            rounds=session.round,
            correct_count=session.correct_count,
            miss_count=session.miss_count,
            duration=duration,
            error=session.error,
        )
