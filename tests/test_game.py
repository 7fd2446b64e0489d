"""Tests for the play state machine."""

from unittest.mock import Mock, patch

import pytest

from connections_bot.adapters import OllamaAdapter
from connections_bot.errors import AgentProtocolError, RoundCeilingExceeded
from connections_bot.game import ConnectionsGame, GameState, PlaySession
from connections_bot.player import AIPlayer

FISH = "BASS--PIKE--SOLE--CARP"
KEYS = "SHIFT--ENTER--ESCAPE--TAB"
MUSIC = "ROCK--JAZZ--SOUL--FUNK"
BALL = "FOOT--BASKET--SNOW--HAND"

ONE_AWAY = "BASS--PIKE--SOLE--ROCK"
MISSES = [
    "BASS--SHIFT--ROCK--FOOT",
    "PIKE--ENTER--JAZZ--BASKET",
    "SOLE--ESCAPE--SOUL--SNOW",
    "CARP--TAB--FUNK--HAND",
]


class ScriptedPlayer:
    """Player that replays canned replies and records what it was sent."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def next_move(self, conversation):
        self.calls.append([dict(m) for m in conversation])
        if not self.replies:
            raise AgentProtocolError("No more replies")
        return {"role": "assistant", "content": self.replies.pop(0)}


class TestApplyGuess:
    """Test cases for single validated steps."""

    def setup_method(self):
        """Setup for each test."""
        self.player = ScriptedPlayer([])

    def make_game(self, board):
        return ConnectionsGame(board, 342, self.player)

    def test_start_opens_conversation(self, board):
        """Test the session starts with the board prompt."""
        session = self.make_game(board).start()
        assert isinstance(session, PlaySession)
        assert session.state == GameState.AWAITING_GUESS
        assert len(session.conversation) == 1
        prompt = session.conversation[0]
        assert prompt["role"] == "user"
        assert prompt["content"].startswith("Play this connections game, Respond with one play at a time:\n")
        assert prompt["content"].endswith(board.render_layout())
        assert len(session.word_to_group) == 16

    def test_correct_guess(self, board):
        """Test a correct guess removes the category and reports its color."""
        game = self.make_game(board)
        session = game.start()
        feedback = game.apply_guess(session, "carp--sole--pike--bass")

        assert feedback == "Correct, you guessed the yellow category, which was FISH. Please Enter Next Guess"
        assert session.correct_count == 1
        assert session.miss_count == 0
        assert session.state == GameState.AWAITING_GUESS
        assert "BASS" not in session.word_to_group
        assert len(session.word_to_group) == 12
        assert session.transcript_icons == ["🟨🟨🟨🟨"]

    def test_one_away_guess(self, board):
        """Test a one-away guess counts as a miss with the close feedback."""
        game = self.make_game(board)
        session = game.start()
        feedback = game.apply_guess(session, ONE_AWAY)

        assert "off by one" in feedback
        assert session.miss_count == 1
        assert session.transcript_icons == ["🟨🟨🟨🟦"]
        assert len(session.word_to_group) == 16

    def test_incorrect_guess(self, board):
        """Test an incorrect guess counts as a miss."""
        game = self.make_game(board)
        session = game.start()
        feedback = game.apply_guess(session, MISSES[0])

        assert feedback == "Incorrect. Please Enter Next Guess"
        assert session.miss_count == 1
        assert session.transcript_icons == ["🟨🟩🟦🟪"]

    def test_invalid_guess_costs_no_miss(self, board):
        """Test validation failures return feedback and leave counters alone."""
        game = self.make_game(board)
        session = game.start()

        assert "not enough items" in game.apply_guess(session, "BASS--PIKE")
        assert "invalid words detected (WHALE)" in game.apply_guess(session, "BASS--PIKE--SOLE--WHALE")
        assert session.miss_count == 0
        assert session.past_guesses == []
        assert session.transcript_icons == []
        assert session.state == GameState.AWAITING_GUESS

    def test_duplicate_guess(self, board):
        """Test repeating an accepted guess is rejected without a miss."""
        game = self.make_game(board)
        session = game.start()
        game.apply_guess(session, ONE_AWAY)
        feedback = game.apply_guess(session, "ROCK--SOLE--PIKE--BASS")

        assert feedback == "You already made this play, Please make a different guess."
        assert session.miss_count == 1

    def test_solved_words_are_invalid(self, board):
        """Test a solved category's words are rejected afterwards."""
        game = self.make_game(board)
        session = game.start()
        game.apply_guess(session, FISH)
        feedback = game.apply_guess(session, "BASS--SHIFT--ENTER--TAB")
        assert "invalid words detected (BASS)" in feedback
        assert session.miss_count == 0

    def test_four_misses_lose(self, board):
        """Test any mix of 4 misses ends the game as lost."""
        game = self.make_game(board)
        session = game.start()
        for reply in [ONE_AWAY] + MISSES[:2]:
            game.apply_guess(session, reply)
            assert session.state == GameState.AWAITING_GUESS

        final = game.apply_guess(session, MISSES[2])
        assert session.state == GameState.LOST
        assert final.startswith("Incorrect, Game Over\nThe Correct Connections with their category name are:\n")
        assert final.endswith(board.render_solution())

        with pytest.raises(RuntimeError):
            game.apply_guess(session, FISH)
        assert session.state == GameState.LOST

    def test_four_correct_win(self, board):
        """Test solving every category wins."""
        game = self.make_game(board)
        session = game.start()
        for reply in (FISH, KEYS, MUSIC):
            game.apply_guess(session, reply)
        final = game.apply_guess(session, BALL)

        assert session.state == GameState.WON
        assert final == "Correct, You win All Categories have been guessed."
        assert session.word_to_group == {}


class TestPlay:
    """Test cases for the full solicitation loop."""

    def test_win_stops_soliciting(self, board):
        """Test the loop ends on the 4th correct guess even with misses left."""
        player = ScriptedPlayer([FISH, "SHIFT--ENTER--ESCAPE--ROCK", KEYS, MUSIC, BALL, FISH])
        store = Mock()
        result = ConnectionsGame(board, 342, player, game_store=store).play()

        assert result.state == GameState.WON
        assert result.completed
        assert len(player.calls) == 5
        assert player.replies == [FISH]
        assert result.transcript == (
            "Connections\nPuzzle #342\n🟨🟨🟨🟨\n🟩🟩🟩🟦\n🟩🟩🟩🟩\n🟦🟦🟦🟦\n🟪🟪🟪🟪\n"
        )
        assert result.correct_count == 4
        assert result.miss_count == 1
        assert result.conversation[-1]["content"] == ConnectionsGame.WIN_MESSAGE
        store.store_transcript.assert_called_once_with(342, result.conversation)

    def test_loss_persists_conversation(self, board):
        """Test 4 misses end the game and store the conversation."""
        player = ScriptedPlayer(MISSES + [FISH])
        store = Mock()
        result = ConnectionsGame(board, 342, player, game_store=store).play()

        assert result.state == GameState.LOST
        assert result.rounds == 4
        assert player.replies == [FISH]
        assert result.transcript.count("\n") == 6
        assert "The Correct Connections" in result.conversation[-1]["content"]
        store.store_transcript.assert_called_once_with(342, result.conversation)

    def test_conversation_alternates(self, board):
        """Test every agent reply is followed by the bot's answer."""
        player = ScriptedPlayer(["BASS--PIKE", FISH, KEYS, MUSIC, BALL])
        result = ConnectionsGame(board, 342, player).play()

        roles = [m["role"] for m in result.conversation]
        assert roles[0] == "user"
        assert roles[1::2] == ["assistant"] * 5
        assert roles[2::2] == ["user"] * 5
        assert "not enough items" in result.conversation[2]["content"]
        assert result.rounds == 5

    def test_agent_sees_whole_conversation(self, board):
        """Test each call gets the full conversation so far."""
        player = ScriptedPlayer([FISH, KEYS, MUSIC, BALL])
        ConnectionsGame(board, 342, player).play()
        assert [len(c) for c in player.calls] == [1, 3, 5, 7]

    def test_round_ceiling_aborts(self, board):
        """Test endless invalid plays abort after 20 solicitations."""
        player = ScriptedPlayer(["NOT A GUESS"] * 30)
        store = Mock()
        result = ConnectionsGame(board, 342, player, game_store=store).play()

        assert result.state == GameState.ABORTED
        assert not result.completed
        assert isinstance(result.error, RoundCeilingExceeded)
        assert len(player.calls) == ConnectionsGame.MAX_ROUNDS
        assert result.transcript is None
        store.store_transcript.assert_not_called()

    def test_agent_failure_aborts(self, board):
        """Test a failed agent call aborts without persisting."""
        player = ScriptedPlayer([FISH])
        store = Mock()
        result = ConnectionsGame(board, 342, player, game_store=store).play()

        assert result.state == GameState.ABORTED
        assert isinstance(result.error, AgentProtocolError)
        assert result.rounds == 2
        assert result.transcript is None
        store.store_transcript.assert_not_called()

    @patch("connections_bot.adapters.ollama_adapter.requests.post")
    def test_malformed_agent_reply_aborts(self, mock_post, board):
        """Test a reply that is not a JSON object aborts the play."""
        mock_post.return_value = Mock(status_code=200, json=Mock(return_value=["not", "an", "object"]))
        player = AIPlayer(OllamaAdapter("http://localhost:11434"), "llama3")
        store = Mock()
        result = ConnectionsGame(board, 342, player, game_store=store).play()

        assert result.state == GameState.ABORTED
        assert isinstance(result.error, AgentProtocolError)
        store.store_transcript.assert_not_called()

    def test_history_is_carried_over(self, board):
        """Test a previous conversation seeds the new one."""
        history = [
            {"role": "user", "content": "Play this connections game, ..."},
            {"role": "assistant", "content": "A--B--C--D"},
        ]
        player = ScriptedPlayer([FISH, KEYS, MUSIC, BALL])
        result = ConnectionsGame(board, 343, player, history=history).play()

        assert player.calls[0][:2] == history
        assert player.calls[0][2]["content"].startswith("Play this connections game")
        assert result.conversation[:2] == history

    def test_progress_callback(self, board):
        """Test progress is reported for every round."""
        progress = Mock()
        player = ScriptedPlayer(["BASS", MISSES[0], FISH, KEYS, MUSIC, BALL])
        ConnectionsGame(board, 342, player, progress=progress).play()

        statuses = [call.args[1] for call in progress.call_args_list]
        assert statuses[:3] == ["Played 1. Invalid Play", "Played 2. Miss", "Played 3. Correct"]
        assert len(statuses) == 6
