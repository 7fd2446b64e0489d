"""Tests for the puzzle board model."""

import copy

import pytest

from connections_bot.board import COLORS, ICONS, PuzzleBoard
from connections_bot.errors import MalformedSolution


class TestPuzzleBoardFromSolution:
    """Test cases for building a board from a solution payload."""

    def test_categories_in_payload_order(self, board):
        """Test categories keep the provider's order and titles."""
        assert board.titles == ["FISH", "KEYBOARD KEYS", "MUSIC GENRES", "___BALL"]
        assert [c.index for c in board.categories] == [0, 1, 2, 3]

    def test_category_colors_and_icons(self, board):
        """Test each category index maps to its fixed color and icon."""
        for category in board.categories:
            assert category.color == COLORS[category.index]
            assert category.icon == ICONS[category.index]

    def test_layout_follows_positions(self, board):
        """Test the 16 words come out in slot order."""
        layout = board.layout()
        assert len(layout) == 16
        assert layout[0] == "BASS"
        assert layout[15] == "ESCAPE"

    def test_render_layout(self, board):
        """Test the board text is 4 rows of '--' separated words."""
        rows = board.render_layout().split("\n")
        assert rows == [
            "BASS--SHIFT--ROCK--FOOT",
            "ENTER--PIKE--JAZZ--BASKET",
            "SOUL--SNOW--TAB--SOLE",
            "HAND--CARP--FUNK--ESCAPE",
        ]

    def test_render_solution(self, board):
        """Test the reveal lists each title followed by its members."""
        lines = board.render_solution().split("\n")
        assert lines[0] == "FISH"
        assert lines[1] == "BASS--PIKE--SOLE--CARP"
        assert lines[6] == "___BALL"
        assert len(lines) == 8

    def test_word_to_group_is_upper_cased(self):
        """Test words are normalized in the word-to-group map."""
        payload = {
            "categories": [
                {"title": f"T{i}", "cards": [
                    {"content": f"w{i}{j}", "position": i * 4 + j} for j in range(4)
                ]}
                for i in range(4)
            ]
        }
        board = PuzzleBoard.from_solution(payload)
        assert board.word_to_group["W00"] == 0
        assert board.word_to_group["W33"] == 3
        assert len(board.word_to_group) == 16

    def test_to_solution_round_trip(self, board, solution):
        """Test the payload can be rebuilt from the board."""
        assert PuzzleBoard.from_solution(board.to_solution()) == board
        assert board.to_solution() == solution

    def test_board_is_immutable(self, board):
        """Test the board cannot be modified after construction."""
        with pytest.raises(AttributeError):
            board.categories = ()


class TestMalformedSolution:
    """Test cases for rejecting payloads that cannot form a board."""

    def test_three_categories(self, solution):
        """Test fewer than 4 categories is rejected."""
        solution["categories"] = solution["categories"][:3]
        with pytest.raises(MalformedSolution):
            PuzzleBoard.from_solution(solution)

    def test_missing_categories(self):
        """Test a payload without categories is rejected."""
        with pytest.raises(MalformedSolution):
            PuzzleBoard.from_solution({})

    def test_not_an_object(self):
        """Test a non-dict payload is rejected."""
        with pytest.raises(MalformedSolution):
            PuzzleBoard.from_solution(["not", "a", "board"])

    def test_short_category(self, solution):
        """Test a category with 3 cards is rejected."""
        solution["categories"][2]["cards"].pop()
        with pytest.raises(MalformedSolution):
            PuzzleBoard.from_solution(solution)

    def test_duplicate_word(self, solution):
        """Test the same word in two categories is rejected."""
        bad = copy.deepcopy(solution)
        bad["categories"][1]["cards"][0]["content"] = "bass"
        with pytest.raises(MalformedSolution):
            PuzzleBoard.from_solution(bad)

    def test_duplicate_position(self, solution):
        """Test two cards in one slot are rejected."""
        solution["categories"][0]["cards"][1]["position"] = solution["categories"][0]["cards"][0]["position"]
        with pytest.raises(MalformedSolution):
            PuzzleBoard.from_solution(solution)

    def test_position_out_of_range(self, solution):
        """Test a position outside 0..15 is rejected."""
        solution["categories"][3]["cards"][3]["position"] = 16
        with pytest.raises(MalformedSolution):
            PuzzleBoard.from_solution(solution)

    def test_empty_content(self, solution):
        """Test a card without text is rejected."""
        solution["categories"][0]["cards"][0]["content"] = "  "
        with pytest.raises(MalformedSolution):
            PuzzleBoard.from_solution(solution)
