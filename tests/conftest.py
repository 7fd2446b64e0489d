"""Shared fixtures for the Connections bot tests."""

import pytest

from connections_bot.board import PuzzleBoard

CATEGORIES = [
    ("FISH", ["BASS", "PIKE", "SOLE", "CARP"]),
    ("KEYBOARD KEYS", ["SHIFT", "ENTER", "ESCAPE", "TAB"]),
    ("MUSIC GENRES", ["ROCK", "JAZZ", "SOUL", "FUNK"]),
    ("___BALL", ["FOOT", "BASKET", "SNOW", "HAND"]),
]

LAYOUT = [
    "BASS", "SHIFT", "ROCK", "FOOT",
    "ENTER", "PIKE", "JAZZ", "BASKET",
    "SOUL", "SNOW", "TAB", "SOLE",
    "HAND", "CARP", "FUNK", "ESCAPE",
]


def make_solution(categories=None, layout=None):
    """Build a provider-style solution payload."""
    categories = categories or CATEGORIES
    layout = layout or LAYOUT
    return {
        "categories": [
            {
                "title": title,
                "cards": [{"content": word, "position": layout.index(word)} for word in words],
            }
            for title, words in categories
        ]
    }


@pytest.fixture
def solution():
    return make_solution()


@pytest.fixture
def board(solution):
    return PuzzleBoard.from_solution(solution)
