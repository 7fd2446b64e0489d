"""Board model for a Connections puzzle.

A board is 4 categories of 4 cards each, built straight from the solution
payload published by the puzzle provider:

    {"categories": [{"title": "...", "cards": [{"content": "...", "position": 0}, ...]}, ...]}
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from connections_bot.errors import MalformedSolution

CATEGORY_COUNT = 4
CATEGORY_SIZE = 4
BOARD_SIZE = CATEGORY_COUNT * CATEGORY_SIZE

# Indexed by category, easiest first
COLORS = ("yellow", "green", "blue", "purple")
ICONS = ("🟨", "🟩", "🟦", "🟪")


def normalize_word(word: str) -> str:
    return word.strip().upper()


@dataclass(frozen=True)
class Category:
    """One group of 4 related cards."""
    index: int
    title: str
    members: Tuple[str, ...]  # As published, in card order

    @property
    def color(self) -> str:
        return COLORS[self.index]

    @property
    def icon(self) -> str:
        return ICONS[self.index]

    @property
    def normalized_members(self) -> frozenset:
        return frozenset(normalize_word(w) for w in self.members)


@dataclass(frozen=True)
class PuzzleBoard:
    """Immutable representation of a Connections board."""
    categories: Tuple[Category, ...]
    positions: Tuple[str, ...]  # 16 words in slot order

    @classmethod
    def from_solution(cls, payload: Dict[str, Any]) -> "PuzzleBoard":
        """Create a board from a solution payload.

        Raises:
            MalformedSolution: If the payload is not exactly 4 categories of
                4 unique cards occupying the 16 board slots.
        """
        if not isinstance(payload, dict):
            raise MalformedSolution("Solution payload must be an object")

        raw_categories = payload.get("categories")
        if not isinstance(raw_categories, list) or len(raw_categories) != CATEGORY_COUNT:
            count = len(raw_categories) if isinstance(raw_categories, list) else 0
            raise MalformedSolution(f"Expected {CATEGORY_COUNT} categories, got {count}")

        categories: List[Category] = []
        slots: List[Any] = [None] * BOARD_SIZE
        seen = set()

        for index, raw in enumerate(raw_categories):
            cards = raw.get("cards") if isinstance(raw, dict) else None
            if not isinstance(cards, list) or len(cards) != CATEGORY_SIZE:
                raise MalformedSolution(f"Category {index} must have {CATEGORY_SIZE} cards")

            members = []
            for card in cards:
                content = card.get("content") if isinstance(card, dict) else None
                position = card.get("position") if isinstance(card, dict) else None
                if not isinstance(content, str) or not content.strip():
                    raise MalformedSolution(f"Category {index} has a card without content")
                if not isinstance(position, int) or not 0 <= position < BOARD_SIZE:
                    raise MalformedSolution(f"Card '{content}' has invalid position {position!r}")
                if slots[position] is not None:
                    raise MalformedSolution(f"Position {position} is used twice")

                key = normalize_word(content)
                if key in seen:
                    raise MalformedSolution(f"Word '{content}' appears twice")
                seen.add(key)

                slots[position] = content
                members.append(content)

            categories.append(Category(index=index, title=str(raw.get("title", "")), members=tuple(members)))

        return cls(categories=tuple(categories), positions=tuple(slots))

    def to_solution(self) -> Dict[str, Any]:
        """Rebuild the provider payload for storage."""
        slot_of = {word: i for i, word in enumerate(self.positions)}
        return {
            "categories": [
                {
                    "title": category.title,
                    "cards": [{"content": w, "position": slot_of[w]} for w in category.members],
                }
                for category in self.categories
            ]
        }

    @property
    def word_to_group(self) -> Dict[str, int]:
        """Map each normalized word to its category index."""
        return {
            normalize_word(word): category.index
            for category in self.categories
            for word in category.members
        }

    @property
    def titles(self) -> List[str]:
        return [category.title for category in self.categories]

    def layout(self) -> List[str]:
        """The 16 words in fixed slot order."""
        return list(self.positions)

    def render_layout(self) -> str:
        """Format the board as 4 rows of '--' separated words."""
        rows = []
        for row in range(CATEGORY_COUNT):
            rows.append("--".join(self.positions[row * CATEGORY_SIZE:(row + 1) * CATEGORY_SIZE]))
        return "\n".join(rows)

    def render_solution(self) -> str:
        """Category names followed by their members, in category order."""
        lines = []
        for category in self.categories:
            lines.append(category.title)
            lines.append("--".join(category.members))
        return "\n".join(lines)
