"""Chat-facing handlers: transcript ingestion, commands and bot replies.

The chat platform is abstracted as a message bus. Inbound events arrive as
``Message`` objects, outbound text and embeds go through ``Channel.send``.
"""

import io
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Protocol, Tuple

from rich import box
from rich.console import Console
from rich.table import Table

from connections_bot.board import PuzzleBoard
from connections_bot.config import BotConfig
from connections_bot.errors import (
    AgentProtocolError,
    ConnectionsError,
    MalformedSolution,
    SolutionUnavailable,
)
from connections_bot.game import ConnectionsGame, PlayResult
from connections_bot.transcript import ScoreRecord, extract_transcript, parse_puzzle_number

logger = logging.getLogger(__name__)

COMMAND_PREFIXES = ("!", "/")
WHO_LEFT_COMMAND = "connectionswholeft"
SUMMARY_COMMAND = "connectionsummary"
PLAY_COMMAND = "play_connections"
EXPLAIN_COMMAND = "explain_play"

EMBED_COLOR = "#4169e1"

SCORE_REACTIONS = {
    0: ["0️⃣", ":ganon:"],
    1: ["1️⃣"],
    2: ["2️⃣"],
    3: ["3️⃣"],
    4: ["4️⃣"],
    5: ["5️⃣"],
    6: ["6️⃣", ":andy_ooh:"],
}
UNKNOWN_SCORE_REACTION = ":interrobang:"

INSULT_MESSAGES = [
    "Is too lazy to complete Connections {game}",
    "Is holding everyone else back on Connections {game}",
    "Is the worst. Complete Connections {game} already!",
    "Has time to edit discord names but not complete Connections {game}",
    "As per usual has not completed Connections {game}",
]


@dataclass
class Embed:
    """Rich message payload: title, optional description, name/value fields."""
    title: str
    description: Optional[str] = None
    color: str = EMBED_COLOR
    fields: List[Tuple[str, str]] = field(default_factory=list)
    footer: Optional[str] = None

    def add_field(self, name: str, value: str) -> "Embed":
        self.fields.append((name, value))
        return self


class Channel(Protocol):
    id: str
    guild_id: str

    def send(self, content: Optional[str] = None, embed: Optional[Embed] = None) -> None:
        ...


class Message(Protocol):
    content: str
    author_name: str
    author_tag: str
    created_at: datetime
    channel: Channel

    def react(self, emoji: str) -> None:
        ...

    def reply(self, text: str) -> None:
        ...

    def delete(self) -> None:
        ...


def score_to_reactions(score: Optional[int]) -> List[str]:
    """Emoji reactions for a recorded score."""
    return list(SCORE_REACTIONS.get(score, [UNKNOWN_SCORE_REACTION]))


def _naive(timestamp: datetime) -> datetime:
    """Local wall-clock time without tzinfo, as stored in the database."""
    if timestamp.tzinfo is not None:
        return timestamp.astimezone().replace(tzinfo=None)
    return timestamp


def _format_number(number: Optional[int]) -> str:
    return f"{number:,}" if number is not None else "unknown"


class ConnectionsBot:
    """Handles inbound chat events and runs the bot commands.

    All collaborators are passed in; the bot keeps no global state.
    """

    def __init__(
        self,
        config: BotConfig,
        game_store,
        score_store,
        solution_provider,
        player,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.game_store = game_store
        self.score_store = score_store
        self.solution_provider = solution_provider
        self.player = player
        self.clock = clock or datetime.now
        self.rng = rng or random.Random()
        self.commands = {
            WHO_LEFT_COMMAND: lambda channel, arg: self.who_left(channel),
            SUMMARY_COMMAND: lambda channel, arg: self.summary(channel),
            PLAY_COMMAND: lambda channel, arg: self.play(channel, arg),
            EXPLAIN_COMMAND: lambda channel, arg: self.explain(channel, arg),
        }

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    def message_handler(self, message: Message) -> None:
        """Dispatch a new chat message: a command or a posted transcript."""
        content = message.content or ""
        logger.debug(f"Message from {message.author_name}: {content!r}")

        parsed = self.parse_command(content)
        if parsed is not None:
            name, arg = parsed
            message.delete()
            self.run_command(name, message.channel, arg)
            return

        if extract_transcript(content):
            self.add_connections_score(message)

    def edit_event(self, old_message: Optional[Message], new_message: Message) -> None:
        """Handle an edited message: count a new transcript, ignore a re-scored one."""
        logger.info(f"Edit event from {new_message.author_name}")
        if old_message is not None:
            logger.debug(f"Before edit: {old_message.content!r}")

        transcript = extract_transcript(new_message.content or "")
        if transcript is None:
            return

        game_number = parse_puzzle_number(transcript)
        channel = new_message.channel
        if self.score_store.get_score(new_message.author_name, game_number, channel.guild_id, channel.id):
            new_message.reply("I saw that, Edited Connections Score Ignored.")
        else:
            self.add_connections_score(new_message)
            new_message.reply("I got you, Edited Connections Score Counted.")

    def parse_command(self, content: str) -> Optional[Tuple[str, Optional[int]]]:
        """Split ``!name [game]`` or ``/name [game]`` into (name, game number)."""
        if not content.startswith(COMMAND_PREFIXES):
            return None
        parts = content[1:].split()
        if not parts:
            return None
        # Longest first so play_connections is not shadowed by a shorter name
        for name in sorted(self.commands, key=len, reverse=True):
            if parts[0].startswith(name):
                arg = None
                if len(parts) > 1:
                    try:
                        arg = int(parts[1].replace(",", ""))
                    except ValueError:
                        logger.warning(f"Ignoring non-numeric argument for {name}: {parts[1]}")
                return name, arg
        return None

    def run_command(self, name: str, channel: Channel, arg: Optional[int] = None):
        """Run a command, answering failures in the channel instead of raising."""
        logger.info(f"Running command {name} (arg={arg})")
        try:
            return self.commands[name](channel, arg)
        except Exception as e:
            logger.error(f"Error executing {name}: {e}", exc_info=True)
            channel.send(content=f"There was an error while executing this command: {e}")
            return None

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def add_connections_score(self, message: Message) -> Optional[ScoreRecord]:
        """Record a posted transcript and react to it.

        Already-recorded (user, game, channel) combinations are not stored
        again. Posting the last missing score of the latest game triggers the
        summary, and the day's solution is fetched and played if it is missing.
        """
        transcript = extract_transcript(message.content or "")
        if transcript is None:
            return None

        game_number = parse_puzzle_number(transcript)
        channel = message.channel
        guild_id, channel_id = channel.guild_id, channel.id
        timestamp = _naive(message.created_at)

        if self.game_store.get_game(game_number) is None:
            self.game_store.create_game(game_number, timestamp)

        record = None
        new_play = self.score_store.get_score(message.author_name, game_number, guild_id, channel_id) is None
        if new_play:
            record = self.score_store.create_score(
                message.author_name,
                message.author_tag,
                transcript,
                game_number,
                timestamp,
                guild_id,
                channel_id,
            )

        stored = self.score_store.get_score(message.author_name, game_number, guild_id, channel_id)
        for emoji in score_to_reactions(stored["score"] if stored else None):
            try:
                message.react(emoji)
            except Exception as e:
                logger.error(f"Unable to react to message with {emoji}: {e}")

        latest_game = self.game_store.get_latest_game()
        if game_number == latest_game and new_play and message.author_name != self.config.bot_username:
            remaining = self.remaining_players(guild_id, channel_id, latest_game)
            logger.info(f"Remaining players: {remaining}")
            if not remaining:
                self.summary(channel)
            elif len(remaining) == 1 and remaining[0] == self.config.insult_username:
                self.who_left(channel)

        current_game = self.game_store.get_game(latest_game)
        if current_game is not None and not current_game["json_game_info"]:
            self._fetch_and_play(channel, latest_game)

        return record

    def remaining_players(self, guild_id: str, channel_id: str, game_number: int) -> List[str]:
        """Recently active players who have not posted ``game_number`` yet."""
        since = self.clock() - timedelta(days=self.config.active_player_days)
        total = self.score_store.get_total_players(guild_id, channel_id, since)
        played = set(self.score_store.get_players_for_game(game_number, guild_id, channel_id, since))
        return [player for player in total if player not in played]

    def _fetch_and_play(self, channel: Channel, game_number: int) -> None:
        try:
            solution = self.solution_provider.fetch(self.clock().date())
            PuzzleBoard.from_solution(solution)
        except (SolutionUnavailable, MalformedSolution) as e:
            logger.error(f"Unable to get solution for game {game_number}: {e}")
            return
        self.game_store.add_solution(game_number, solution)
        self.play(channel, game_number)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def play(
        self,
        channel: Channel,
        game_number: Optional[int] = None,
        progress: Optional[Callable[[int, str], None]] = None,
    ) -> Optional[PlayResult]:
        """Have the agent play a stored game (latest by default) and post the transcript."""
        if not game_number:
            game_number = self.game_store.get_latest_game()

        result = None
        try:
            result = self._play_game(game_number, progress)
        except ConnectionsError as e:
            logger.error(f"Unable to play game {game_number}: {e}")
        except Exception as e:
            logger.error(f"Unexpected error playing game {game_number}: {e}", exc_info=True)

        if result is not None and result.completed:
            channel.send(content=result.transcript)
        else:
            channel.send(content=f"Unable to play Connection Game: {_format_number(game_number)}")
        return result

    def _play_game(self, game_number: Optional[int], progress) -> Optional[PlayResult]:
        game = self.game_store.get_game(game_number) if game_number else None
        if not game or not game["json_game_info"]:
            logger.error(f"Game info not found for {game_number}")
            return None

        board = PuzzleBoard.from_solution(game["json_game_info"])
        history = None
        if self.config.agent.carry_over_history:
            history = self.game_store.get_transcript(game_number - 1)

        try:
            self.player.prepare(self.config.agent)
        except AgentProtocolError as e:
            logger.warning(f"Model preparation failed, playing anyway: {e}")

        game_runner = ConnectionsGame(
            board,
            game_number,
            self.player,
            game_store=self.game_store,
            history=history,
            progress=progress,
        )
        return game_runner.play()

    def explain(self, channel: Channel, game_number: Optional[int] = None) -> Optional[str]:
        """Ask the agent to explain its stored play of a game."""
        if not game_number:
            game_number = self.game_store.get_latest_game()

        explanation = None
        messages = self.game_store.get_transcript(game_number) if game_number else None
        if messages:
            try:
                explanation = self.player.explain(messages)
            except AgentProtocolError as e:
                logger.error(f"Unable to explain game {game_number}: {e}")
        else:
            logger.error(f"No stored play for game {game_number}")

        if explanation:
            channel.send(content=explanation)
        else:
            channel.send(content=f"Unable to explain Connection Game: {_format_number(game_number)}")
        return explanation

    def summary(self, channel: Channel) -> str:
        """Post the completion table for the latest game and mark it posted."""
        latest_game = self.game_store.get_latest_game()
        rows = []
        if latest_game is not None:
            rows = self.score_store.get_player_info_for_game(latest_game, channel.guild_id, channel.id)

        table = Table(title="Connections Summary", box=box.ASCII)
        table.add_column("User")
        for i in range(1, 5):
            table.add_column(str(i), justify="center")
        for row in rows:
            name = self.config.user_to_name_map.get(row["user_name"], row["user_name"])
            table.add_row(name, *(
                "✅" if row[f"completed_category{i}"] else "🟥" for i in range(1, 5)
            ))

        buffer = io.StringIO()
        Console(file=buffer, width=80, color_system=None).print(table)
        message = f"```\n{buffer.getvalue()}```"
        if self.config.footer_message:
            message += f"\n*{self.config.footer_message}*"

        channel.send(content=message)
        if latest_game is not None:
            self.game_store.mark_summary_posted(latest_game)
        return message

    def who_left(self, channel: Channel) -> Embed:
        """Post who has not finished the latest game yet."""
        latest_game = self.game_store.get_latest_game()
        remaining = self.remaining_players(channel.guild_id, channel.id, latest_game) if latest_game else []
        insult_username = self.config.insult_username

        if not remaining:
            embed = Embed(title=f"Everyone is done with {latest_game}", description="All done.")
        else:
            if len(remaining) == 1 and remaining[0] == insult_username:
                embed = Embed(title=f"Once again {insult_username} is the last one remaining...")
            elif len(remaining) == 1:
                embed = Embed(title="One player Remaining")
            else:
                embed = Embed(title="People not done")

            for player in remaining:
                if player == insult_username:
                    value = self.rng.choice(INSULT_MESSAGES).format(game=latest_game)
                else:
                    value = f"Has not completed Connections {latest_game}"
                embed.add_field(player, value)
            embed.footer = self.config.footer_message

        channel.send(embed=embed)
        return embed
