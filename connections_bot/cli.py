"""Command-line interface for the Connections bot.

- `connections-bot score FILE` - Score a transcript
- `connections-bot fetch-solution` - Fetch and store a day's solution
- `connections-bot play` - Have the agent play a stored game
- `connections-bot explain` - Ask the agent to explain a stored play
- `connections-bot summary` - Show the completion table for the latest game
- `connections-bot ingest FILE` - Feed a message through the bot
- `connections-bot reprocess` - Re-score every stored transcript
"""

import sys
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from connections_bot import __version__
from connections_bot.board import PuzzleBoard
from connections_bot.bot import ConnectionsBot, Embed
from connections_bot.config import BotConfig, load_config
from connections_bot.data import ConnectionGameStore, ConnectionScoreStore, connect
from connections_bot.errors import ConnectionsError
from connections_bot.game import GameState
from connections_bot.player import AIPlayer
from connections_bot.solution_provider import SolutionProvider
from connections_bot.transcript import extract_transcript, parse_puzzle_number, parse_transcript
from connections_bot.utils.logging import setup_logging

app = typer.Typer(
    help="Connections Bot - track Connections scores and let an AI play the daily puzzle",
    no_args_is_help=True,
)
console = Console()


@dataclass
class ConsoleChannel:
    """Channel that prints outbound messages to the terminal."""
    id: str = "console"
    guild_id: str = "local"

    def send(self, content: Optional[str] = None, embed: Optional[Embed] = None) -> None:
        if content:
            console.print(content, markup=False)
        if embed is None:
            return
        if embed.description:
            console.print(f"[bold]{embed.title}[/bold]\n{embed.description}")
            return
        table = Table(title=embed.title, caption=embed.footer)
        table.add_column("Player", style="cyan")
        table.add_column("Status")
        for name, value in embed.fields:
            table.add_row(name, value)
        console.print(table)


@dataclass
class ConsoleMessage:
    """Inbound message read from a file or stdin."""
    content: str
    author_name: str
    author_tag: str
    created_at: datetime
    channel: ConsoleChannel

    def react(self, emoji: str) -> None:
        console.print(f"Reaction: {emoji}")

    def reply(self, text: str) -> None:
        console.print(f"> {text}", markup=False)

    def delete(self) -> None:
        pass


state = {"config_path": None, "log_path": "logs", "verbose": False}


def _read_text(file: str) -> str:
    if file == "-":
        return sys.stdin.read()
    path = Path(file)
    if not path.exists():
        console.print(f"[red]File not found: {file}[/red]")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


def _load_config() -> BotConfig:
    try:
        config = load_config(state["config_path"])
    except (ValueError, OSError) as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)

    log_dir = Path(state["log_path"])
    log_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(log_dir, state["verbose"], level=config.log_level)
    return config


def _stores(config: BotConfig):
    con = connect(config.database_path)
    return ConnectionGameStore(con), ConnectionScoreStore(con, bot_username=config.bot_username)


def _build_bot(config: BotConfig, with_player: bool = True) -> ConnectionsBot:
    game_store, score_store = _stores(config)
    player = None
    if with_player:
        try:
            player = AIPlayer.from_config(config.agent)
        except ValueError as e:
            console.print(f"[red]Error creating player: {e}[/red]")
            raise typer.Exit(1)
    provider = SolutionProvider(config.solution_url_template, timeout=config.solution_timeout)
    return ConnectionsBot(config, game_store, score_store, provider, player)


@app.callback()
def main_callback(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config YAML"),
    log_path: str = typer.Option("logs", help="Directory for log files"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Connections Bot.

    Examples:

        # Score a transcript
        connections-bot score result.txt

        # Fetch today's solution and let the agent play it
        connections-bot fetch-solution --game 342
        connections-bot play --game 342
    """
    state["config_path"] = config
    state["log_path"] = log_path
    state["verbose"] = verbose


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]Connections Bot[/bold] {__version__}")


@app.command()
def score(file: str = typer.Argument(..., help="Transcript file, or - for stdin")):
    """Score a Connections transcript."""
    text = _read_text(file)
    found = extract_transcript(text)
    transcript = found or text
    record = parse_transcript(transcript)

    table = Table(title="Connections Score")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    if found:
        table.add_row("Puzzle", f"{parse_puzzle_number(transcript):,}")
    table.add_row("Plays", str(record.plays_count))
    for i, done in enumerate(record.completed, start=1):
        table.add_row(f"Category {i}", "✅" if done else "🟥")
    table.add_row("Score", str(record.score))
    console.print(table)


@app.command("fetch-solution")
def fetch_solution(
    day: Optional[str] = typer.Option(None, help="Puzzle day as YYYY-MM-DD (default: today)"),
    game: Optional[int] = typer.Option(None, help="Game number to attach the solution to"),
):
    """Fetch a day's solution and store it on a game."""
    config = _load_config()
    provider = SolutionProvider(config.solution_url_template, timeout=config.solution_timeout)

    try:
        puzzle_day = date.fromisoformat(day) if day else date.today()
    except ValueError:
        console.print(f"[red]Invalid day: {day}[/red]")
        raise typer.Exit(1)

    try:
        solution = provider.fetch(puzzle_day)
        board = PuzzleBoard.from_solution(solution)
    except ConnectionsError as e:
        console.print(f"[red]Unable to get solution: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold blue]Solution for {puzzle_day.isoformat()}[/bold blue]")
    console.print(board.render_layout(), markup=False)

    if game is not None:
        game_store, _ = _stores(config)
        if game_store.get_game(game) is None:
            game_store.create_game(game, datetime.now())
        game_store.add_solution(game, solution)
        console.print(f"[green]Stored solution for game {game:,}[/green]")


@app.command()
def play(game: Optional[int] = typer.Option(None, help="Game number to play (default: latest)")):
    """Have the agent play a stored game."""
    config = _load_config()
    bot = _build_bot(config)
    channel = ConsoleChannel()

    console.print(f"[bold blue]Playing with {config.agent.active_model}...[/bold blue]")
    result = bot.play(channel, game, progress=lambda round_number, status: console.print(f"[dim]{status}[/dim]"))
    if result is None or result.state == GameState.ABORTED:
        raise typer.Exit(1)

    outcome = "[green]Won[/green]" if result.state == GameState.WON else "[red]Lost[/red]"
    console.print(f"{outcome} in {result.rounds} rounds ({result.duration:.1f}s)")


@app.command()
def explain(game: Optional[int] = typer.Option(None, help="Game number to explain (default: latest)")):
    """Ask the agent to explain its play of a stored game."""
    config = _load_config()
    bot = _build_bot(config)
    if bot.explain(ConsoleChannel(), game) is None:
        raise typer.Exit(1)


@app.command()
def summary(
    guild: str = typer.Option("local", help="Guild id"),
    channel: str = typer.Option("console", help="Channel id"),
):
    """Show the completion table for the latest game."""
    config = _load_config()
    bot = _build_bot(config, with_player=False)
    bot.summary(ConsoleChannel(id=channel, guild_id=guild))


@app.command()
def ingest(
    file: str = typer.Argument(..., help="Message text file, or - for stdin"),
    user: str = typer.Option(..., "--user", "-u", help="Author user name"),
    tag: Optional[str] = typer.Option(None, help="Author tag (default: user name)"),
    guild: str = typer.Option("local", help="Guild id"),
    channel: str = typer.Option("console", help="Channel id"),
):
    """Feed a message through the bot as if it was posted in chat."""
    config = _load_config()
    bot = _build_bot(config)
    message = ConsoleMessage(
        content=_read_text(file),
        author_name=user,
        author_tag=tag or user,
        created_at=datetime.now(),
        channel=ConsoleChannel(id=channel, guild_id=guild),
    )
    bot.message_handler(message)


@app.command()
def reprocess():
    """Re-score every stored transcript."""
    config = _load_config()
    _, score_store = _stores(config)
    changed = score_store.reprocess_scores()
    console.print(f"✨ Reprocessed scores, {changed} changed")


def main():
    app()


if __name__ == "__main__":
    main()
