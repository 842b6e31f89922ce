"""Command line demo: a full game between scripted players."""

import argparse
import asyncio
import itertools
import random
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import load_config
from .errors import MafiavilleError
from .logging_setup import initialize_logging
from .phases import PhaseManager
from .protocols import PromptHandle, PromptOption
from .roles import Alignment
from .services.pending_actions import SKIP

console = Console()

GROUP_ID = 0

NAMES = [
    "Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry",
    "Iris", "Jack", "Kate", "Liam", "Mia", "Noah", "Olivia", "Paul",
]

ALIGNMENT_STYLES = {
    Alignment.MAFIA: "red",
    Alignment.VILLAGE: "green",
    Alignment.NEUTRAL: "blue",
}


class ScriptedTransport:
    """In-memory transport where every participant presses random buttons."""

    def __init__(self, rng: random.Random, show_private: bool = False, max_delay: float = 0.05):
        self.rng = rng
        self.show_private = show_private
        self.max_delay = max_delay
        self.engine: Optional[PhaseManager] = None
        self._ids = itertools.count(1)

    async def send_prompt(
        self, recipient: int, text: str, options: list[PromptOption], session_key: str
    ) -> PromptHandle:
        handle = PromptHandle(recipient=recipient, message_id=next(self._ids))
        if recipient == GROUP_ID:
            console.print(f"[bold yellow]{text}[/bold yellow]")
            for voter in self.engine.game.get_alive_players():
                self._press_later(voter.id, f"{session_key}:{self._pick(options)}")
        else:
            if self.show_private:
                console.print(f"[dim]→ {self._name(recipient)}: {text}[/dim]")
            self._press_later(recipient, f"{session_key}:{self._pick(options)}")
        return handle

    async def edit_prompt_options(self, handle: PromptHandle, options: list[PromptOption]) -> None:
        return None

    async def notify(self, recipient: int, text: str) -> None:
        if recipient == GROUP_ID:
            console.print(Panel(text, expand=False))
        elif self.show_private:
            console.print(f"[dim]→ {self._name(recipient)}: {text}[/dim]")

    def _pick(self, options: list[PromptOption]) -> str:
        # Mostly act; occasionally skip.
        choices = [opt.value for opt in options if opt.value != SKIP]
        if not choices or self.rng.random() < 0.1:
            return SKIP
        return self.rng.choice(choices)

    def _press_later(self, sender_id: int, raw: str) -> None:
        delay = self.rng.uniform(0, self.max_delay)
        loop = asyncio.get_running_loop()
        loop.call_later(delay, lambda: asyncio.ensure_future(self.engine.handle_interaction(sender_id, raw)))

    def _name(self, player_id: int) -> str:
        player = self.engine.game.get_player(player_id) if self.engine else None
        return player.name if player else str(player_id)


def display_roles(engine: PhaseManager) -> None:
    """Display the dealt roles."""
    table = Table(title="Players")
    table.add_column("Name", style="cyan")
    table.add_column("Role")
    table.add_column("Alignment")
    for player in engine.game.players.values():
        style = ALIGNMENT_STYLES.get(player.alignment, "white")
        table.add_row(player.name, f"[{style}]{player.role.value}[/{style}]", player.alignment.value)
    console.print(table)


async def play(num_players: int, time_scale: float, seed: Optional[int], show_private: bool, env_file: Optional[str]):
    config = load_config(env_file)
    rng = random.Random(seed)
    transport = ScriptedTransport(rng, show_private=show_private)
    engine = PhaseManager(
        transport,
        group_id=GROUP_ID,
        settings=config.settings,
        admin_ids=config.admin_ids,
        time_scale=time_scale,
        rng=rng,
    )
    transport.engine = engine

    for player_id, name in enumerate(NAMES[:num_players], start=1):
        await engine.lobby.join(player_id, name)

    task = await engine.start_game(issuer_id=1)
    display_roles(engine)
    console.print("\n[italic]The game begins...[/italic]\n")
    win = await task
    if win is None:
        console.print("[red]The game was aborted.[/red]")
        return 1
    console.print(f"\n[bold green]🎉 {win.winner} wins after {len(engine.game.history.nominations)} day(s)[/bold green]")
    return 0


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Mafiaville - play a scripted game of Mafia in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Quick game with 9 players:
    mafiaville

  Reproducible game, showing private messages:
    mafiaville --players 12 --seed 7 --show-private
""",
    )
    parser.add_argument(
        "--players",
        type=int,
        default=9,
        choices=range(5, 17),
        metavar="[5-16]",
        help="Number of players in the game (default: 9)",
    )
    parser.add_argument(
        "--time-scale",
        type=float,
        default=0.005,
        help="Multiplier applied to every phase timer (default: 0.005)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible game")
    parser.add_argument("--show-private", action="store_true", help="Print prompts and private messages")
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    parser.add_argument("--log-level", default=None, help="Override MAFIAVILLE_LOG_LEVEL")

    args = parser.parse_args()
    config = load_config(args.env_file)
    initialize_logging(args.log_level or config.log_level, console=Console(stderr=True))

    try:
        return asyncio.run(
            play(args.players, args.time_scale, args.seed, args.show_private, args.env_file)
        )
    except MafiavilleError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Game interrupted by user[/yellow]")
        return 0


if __name__ == "__main__":
    exit(main())
