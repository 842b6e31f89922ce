"""Game state store.

The single mutable source of truth for one table: participants, phase,
round, alive roster, role memory and settings. Only the resolver, the
voting engine and the lobby mutate it, one at a time.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .config import GameSettings
from .models import EventLogEntry, Participant, RoleStateArena, RoundAction, VoteWeights, VotingHistory
from .roles import MAFIA_SUCCESSION, Alignment, Role

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    """Table phase. Night and day alternate strictly while a game runs."""

    LOBBY = "lobby"
    SETUP = "setup"
    NIGHT = "night"
    DAY = "day"
    ENDED = "ended"


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view for lobby commands."""

    phase: Phase
    round_number: int
    host_id: Optional[int]
    leader_id: Optional[int]
    players: tuple[str, ...]
    alive: tuple[str, ...]
    dead: tuple[str, ...]


@dataclass
class GameState:
    """Represents the current state of the table."""

    players: dict[int, Participant] = field(default_factory=dict)
    settings: GameSettings = field(default_factory=GameSettings)
    group_id: int = 0
    phase: Phase = Phase.LOBBY
    round_number: int = 0
    players_alive: list[int] = field(default_factory=list)
    dead_this_round: list[EventLogEntry] = field(default_factory=list)
    role_state: RoleStateArena = field(default_factory=RoleStateArena)
    last_round_actions: dict[Role, RoundAction] = field(default_factory=dict)
    history: VotingHistory = field(default_factory=VotingHistory)

    @property
    def is_game_active(self) -> bool:
        return self.phase in (Phase.NIGHT, Phase.DAY)

    @property
    def host_id(self) -> Optional[int]:
        for player in self.players.values():
            if player.is_host:
                return player.id
        return None

    def get_player(self, player_id: Optional[int]) -> Optional[Participant]:
        if player_id is None:
            return None
        return self.players.get(player_id)

    def get_player_by_name(self, name: str) -> Optional[Participant]:
        """Find a participant by display name (case insensitive)."""
        for player in self.players.values():
            if player.name.lower() == name.lower():
                return player
        return None

    def get_alive_players(self) -> list[Participant]:
        """Living participants in roster order."""
        return [self.players[pid] for pid in self.players_alive if pid in self.players]

    def get_alive_by_alignment(self, alignment: Alignment) -> list[Participant]:
        return [p for p in self.get_alive_players() if p.alignment == alignment]

    def player_with_role(self, role: Role) -> Optional[Participant]:
        for player in self.players.values():
            if player.role == role:
                return player
        return None

    def is_alive(self, player_id: Optional[int]) -> bool:
        player = self.get_player(player_id)
        return bool(player and player.alive)

    def is_jailed(self, player_id: Optional[int]) -> bool:
        return player_id is not None and self.role_state.jailer.last_selection == player_id

    def kill(self, player_id: int) -> bool:
        """Mark a participant dead and drop them from the alive roster.

        Returns False if they were already dead or unknown.
        """
        player = self.players.get(player_id)
        if player is None or not player.alive:
            return False
        player.alive = False
        self.players_alive = [pid for pid in self.players_alive if pid != player_id]
        logger.debug("%s died", player.name)
        return True

    def revive(self, player_id: int) -> bool:
        """Bring a participant back and restore them to the alive roster."""
        player = self.players.get(player_id)
        if player is None or player.alive:
            return False
        player.alive = True
        if player_id not in self.players_alive:
            self.players_alive.append(player_id)
        logger.debug("%s revived", player.name)
        return True

    def active_leader(self) -> Optional[int]:
        """First living Mafia member in succession order."""
        for role in MAFIA_SUCCESSION:
            for player in self.players.values():
                if player.role == role and player.alive:
                    return player.id
        return None

    def vote_weights(self) -> VoteWeights:
        """The revealed Mayor counts double while alive."""
        mayor = self.role_state.mayor
        if mayor.revealed and self.is_alive(mayor.mayor_id):
            return VoteWeights(mayor_id=mayor.mayor_id)
        return VoteWeights()

    def deal_roles(self, assignments: dict[int, Role], rng: Optional[random.Random] = None) -> None:
        """Give every participant a role and open the alive roster.

        Args:
        ----
            assignments: participant id -> role, covering every participant
            rng: Random source for the Executioner's target

        """
        rng = rng or random.Random()
        arena = self.role_state
        for player_id, role in assignments.items():
            self.players[player_id].assign(role)
        self.players_alive = list(self.players)

        for player in self.players.values():
            if player.role == Role.SILENCER:
                arena.silencer.silencer_id = player.id
            elif player.role == Role.DISTRACTOR:
                arena.distractor.distractor_id = player.id
            elif player.role == Role.DOCTOR:
                arena.doctor.doctor_id = player.id
            elif player.role == Role.JAILER:
                arena.jailer.jailer_id = player.id
            elif player.role == Role.BAITER:
                arena.baiter.baiter_id = player.id
            elif player.role == Role.ARSONIST:
                arena.arsonist.arsonist_id = player.id
            elif player.role == Role.JESTER:
                arena.jester.jester_id = player.id
            elif player.role == Role.EXECUTIONER:
                arena.executioner.executioner_id = player.id

        if arena.executioner.executioner_id is not None:
            eligible = [
                p.id
                for p in self.players.values()
                if p.alignment == Alignment.VILLAGE and p.role != Role.MAYOR
            ]
            if eligible:
                arena.executioner.target = rng.choice(eligible)

    def reset(self, carry_over: Optional[dict[int, Participant]] = None) -> None:
        """Reinitialize every per-game structure.

        Args:
        ----
            carry_over: Roster to keep for the next lobby (identities and the
                host badge survive, roles and flags do not). ``None`` empties
                the table.

        """
        self.players = dict(carry_over) if carry_over is not None else {}
        for player in self.players.values():
            player.return_to_lobby()
        self.phase = Phase.LOBBY
        self.round_number = 0
        self.players_alive = []
        self.dead_this_round = []
        self.role_state = RoleStateArena()
        self.last_round_actions = {}
        self.history = VotingHistory()

    def snapshot(self) -> GameSnapshot:
        alive = tuple(p.name for p in self.get_alive_players())
        dead = tuple(p.name for p in self.players.values() if self.is_game_active and not p.alive)
        return GameSnapshot(
            phase=self.phase,
            round_number=self.round_number,
            host_id=self.host_id,
            leader_id=self.active_leader(),
            players=tuple(p.name for p in self.players.values()),
            alive=alive,
            dead=dead,
        )


def create_game(
    player_configs: list[dict],
    settings: Optional[GameSettings] = None,
    group_id: int = 0,
    rng: Optional[random.Random] = None,
) -> GameState:
    """Create a game with roles already dealt.

    Args:
    ----
        player_configs: Dicts with 'id', 'name' and 'role' keys; the first
            entry becomes the host
        settings: Phase timers
        group_id: Transport id of the group chat
        rng: Random source for the Executioner's target

    Returns:
    -------
        GameState instance, ready for the first night

    """
    game = GameState(settings=settings or GameSettings(), group_id=group_id)
    for index, config in enumerate(player_configs):
        game.players[config["id"]] = Participant(
            id=config["id"], name=config["name"], is_host=index == 0
        )
    game.deal_roles({c["id"]: Role(c["role"]) for c in player_configs}, rng=rng)
    return game
