"""Lobby commands: seating, host handling, settings, wills and role dealing."""

import logging
import random
from collections.abc import Iterable
from typing import Optional

from ..errors import LobbyError, SetupError, WillError
from ..game import GameState, Phase
from ..models import Participant
from ..roles import MIN_PLAYERS, Alignment, Role, build_role_list
from .announcement_service import Announcer
from .notifier import Notifier
from .resolver import notify_succession

logger = logging.getLogger(__name__)


class LobbyService:
    """Applies lobby commands to the game state."""

    def __init__(
        self,
        game: GameState,
        notifier: Notifier,
        announcer: Announcer,
        admin_ids: Iterable[int] = (),
        rng: Optional[random.Random] = None,
    ):
        self.game = game
        self.notifier = notifier
        self.announcer = announcer
        self.admin_ids = set(admin_ids)
        self.rng = rng or random.Random()

    def is_privileged(self, issuer_id: int) -> bool:
        """Host and configured admins may run host commands."""
        return issuer_id in self.admin_ids or issuer_id == self.game.host_id

    def _require_privileged(self, issuer_id: int) -> None:
        if not self.is_privileged(issuer_id):
            raise LobbyError("Only the host can do that.")

    def _require_lobby(self, action: str) -> None:
        if self.game.phase != Phase.LOBBY:
            raise LobbyError(f"You can't {action} while a game is in progress.")

    def _reassign_host(self) -> Optional[Participant]:
        """Hand the host badge to an admin if one is seated, else to anyone."""
        remaining = list(self.game.players.values())
        if not remaining or self.game.host_id is not None:
            return None
        admins = [p for p in remaining if p.id in self.admin_ids]
        new_host = admins[0] if admins else self.rng.choice(remaining)
        new_host.is_host = True
        logger.info("%s is the new host", new_host.name)
        return new_host

    async def _drop(self, player: Participant) -> None:
        del self.game.players[player.id]
        new_host = self._reassign_host()
        if new_host is not None:
            await self.notifier.group(f"👑 {new_host.name} is now the host.")

    # ------------------------------------------------------------------
    # Seating
    # ------------------------------------------------------------------

    async def join(self, player_id: int, name: str) -> Participant:
        """Seat a participant. The first one to join hosts."""
        if self.game.phase != Phase.LOBBY:
            raise LobbyError("A game is already in progress. Wait for the next one!")
        if player_id in self.game.players:
            raise LobbyError("You've already joined the game.")

        player = Participant(id=player_id, name=name, is_host=not self.game.players)
        self.game.players[player_id] = player
        logger.info("%s joined (%d seated)", name, len(self.game.players))
        await self.notifier.group(f"🙋 {name} joined the game. {len(self.game.players)} player(s) seated.")
        return player

    async def leave(self, player_id: int) -> Participant:
        """Leave the lobby; the host badge moves on if needed."""
        self._require_lobby("leave")
        player = self.game.get_player(player_id)
        if player is None:
            raise LobbyError("You're not in the game.")
        await self.notifier.group(f"👋 {player.name} left the game.")
        await self._drop(player)
        return player

    async def remove(self, issuer_id: int, target_id: int) -> Participant:
        """Host command: remove someone from the lobby."""
        self._require_privileged(issuer_id)
        self._require_lobby("remove players")
        target = self.game.get_player(target_id)
        if target is None:
            raise LobbyError("That player isn't in the game.")
        await self.notifier.group(f"🚪 {target.name} was removed from the game.")
        await self._drop(target)
        return target

    async def kick(self, issuer_id: int, target_id: int) -> Participant:
        """Host command: kick someone, mid-game or not.

        Mid-game the target is treated as dead: the jail is emptied if they
        were involved in it and the Mafia hear about any new leader.
        """
        self._require_privileged(issuer_id)
        target = self.game.get_player(target_id)
        if target is None:
            raise LobbyError("That player isn't in the game.")

        if not self.game.is_game_active:
            await self.notifier.group(f"🚪 {target.name} was kicked from the game.")
            await self._drop(target)
            return target

        jailer = self.game.role_state.jailer
        if jailer.last_selection == target_id or jailer.jailer_id == target_id:
            jailer.release()
        if self.game.kill(target_id):
            await notify_succession(self.game, self.notifier, target)
        logger.info("%s kicked mid-game", target.name)
        await self.notifier.group(f"🚪 {target.name} was kicked and is out of the game.")
        return target

    # ------------------------------------------------------------------
    # Settings and wills
    # ------------------------------------------------------------------

    def update_setting(self, issuer_id: int, key: str, value) -> int:
        """Host command: change a phase timer between games."""
        self._require_privileged(issuer_id)
        self._require_lobby("change settings")
        stored = self.game.settings.update(key, value)
        logger.info("Setting %s updated to %s", key, stored)
        return stored

    def write_will(self, player_id: int, text: str) -> list[str]:
        player = self.game.get_player(player_id)
        if player is None:
            raise WillError("You're not in the game.")
        if not player.alive:
            raise WillError("The dead can't change their will.")
        return player.write_will(text)

    def erase_will(self, player_id: int, line_number: int) -> str:
        player = self.game.get_player(player_id)
        if player is None:
            raise WillError("You're not in the game.")
        if not player.alive:
            raise WillError("The dead can't change their will.")
        return player.erase_will(line_number)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    async def setup(self, issuer_id: int) -> dict[int, Role]:
        """Host command: deal roles and send every role card.

        Returns
        -------
            participant id -> dealt role

        Raises
        ------
            LobbyError: if the issuer can't start or the table is too small
            SetupError: if dealing failed (the lobby is restored)

        """
        self._require_privileged(issuer_id)
        self._require_lobby("start a new game")
        game = self.game
        count = len(game.players)
        if count < MIN_PLAYERS:
            raise LobbyError(f"You need at least {MIN_PLAYERS} players to start (currently {count}).")

        game.phase = Phase.SETUP
        logger.info("Setting up a game for %d players", count)
        try:
            roles = build_role_list(count, self.rng)
            if len(roles) != count:
                raise SetupError(f"Could not build a role list for {count} players.")
            self.rng.shuffle(roles)
            assignments = dict(zip(game.players, roles))
            game.deal_roles(assignments, self.rng)

            for player in game.players.values():
                await self.notifier.dm(player.id, self.announcer.role_card(player))
            team = self.announcer.mafia_team()
            for member in game.get_alive_by_alignment(Alignment.MAFIA):
                await self.notifier.dm(member.id, team)
        except Exception as e:
            logger.error("Setup failed, returning to the lobby: %s", e)
            game.reset(carry_over=game.players)
            if isinstance(e, SetupError):
                raise
            raise SetupError(f"Setup failed: {e}") from e

        logger.info("Roles dealt: %s", {game.players[pid].name: r.value for pid, r in assignments.items()})
        return assignments
