"""Group announcements: night results, attendance, trials and the ending."""

import logging
import random
from typing import Optional

from ..formatting import bullet_list, day_header, numbered, separator
from ..game import GameState
from ..models import DeathCause, EventLogEntry, ExecutionResult, NightResult, Participant
from ..roles import Alignment, Role, get_role_info
from .notifier import Notifier
from .win_service import WinResult

logger = logging.getLogger(__name__)

KILLED_TEXT = "💀 {name} was attacked last night and didn't survive."


class Announcer:
    """Builds and posts the group-facing story of the game."""

    def __init__(self, game: GameState, notifier: Notifier, rng: Optional[random.Random] = None):
        self.game = game
        self.notifier = notifier
        self.rng = rng or random.Random()

    def _name(self, player_id: Optional[int]) -> str:
        player = self.game.get_player(player_id)
        return player.name if player else "?"

    # ------------------------------------------------------------------
    # Night
    # ------------------------------------------------------------------

    async def night_results(self, result: NightResult) -> str:
        """Post what happened overnight and reveal the wills of the dead.

        A saved attack is reported as saved and reveals nothing. Silencing
        reads exactly like an attack nobody survived.
        """
        events = result.events
        saved = {e.subject_id for e in events if e.cause == DeathCause.DOCTOR}
        attacked = {e.subject_id for e in events if e.cause == DeathCause.MAFIA}
        lines = [day_header(self.game.round_number)]
        wills = []

        for entry in events:
            line = self._describe(entry, saved, attacked)
            if line:
                lines.append(line)
            for pid in self._victims(entry, saved):
                will = await self.reveal_last_will(self.game.players[pid])
                if will:
                    wills.append(will)

        if len(lines) == 1:
            lines.append("🌅 Everyone survived the night.")

        text = "\n".join(lines + wills)
        await self.notifier.group(text)
        return text

    def _describe(self, entry: EventLogEntry, saved: set[int], attacked: set[int]) -> Optional[str]:
        name = self._name(entry.subject_id)
        cause = entry.cause
        if cause == DeathCause.MAFIA:
            if entry.subject_id in saved:
                return f"💊 {name} was attacked last night, but the Doctor saved them!"
            return KILLED_TEXT.format(name=name)
        if cause == DeathCause.SILENCER:
            return KILLED_TEXT.format(name=name)
        if cause == DeathCause.DOCTOR:
            if entry.subject_id in attacked:
                return None
            return f"💊 {name} was attacked last night, but the Doctor saved them!"
        if cause == DeathCause.VIGILANTE:
            return f"🔫 {name} was shot by the Vigilante."
        if cause == DeathCause.VIGILANTE_GUILT:
            return f"🔫 {name} shot an innocent villager and died of guilt."
        if cause == DeathCause.MAYOR:
            return f"🏛 {name} has revealed themselves as the Mayor! Their vote now counts twice."
        if cause == DeathCause.ARSONIST:
            killed = entry.extra.get("killed", [])
            self.game.role_state.arsonist.doused = []
            if not killed:
                return "🔥 The Arsonist lit a match, but nobody burned."
            return "\n".join(f"🔥 {self._name(pid)} was burned to death by the Arsonist." for pid in killed)
        if cause == DeathCause.BAITER:
            return f"💥 {name} visited the Baiter's house and was blown up."
        if cause == DeathCause.JAILER:
            return f"⚖️ {name} was executed by the Jailer."
        return None

    def _victims(self, entry: EventLogEntry, saved: set[int]) -> list[int]:
        """Ids whose death this entry records."""
        if entry.cause == DeathCause.ARSONIST:
            return list(entry.extra.get("killed", []))
        if entry.cause == DeathCause.MAFIA and entry.subject_id in saved:
            return []
        if entry.cause in (DeathCause.SILENCER, DeathCause.DOCTOR, DeathCause.MAYOR):
            return []
        return [entry.subject_id]

    async def reveal_last_will(self, player: Participant) -> Optional[str]:
        """The will block for a dead participant, or None.

        A participant silenced the night they died takes their will with them;
        only they are told.
        """
        if player.silenced_last_round:
            await self.notifier.dm(player.id, "📜 You were silenced, so your last will stays hidden.")
            return None
        if not player.will:
            return f"📜 We could not find a last will for {player.name}."
        return f"📜 {player.name}'s last will:\n{numbered(player.will)}"

    # ------------------------------------------------------------------
    # Day
    # ------------------------------------------------------------------

    async def attendance(self) -> str:
        """Post who is present at the meeting.

        Silenced participants are listed among the absent at random positions.
        """
        game = self.game
        present = [p.name for p in game.get_alive_players() if not p.silenced_last_round]
        absent = [p.name for p in game.players.values() if not p.alive]
        for player in game.get_alive_players():
            if player.silenced_last_round:
                absent.insert(self.rng.randint(0, len(absent)), player.name)

        text = (
            f"🏛 Town meeting, day {game.round_number}\n"
            f"Present:\n{bullet_list(present)}\n"
            f"Absent:\n{bullet_list(absent)}"
        )
        await self.notifier.group(text)
        return text

    async def nomination_result(self, nominee_id: Optional[int]) -> str:
        if nominee_id is None:
            text = "🗳 The town couldn't agree on anyone to put on trial today."
        else:
            text = (
                f"🗳 {self._name(nominee_id)} has been put on trial! "
                f"They have {self.game.settings.voting_time} seconds to defend themselves."
            )
        await self.notifier.group(text)
        return text

    async def execution_result(self, result: ExecutionResult) -> str:
        """Post the trial tally and, for an execution, the will."""
        mayor_id = self.game.vote_weights().mayor_id

        def tagged(ids: list[int]) -> list[str]:
            return [f"{self._name(pid)} (Mayor)" if pid == mayor_id else self._name(pid) for pid in ids]

        nominee = self.game.players[result.nominee_id]
        verdict = (
            f"⚖️ {nominee.name} was found guilty and executed."
            if result.executed
            else f"🕊 {nominee.name} was found innocent and walks free."
        )
        lines = [
            verdict,
            f"Guilty ({result.guilty}):\n{bullet_list(tagged(result.guilty_voters))}",
            f"Innocent ({result.innocent}):\n{bullet_list(tagged(result.innocent_voters))}",
        ]
        if result.executed:
            will = await self.reveal_last_will(nominee)
            if will:
                lines.append(will)
        text = "\n".join(lines)
        await self.notifier.group(text)
        return text

    # ------------------------------------------------------------------
    # End of game
    # ------------------------------------------------------------------

    def win_message(self, win: WinResult) -> str:
        game = self.game
        if win.exclusive_role == Role.JESTER:
            return f"🃏 {self._name(game.role_state.jester.jester_id)} was the Jester! They fooled you all and win."
        if win.exclusive_role == Role.EXECUTIONER:
            return (
                f"🪓 {self._name(game.role_state.executioner.executioner_id)} was the Executioner "
                "and got what they wanted. They win!"
            )
        if win.exclusive_role == Role.ARSONIST:
            return f"🔥 {self._name(game.role_state.arsonist.arsonist_id)} the Arsonist watched the town burn. They win!"
        if win.winner == Alignment.MAFIA.value:
            return "🔴 The Mafia has taken over the town. The Mafia wins!"
        return "🟢 The Mafia has been wiped out. The Village wins!"

    def co_win_message(self, win: WinResult) -> Optional[str]:
        if not win.co_winners:
            return None
        names = ", ".join(self._name(pid) for pid in win.co_winners)
        return f"💥 {names} baited enough visitors and also wins!"

    def role_reveal(self) -> str:
        lines = []
        for player in self.game.players.values():
            role = player.role.value if player.role else "no role"
            status = "alive" if player.alive else "dead"
            lines.append(f"{player.name}: {role} ({status})")
        return "🎭 Roles this game:\n" + bullet_list(lines)

    async def game_over(self, win: WinResult) -> str:
        """Post the winner, any co-winner and the full role list."""
        parts = [separator(), self.win_message(win)]
        co_win = self.co_win_message(win)
        if co_win:
            parts.append(co_win)
        parts.append(self.role_reveal())
        text = "\n".join(parts)
        await self.notifier.group(text)
        logger.info("Game over: %s wins", win.winner)
        return text

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def role_card(self, player: Participant) -> str:
        info = get_role_info(player.role)
        lines = [
            f"🎭 You are {player.role.display_name()}!",
            info["description"],
            f"Goal: {info['goal']}",
        ]
        state = self.game.role_state.executioner
        if player.role == Role.EXECUTIONER and state.target is not None:
            lines.append(f"Your target is {self._name(state.target)}.")
        return "\n".join(lines)

    def mafia_team(self) -> str:
        members = [
            f"{p.name} ({p.role.value})" for p in self.game.players.values() if p.alignment == Alignment.MAFIA
        ]
        return "🔴 Your family:\n" + bullet_list(members)
