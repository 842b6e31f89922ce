"""Tests for lobby commands."""

import random

import pytest
from conftest import GROUP, run

from mafiaville.errors import LobbyError, SetupError, WillError
from mafiaville.game import GameState, Phase
from mafiaville.roles import Alignment
from mafiaville.services.announcement_service import Announcer
from mafiaville.services.lobby_service import LobbyService

ADMIN = 99


@pytest.fixture
def empty_game(settings):
    return GameState(settings=settings, group_id=GROUP)


@pytest.fixture
def lobby(empty_game, notifier):
    rng = random.Random(0)
    return LobbyService(empty_game, notifier, Announcer(empty_game, notifier, rng), admin_ids=[ADMIN], rng=rng)


def seat(lobby, count, start=1):
    async def scenario():
        for pid in range(start, start + count):
            await lobby.join(pid, f"Player{pid}")

    run(scenario())


class TestSeating:
    """Test join, leave and removal."""

    def test_first_joiner_hosts(self, lobby, empty_game):
        seat(lobby, 3)
        assert empty_game.host_id == 1
        assert [p.is_host for p in empty_game.players.values()] == [True, False, False]

    def test_double_join(self, lobby):
        seat(lobby, 1)
        with pytest.raises(LobbyError, match="already joined"):
            seat(lobby, 1)

    def test_join_mid_game(self, lobby, empty_game):
        empty_game.phase = Phase.NIGHT
        with pytest.raises(LobbyError, match="in progress"):
            seat(lobby, 1)

    def test_host_leaves_admin_takes_over(self, lobby, empty_game):
        seat(lobby, 3)
        run(lobby.join(ADMIN, "Admin"))
        run(lobby.leave(1))
        assert empty_game.host_id == ADMIN

    def test_host_leaves_random_successor(self, lobby, empty_game):
        seat(lobby, 3)
        run(lobby.leave(1))
        assert empty_game.host_id in (2, 3)

    def test_remove_requires_host(self, lobby, empty_game):
        seat(lobby, 3)
        with pytest.raises(LobbyError, match="Only the host"):
            run(lobby.remove(2, 3))
        run(lobby.remove(ADMIN, 3))
        assert 3 not in empty_game.players


class TestKick:
    """Test kicking during a game."""

    def test_kick_mid_game(self, game, notifier, transport):
        lobby = LobbyService(game, notifier, Announcer(game, notifier), admin_ids=[])
        game.phase = Phase.DAY
        game.role_state.jailer.last_selection = 4
        run(lobby.kick(1, 4))
        assert not game.players[4].alive
        assert 4 in game.players
        assert game.role_state.jailer.last_selection is None

    def test_kicking_godfather_promotes(self, game, notifier, transport):
        lobby = LobbyService(game, notifier, Announcer(game, notifier), admin_ids=[ADMIN])
        game.phase = Phase.NIGHT
        run(lobby.kick(ADMIN, 1))
        assert game.active_leader() == 2
        assert any("acting Godfather" in text for text in transport.messages_to(2))

    def test_kick_in_lobby_removes(self, lobby, empty_game):
        seat(lobby, 3)
        run(lobby.kick(1, 1))
        assert 1 not in empty_game.players
        assert empty_game.host_id in (2, 3)


class TestSetup:
    """Test role dealing."""

    def test_too_few_players(self, lobby):
        seat(lobby, 4)
        with pytest.raises(LobbyError, match="at least 5"):
            run(lobby.setup(1))

    def test_only_host(self, lobby):
        seat(lobby, 5)
        with pytest.raises(LobbyError, match="Only the host"):
            run(lobby.setup(2))

    def test_deal(self, lobby, empty_game, transport):
        seat(lobby, 7)
        assignments = run(lobby.setup(1))
        assert len(assignments) == 7
        assert all(p.role is not None for p in empty_game.players.values())
        assert empty_game.players_alive == list(range(1, 8))
        assert empty_game.phase == Phase.SETUP
        for pid in range(1, 8):
            assert any("You are" in text for text in transport.messages_to(pid))
        for member in empty_game.get_alive_by_alignment(Alignment.MAFIA):
            assert any("Your family" in text for text in transport.messages_to(member.id))

    def test_oversized_table_rolls_back(self, lobby, empty_game):
        """A role list that doesn't fit leaves the lobby untouched."""
        seat(lobby, 20)
        with pytest.raises(SetupError):
            run(lobby.setup(1))
        assert empty_game.phase == Phase.LOBBY
        assert len(empty_game.players) == 20
        assert all(p.role is None for p in empty_game.players.values())
        assert empty_game.host_id == 1


class TestSettingsAndWills:
    """Test settings changes and will edits."""

    def test_update_setting(self, lobby, empty_game):
        seat(lobby, 2)
        assert lobby.update_setting(1, "night", "45") == 45
        assert empty_game.settings.night_time == 45
        with pytest.raises(LobbyError):
            lobby.update_setting(2, "night", "45")

    def test_no_settings_mid_game(self, lobby, empty_game):
        seat(lobby, 2)
        empty_game.phase = Phase.DAY
        with pytest.raises(LobbyError, match="in progress"):
            lobby.update_setting(1, "day", 60)

    def test_wills(self, lobby, empty_game):
        seat(lobby, 2)
        assert lobby.write_will(1, "hello") == ["hello"]
        assert lobby.erase_will(1, 1) == "hello"
        empty_game.players[2].alive = False
        with pytest.raises(WillError, match="dead"):
            lobby.write_will(2, "boo")
