"""Tests for night action collection."""

import asyncio

import pytest
from conftest import FAST, RecordingTransport, run

from mafiaville.errors import ActionRejected
from mafiaville.models import ActionKind
from mafiaville.protocols import PromptOption
from mafiaville.roles import Role
from mafiaville.services.collector import ActionCollector

BAIT_TABLE = [
    (1, "Alice", "Godfather"),
    (2, "Bob", "Silencer"),
    (3, "Carol", "Doctor"),
    (4, "David", "PI"),
    (5, "Eve", "Mayor"),
    (6, "Frank", "Jailer"),
    (7, "Grace", "Baiter"),
    (8, "Henry", "Arsonist"),
    (9, "Iris", "Distractor"),
]


@pytest.fixture
def collector(game, transport, table, notifier):
    return ActionCollector(game, transport, table, notifier, time_scale=FAST)


@pytest.fixture
def bait_game(make_game):
    return make_game(BAIT_TABLE)


@pytest.fixture
def bait_collector(bait_game, transport, table, notifier):
    return ActionCollector(bait_game, transport, table, notifier, time_scale=FAST)


class SocketDropTransport(RecordingTransport):
    """Fails with a plain connection error for some recipients."""

    def __init__(self, table, broken):
        super().__init__(table)
        self.broken = set(broken)

    async def send_prompt(self, recipient, text, options, session_key):
        if recipient in self.broken:
            raise ConnectionResetError("socket closed")
        return await super().send_prompt(recipient, text, options, session_key)


class TestSelectionPrompt:
    """Test the prompt/timeout protocol."""

    def test_response_resolves(self, collector, transport, table):
        transport.answers[3] = ["b"]
        options = [PromptOption("A", "a"), PromptOption("B", "b")]
        value = run(collector.send_selection_prompt(3, "pick", options, "na", timeout=30))
        assert value == "b"
        assert len(table) == 0

    def test_skip_resolves_none(self, collector, transport):
        transport.answers[3] = ["skip"]
        options = [PromptOption("A", "a"), PromptOption("Skip", "skip")]
        assert run(collector.send_selection_prompt(3, "pick", options, "na", timeout=30)) is None

    def test_timeout(self, collector, transport, table, game):
        """Timing out deregisters, disables the buttons and tells the actor."""
        options = [PromptOption("A", "a")]
        value = run(collector.send_selection_prompt(3, "pick", options, "na", timeout=30))
        assert value is None
        assert not table.has(f"na:{game.round_number}:3")
        assert transport.edits and transport.edits[-1][1] == []
        assert any("Time's up" in text for text in transport.messages_to(3))

    def test_delivery_failure(self, collector, transport, table):
        """An unreachable actor takes no action and leaves nothing pending."""
        transport.unreachable.add(3)
        options = [PromptOption("A", "a")]
        assert run(collector.send_selection_prompt(3, "pick", options, "na", timeout=30)) is None
        assert len(table) == 0

    def test_check_response_rejects_unoffered_value(self, collector, transport, table):
        """A value that was never on the prompt is refused before resolving."""

        async def scenario():
            task = asyncio.create_task(collector.collect_night_action(4))
            while not transport.prompts:
                await asyncio.sleep(0)
            key = transport.prompts[-1][3]
            with pytest.raises(ActionRejected):
                collector.check_response(key, "99")
            collector.check_response(key, "5")
            table.resolve(key, "5")
            return await task

        action = run(scenario())
        assert action.kind == ActionKind.CHECK
        assert action.target == 5


class TestRoleCollectors:
    """Test per-role target lists and memory."""

    def test_godfather_kill_targets(self, collector, transport, game):
        """Mafia, self and the jailed never appear as kill targets."""
        game.role_state.jailer.last_selection = 4
        transport.answers[1] = ["3"]
        action = run(collector.collect_night_action(1))
        assert action.kind == ActionKind.KILL
        assert action.target == 3
        values = transport.option_values(1)
        assert "1" not in values and "2" not in values and "4" not in values
        assert values[-1] == "skip"

    def test_mafioso_idle_while_godfather_lives(self, collector, transport):
        assert run(collector.collect_night_action(2)) is None
        assert transport.prompts_to(2) == []

    def test_promoted_leader_orders_kill(self, collector, transport, game):
        game.kill(1)
        transport.answers[2] = ["5"]
        action = run(collector.collect_night_action(2))
        assert action.kind == ActionKind.KILL
        assert any("acting Godfather" in text for text in transport.messages_to(2))

    def test_no_action_roles(self, collector, transport):
        """The Jester has nothing to do at night."""
        assert run(collector.collect_night_action(8)) is None
        assert transport.prompts_to(8) == []

    def test_dead_actor(self, collector, game):
        game.kill(4)
        assert run(collector.collect_night_action(4)) is None

    def test_doctor_cannot_repeat(self, collector, transport, game):
        """Self-heal is allowed; last night's patient is not."""
        game.role_state.doctor.last_choice = 5
        transport.answers[3] = ["3"]
        action = run(collector.collect_night_action(3))
        assert action.target == 3
        values = transport.option_values(3)
        assert "3" in values and "5" not in values
        assert game.role_state.doctor.last_choice == 3

    def test_vigilante_and_spy(self, collector, transport):
        transport.answers[5] = ["1"]
        transport.answers[9] = ["2"]
        assert run(collector.collect_night_action(5)).kind == ActionKind.KILL_VIGIL
        assert run(collector.collect_night_action(9)).kind == ActionKind.SPY_CHECK

    def test_distractor_alternates(self, collector, transport, game):
        transport.answers[7] = ["4"]
        assert run(collector.collect_night_action(7)).kind == ActionKind.DISTRACT
        assert game.role_state.distractor.worked_last_night
        assert run(collector.collect_night_action(7)) is None
        assert not game.role_state.distractor.worked_last_night
        assert len(transport.prompts_to(7)) == 1

    def test_silencer_alternates_and_never_repeats(self, bait_collector, transport, bait_game):
        state = bait_game.role_state.silencer
        transport.answers[2] = ["3", "4"]
        action = run(bait_collector.collect_night_action(2))
        assert action.kind == ActionKind.SILENCE
        assert state.silenced_so_far == [3]

        assert run(bait_collector.collect_night_action(2)) is None
        assert any("too tired" in text for text in transport.messages_to(2))

        run(bait_collector.collect_night_action(2))
        assert "3" not in transport.option_values(2)
        assert state.silenced_so_far == [3, 4]

    def test_mayor_reveal(self, bait_collector, transport, bait_game):
        transport.answers[5] = ["yes"]
        action = run(bait_collector.collect_night_action(5))
        assert action.kind == ActionKind.MAYOR_REVEAL
        assert bait_game.role_state.mayor.revealed
        assert bait_game.role_state.mayor.mayor_id == 5
        assert transport.prompts_to(5)[0][3].startswith("na_mayor:")

        assert run(bait_collector.collect_night_action(5)) is None
        assert len(transport.prompts_to(5)) == 1

    def test_mayor_declines(self, bait_collector, transport, bait_game):
        transport.answers[5] = ["no"]
        assert run(bait_collector.collect_night_action(5)) is None
        assert not bait_game.role_state.mayor.revealed

    def test_jailer_execute(self, bait_collector, transport, bait_game):
        bait_game.role_state.jailer.last_selection = 1
        transport.answers[6] = ["yes"]
        action = run(bait_collector.collect_night_action(6))
        assert action.kind == ActionKind.EXECUTE
        assert action.target == 1

    def test_jailer_without_kills(self, bait_collector, transport, bait_game):
        bait_game.role_state.jailer.last_selection = 1
        bait_game.role_state.jailer.kills_left = 0
        assert run(bait_collector.collect_night_action(6)) is None
        assert transport.prompts_to(6) == []

    def test_pi_two_steps(self, bait_collector, transport):
        """The second step cannot pick the first player again."""
        transport.answers[4] = ["1", "3"]
        action = run(bait_collector.collect_night_action(4))
        assert action.kind == ActionKind.PI_CHECK
        assert action.targets == (1, 3)
        first, second = transport.prompts_to(4)
        assert first[3].startswith("na_pi1:")
        assert second[3].startswith("na:")
        assert "1" not in [opt.value for opt in second[2]]

    def test_arsonist_douse_then_ignite(self, bait_collector, transport, bait_game):
        state = bait_game.role_state.arsonist
        transport.answers[8] = ["ignite", "3", "ignite"]
        assert run(bait_collector.collect_night_action(8)) is None
        assert any("No doused" in text for text in transport.messages_to(8))

        action = run(bait_collector.collect_night_action(8))
        assert action.kind == ActionKind.DOUSE
        assert state.doused == [3]

        action = run(bait_collector.collect_night_action(8))
        assert action.kind == ActionKind.IGNITE
        values = transport.option_values(8)
        assert values[0] == "ignite"
        assert "3" not in values


class TestBaitRedirection:
    """Visiting the Baiter turns any action into an ambush."""

    def test_kill_on_baiter(self, bait_collector, transport):
        transport.answers[1] = ["7"]
        action = run(bait_collector.collect_night_action(1))
        assert action.kind == ActionKind.BAITED
        assert action.target == 1
        assert any("Baiter" in text for text in transport.messages_to(1))

    def test_doctor_choice_recorded_even_if_baited(self, bait_collector, transport, bait_game):
        transport.answers[3] = ["7"]
        action = run(bait_collector.collect_night_action(3))
        assert action.kind == ActionKind.BAITED
        assert bait_game.role_state.doctor.last_choice == 7

    def test_pi_second_step_baited(self, bait_collector, transport):
        transport.answers[4] = ["1", "7"]
        action = run(bait_collector.collect_night_action(4))
        assert action.kind == ActionKind.BAITED


class TestCollectRound:
    """Test concurrent collection."""

    def test_jailed_get_no_prompt(self, collector, transport, game):
        game.role_state.jailer.last_selection = 4
        transport.answers[1] = ["5"]
        actions = run(collector.collect_round())
        assert actions[Role.GODFATHER].target == 5
        assert transport.prompts_to(4) == []
        assert any("jailed" in text for text in transport.messages_to(4))

    def test_unreachable_actor_is_no_action(self, collector, transport):
        transport.unreachable.add(3)
        transport.answers[1] = ["5"]
        actions = run(collector.collect_round())
        assert Role.DOCTOR not in actions
        assert Role.GODFATHER in actions

    def test_transport_crash_is_no_action(self, game, table, notifier):
        """Any send failure drops only that actor and leaves nothing pending."""
        transport = SocketDropTransport(table, broken=[4])
        transport.answers[1] = ["5"]
        collector = ActionCollector(game, transport, table, notifier, time_scale=FAST)
        actions = run(collector.collect_round())
        assert actions[Role.GODFATHER].target == 5
        assert Role.DETECTIVE not in actions
        assert not table.has(f"na:{game.round_number}:4")
        assert len(table) == 0
        assert collector._offered == {}

    def test_collector_bug_is_no_action(self, collector, transport, monkeypatch):
        async def broken(actor):
            raise RuntimeError("boom")

        monkeypatch.setitem(collector._collectors, Role.DETECTIVE, broken)
        transport.answers[1] = ["5"]
        actions = run(collector.collect_round())
        assert Role.DETECTIVE not in actions
        assert actions[Role.GODFATHER].target == 5


class TestJailerDay:
    """Test the Jailer's daytime choice."""

    def test_pick_then_off_duty(self, bait_collector, transport, bait_game):
        state = bait_game.role_state.jailer
        transport.answers[6] = ["4"]
        run(bait_collector.collect_jailer_day(6))
        assert state.last_selection == 4
        assert state.can_jail is False
        assert transport.prompts_to(6)[0][3].startswith("na_jailer_day:")

        run(bait_collector.collect_jailer_day(6))
        assert state.can_jail is True
        assert state.previous_selection == 4
        assert state.last_selection is None
        assert len(transport.prompts_to(6)) == 1

    def test_no_choice(self, bait_collector, transport, bait_game):
        state = bait_game.role_state.jailer
        state.last_selection = 2
        transport.answers[6] = ["skip"]
        run(bait_collector.collect_jailer_day(6))
        assert state.can_jail is True
        assert state.last_selection is None
        assert state.previous_selection == 2
