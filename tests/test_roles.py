"""Tests for roles and the role list builder."""

import random
from collections import Counter

import pytest

from mafiaville.roles import (
    CORE_ROLES,
    MAFIA_SUCCESSION,
    RESOLUTION_ORDER,
    Alignment,
    Role,
    build_role_list,
    get_role_info,
)


class TestRoles:
    """Test role metadata."""

    def test_alignments(self):
        assert Role.GODFATHER.alignment == Alignment.MAFIA
        assert Role.SILENCER.alignment == Alignment.MAFIA
        assert Role.JAILER.alignment == Alignment.VILLAGE
        assert Role.ARSONIST.alignment == Alignment.NEUTRAL

    def test_every_role_described(self):
        for role in Role:
            info = get_role_info(role)
            assert info["name"] == role.value
            assert info["description"]

    def test_display_name(self):
        assert Role.ARSONIST.display_name() == "an Arsonist"
        assert Role.DOCTOR.display_name() == "a Doctor"

    def test_resolution_order(self):
        """Distraction and jail come first, the Mayor last."""
        assert RESOLUTION_ORDER[0] == Role.DISTRACTOR
        assert RESOLUTION_ORDER[1] == Role.JAILER
        assert RESOLUTION_ORDER[-1] == Role.MAYOR
        assert RESOLUTION_ORDER.index(Role.GODFATHER) < RESOLUTION_ORDER.index(Role.DOCTOR)
        assert MAFIA_SUCCESSION[0] == Role.GODFATHER


class TestBuildRoleList:
    """Test table composition by size."""

    def test_five_players_core_only(self):
        assert sorted(build_role_list(5)) == sorted(CORE_ROLES)

    @pytest.mark.parametrize("count", range(5, 17))
    def test_one_role_per_seat(self, count):
        """Up to sixteen seats the list always fits the table."""
        roles = build_role_list(count, random.Random(count))
        assert len(roles) == count
        assert len(set(roles)) == count

    @pytest.mark.parametrize("count", [6, 7, 8])
    def test_small_tables_add_godfather_and_neutrals(self, count):
        roles = build_role_list(count, random.Random(1))
        assert Role.GODFATHER in roles
        neutrals = [r for r in roles if r.alignment == Alignment.NEUTRAL]
        assert len(neutrals) == min(count - 6, 2)

    def test_large_table_has_village_extra(self):
        roles = build_role_list(9, random.Random(2))
        counts = Counter(r.alignment for r in roles)
        assert counts[Alignment.MAFIA] == 3
        assert any(r in roles for r in (Role.VIGILANTE, Role.JAILER, Role.PI, Role.SPY))

    def test_oversized_table_comes_up_short(self):
        """Past sixteen seats the pools run dry; setup must refuse."""
        assert len(build_role_list(20, random.Random(0))) < 20
