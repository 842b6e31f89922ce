"""Game roles, alignments and the role list builder."""

import random
from enum import Enum


class Alignment(str, Enum):
    """Factions a role can belong to."""

    MAFIA = "Mafia"
    VILLAGE = "Village"
    NEUTRAL = "Neutral"


class Role(str, Enum):
    """Available roles in the game."""

    GODFATHER = "Godfather"
    MAFIOSO = "Mafioso"
    FRAMER = "Framer"
    SILENCER = "Silencer"
    DOCTOR = "Doctor"
    DETECTIVE = "Detective"
    VIGILANTE = "Vigilante"
    MAYOR = "Mayor"
    JAILER = "Jailer"
    DISTRACTOR = "Distractor"
    PI = "PI"
    SPY = "Spy"
    EXECUTIONER = "Executioner"
    JESTER = "Jester"
    BAITER = "Baiter"
    ARSONIST = "Arsonist"

    @property
    def alignment(self) -> Alignment:
        """Faction this role plays for."""
        return ROLE_DESCRIPTIONS[self]["alignment"]

    def display_name(self) -> str:
        """Get the singular display name for this role."""
        if self in (Role.EXECUTIONER, Role.ARSONIST):
            return f"an {self.value}"
        return f"a {self.value}"


_MAFIA_GOAL = (
    "Help the Godfather kill the villagers. You win when the number of "
    "villagers equals or falls below the number of Mafia."
)
_VILLAGE_GOAL = "Help the village eliminate all the Mafia."

ROLE_DESCRIPTIONS = {
    Role.GODFATHER: {
        "name": "Godfather",
        "alignment": Alignment.MAFIA,
        "description": "You lead the Mafia. Each night you choose who the family kills.",
        "goal": (
            "Kill the villagers. You win when the number of villagers equals "
            "or falls below the number of Mafia."
        ),
        "night_action": True,
    },
    Role.MAFIOSO: {
        "name": "Mafioso",
        "alignment": Alignment.MAFIA,
        "description": (
            "You carry out the Godfather's orders. If the Godfather dies, "
            "you take over and choose the kills."
        ),
        "goal": _MAFIA_GOAL,
        "night_action": False,
    },
    Role.FRAMER: {
        "name": "Framer",
        "alignment": Alignment.MAFIA,
        "description": (
            "Each night you can frame a player so the Detective sees them as "
            "Mafia for that night."
        ),
        "goal": _MAFIA_GOAL,
        "night_action": True,
    },
    Role.SILENCER: {
        "name": "Silencer",
        "alignment": Alignment.MAFIA,
        "description": (
            "Every other night you can silence a player, keeping them out of "
            "the next day's meeting. You can never silence the same player twice."
        ),
        "goal": _MAFIA_GOAL,
        "night_action": True,
    },
    Role.DOCTOR: {
        "name": "Doctor",
        "alignment": Alignment.VILLAGE,
        "description": (
            "Each night you can save one player from a Mafia attack. You "
            "cannot pick the same player two nights in a row."
        ),
        "goal": _VILLAGE_GOAL,
        "night_action": True,
    },
    Role.DETECTIVE: {
        "name": "Detective",
        "alignment": Alignment.VILLAGE,
        "description": "Each night you can investigate one player to learn if they look like Mafia.",
        "goal": _VILLAGE_GOAL,
        "night_action": True,
    },
    Role.VIGILANTE: {
        "name": "Vigilante",
        "alignment": Alignment.VILLAGE,
        "description": (
            "Each night you can shoot a player. If you kill a villager you "
            "die of guilt."
        ),
        "goal": _VILLAGE_GOAL,
        "night_action": True,
    },
    Role.MAYOR: {
        "name": "Mayor",
        "alignment": Alignment.VILLAGE,
        "description": "You can reveal yourself at night. Once revealed, your vote counts twice.",
        "goal": _VILLAGE_GOAL,
        "night_action": True,
    },
    Role.JAILER: {
        "name": "Jailer",
        "alignment": Alignment.VILLAGE,
        "description": (
            "During the day you pick a prisoner for the night. Prisoners "
            "cannot act and cannot be visited. You may execute your prisoner, "
            "but executing a villager costs you that power."
        ),
        "goal": _VILLAGE_GOAL,
        "night_action": True,
    },
    Role.DISTRACTOR: {
        "name": "Distractor",
        "alignment": Alignment.VILLAGE,
        "description": "Every other night you can distract a player so their action fails.",
        "goal": _VILLAGE_GOAL,
        "night_action": True,
    },
    Role.PI: {
        "name": "PI",
        "alignment": Alignment.VILLAGE,
        "description": "Each night you compare two players to learn if they are on the same side.",
        "goal": _VILLAGE_GOAL,
        "night_action": True,
    },
    Role.SPY: {
        "name": "Spy",
        "alignment": Alignment.VILLAGE,
        "description": "Each night you follow a player and learn who they visited.",
        "goal": _VILLAGE_GOAL,
        "night_action": True,
    },
    Role.EXECUTIONER: {
        "name": "Executioner",
        "alignment": Alignment.NEUTRAL,
        "description": (
            "You are given a villager as your target. If your target dies at "
            "night you become a Jester, and your new goal is to get yourself lynched."
        ),
        "goal": "Get your target lynched at a Town Hall vote.",
        "night_action": False,
    },
    Role.JESTER: {
        "name": "Jester",
        "alignment": Alignment.NEUTRAL,
        "description": "You want the town to vote you out.",
        "goal": "Get yourself lynched at a Town Hall vote.",
        "night_action": False,
    },
    Role.BAITER: {
        "name": "Baiter",
        "alignment": Alignment.NEUTRAL,
        "description": "Your house is rigged. Anyone who visits you at night dies.",
        "goal": "Bait three players and survive to the end.",
        "night_action": False,
    },
    Role.ARSONIST: {
        "name": "Arsonist",
        "alignment": Alignment.NEUTRAL,
        "description": (
            "Each night you douse a player in gasoline, or ignite everyone "
            "you have doused so far."
        ),
        "goal": "Kill everyone. Be the last one standing.",
        "night_action": True,
    },
}

# Leadership hand-off when the Godfather dies.
MAFIA_SUCCESSION = (Role.GODFATHER, Role.MAFIOSO, Role.FRAMER, Role.SILENCER)

# Night resolution priority. Roles missing here never produce actions.
RESOLUTION_ORDER = (
    Role.DISTRACTOR,
    Role.JAILER,
    Role.FRAMER,
    Role.SILENCER,
    Role.GODFATHER,
    Role.MAFIOSO,
    Role.DOCTOR,
    Role.ARSONIST,
    Role.VIGILANTE,
    Role.DETECTIVE,
    Role.PI,
    Role.SPY,
    Role.MAYOR,
)

CORE_ROLES = (Role.MAFIOSO, Role.DOCTOR, Role.DETECTIVE, Role.MAYOR, Role.DISTRACTOR)
MAFIA_EXTRAS = (Role.FRAMER, Role.SILENCER)
VILLAGE_EXTRAS = (Role.VIGILANTE, Role.JAILER, Role.PI, Role.SPY)
NEUTRAL_POOL = (Role.JESTER, Role.EXECUTIONER, Role.BAITER, Role.ARSONIST)

MIN_PLAYERS = 5


def get_role_info(role: Role) -> dict:
    """Get information about a role."""
    return ROLE_DESCRIPTIONS[role]


def _shuffled(roles, rng: random.Random) -> list[Role]:
    pool = list(roles)
    rng.shuffle(pool)
    return pool


def build_role_list(player_count: int, rng: random.Random | None = None) -> list[Role]:
    """Build the list of roles to deal for a given table size.

    Args:
    ----
        player_count: Number of seated participants (at least 5)
        rng: Random source, mostly useful for deterministic tests

    Returns:
    -------
        A list with exactly one role per participant (unshuffled)

    """
    rng = rng or random.Random()
    roles = list(CORE_ROLES)
    if player_count <= MIN_PLAYERS:
        return roles

    roles.append(Role.GODFATHER)
    if player_count <= 8:
        neutral_count = min(player_count - len(roles), 2)
        roles.extend(_shuffled(NEUTRAL_POOL, rng)[:neutral_count])
        return roles

    max_mafia = player_count // 3
    mafia_add = min(len(MAFIA_EXTRAS), max(0, max_mafia - 2))
    roles.extend(_shuffled(MAFIA_EXTRAS, rng)[:mafia_add])

    neutral_budget = min(2, player_count - len(roles))
    village_add = max(1, min(len(VILLAGE_EXTRAS), player_count - len(roles) - neutral_budget))
    roles.extend(_shuffled(VILLAGE_EXTRAS, rng)[:village_add])

    neutral_count = min(len(NEUTRAL_POOL), player_count - len(roles))
    roles.extend(_shuffled(NEUTRAL_POOL, rng)[:neutral_count])
    return roles
