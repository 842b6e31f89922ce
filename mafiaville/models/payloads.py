"""Validated interaction payloads.

The transport reports button presses as compact strings:

* ``<prefix>:<round>:<actor_id>:<value>`` for night and day prompts
* ``vote_nom:<round>:<target_id>`` for nominations
* ``vote_exec:<round>:<nominee_id>:<guilty|innocent>`` for trials
"""

from typing import Literal, Union

from pydantic import BaseModel, Field, ValidationError

from ..errors import MalformedPayload

PromptPrefix = Literal["na", "na_pi1", "na_mayor", "na_jailer", "na_jailer_day"]


class PromptResponse(BaseModel):
    """A press on an actor's private prompt."""

    prefix: PromptPrefix
    round_number: int = Field(ge=0)
    actor_id: int
    value: str = Field(min_length=1)

    @property
    def session_key(self) -> str:
        return f"{self.prefix}:{self.round_number}:{self.actor_id}"


class NominationVote(BaseModel):
    """A press on the group nomination ballot."""

    kind: Literal["vote_nom"] = "vote_nom"
    round_number: int = Field(ge=0)
    target_id: int


class ExecutionVote(BaseModel):
    """A press on the group trial ballot."""

    kind: Literal["vote_exec"] = "vote_exec"
    round_number: int = Field(ge=0)
    nominee_id: int
    choice: Literal["guilty", "innocent"]


Interaction = Union[PromptResponse, NominationVote, ExecutionVote]


def parse_interaction(data: str) -> Interaction:
    """Parse a raw callback string.

    Raises
    ------
        MalformedPayload: if the string does not match any known shape

    """
    parts = (data or "").split(":")
    try:
        if parts[0] == "vote_nom" and len(parts) == 3:
            return NominationVote(round_number=parts[1], target_id=parts[2])
        if parts[0] == "vote_exec" and len(parts) == 4:
            return ExecutionVote(round_number=parts[1], nominee_id=parts[2], choice=parts[3])
        if len(parts) >= 4:
            return PromptResponse(
                prefix=parts[0],
                round_number=parts[1],
                actor_id=parts[2],
                value=":".join(parts[3:]),
            )
    except ValidationError as e:
        raise MalformedPayload(f"Malformed interaction {data!r}: {e.error_count()} error(s)") from e
    raise MalformedPayload(f"Malformed interaction {data!r}")
