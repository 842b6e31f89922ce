"""Game settings and process configuration."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import LobbyError

SETTING_ALIASES = {
    "nighttime": "night_time",
    "night": "night_time",
    "night_time": "night_time",
    "daytime": "day_time",
    "day": "day_time",
    "day_time": "day_time",
    "votingtime": "voting_time",
    "voting": "voting_time",
    "voting_time": "voting_time",
}


class GameSettings(BaseModel):
    """Phase timers in seconds, adjustable by the host between games."""

    model_config = ConfigDict(validate_assignment=True)

    night_time: int = Field(default=30, ge=20, le=300, description="Seconds to act at night")
    day_time: int = Field(default=40, ge=30, le=600, description="Seconds to discuss and vote")
    voting_time: int = Field(default=20, ge=10, le=120, description="Seconds for the nominee's defence")

    def update(self, key: str, value: str | int) -> int:
        """Change one setting by a user-facing name.

        Args:
        ----
            key: Setting name or alias ("nighttime", "day", "voting_time", ...)
            value: New value; strings are parsed as integers

        Returns:
        -------
            The stored value

        """
        normalized = "".join(ch for ch in key.lower() if ch.isalpha() or ch == "_")
        field_name = SETTING_ALIASES.get(normalized)
        if field_name is None:
            raise LobbyError(f"Unknown setting: {key}")

        try:
            setattr(self, field_name, value)
        except ValidationError as e:
            info = type(self).model_fields[field_name]
            bounds = {type(m).__name__: m for m in info.metadata}
            low = getattr(bounds.get("Ge"), "ge", "?")
            high = getattr(bounds.get("Le"), "le", "?")
            raise LobbyError(f"{field_name} must be a number between {low} and {high}") from e
        return getattr(self, field_name)

    def describe(self) -> str:
        """Human readable settings summary."""
        return (
            f"nighttime  {self.night_time}s (20-300)\n"
            f"daytime    {self.day_time}s (30-600)\n"
            f"votingtime {self.voting_time}s (10-120)"
        )


class AppConfig(BaseModel):
    """Process level configuration loaded from the environment."""

    admin_ids: list[int] = Field(default_factory=list)
    time_scale: float = Field(default=1.0, gt=0)
    log_level: str = "INFO"
    settings: GameSettings = Field(default_factory=GameSettings)

    @field_validator("admin_ids", mode="before")
    @classmethod
    def _split_admin_ids(cls, value):
        if isinstance(value, str):
            ids = []
            for part in value.split(","):
                part = part.strip()
                if part.lstrip("-").isdigit():
                    ids.append(int(part))
            return ids
        return value


def load_config(env_file: str | None = None) -> AppConfig:
    """Load configuration from ``.env`` and the process environment."""
    load_dotenv(env_file)
    return AppConfig(
        admin_ids=os.getenv("ADMIN_IDS", ""),
        time_scale=os.getenv("MAFIAVILLE_TIME_SCALE", "1.0"),
        log_level=os.getenv("MAFIAVILLE_LOG_LEVEL", "INFO"),
    )
