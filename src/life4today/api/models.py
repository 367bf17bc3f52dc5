"""Pydantic models for API request payloads."""

from pydantic import BaseModel, ConfigDict, Field


class JoinGameRequest(BaseModel):
    """Payload for joining a game or renaming a player."""

    model_config = ConfigDict(populate_by_name=True)

    player_name: str = Field(alias="playerName")
    player_id: str | None = Field(default=None, alias="playerId")


class ShareRequest(BaseModel):
    """Payload for generating share text."""

    type: str = "reminder"
