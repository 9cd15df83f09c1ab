"""Pydantic models for tournament data."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models.types import AgeGroupList, Coordinates, TeamTypeList, TournamentID
from shared.utils import to_utc_datetime


class MatchFormat(str, Enum):
    """Number of players per side."""

    THREE_V_THREE = "3v3"
    FIVE_V_FIVE = "5v5"
    SEVEN_V_SEVEN = "7v7"
    NINE_V_NINE = "9v9"
    ELEVEN_V_ELEVEN = "11v11"


class Tournament(BaseModel):
    """Published tournament record from the `tournaments` table."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: TournamentID
    name: str = Field(..., min_length=1)
    slug: str | None = None
    description: str | None = None

    # Venue
    location_name: str = ""
    postcode: str | None = None
    region: str = ""
    country: str = "England"
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    start_date: datetime
    end_date: datetime
    registration_deadline: datetime | None = None

    format: MatchFormat
    age_groups: AgeGroupList = Field(default_factory=list)
    team_types: TeamTypeList = Field(default_factory=list)
    type: str = "tournament"  # category: league / cup / festival / camp ...

    cost_amount: float | None = Field(None, ge=0)
    cost_currency: str = "GBP"

    contact_name: str | None = None
    contact_email: str | None = None
    status: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator(
        "start_date",
        "end_date",
        "registration_deadline",
        "created_at",
        "updated_at",
        mode="before",
    )
    @classmethod
    def _coerce_utc(cls, value):
        return to_utc_datetime(value)

    @field_validator("age_groups", "team_types", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or []

    @model_validator(mode="after")
    def _check_dates(self) -> "Tournament":
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    @property
    def coordinates(self) -> Coordinates:
        return (self.latitude, self.longitude)

    @property
    def resolved_cost(self) -> float:
        """Cost used for price filtering; missing cost counts as free."""
        return self.cost_amount or 0
