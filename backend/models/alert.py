"""Pydantic models for tournament alerts and their delivery log."""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from models.types import AlertID, Coordinates, CycleID, TournamentID
from shared.errors import InvalidCriteriaError
from shared.utils import to_utc_datetime


class AlertFrequency(str, Enum):
    INSTANT = "instant"
    DAILY = "daily"
    WEEKLY = "weekly"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    RATE_LIMITED = "rate_limited"
    DUPLICATE = "duplicate"


class LocationFilter(BaseModel):
    """Either a point + radius, or a free-text city/region."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    postcode: str | None = None
    city: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    radius: float | None = Field(None, gt=0)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def coordinates(self) -> Coordinates | None:
        if not self.has_coordinates:
            return None
        return (self.latitude, self.longitude)


class PriceRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    min: float | None = None
    max: float | None = None
    include_free: bool = Field(
        False, validation_alias=AliasChoices("includeFree", "include_free")
    )


class DateRange(BaseModel):
    """Inclusive date window; either bound may be omitted."""

    model_config = ConfigDict(extra="ignore")

    start: datetime | None = Field(None, validation_alias=AliasChoices("start", "from"))
    end: datetime | None = Field(None, validation_alias=AliasChoices("end", "to"))

    @field_validator("start", mode="before")
    @classmethod
    def _parse_start(cls, value):
        return to_utc_datetime(value)

    @field_validator("end", mode="before")
    @classmethod
    def _parse_end(cls, value):
        return to_utc_datetime(value, end_of_day=True)


def _price_range_dict(value: Any) -> dict[str, Any]:
    """Normalize a stored priceRange (object or [min, max] pair) to a dict."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return {"min": value[0], "max": value[1]}
    raise ValueError(f"priceRange must be an object or a [min, max] pair, got {value!r}")


class AlertCriteria(BaseModel):
    """
    Validated alert filters.

    Built once from the loosely-typed `filters` JSON stored on an alert, which
    uses the frontend's camelCase keys. Empty lists mean "no filtering".
    """

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    search: str | None = None
    location: LocationFilter | None = None
    city: str | None = None
    formats: list[str] = Field(default_factory=list, alias="format")
    age_groups: list[str] = Field(default_factory=list, alias="ageGroups")
    team_types: list[str] = Field(default_factory=list, alias="teamTypes")
    categories: list[str] = Field(default_factory=list, alias="type")
    regions: list[str] = Field(default_factory=list)
    price_range: PriceRange | None = Field(None, alias="priceRange")
    date_range: DateRange | None = Field(None, alias="dateRange")

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_price_keys(cls, data: Any) -> Any:
        # Older alerts store minPrice/maxPrice at the top level
        if not isinstance(data, dict):
            return data
        if "minPrice" in data or "maxPrice" in data:
            data = dict(data)
            legacy_min = data.pop("minPrice", None)
            legacy_max = data.pop("maxPrice", None)
            price_range = _price_range_dict(data.get("priceRange"))
            if price_range.get("min") is None:
                price_range["min"] = legacy_min
            if price_range.get("max") is None:
                price_range["max"] = legacy_max
            data["priceRange"] = price_range
        return data
        if "minPrice" in data or "maxPrice" in data:
            data = dict(data)
            price_range = dict(data.get("priceRange") or {})
            price_range.setdefault("min", data.pop("minPrice", None))
            price_range.setdefault("max", data.pop("maxPrice", None))
            data["priceRange"] = price_range
        return data

    @field_validator("formats", "age_groups", "team_types", "categories", "regions", mode="before")
    @classmethod
    def _as_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value else []
        return value

    @field_validator("location", mode="before")
    @classmethod
    def _location_from_string(cls, value):
        if isinstance(value, str):
            return {"city": value} if value.strip() else None
        return value

    @field_validator("price_range", mode="before")
    @classmethod
    def _price_range_from_pair(cls, value):
        if isinstance(value, (list, tuple)):
            return _price_range_dict(value)
        return value

    @field_validator("search", "city", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def parse(cls, raw: Any) -> "AlertCriteria":
        """
        Build criteria from whatever the database or request handed us.

        Args:
            raw: AlertCriteria, dict, JSON string, or None

        Returns:
            AlertCriteria instance

        Raises:
            InvalidCriteriaError: If the filters are not valid JSON or fail validation
        """
        if isinstance(raw, cls):
            return raw
        if raw is None or raw == "":
            return cls()
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                raise InvalidCriteriaError(f"Filters are not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise InvalidCriteriaError(f"Filters must be an object, got {type(raw).__name__}")
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise InvalidCriteriaError(f"Invalid filters: {e}") from e

    def to_storage(self) -> dict[str, Any]:
        """Serialize back to the camelCase JSON shape stored on the alert."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude_defaults=True)

    def to_query_params(self) -> dict[str, str]:
        """Browse-page query parameters that pre-apply these filters."""
        params: dict[str, str] = {}
        if self.search:
            params["search"] = self.search
        if self.location:
            place = self.location.postcode or self.location.city
            if place:
                params["location"] = place
            if self.location.has_coordinates and self.location.radius:
                params["radius"] = f"{self.location.radius:g}"
        if self.city:
            params["city"] = self.city
        for key, values in (
            ("format", self.formats),
            ("ageGroups", self.age_groups),
            ("teamTypes", self.team_types),
            ("type", self.categories),
            ("regions", self.regions),
        ):
            if values:
                params[key] = ",".join(values)
        return params


class AlertSubscription(BaseModel):
    """Row from the `tournament_alerts` table."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: AlertID
    email: str = Field(..., pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    filters: AlertCriteria = Field(default_factory=AlertCriteria)
    frequency: AlertFrequency
    is_active: bool = False
    verified_at: datetime | None = None
    last_sent_at: datetime | None = None
    verification_token: str | None = None
    management_token: str
    consent_source: str | None = None
    created_at: datetime | None = None

    @field_validator("filters", mode="before")
    @classmethod
    def _parse_filters(cls, value):
        try:
            return AlertCriteria.parse(value)
        except InvalidCriteriaError as e:
            raise ValueError(str(e)) from e

    @field_validator("verified_at", "last_sent_at", "created_at", mode="before")
    @classmethod
    def _coerce_utc(cls, value):
        return to_utc_datetime(value)

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None


class DeliveryRecord(BaseModel):
    """Append-only row in `alert_deliveries`."""

    alert_id: AlertID
    recipient_email: str
    frequency: AlertFrequency | None = None
    item_count: int = Field(..., ge=0)
    status: DeliveryStatus
    error: str | None = None
    cycle_id: CycleID | None = None
    created_at: datetime

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class TournamentDelivery(BaseModel):
    """Row in `alert_tournament_deliveries`, unique on (alert_id, tournament_id)."""

    alert_id: AlertID
    tournament_id: TournamentID
    cycle_id: CycleID | None = None
    created_at: datetime

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
