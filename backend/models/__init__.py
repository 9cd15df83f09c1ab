"""Pydantic models for data validation and type checking."""

from models.alert import (
    AlertCriteria,
    AlertFrequency,
    AlertSubscription,
    DateRange,
    DeliveryRecord,
    DeliveryStatus,
    LocationFilter,
    PriceRange,
    TournamentDelivery,
)
from models.tournament import MatchFormat, Tournament

__all__ = [
    "AlertCriteria",
    "AlertFrequency",
    "AlertSubscription",
    "DateRange",
    "DeliveryRecord",
    "DeliveryStatus",
    "LocationFilter",
    "PriceRange",
    "TournamentDelivery",
    "MatchFormat",
    "Tournament",
]
