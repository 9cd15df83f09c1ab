"""
Alert matching logic for the notification system.

Decides whether a tournament satisfies an alert's filters. Every filter
dimension that is present is AND-ed together; within the age-group and
team-type dimensions any single overlap is enough (OR).
"""

from typing import Iterable, List

from config.alert_settings import DEFAULT_ALERT_RADIUS_MILES
from models.alert import AlertCriteria, DateRange, LocationFilter, PriceRange
from models.tournament import Tournament
from notifications.geo import within_radius


def tournament_matches_criteria(tournament: Tournament, criteria: AlertCriteria) -> bool:
    """
    Check if a tournament matches an alert's criteria.

    Absent criteria and empty lists never filter anything out.

    Args:
        tournament: Tournament being considered
        criteria: Parsed alert filters

    Returns:
        True if every present filter passes
    """
    if criteria.search and not _matches_search(tournament, criteria.search):
        return False

    if criteria.location and not _matches_location(tournament, criteria.location):
        return False

    if criteria.city and not _mentions_place(tournament, criteria.city):
        return False

    if criteria.formats and tournament.format.value not in criteria.formats:
        return False

    # At least one age group must overlap, not full containment
    if criteria.age_groups and not set(criteria.age_groups) & set(tournament.age_groups):
        return False

    if criteria.team_types and not set(criteria.team_types) & set(tournament.team_types):
        return False

    if criteria.categories and tournament.type not in criteria.categories:
        return False

    if criteria.regions and tournament.region not in criteria.regions:
        return False

    if criteria.price_range and not _matches_price(tournament, criteria.price_range):
        return False

    if criteria.date_range and not _matches_dates(tournament, criteria.date_range):
        return False

    return True


def filter_matching_tournaments(
    tournaments: Iterable[Tournament], criteria: AlertCriteria
) -> List[Tournament]:
    """Return the tournaments matching criteria, preserving input order."""
    return [t for t in tournaments if tournament_matches_criteria(t, criteria)]


def _matches_search(tournament: Tournament, search: str) -> bool:
    searchable = " ".join(
        part
        for part in (
            tournament.name,
            tournament.description,
            tournament.location_name,
            tournament.region,
        )
        if part
    ).lower()
    return search.lower() in searchable


def _matches_location(tournament: Tournament, location: LocationFilter) -> bool:
    if location.has_coordinates:
        radius = location.radius or DEFAULT_ALERT_RADIUS_MILES
        return within_radius(location.coordinates, tournament.coordinates, radius)
    if location.city:
        return _mentions_place(tournament, location.city)
    # A postcode alone cannot be evaluated without coordinates
    return True


def _mentions_place(tournament: Tournament, place: str) -> bool:
    place = place.lower()
    return place in tournament.location_name.lower() or place in tournament.region.lower()


def _matches_price(tournament: Tournament, price_range: PriceRange) -> bool:
    cost = tournament.resolved_cost

    if price_range.include_free and cost == 0:
        return True
    if price_range.min is not None and cost < price_range.min:
        return False
    if price_range.max is not None and cost > price_range.max:
        return False
    return True


def _matches_dates(tournament: Tournament, date_range: DateRange) -> bool:
    # Inclusive overlap of [start_date, end_date] with the window
    if date_range.start is not None and tournament.end_date < date_range.start:
        return False
    if date_range.end is not None and tournament.start_date > date_range.end:
        return False
    return True
