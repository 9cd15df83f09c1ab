"""
Unit tests for notifications/alert_matcher.py

Tests every filter dimension on its own, AND-ing across dimensions, and the
OR semantics within age groups and team types.
"""

import unittest

from models.alert import AlertCriteria
from notifications.alert_matcher import (
    filter_matching_tournaments,
    tournament_matches_criteria,
)
from tests.fixtures.tournament_factory import LIVERPOOL, LONDON, MANCHESTER, make_tournament


def matches(tournament, **filters) -> bool:
    return tournament_matches_criteria(tournament, AlertCriteria.parse(filters))


class TestEmptyCriteria(unittest.TestCase):
    """Absent filters never exclude anything"""

    def test_empty_criteria_matches_everything(self):
        tournaments = [
            make_tournament(name="A", format="5v5", cost_amount=None),
            make_tournament(name="B", format="11v11", age_groups=[], team_types=[]),
            make_tournament(name="C", coordinates=LONDON, region="London"),
        ]

        result = filter_matching_tournaments(tournaments, AlertCriteria())

        self.assertEqual([t.name for t in result], ["A", "B", "C"])

    def test_empty_lists_do_not_filter(self):
        tournament = make_tournament()

        self.assertTrue(matches(tournament, format=[], ageGroups=[], teamTypes=[], type=[]))


class TestSearchFilter(unittest.TestCase):

    def test_search_matches_name_case_insensitive(self):
        tournament = make_tournament(name="Summer Sevens")

        self.assertTrue(matches(tournament, search="summer"))

    def test_search_matches_venue(self):
        tournament = make_tournament(location_name="Etihad Campus")

        self.assertTrue(matches(tournament, search="ETIHAD"))

    def test_search_no_match(self):
        tournament = make_tournament(name="Summer Sevens")

        self.assertFalse(matches(tournament, search="futsal"))


class TestLocationFilter(unittest.TestCase):

    def test_radius_match(self):
        tournament = make_tournament(coordinates=LIVERPOOL)
        location = {"latitude": MANCHESTER[0], "longitude": MANCHESTER[1], "radius": 40}

        self.assertTrue(matches(tournament, location=location))

    def test_radius_excludes_far_tournament(self):
        tournament = make_tournament(coordinates=LIVERPOOL)
        location = {"latitude": MANCHESTER[0], "longitude": MANCHESTER[1], "radius": 10}

        self.assertFalse(matches(tournament, location=location))

    def test_default_radius_is_fifty_miles(self):
        """Liverpool (~31mi) is inside, London (~163mi) is not."""
        location = {"latitude": MANCHESTER[0], "longitude": MANCHESTER[1]}

        self.assertTrue(matches(make_tournament(coordinates=LIVERPOOL), location=location))
        self.assertFalse(matches(make_tournament(coordinates=LONDON), location=location))

    def test_city_string_matches_venue_substring(self):
        tournament = make_tournament(location_name="Platt Fields Park, Manchester")

        self.assertTrue(matches(tournament, location="manchester"))

    def test_city_string_matches_region(self):
        tournament = make_tournament(location_name="Sefton Park", region="Merseyside")

        self.assertTrue(matches(tournament, location={"city": "merseyside"}))

    def test_city_string_no_match(self):
        tournament = make_tournament(location_name="Sefton Park", region="Merseyside")

        self.assertFalse(matches(tournament, city="Leeds"))

    def test_postcode_without_coordinates_does_not_filter(self):
        tournament = make_tournament(coordinates=LONDON)

        self.assertTrue(matches(tournament, location={"postcode": "M1 1AA"}))


class TestListFilters(unittest.TestCase):

    def test_format_membership(self):
        tournament = make_tournament(format="7v7")

        self.assertTrue(matches(tournament, format=["5v5", "7v7"]))
        self.assertFalse(matches(tournament, format=["11v11"]))

    def test_single_format_string(self):
        tournament = make_tournament(format="7v7")

        self.assertTrue(matches(tournament, format="7v7"))

    def test_age_group_any_overlap(self):
        """One shared age group is enough (OR within the dimension)."""
        tournament = make_tournament(age_groups=["U10", "U11"])

        self.assertTrue(matches(tournament, ageGroups=["U11", "U14"]))

    def test_age_group_no_overlap(self):
        tournament = make_tournament(age_groups=["U10", "U11"])

        self.assertFalse(matches(tournament, ageGroups=["U14", "U15"]))

    def test_team_type_any_overlap(self):
        tournament = make_tournament(team_types=["girls", "mixed"])

        self.assertTrue(matches(tournament, teamTypes=["girls"]))
        self.assertFalse(matches(tournament, teamTypes=["boys"]))

    def test_category(self):
        tournament = make_tournament(type="festival")

        self.assertTrue(matches(tournament, type=["festival", "cup"]))
        self.assertFalse(matches(tournament, type=["league"]))

    def test_region(self):
        tournament = make_tournament(region="North West")

        self.assertTrue(matches(tournament, regions=["North West"]))
        self.assertFalse(matches(tournament, regions=["London"]))


class TestPriceFilter(unittest.TestCase):

    def test_within_range(self):
        tournament = make_tournament(cost_amount=25)

        self.assertTrue(matches(tournament, priceRange={"min": 10, "max": 30}))

    def test_bounds_are_inclusive(self):
        tournament = make_tournament(cost_amount=30)

        self.assertTrue(matches(tournament, priceRange={"min": 30, "max": 30}))

    def test_above_max(self):
        tournament = make_tournament(cost_amount=45)

        self.assertFalse(matches(tournament, priceRange={"max": 30}))

    def test_below_min(self):
        tournament = make_tournament(cost_amount=5)

        self.assertFalse(matches(tournament, priceRange={"min": 10}))

    def test_missing_cost_counts_as_free(self):
        tournament = make_tournament(cost_amount=None)

        self.assertTrue(matches(tournament, priceRange={"max": 20}))
        self.assertFalse(matches(tournament, priceRange={"min": 10}))

    def test_include_free_overrides_min(self):
        tournament = make_tournament(cost_amount=0)

        self.assertTrue(matches(tournament, priceRange={"min": 10, "includeFree": True}))

    def test_include_free_does_not_admit_paid_outside_range(self):
        tournament = make_tournament(cost_amount=50)

        self.assertFalse(matches(tournament, priceRange={"max": 20, "includeFree": True}))


class TestDateFilter(unittest.TestCase):

    def test_overlapping_window(self):
        tournament = make_tournament(
            start_date="2025-06-14T09:00:00+00:00", end_date="2025-06-15T17:00:00+00:00"
        )

        self.assertTrue(matches(tournament, dateRange={"start": "2025-06-15", "end": "2025-06-30"}))

    def test_window_end_date_is_inclusive(self):
        """A tournament starting during the last day of the window matches."""
        tournament = make_tournament(
            start_date="2025-06-14T09:00:00+00:00", end_date="2025-06-14T17:00:00+00:00"
        )

        self.assertTrue(matches(tournament, dateRange={"start": "2025-06-01", "end": "2025-06-14"}))

    def test_tournament_before_window(self):
        tournament = make_tournament(
            start_date="2025-05-01T09:00:00+00:00", end_date="2025-05-02T17:00:00+00:00"
        )

        self.assertFalse(matches(tournament, dateRange={"start": "2025-06-01"}))

    def test_tournament_after_window(self):
        tournament = make_tournament(
            start_date="2025-07-05T09:00:00+00:00", end_date="2025-07-05T17:00:00+00:00"
        )

        self.assertFalse(matches(tournament, dateRange={"end": "2025-06-30"}))


class TestCombinedFilters(unittest.TestCase):

    def test_all_dimensions_must_pass(self):
        """AND across dimensions: one failing dimension rejects the tournament."""
        tournament = make_tournament(format="7v7", age_groups=["U10"], cost_amount=25)
        filters = {"format": ["7v7"], "ageGroups": ["U10"], "priceRange": {"max": 30}}

        self.assertTrue(matches(tournament, **filters))

        filters["priceRange"] = {"max": 20}
        self.assertFalse(matches(tournament, **filters))

    def test_adding_a_filter_never_adds_matches(self):
        tournaments = [
            make_tournament(name="A", format="7v7", age_groups=["U10"]),
            make_tournament(name="B", format="5v5", age_groups=["U10"]),
            make_tournament(name="C", format="7v7", age_groups=["U14"]),
        ]
        broad = AlertCriteria.parse({"format": ["7v7"]})
        narrow = AlertCriteria.parse({"format": ["7v7"], "ageGroups": ["U10"]})

        broad_names = {t.name for t in filter_matching_tournaments(tournaments, broad)}
        narrow_names = {t.name for t in filter_matching_tournaments(tournaments, narrow)}

        self.assertEqual(broad_names, {"A", "C"})
        self.assertEqual(narrow_names, {"A"})
        self.assertTrue(narrow_names <= broad_names)


if __name__ == "__main__":
    unittest.main()
