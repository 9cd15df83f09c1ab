"""Unit tests for Pydantic models."""

import unittest
from datetime import datetime, timezone

from pydantic import ValidationError

from models import (
    AlertCriteria,
    AlertFrequency,
    AlertSubscription,
    DeliveryRecord,
    DeliveryStatus,
    MatchFormat,
    Tournament,
)
from shared.errors import InvalidCriteriaError, InvalidRequestError
from tests.fixtures.alert_factory import create_test_alert
from tests.fixtures.tournament_factory import create_test_tournament


class TestTournamentModel(unittest.TestCase):
    """Tests for the Tournament model."""

    def test_valid_row(self):
        tournament = Tournament.model_validate(create_test_tournament(format="9v9"))

        self.assertEqual(tournament.format, MatchFormat.NINE_V_NINE)
        self.assertEqual(tournament.start_date.tzinfo, timezone.utc)
        self.assertEqual(tournament.country, "England")

    def test_start_after_end_rejected(self):
        row = create_test_tournament(
            start_date="2025-06-16T09:00:00+00:00", end_date="2025-06-15T09:00:00+00:00"
        )

        with self.assertRaises(ValidationError):
            Tournament.model_validate(row)

    def test_invalid_coordinates_rejected(self):
        with self.assertRaises(ValidationError):
            Tournament.model_validate(create_test_tournament(coordinates=(95.0, 0.0)))

        with self.assertRaises(ValidationError):
            Tournament.model_validate(create_test_tournament(coordinates=(0.0, 181.0)))

    def test_unknown_format_rejected(self):
        with self.assertRaises(ValidationError):
            Tournament.model_validate(create_test_tournament(format="6v6"))

    def test_null_lists_become_empty(self):
        row = create_test_tournament()
        row["age_groups"] = None
        row["team_types"] = None

        tournament = Tournament.model_validate(row)

        self.assertEqual(tournament.age_groups, [])
        self.assertEqual(tournament.team_types, [])

    def test_resolved_cost(self):
        self.assertEqual(Tournament.model_validate(create_test_tournament(cost_amount=None)).resolved_cost, 0)
        self.assertEqual(Tournament.model_validate(create_test_tournament(cost_amount=12.5)).resolved_cost, 12.5)


class TestAlertCriteria(unittest.TestCase):
    """Tests for AlertCriteria.parse() and serialization."""

    def test_none_and_empty_string_are_empty_criteria(self):
        self.assertEqual(AlertCriteria.parse(None), AlertCriteria())
        self.assertEqual(AlertCriteria.parse(""), AlertCriteria())

    def test_camel_case_keys(self):
        criteria = AlertCriteria.parse(
            {
                "format": ["7v7"],
                "ageGroups": ["U10"],
                "teamTypes": ["girls"],
                "type": ["festival"],
                "priceRange": {"min": 0, "max": 30, "includeFree": True},
                "dateRange": {"from": "2025-06-01", "to": "2025-06-30"},
            }
        )

        self.assertEqual(criteria.formats, ["7v7"])
        self.assertEqual(criteria.age_groups, ["U10"])
        self.assertEqual(criteria.team_types, ["girls"])
        self.assertEqual(criteria.categories, ["festival"])
        self.assertTrue(criteria.price_range.include_free)
        self.assertEqual(criteria.date_range.start, datetime(2025, 6, 1, tzinfo=timezone.utc))
        self.assertEqual(criteria.date_range.end.date().day, 30)

    def test_json_string(self):
        criteria = AlertCriteria.parse('{"regions": ["London"], "search": "cup"}')

        self.assertEqual(criteria.regions, ["London"])
        self.assertEqual(criteria.search, "cup")

    def test_invalid_json_raises(self):
        with self.assertRaises(InvalidCriteriaError):
            AlertCriteria.parse("{not json")

    def test_non_object_raises(self):
        with self.assertRaises(InvalidCriteriaError):
            AlertCriteria.parse(["7v7"])

    def test_invalid_values_raise(self):
        with self.assertRaises(InvalidCriteriaError):
            AlertCriteria.parse({"location": {"latitude": 120, "longitude": 0}})

    def test_criteria_error_is_a_request_error(self):
        self.assertTrue(issubclass(InvalidCriteriaError, InvalidRequestError))

    def test_legacy_top_level_price_keys(self):
        criteria = AlertCriteria.parse({"minPrice": 5, "maxPrice": 40})

        self.assertEqual(criteria.price_range.min, 5)
        self.assertEqual(criteria.price_range.max, 40)

    def test_legacy_keys_fill_null_bounds(self):
        criteria = AlertCriteria.parse(
            {"priceRange": {"min": None, "max": 30}, "minPrice": 5, "maxPrice": 90}
        )

        self.assertEqual((criteria.price_range.min, criteria.price_range.max), (5, 30))

    def test_legacy_keys_with_price_pair(self):
        criteria = AlertCriteria.parse({"priceRange": [0, 50], "maxPrice": 80})

        self.assertEqual((criteria.price_range.min, criteria.price_range.max), (0, 50))

    def test_price_range_of_wrong_shape_rejected(self):
        with self.assertRaises(InvalidCriteriaError):
            AlertCriteria.parse({"priceRange": [1, 2, 3], "minPrice": 5})

    def test_junk_date_bound_rejected(self):
        with self.assertRaises(InvalidCriteriaError):
            AlertCriteria.parse({"dateRange": {"start": "week 12"}})

    def test_price_pair(self):
        criteria = AlertCriteria.parse({"priceRange": [10, 20]})

        self.assertEqual((criteria.price_range.min, criteria.price_range.max), (10, 20))

    def test_location_string_becomes_city(self):
        criteria = AlertCriteria.parse({"location": "Leeds"})

        self.assertEqual(criteria.location.city, "Leeds")
        self.assertFalse(criteria.location.has_coordinates)

    def test_blank_search_ignored(self):
        self.assertIsNone(AlertCriteria.parse({"search": "   "}).search)

    def test_unknown_keys_ignored(self):
        criteria = AlertCriteria.parse({"sortBy": "date", "format": "5v5"})

        self.assertEqual(criteria.formats, ["5v5"])

    def test_to_storage_uses_stored_keys(self):
        criteria = AlertCriteria.parse({"ageGroups": ["U12"], "priceRange": {"max": 20}})

        stored = criteria.to_storage()

        self.assertEqual(stored["ageGroups"], ["U12"])
        self.assertEqual(stored["priceRange"], {"max": 20.0})
        self.assertNotIn("format", stored)
        self.assertEqual(AlertCriteria.parse(stored), criteria)

    def test_to_query_params(self):
        criteria = AlertCriteria.parse(
            {
                "format": ["5v5", "7v7"],
                "location": {"postcode": "M1 1AA", "latitude": 53.48, "longitude": -2.24, "radius": 25},
            }
        )

        params = criteria.to_query_params()

        self.assertEqual(params["format"], "5v5,7v7")
        self.assertEqual(params["location"], "M1 1AA")
        self.assertEqual(params["radius"], "25")


class TestAlertSubscription(unittest.TestCase):
    """Tests for the AlertSubscription model."""

    def test_valid_row(self):
        alert = AlertSubscription.model_validate(
            create_test_alert(filters={"format": ["7v7"]}, frequency="weekly")
        )

        self.assertEqual(alert.frequency, AlertFrequency.WEEKLY)
        self.assertEqual(alert.filters.formats, ["7v7"])
        self.assertTrue(alert.is_verified)

    def test_filters_stored_as_json_string(self):
        alert = AlertSubscription.model_validate(create_test_alert(filters='{"regions": ["London"]}'))

        self.assertEqual(alert.filters.regions, ["London"])

    def test_unverified(self):
        alert = AlertSubscription.model_validate(create_test_alert(verified_at=None))

        self.assertFalse(alert.is_verified)

    def test_invalid_email_rejected(self):
        with self.assertRaises(ValidationError):
            AlertSubscription.model_validate(create_test_alert(email="not-an-email"))

    def test_invalid_frequency_rejected(self):
        with self.assertRaises(ValidationError):
            AlertSubscription.model_validate(create_test_alert(frequency="hourly"))

    def test_bad_filters_rejected(self):
        with self.assertRaises(ValidationError):
            AlertSubscription.model_validate(create_test_alert(filters="{broken"))


class TestDeliveryRecord(unittest.TestCase):
    """Tests for the DeliveryRecord model."""

    def test_to_row(self):
        record = DeliveryRecord(
            alert_id="alert-1",
            recipient_email="parent@example.com",
            item_count=3,
            status=DeliveryStatus.SENT,
            created_at=datetime(2025, 6, 2, 7, 0, tzinfo=timezone.utc),
        )

        row = record.to_row()

        self.assertEqual(row["status"], "sent")
        self.assertEqual(row["item_count"], 3)
        self.assertNotIn("error", row)
        self.assertTrue(row["created_at"].startswith("2025-06-02T07:00:00"))

    def test_negative_count_rejected(self):
        with self.assertRaises(ValidationError):
            DeliveryRecord(
                alert_id="alert-1",
                recipient_email="parent@example.com",
                item_count=-1,
                status=DeliveryStatus.FAILED,
                created_at=datetime.now(timezone.utc),
            )


if __name__ == "__main__":
    unittest.main()
