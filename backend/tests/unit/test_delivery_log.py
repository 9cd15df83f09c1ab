"""
Unit tests for notifications/delivery_log.py

Tests the digest minimum-interval rule, the instant daily cap and
per-tournament duplicate suppression.
"""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from models.alert import AlertFrequency, DeliveryStatus
from notifications.delivery_log import (
    already_delivered,
    can_send_instant,
    record_delivery,
    record_tournament_deliveries,
    sent_today_count,
    sent_too_recently,
    start_of_utc_day,
    undelivered_tournaments,
)
from tests.fixtures.alert_factory import make_alert
from tests.fixtures.fake_supabase import FakeSupabase, patch_supabase
from tests.fixtures.mock_helpers import create_mock_supabase
from tests.fixtures.tournament_factory import make_tournament

NOW = datetime(2025, 6, 2, 7, 0, tzinfo=timezone.utc)


def _iso(dt: datetime) -> str:
    return dt.isoformat()


class TestSentTooRecently(unittest.TestCase):
    """Tests for sent_too_recently()"""

    def test_never_sent(self):
        alert = make_alert(last_sent_at=None)

        self.assertFalse(sent_too_recently(alert, AlertFrequency.DAILY, NOW))

    def test_daily_within_twenty_hours(self):
        alert = make_alert(last_sent_at=_iso(NOW - timedelta(hours=19)))

        self.assertTrue(sent_too_recently(alert, AlertFrequency.DAILY, NOW))

    def test_daily_after_twenty_hours(self):
        alert = make_alert(last_sent_at=_iso(NOW - timedelta(hours=20)))

        self.assertFalse(sent_too_recently(alert, AlertFrequency.DAILY, NOW))

    def test_weekly_within_six_days(self):
        alert = make_alert(frequency="weekly", last_sent_at=_iso(NOW - timedelta(days=5)))

        self.assertTrue(sent_too_recently(alert, AlertFrequency.WEEKLY, NOW))

    def test_weekly_after_six_days(self):
        alert = make_alert(frequency="weekly", last_sent_at=_iso(NOW - timedelta(days=6, hours=1)))

        self.assertFalse(sent_too_recently(alert, AlertFrequency.WEEKLY, NOW))

    def test_instant_has_no_interval(self):
        alert = make_alert(frequency="instant", last_sent_at=_iso(NOW - timedelta(minutes=1)))

        self.assertFalse(sent_too_recently(alert, AlertFrequency.INSTANT, NOW))


class TestDailyCap(unittest.TestCase):
    """Tests for sent_today_count() and can_send_instant()"""

    def setUp(self):
        self.client = FakeSupabase()
        patch_supabase(self, self.client)
        self.alert = make_alert(frequency="instant")

    def _record(self, status, at):
        record_delivery(self.alert, status, 1, at)

    def test_start_of_utc_day(self):
        self.assertEqual(start_of_utc_day(NOW), datetime(2025, 6, 2, tzinfo=timezone.utc))

    def test_counts_only_sent_today(self):
        self._record(DeliveryStatus.SENT, NOW - timedelta(hours=1))
        self._record(DeliveryStatus.SENT, NOW - timedelta(hours=2))
        self._record(DeliveryStatus.FAILED, NOW - timedelta(hours=1))
        self._record(DeliveryStatus.RATE_LIMITED, NOW - timedelta(minutes=5))
        # Yesterday
        self._record(DeliveryStatus.SENT, NOW - timedelta(hours=8))

        self.assertEqual(sent_today_count(self.alert.email, NOW), 2)

    def test_counts_per_email_across_alerts(self):
        other_alert = make_alert(email=self.alert.email, frequency="instant")
        record_delivery(self.alert, DeliveryStatus.SENT, 1, NOW)
        record_delivery(other_alert, DeliveryStatus.SENT, 1, NOW)
        record_delivery(make_alert(email="someone@example.com"), DeliveryStatus.SENT, 1, NOW)

        self.assertEqual(sent_today_count(self.alert.email, NOW), 2)

    def test_digest_sends_not_counted(self):
        digest_alert = make_alert(email=self.alert.email, frequency="daily")
        record_delivery(digest_alert, DeliveryStatus.SENT, 4, NOW)
        record_delivery(self.alert, DeliveryStatus.SENT, 1, NOW)

        self.assertEqual(sent_today_count(self.alert.email, NOW), 1)

    def test_cap_reached_at_three(self):
        for _ in range(2):
            self._record(DeliveryStatus.SENT, NOW)
        self.assertTrue(can_send_instant(self.alert.email, NOW))

        self._record(DeliveryStatus.SENT, NOW)
        self.assertFalse(can_send_instant(self.alert.email, NOW))

    def test_cap_resets_at_utc_midnight(self):
        for _ in range(3):
            self._record(DeliveryStatus.SENT, NOW)

        tomorrow = start_of_utc_day(NOW) + timedelta(days=1, minutes=1)

        self.assertTrue(can_send_instant(self.alert.email, tomorrow))

    def test_count_query_shape(self):
        """Counts with select(count='exact') rather than loading rows."""
        mock_supabase = create_mock_supabase(count=4)

        with patch("notifications.delivery_log.get_supabase_client", return_value=mock_supabase):
            result = sent_today_count("parent@example.com", NOW)

        self.assertEqual(result, 4)
        mock_supabase.table.assert_called_with("alert_deliveries")
        mock_supabase.select.assert_called_with("id", count="exact")
        mock_supabase.eq.assert_any_call("frequency", "instant")
        mock_supabase.gte.assert_called_with("created_at", "2025-06-02T00:00:00+00:00")


class TestDuplicateSuppression(unittest.TestCase):
    """Tests for tournament-level delivery tracking"""

    def setUp(self):
        self.client = FakeSupabase()
        patch_supabase(self, self.client)
        self.alert = make_alert()

    def test_nothing_delivered(self):
        tournament = make_tournament()

        self.assertFalse(already_delivered(self.alert.id, tournament.id))

    def test_delivered_pair(self):
        tournament = make_tournament()
        record_tournament_deliveries(self.alert.id, [tournament.id], NOW)

        self.assertTrue(already_delivered(self.alert.id, tournament.id))

    def test_pairs_are_per_alert(self):
        tournament = make_tournament()
        record_tournament_deliveries(self.alert.id, [tournament.id], NOW)

        self.assertFalse(already_delivered(make_alert().id, tournament.id))

    def test_undelivered_tournaments_preserves_order(self):
        first, second, third = (make_tournament(name=n) for n in ("A", "B", "C"))
        record_tournament_deliveries(self.alert.id, [second.id], NOW)

        result = undelivered_tournaments(self.alert.id, [first, second, third])

        self.assertEqual([t.name for t in result], ["A", "C"])

    def test_recording_twice_keeps_one_row(self):
        tournament = make_tournament()

        record_tournament_deliveries(self.alert.id, [tournament.id], NOW, cycle_id="cycle-1")
        record_tournament_deliveries(self.alert.id, [tournament.id], NOW, cycle_id="cycle-2")

        rows = self.client.rows("alert_tournament_deliveries")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["cycle_id"], "cycle-1")

    def test_record_nothing(self):
        self.assertEqual(record_tournament_deliveries(self.alert.id, [], NOW), 0)
        self.assertEqual(self.client.rows("alert_tournament_deliveries"), [])

    def test_empty_lookup_skips_query(self):
        mock_supabase = create_mock_supabase()

        with patch("notifications.delivery_log.get_supabase_client", return_value=mock_supabase):
            self.assertEqual(undelivered_tournaments(self.alert.id, []), [])

        mock_supabase.table.assert_not_called()


class TestRecordDelivery(unittest.TestCase):
    """Tests for record_delivery()"""

    def test_writes_row(self):
        client = FakeSupabase()
        patch_supabase(self, client)
        alert = make_alert()

        record = record_delivery(
            alert, DeliveryStatus.FAILED, 2, NOW, error="Bounce", cycle_id="cycle-1"
        )

        rows = client.rows("alert_deliveries")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["alert_id"], alert.id)
        self.assertEqual(rows[0]["recipient_email"], alert.email)
        self.assertEqual(rows[0]["status"], "failed")
        self.assertEqual(rows[0]["error"], "Bounce")
        self.assertEqual(rows[0]["frequency"], "daily")
        self.assertEqual(rows[0]["cycle_id"], "cycle-1")
        self.assertEqual(record.item_count, 2)


if __name__ == "__main__":
    unittest.main()
