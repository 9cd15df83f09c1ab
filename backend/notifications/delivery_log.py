"""
Rate limiting and duplicate suppression backed by the alert delivery log.

All state lives in Supabase (`alert_deliveries` and
`alert_tournament_deliveries`); nothing is cached between invocations.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Set

from config.alert_settings import DIGEST_MIN_INTERVAL_HOURS, INSTANT_DAILY_LIMIT
from models.alert import (
    AlertFrequency,
    AlertSubscription,
    DeliveryRecord,
    DeliveryStatus,
    TournamentDelivery,
)
from models.tournament import Tournament
from notifications.alert_store import DELIVERIES_TABLE, TOURNAMENT_DELIVERIES_TABLE
from shared.db import get_supabase_client


def sent_too_recently(
    alert: AlertSubscription, frequency: AlertFrequency, now: datetime
) -> bool:
    """
    Minimum-interval rule for digests.

    A daily alert sent within the last 20 hours, or a weekly alert sent within
    the last 6 days, is skipped for this cycle. Instant alerts are governed by
    the daily cap instead.
    """
    if alert.last_sent_at is None:
        return False
    hours = DIGEST_MIN_INTERVAL_HOURS.get(AlertFrequency(frequency).value)
    if hours is None:
        return False
    return now - alert.last_sent_at < timedelta(hours=hours)


def start_of_utc_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def sent_today_count(email: str, now: datetime) -> int:
    """Successful instant-alert deliveries to a recipient since 00:00 UTC."""
    supabase = get_supabase_client()
    response = (
        supabase.table(DELIVERIES_TABLE)
        .select("id", count="exact")
        .eq("recipient_email", email)
        .eq("frequency", AlertFrequency.INSTANT.value)
        .eq("status", DeliveryStatus.SENT.value)
        .gte("created_at", start_of_utc_day(now).isoformat())
        .execute()
    )
    return response.count or 0


def can_send_instant(email: str, now: datetime) -> bool:
    """True while the recipient is under the instant-alert daily cap."""
    return sent_today_count(email, now) < INSTANT_DAILY_LIMIT


def delivered_tournament_ids(alert_id: str, tournament_ids: Iterable[str]) -> Set[str]:
    """Subset of tournament_ids already delivered for this alert."""
    ids = list(tournament_ids)
    if not ids:
        return set()

    supabase = get_supabase_client()
    response = (
        supabase.table(TOURNAMENT_DELIVERIES_TABLE)
        .select("tournament_id")
        .eq("alert_id", alert_id)
        .in_("tournament_id", ids)
        .execute()
    )
    return {row["tournament_id"] for row in response.data or []}


def already_delivered(alert_id: str, tournament_id: str) -> bool:
    return tournament_id in delivered_tournament_ids(alert_id, [tournament_id])


def undelivered_tournaments(
    alert_id: str, tournaments: List[Tournament]
) -> List[Tournament]:
    """Drop tournaments this alert has already been notified about."""
    delivered = delivered_tournament_ids(alert_id, [t.id for t in tournaments])
    return [t for t in tournaments if t.id not in delivered]


def record_delivery(
    alert: AlertSubscription,
    status: DeliveryStatus,
    item_count: int,
    now: datetime,
    error: Optional[str] = None,
    cycle_id: Optional[str] = None,
) -> DeliveryRecord:
    """Append one row to the delivery log."""
    record = DeliveryRecord(
        alert_id=alert.id,
        recipient_email=alert.email,
        frequency=alert.frequency,
        item_count=item_count,
        status=status,
        error=error,
        cycle_id=cycle_id,
        created_at=now,
    )
    supabase = get_supabase_client()
    supabase.table(DELIVERIES_TABLE).insert(record.to_row()).execute()
    return record


def record_tournament_deliveries(
    alert_id: str,
    tournament_ids: Iterable[str],
    now: datetime,
    cycle_id: Optional[str] = None,
) -> int:
    """
    Remember which tournaments an alert has been sent.

    Pairs that already exist are left untouched.

    Returns:
        Number of pairs written
    """
    rows = [
        TournamentDelivery(
            alert_id=alert_id,
            tournament_id=tournament_id,
            cycle_id=cycle_id,
            created_at=now,
        ).to_row()
        for tournament_id in tournament_ids
    ]
    if not rows:
        return 0

    supabase = get_supabase_client()
    supabase.table(TOURNAMENT_DELIVERIES_TABLE).upsert(
        rows, on_conflict="alert_id,tournament_id", ignore_duplicates=True
    ).execute()
    return len(rows)
