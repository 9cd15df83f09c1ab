"""
Alert dispatch: the digest cycle and the instant per-tournament path.

Alerts are processed one at a time in query order. Each alert ends in exactly
one outcome (skipped, sent or failed); a failure is recorded and the loop moves
on. There are no retries: the next scheduled cycle picks up anything missed.
"""

import time
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from config.alert_settings import DIGEST_LOOKBACK_HOURS
from models.alert import AlertFrequency, AlertSubscription, DeliveryStatus
from models.tournament import Tournament
from notifications import alert_store, delivery_log
from notifications.alert_matcher import (
    filter_matching_tournaments,
    tournament_matches_criteria,
)
from notifications.digest_builder import (
    RenderedMessage,
    build_digest,
    build_instant_message,
)
from notifications.email_sender import send_message
from notifications.error_logger import log_notification_error
from shared.errors import InvalidRequestError, TournamentNotFoundError
from shared.utils import to_utc_datetime, utc_now

# Resend allows 10 requests/second
SEND_INTERVAL_SECONDS = 0.1

SKIPPED = "skipped"
SENT = "sent"
FAILED = "failed"


class DispatchResult(BaseModel):
    """Summary of one dispatch invocation."""

    frequency: AlertFrequency
    cycle_id: str
    tournament_id: Optional[str] = None
    action: Optional[str] = None
    alerts_processed: int = 0
    tournaments_found: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    dry_run: bool = False
    results: List[Dict[str, Any]] = Field(default_factory=list)

    def add(self, outcome: Dict[str, Any]) -> None:
        self.alerts_processed += 1
        if outcome["status"] == SENT:
            self.sent += 1
        elif outcome["status"] == FAILED:
            self.failed += 1
        else:
            self.skipped += 1
        self.results.append(outcome)

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", exclude_none=True)
        data["success"] = True
        data["total"] = self.alerts_processed
        return data


def _outcome(alert: AlertSubscription, status: str, **details: Any) -> Dict[str, Any]:
    outcome = {"alert_id": alert.id, "email": alert.email, "status": status}
    outcome.update(details)
    return outcome


def _resolve_now(now: Optional[datetime]) -> datetime:
    return to_utc_datetime(now) if now is not None else utc_now()


def _parse_digest_frequency(frequency: Any) -> AlertFrequency:
    try:
        parsed = AlertFrequency(frequency)
    except ValueError:
        parsed = None
    if parsed not in (AlertFrequency.DAILY, AlertFrequency.WEEKLY):
        raise InvalidRequestError("Valid frequency required (daily or weekly)")
    return parsed


def _deliver(
    alert: AlertSubscription,
    message: RenderedMessage,
    item_count: int,
    now: datetime,
    cycle_id: str,
    dry_run: bool,
) -> Dict[str, Any]:
    """Send one rendered message and record the outcome."""
    if dry_run:
        print(f"  [DRY RUN] Would send '{message.subject}' to {alert.email}")
        return _outcome(alert, SENT, item_count=item_count, dry_run=True)

    result = send_message(alert.email, message)
    time.sleep(SEND_INTERVAL_SECONDS)

    if not result["success"]:
        error_msg = result.get("error") or "Unknown error"
        print(f"  ✗ Failed to send to {alert.email}: {error_msg}")
        delivery_log.record_delivery(
            alert, DeliveryStatus.FAILED, item_count, now, error=error_msg, cycle_id=cycle_id
        )
        error_file = log_notification_error(
            error_type="sending",
            error_message=error_msg,
            context={
                "alert_id": alert.id,
                "cycle_id": cycle_id,
                "tournament_ids": message.tournament_ids,
            },
        )
        print(f"    Error details logged to: {error_file}")
        return _outcome(alert, FAILED, item_count=item_count, error=error_msg)

    _record_sent(alert, message, item_count, now, cycle_id)
    print(f"  ✓ Sent {item_count} tournament(s) to {alert.email}")
    return _outcome(alert, SENT, item_count=item_count, email_id=result.get("email_id"))


def _record_sent(
    alert: AlertSubscription,
    message: RenderedMessage,
    item_count: int,
    now: datetime,
    cycle_id: str,
) -> None:
    """Bookkeeping after a successful send. The mail is out, so write failures are only logged."""
    writes = [
        (
            "delivery record",
            lambda: delivery_log.record_delivery(
                alert, DeliveryStatus.SENT, item_count, now, cycle_id=cycle_id
            ),
        ),
        (
            "tournament deliveries",
            lambda: delivery_log.record_tournament_deliveries(
                alert.id, message.tournament_ids, now, cycle_id=cycle_id
            ),
        ),
        ("last_sent_at", lambda: alert_store.mark_alert_sent(alert.id, now)),
    ]
    for label, write in writes:
        try:
            write()
        except Exception as e:
            error_file = log_notification_error(
                error_type="bookkeeping",
                error_message=f"Could not write {label}: {e}",
                context={
                    "alert_id": alert.id,
                    "cycle_id": cycle_id,
                    "tournament_ids": message.tournament_ids,
                },
            )
            print(f"  ⚠️  Sent to {alert.email} but could not write {label}: {error_file}")


def _record_unexpected_failure(
    alert: AlertSubscription, error: Exception, now: datetime, cycle_id: str
) -> Dict[str, Any]:
    error_file = log_notification_error(
        error_type="dispatch",
        error_message=str(error),
        context={"alert_id": alert.id, "cycle_id": cycle_id},
    )
    print(f"  ✗ Error processing alert {alert.id}. Details logged to: {error_file}")
    try:
        delivery_log.record_delivery(
            alert, DeliveryStatus.FAILED, 0, now, error=str(error), cycle_id=cycle_id
        )
    except Exception as record_error:
        log_notification_error(
            error_type="dispatch",
            error_message=f"Could not record failure: {record_error}",
            context={"alert_id": alert.id, "cycle_id": cycle_id},
        )
    return _outcome(alert, FAILED, error=str(error))


# Digest path


def _process_digest_alert(
    alert: AlertSubscription,
    frequency: AlertFrequency,
    tournaments: List[Tournament],
    now: datetime,
    cycle_id: str,
    dry_run: bool,
) -> Dict[str, Any]:
    # Unverified alerts must never receive mail
    if not alert.is_active or not alert.is_verified:
        return _outcome(alert, SKIPPED, reason="ineligible")

    if delivery_log.sent_too_recently(alert, frequency, now):
        print(f"  ⊘ Skipping alert {alert.id} - sent too recently")
        return _outcome(alert, SKIPPED, reason="interval")

    matching = filter_matching_tournaments(tournaments, alert.filters)
    if not matching:
        return _outcome(alert, SKIPPED, reason="no_match")

    fresh = delivery_log.undelivered_tournaments(alert.id, matching)
    if not fresh:
        print(f"  ⊘ Skipping alert {alert.id} - all matches already delivered")
        if not dry_run:
            delivery_log.record_delivery(
                alert, DeliveryStatus.DUPLICATE, len(matching), now, cycle_id=cycle_id
            )
        return _outcome(alert, SKIPPED, reason="duplicate", item_count=len(matching))

    message = build_digest(fresh, alert)
    if message is None:
        return _outcome(alert, SKIPPED, reason="no_match")

    return _deliver(alert, message, len(fresh), now, cycle_id, dry_run)


def run_digest_cycle(
    frequency: Any, now: Optional[datetime] = None, dry_run: bool = False
) -> DispatchResult:
    """
    Send daily or weekly digests.

    Args:
        frequency: 'daily' or 'weekly'
        now: Cycle timestamp (defaults to the current UTC time)
        dry_run: If True, match and render but don't send or record anything

    Returns:
        DispatchResult with sent/failed/skipped counts

    Raises:
        InvalidRequestError: If frequency is not daily or weekly
    """
    frequency = _parse_digest_frequency(frequency)
    now = _resolve_now(now)
    cycle_id = str(uuid.uuid4())
    cutoff = now - timedelta(hours=DIGEST_LOOKBACK_HOURS[frequency.value])

    print(f"Starting {frequency.value} digest cycle {cycle_id}...")

    alerts = alert_store.fetch_active_alerts(frequency)
    tournaments = alert_store.fetch_tournaments_since(cutoff)
    print(
        f"Found {len(alerts)} active {frequency.value} alerts and "
        f"{len(tournaments)} tournaments since {cutoff.isoformat()}"
    )

    result = DispatchResult(
        frequency=frequency,
        cycle_id=cycle_id,
        tournaments_found=len(tournaments),
        dry_run=dry_run,
    )

    for alert in alerts:
        try:
            outcome = _process_digest_alert(
                alert, frequency, tournaments, now, cycle_id, dry_run
            )
        except Exception as e:
            outcome = _record_unexpected_failure(alert, e, now, cycle_id)
        result.add(outcome)

    print(
        f"Digest complete: {result.sent} sent, {result.failed} failed, "
        f"{result.skipped} skipped"
    )
    return result


# Instant path


def _process_instant_alert(
    alert: AlertSubscription,
    tournament: Tournament,
    now: datetime,
    cycle_id: str,
    dry_run: bool,
) -> Dict[str, Any]:
    if not alert.is_active or not alert.is_verified:
        return _outcome(alert, SKIPPED, reason="ineligible")

    if not tournament_matches_criteria(tournament, alert.filters):
        return _outcome(alert, SKIPPED, reason="no_match")

    if not delivery_log.can_send_instant(alert.email, now):
        print(f"  ⊘ Rate limit exceeded for {alert.email}")
        if not dry_run:
            delivery_log.record_delivery(
                alert, DeliveryStatus.RATE_LIMITED, 1, now, cycle_id=cycle_id
            )
        return _outcome(alert, SKIPPED, reason="rate_limited")

    if delivery_log.already_delivered(alert.id, tournament.id):
        print(f"  ⊘ Tournament {tournament.id} already sent to alert {alert.id}")
        if not dry_run:
            delivery_log.record_delivery(
                alert, DeliveryStatus.DUPLICATE, 1, now, cycle_id=cycle_id
            )
        return _outcome(alert, SKIPPED, reason="duplicate")

    message = build_instant_message(tournament, alert)
    return _deliver(alert, message, 1, now, cycle_id, dry_run)


def run_instant_alerts(
    tournament_id: Optional[str],
    action: str = "created",
    now: Optional[datetime] = None,
    dry_run: bool = False,
) -> DispatchResult:
    """
    Notify instant alerts about one new or changed tournament.

    Raises:
        InvalidRequestError: If tournament_id is missing
        TournamentNotFoundError: If the tournament does not exist
    """
    if not tournament_id:
        raise InvalidRequestError("Tournament ID is required")

    now = _resolve_now(now)
    cycle_id = str(uuid.uuid4())

    tournament = alert_store.get_tournament(tournament_id)
    if tournament is None:
        raise TournamentNotFoundError(tournament_id)

    print(f"Processing instant alerts for tournament {tournament_id} (action: {action})")

    alerts = alert_store.fetch_active_alerts(AlertFrequency.INSTANT)
    result = DispatchResult(
        frequency=AlertFrequency.INSTANT,
        cycle_id=cycle_id,
        tournament_id=tournament_id,
        action=action,
        tournaments_found=1,
        dry_run=dry_run,
    )

    for alert in alerts:
        try:
            outcome = _process_instant_alert(alert, tournament, now, cycle_id, dry_run)
        except Exception as e:
            outcome = _record_unexpected_failure(alert, e, now, cycle_id)
        result.add(outcome)

    print(
        f"Instant alerts processed: {result.sent} sent out of {result.alerts_processed} alerts"
    )
    return result
