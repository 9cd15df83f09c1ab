"""
Supabase queries for alerts, tournaments and the alert delivery log.

Rows are validated into models here, once, so the matching and dispatch code
never deals with raw JSON. Database errors are not caught: an unreachable
database fails the whole invocation.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from models.alert import AlertFrequency, AlertSubscription
from models.tournament import Tournament
from notifications.error_logger import log_notification_error
from shared.db import get_supabase_client

ALERTS_TABLE = "tournament_alerts"
TOURNAMENTS_TABLE = "tournaments"
DELIVERIES_TABLE = "alert_deliveries"
TOURNAMENT_DELIVERIES_TABLE = "alert_tournament_deliveries"


def load_alerts(rows: List[Dict[str, Any]]) -> List[AlertSubscription]:
    """Validate alert rows, skipping (and logging) any that are malformed."""
    alerts = []
    for row in rows:
        try:
            alerts.append(AlertSubscription.model_validate(row))
        except ValidationError as e:
            print(f"  ⚠️  Skipping malformed alert {row.get('id')}")
            log_notification_error(
                error_type="loading",
                error_message=str(e),
                context={"table": ALERTS_TABLE, "alert_id": row.get("id")},
            )
    return alerts


def load_tournaments(rows: List[Dict[str, Any]]) -> List[Tournament]:
    """Validate tournament rows, skipping (and logging) any that are malformed."""
    tournaments = []
    for row in rows:
        try:
            tournaments.append(Tournament.model_validate(row))
        except ValidationError as e:
            print(f"  ⚠️  Skipping malformed tournament {row.get('id')}")
            log_notification_error(
                error_type="loading",
                error_message=str(e),
                context={"table": TOURNAMENTS_TABLE, "tournament_id": row.get("id")},
            )
    return tournaments


# Alerts


def fetch_active_alerts(frequency: AlertFrequency) -> List[AlertSubscription]:
    """Active, verified alerts for a frequency, oldest first."""
    supabase = get_supabase_client()
    response = (
        supabase.table(ALERTS_TABLE)
        .select("*")
        .eq("frequency", AlertFrequency(frequency).value)
        .eq("is_active", True)
        .not_.is_("verified_at", "null")
        .order("created_at", desc=False)
        .execute()
    )
    return load_alerts(response.data or [])


def _first_alert(query) -> Optional[AlertSubscription]:
    response = query.limit(1).execute()
    alerts = load_alerts(response.data or [])
    return alerts[0] if alerts else None


def get_alert(alert_id: str) -> Optional[AlertSubscription]:
    supabase = get_supabase_client()
    return _first_alert(supabase.table(ALERTS_TABLE).select("*").eq("id", alert_id))


def get_alert_by_verification_token(token: str) -> Optional[AlertSubscription]:
    supabase = get_supabase_client()
    return _first_alert(
        supabase.table(ALERTS_TABLE).select("*").eq("verification_token", token)
    )


def get_alert_by_management_token(token: str) -> Optional[AlertSubscription]:
    supabase = get_supabase_client()
    return _first_alert(
        supabase.table(ALERTS_TABLE).select("*").eq("management_token", token)
    )


def list_alerts_for_email(email: str) -> List[AlertSubscription]:
    supabase = get_supabase_client()
    response = (
        supabase.table(ALERTS_TABLE)
        .select("*")
        .eq("email", email)
        .order("created_at", desc=True)
        .execute()
    )
    return load_alerts(response.data or [])


def count_active_alerts(email: str) -> int:
    supabase = get_supabase_client()
    response = (
        supabase.table(ALERTS_TABLE)
        .select("id", count="exact")
        .eq("email", email)
        .eq("is_active", True)
        .execute()
    )
    return response.count or 0


def insert_alert(row: Dict[str, Any]) -> AlertSubscription:
    supabase = get_supabase_client()
    response = supabase.table(ALERTS_TABLE).insert(row).execute()
    return AlertSubscription.model_validate(response.data[0])


def update_alert(
    alert_id: str, changes: Dict[str, Any], email: Optional[str] = None
) -> Optional[AlertSubscription]:
    """
    Update one alert, optionally scoped to the owning email.

    Returns:
        The updated alert, or None if no row matched
    """
    supabase = get_supabase_client()
    query = supabase.table(ALERTS_TABLE).update(changes).eq("id", alert_id)
    if email is not None:
        query = query.eq("email", email)
    response = query.execute()
    alerts = load_alerts(response.data or [])
    return alerts[0] if alerts else None


def mark_alert_sent(alert_id: str, now: datetime) -> None:
    supabase = get_supabase_client()
    supabase.table(ALERTS_TABLE).update({"last_sent_at": now.isoformat()}).eq(
        "id", alert_id
    ).execute()


def delete_alert(alert_id: str, email: Optional[str] = None) -> int:
    """Delete one alert; returns the number of rows removed."""
    supabase = get_supabase_client()
    query = supabase.table(ALERTS_TABLE).delete().eq("id", alert_id)
    if email is not None:
        query = query.eq("email", email)
    response = query.execute()
    return len(response.data or [])


def delete_alerts_for_email(email: str) -> int:
    """Delete every alert owned by an email; returns the number removed."""
    supabase = get_supabase_client()
    response = supabase.table(ALERTS_TABLE).delete().eq("email", email).execute()
    return len(response.data or [])


# Tournaments


def fetch_tournaments_since(cutoff: datetime) -> List[Tournament]:
    """Tournaments created at or after cutoff, newest first."""
    supabase = get_supabase_client()
    response = (
        supabase.table(TOURNAMENTS_TABLE)
        .select("*")
        .gte("created_at", cutoff.isoformat())
        .order("created_at", desc=True)
        .execute()
    )
    return load_tournaments(response.data or [])


def get_tournament(tournament_id: str) -> Optional[Tournament]:
    supabase = get_supabase_client()
    response = (
        supabase.table(TOURNAMENTS_TABLE)
        .select("*")
        .eq("id", tournament_id)
        .limit(1)
        .execute()
    )
    tournaments = load_tournaments(response.data or [])
    return tournaments[0] if tournaments else None
