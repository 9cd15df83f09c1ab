"""
Alert subscription lifecycle: opt-in, verification, self-service management
and unsubscribe.

Every entry point here is driven by a token from an email link. The
verification token only activates an alert; everything else requires the
management token.
"""

import hmac
import re
from datetime import datetime
from typing import Any, Dict, Optional

from config.alert_settings import CONSENT_SOURCES, MAX_ACTIVE_ALERTS_PER_EMAIL
from models.alert import AlertCriteria, AlertFrequency, AlertSubscription
from notifications import alert_store
from notifications.alert_tokens import (
    generate_management_token,
    generate_verification_token,
    validate_verification_token,
)
from notifications.digest_builder import build_verification_message
from notifications.email_sender import send_message
from notifications.error_logger import log_notification_error
from notifications.geocoding import forward_geocode, reverse_geocode
from shared.errors import AlertError, AlertLimitError, InvalidRequestError, NotFoundError
from shared.utils import to_utc_datetime, utc_now

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MANAGEABLE_FIELDS = {"is_active", "frequency", "filters"}


def public_alert(alert: AlertSubscription) -> Dict[str, Any]:
    """Alert as shown to its owner; the verification token is never exposed."""
    data = alert.model_dump(mode="json", exclude={"verification_token", "filters"})
    data["filters"] = alert.filters.to_storage()
    return data


def _parse_frequency(frequency: Any) -> AlertFrequency:
    try:
        return AlertFrequency(frequency)
    except ValueError:
        raise InvalidRequestError("Valid frequency is required") from None


def resolve_location(criteria: AlertCriteria) -> AlertCriteria:
    """
    Fill in coordinates for a postcode-only location, or a postcode for a
    coordinate-only one. City names stay as text filters.
    """
    location = criteria.location
    if location is None:
        return criteria

    if not location.has_coordinates and location.postcode:
        result = forward_geocode(location.postcode)
        if result is None:
            print(f"  ⚠️  Could not geocode postcode {location.postcode}")
            return criteria
        location = location.model_copy(
            update={
                "latitude": result.latitude,
                "longitude": result.longitude,
                "postcode": result.postcode or location.postcode,
            }
        )
    elif location.has_coordinates and not location.postcode:
        postcode = reverse_geocode(location.latitude, location.longitude)
        if postcode:
            location = location.model_copy(update={"postcode": postcode})

    return criteria.model_copy(update={"location": location})


def create_alert(
    email: Optional[str],
    filters: Any,
    frequency: Any,
    source: Optional[str] = "filters",
    now: Optional[datetime] = None,
) -> AlertSubscription:
    """
    Create an inactive alert and send its verification email.

    Raises:
        InvalidRequestError: Bad email, frequency, source or filters
        AlertLimitError: The email already has the maximum number of active alerts
        AlertError: The verification email could not be sent
    """
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise InvalidRequestError("Valid email is required")

    frequency = _parse_frequency(frequency)

    if source not in CONSENT_SOURCES:
        raise InvalidRequestError("Valid source is required")

    criteria = AlertCriteria.parse(filters)

    if alert_store.count_active_alerts(email) >= MAX_ACTIVE_ALERTS_PER_EMAIL:
        raise AlertLimitError(
            f"Maximum number of alerts reached ({MAX_ACTIVE_ALERTS_PER_EMAIL} per email)"
        )

    criteria = resolve_location(criteria)
    now = to_utc_datetime(now) if now is not None else utc_now()

    alert = alert_store.insert_alert(
        {
            "email": email,
            "filters": criteria.to_storage(),
            "frequency": frequency.value,
            "verification_token": generate_verification_token(email),
            "management_token": generate_management_token(),
            "consent_source": source,
            "consent_timestamp": now.isoformat(),
            "is_active": False,
        }
    )

    result = send_message(email, build_verification_message(alert))
    if not result["success"]:
        error_file = log_notification_error(
            error_type="verification",
            error_message=result.get("error") or "Unknown error",
            context={"alert_id": alert.id},
        )
        print(f"  ✗ Verification email failed. Details logged to: {error_file}")
        raise AlertError("Failed to send verification email")

    print(f"  ✓ Alert {alert.id} created, verification sent")
    return alert


def verify_alert(token: Optional[str], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Activate an alert from its verification link. Safe to call twice.

    Returns:
        Dictionary with 'status' ('success' or 'already_verified') and 'alert'

    Raises:
        InvalidRequestError: Missing token
        NotFoundError: Invalid, expired or unknown token
    """
    if not token:
        raise InvalidRequestError("Token is required")

    expired_message = "This verification link has expired or has already been used."
    email = validate_verification_token(token)
    if email is None:
        raise NotFoundError(expired_message)

    alert = alert_store.get_alert_by_verification_token(token)
    if alert is None or alert.email != email:
        raise NotFoundError(expired_message)

    if alert.is_verified:
        return {"status": "already_verified", "alert": alert}

    now = to_utc_datetime(now) if now is not None else utc_now()
    updated = alert_store.update_alert(
        alert.id, {"is_active": True, "verified_at": now.isoformat()}
    )
    print(f"  ✓ Alert {alert.id} verified")
    return {"status": "success", "alert": updated or alert}


def _owner_for_token(management_token: Optional[str]) -> AlertSubscription:
    if not management_token:
        raise InvalidRequestError("Management token is required")
    owner = alert_store.get_alert_by_management_token(management_token)
    if owner is None:
        raise NotFoundError("Invalid management token")
    return owner


def _validated_updates(updates: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(updates) - MANAGEABLE_FIELDS
    if unknown:
        raise InvalidRequestError(f"Cannot update: {', '.join(sorted(unknown))}")

    changes: Dict[str, Any] = {}
    if "is_active" in updates:
        if not isinstance(updates["is_active"], bool):
            raise InvalidRequestError("is_active must be a boolean")
        changes["is_active"] = updates["is_active"]
    if "frequency" in updates:
        changes["frequency"] = _parse_frequency(updates["frequency"]).value
    if "filters" in updates:
        criteria = resolve_location(AlertCriteria.parse(updates["filters"]))
        changes["filters"] = criteria.to_storage()
    return changes


def manage_alerts(
    management_token: Optional[str],
    action: Optional[str],
    alert_id: Optional[str] = None,
    updates: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Self-service actions for every alert owned by the token's email.

    Actions: list, update, delete, unsubscribe_all.
    """
    owner = _owner_for_token(management_token)
    email = owner.email

    if action == "list":
        return {"alerts": [public_alert(a) for a in alert_store.list_alerts_for_email(email)]}

    if action == "update":
        if not alert_id or not updates:
            raise InvalidRequestError("Alert ID and updates are required")
        updated = alert_store.update_alert(alert_id, _validated_updates(updates), email=email)
        if updated is None:
            raise NotFoundError("Alert not found or unauthorized")
        return {"alert": public_alert(updated)}

    if action == "delete":
        if not alert_id:
            raise InvalidRequestError("Alert ID is required")
        if alert_store.delete_alert(alert_id, email=email) == 0:
            raise NotFoundError("Alert not found or unauthorized")
        return {"success": True}

    if action == "unsubscribe_all":
        deleted = alert_store.delete_alerts_for_email(email)
        print(f"  ✓ All alerts deleted for {email}")
        return {"success": True, "deleted": deleted}

    raise InvalidRequestError("Invalid action")


def unsubscribe(token: Optional[str], alert_id: Optional[str] = None) -> Dict[str, Any]:
    """
    One-click unsubscribe from an email link.

    With alert_id, removes that alert (the token must belong to it); without,
    removes every alert for the token's email. Removal is a hard delete.

    Raises:
        InvalidRequestError: Missing token
        NotFoundError: No alert matches the token
    """
    if not token:
        raise InvalidRequestError("This unsubscribe link is invalid or expired.")

    if alert_id:
        alert = alert_store.get_alert(alert_id)
        if alert is None or not hmac.compare_digest(alert.management_token, token):
            raise NotFoundError("This alert has already been removed or the link is invalid.")
        alert_store.delete_alert(alert.id)
        print(f"  ✓ Alert {alert.id} unsubscribed")
        return {"scope": "alert", "email": alert.email, "deleted": 1}

    owner = alert_store.get_alert_by_management_token(token)
    if owner is None:
        raise NotFoundError("No alerts found for this unsubscribe link.")
    deleted = alert_store.delete_alerts_for_email(owner.email)
    print(f"  ✓ All alerts unsubscribed for {owner.email}")
    return {"scope": "all", "email": owner.email, "deleted": deleted}
