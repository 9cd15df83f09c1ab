"""
Rendering of tournament alert emails.

Builds the digest, instant and verification messages. All data is prepared
once by _prepare_tournament_data so the HTML and text formatters only handle
presentation.
"""

import os
from datetime import datetime
from html import escape
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, Field

from config.alert_settings import DIGEST_MAX_ENTRIES
from models.alert import AlertFrequency, AlertSubscription
from models.tournament import Tournament
from notifications.alert_matcher import filter_matching_tournaments

# Frontend base URL for links in emails
FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "https://footballtournamentsuk.co.uk")

# Public base URL of this service (verification and unsubscribe endpoints)
ALERTS_API_BASE_URL = os.getenv("ALERTS_API_BASE_URL", f"{FRONTEND_BASE_URL}/api")


class RenderedMessage(BaseModel):
    """An email ready to hand to the sender."""

    subject: str
    html: str
    text: str
    tournament_ids: List[str] = Field(default_factory=list)
    overflow_count: int = 0
    headers: Dict[str, str] = Field(default_factory=dict)


def management_url(alert: AlertSubscription) -> str:
    return f"{FRONTEND_BASE_URL}/alerts/manage/{alert.management_token}"


def unsubscribe_url(alert: AlertSubscription, single_alert: bool = False) -> str:
    """One-click unsubscribe link; only ever carries the management token."""
    params = {"token": alert.management_token}
    if single_alert:
        params["alert_id"] = alert.id
    return f"{ALERTS_API_BASE_URL}/alerts/unsubscribe?{urlencode(params)}"


def verification_url(alert: AlertSubscription) -> str:
    return f"{ALERTS_API_BASE_URL}/alerts/verify?{urlencode({'token': alert.verification_token})}"


def browse_url(alert: AlertSubscription) -> str:
    """Browse page with the alert's filters pre-applied."""
    params = alert.filters.to_query_params()
    query = f"?{urlencode(params)}" if params else ""
    return f"{FRONTEND_BASE_URL}/tournaments{query}"


def tournament_url(tournament: Tournament, alert: Optional[AlertSubscription] = None) -> str:
    url = f"{FRONTEND_BASE_URL}/tournaments/{tournament.slug or tournament.id}"
    if alert is not None:
        params = alert.filters.to_query_params()
        if params:
            url += f"?{urlencode(params)}"
    return url


def format_date(value: datetime) -> str:
    """e.g. '1 Jun 2025'."""
    return f"{value.day} {value.strftime('%b %Y')}"


def format_date_range(start: datetime, end: datetime) -> str:
    if start.date() == end.date():
        return format_date(start)
    return f"{format_date(start)} - {format_date(end)}"


def format_price(amount: Optional[float], currency: str) -> str:
    if amount is None:
        return "Contact for pricing"
    if amount == 0:
        return "Free"
    value = f"{amount:.0f}" if float(amount).is_integer() else f"{amount:.2f}"
    if currency == "GBP":
        return f"£{value}"
    return f"{currency} {value}"


def digest_subject(tournaments: List[Tournament]) -> str:
    if len(tournaments) == 1:
        return f"New tournament: {tournaments[0].name}"
    return f"{len(tournaments)} new tournaments matching your interests"


def _prepare_tournament_data(
    tournaments: List[Tournament], alert: AlertSubscription
) -> List[Dict[str, Any]]:
    """Extract and format every field the templates show, once."""
    prepared = []
    for tournament in tournaments:
        prepared.append(
            {
                "id": tournament.id,
                "name": tournament.name,
                "venue": tournament.location_name,
                "region": tournament.region,
                "dates": format_date_range(tournament.start_date, tournament.end_date),
                "format": tournament.format.value,
                "age_groups": list(tournament.age_groups),
                "category": tournament.type,
                "price": format_price(tournament.cost_amount, tournament.cost_currency),
                "url": tournament_url(tournament, alert),
            }
        )
    return prepared


def _unsubscribe_headers(alert: AlertSubscription) -> Dict[str, str]:
    return {"List-Unsubscribe": f"<{unsubscribe_url(alert, single_alert=True)}>"}


def build_digest(
    candidates: List[Tournament], alert: AlertSubscription
) -> Optional[RenderedMessage]:
    """
    Build a digest email for one alert.

    Args:
        candidates: Tournaments changed since the digest cutoff
        alert: Alert whose filters select the tournaments

    Returns:
        RenderedMessage, or None when nothing matches (an empty digest is never sent)
    """
    matching = filter_matching_tournaments(candidates, alert.filters)
    if not matching:
        return None

    shown = matching[:DIGEST_MAX_ENTRIES]
    overflow_count = len(matching) - len(shown)
    prepared = _prepare_tournament_data(shown, alert)
    subject = digest_subject(matching)

    return RenderedMessage(
        subject=subject,
        html=_build_digest_html(prepared, alert, subject, len(matching), overflow_count),
        text=_build_digest_text(prepared, alert, len(matching), overflow_count),
        tournament_ids=[t.id for t in matching],
        overflow_count=overflow_count,
        headers=_unsubscribe_headers(alert),
    )


def _frequency_label(alert: AlertSubscription) -> str:
    return "Weekly" if alert.frequency == AlertFrequency.WEEKLY else "Daily"


def _build_digest_html(
    prepared: List[Dict[str, Any]],
    alert: AlertSubscription,
    subject: str,
    total: int,
    overflow_count: int,
) -> str:
    heading = "New Tournament Alert" if total == 1 else f"{total} New Tournaments"

    html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(subject)}</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; background: #f9fafb;">
    <div style="text-align: center; margin-bottom: 30px; background: white; padding: 24px; border-radius: 8px;">
        <h1 style="color: #059669; margin-bottom: 10px; font-size: 24px;">Football Tournaments UK</h1>
        <h2 style="color: #374151; font-weight: 600; margin: 0; font-size: 20px;">{heading}</h2>
        <p style="color: #6b7280; margin: 8px 0 0 0;">{_frequency_label(alert)} digest for {escape(alert.email)}</p>
    </div>
"""

    for entry in prepared:
        age_badges = "".join(
            f'<span style="background: #f0fdf4; color: #166534; padding: 4px 8px; border-radius: 4px; font-size: 12px;">{escape(age)}</span> '
            for age in entry["age_groups"]
        )
        html += f"""
    <div style="border: 1px solid #e5e7eb; border-radius: 8px; margin-bottom: 16px; background: white; padding: 16px;">
        <h3 style="margin: 0 0 8px 0; font-size: 18px;">
            <a href="{escape(entry['url'])}" style="color: #059669; text-decoration: none;">{escape(entry['name'])}</a>
        </h3>
        <p style="margin: 0 0 8px 0; color: #6b7280; font-size: 14px;">{escape(entry['venue'])}</p>
        <p style="margin: 0 0 8px 0; color: #6b7280; font-size: 14px;">{entry['dates']}</p>
        <div style="margin-bottom: 12px;">
            <span style="background: #eff6ff; color: #1d4ed8; padding: 4px 8px; border-radius: 4px; font-size: 12px;">{escape(entry['format'])}</span>
            <span style="background: #f0f9ff; color: #0369a1; padding: 4px 8px; border-radius: 4px; font-size: 12px;">{escape(entry['category'])}</span>
            {age_badges}
        </div>
        <span style="font-weight: 600; color: #059669;">{escape(entry['price'])}</span>
    </div>
"""

    if overflow_count > 0:
        html += f"""
    <div style="background: #eff6ff; border: 1px solid #bfdbfe; border-radius: 6px; padding: 16px; margin-bottom: 24px; text-align: center;">
        <p style="margin: 0; color: #1d4ed8; font-weight: 500;">+{overflow_count} more</p>
        <a href="{escape(browse_url(alert))}" style="color: #059669; font-weight: 600;">View all matching tournaments</a>
    </div>
"""

    html += f"""
    <div style="background: white; padding: 24px; border-radius: 8px; font-size: 14px; color: #6b7280; text-align: center;">
        <p style="margin: 0 0 8px 0;">You're receiving this because you subscribed to tournament alerts.</p>
        <p style="margin: 0;">
            <a href="{escape(management_url(alert))}" style="color: #059669;">Manage alerts</a> |
            <a href="{escape(unsubscribe_url(alert, single_alert=True))}" style="color: #6b7280;">Unsubscribe from this alert</a> |
            <a href="{escape(unsubscribe_url(alert))}" style="color: #6b7280;">Unsubscribe from all alerts</a>
        </p>
    </div>
</body>
</html>
"""
    return html


def _build_digest_text(
    prepared: List[Dict[str, Any]],
    alert: AlertSubscription,
    total: int,
    overflow_count: int,
) -> str:
    text = f"""{_frequency_label(alert).upper()} TOURNAMENT DIGEST
Football Tournaments UK

{total} tournament{'s' if total != 1 else ''} matching your alert:

"""

    for i, entry in enumerate(prepared, 1):
        text += f"""{i}. {entry['name']}
Venue: {entry['venue']}
Dates: {entry['dates']}
Format: {entry['format']} | {entry['category']}
Age groups: {', '.join(entry['age_groups']) or 'All'}
Price: {entry['price']}
{entry['url']}

"""

    if overflow_count > 0:
        text += f"+{overflow_count} more: {browse_url(alert)}\n\n"

    text += f"""---
Manage alerts: {management_url(alert)}
Unsubscribe from this alert: {unsubscribe_url(alert, single_alert=True)}
Unsubscribe from all alerts: {unsubscribe_url(alert)}
"""
    return text


def build_instant_message(tournament: Tournament, alert: AlertSubscription) -> RenderedMessage:
    """Single-tournament email for instant alerts."""
    entry = _prepare_tournament_data([tournament], alert)[0]
    subject = f"New Tournament Alert: {tournament.name}"
    deadline = (
        format_date(tournament.registration_deadline)
        if tournament.registration_deadline
        else None
    )
    location = ", ".join(p for p in (tournament.location_name, tournament.region) if p)

    details = [
        ("Date", entry["dates"]),
        ("Location", location),
        ("Format", entry["format"]),
        ("Age Groups", ", ".join(entry["age_groups"])),
        ("Type", entry["category"]),
        ("Cost", entry["price"]),
    ]
    if deadline:
        details.append(("Registration Deadline", deadline))
    if tournament.contact_name or tournament.contact_email:
        contact = " - ".join(p for p in (tournament.contact_name, tournament.contact_email) if p)
        details.append(("Contact", contact))

    rows = "".join(
        f'<p style="margin: 8px 0; color: #6b7280;"><strong>{label}:</strong> {escape(value)}</p>\n'
        for label, value in details
        if value
    )
    description = (
        f'<div style="margin: 16px 0; padding: 16px; background: #f9fafb; border-radius: 6px;">{escape(tournament.description)}</div>'
        if tournament.description
        else ""
    )

    html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>New Tournament Alert</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="text-align: center; margin-bottom: 30px;">
        <h1 style="color: #059669; margin-bottom: 10px;">Football Tournaments UK</h1>
        <h2 style="color: #374151; font-weight: 600;">New Tournament Alert</h2>
    </div>
    <div style="background: #ffffff; border: 1px solid #e5e7eb; border-radius: 8px; padding: 24px; margin-bottom: 24px;">
        <h2 style="color: #374151; margin: 0 0 16px 0;">{escape(tournament.name)}</h2>
        {rows}
        {description}
        <div style="text-align: center; margin: 24px 0;">
            <a href="{escape(entry['url'])}" style="background: #059669; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: 600;">View Tournament Details</a>
        </div>
    </div>
    <div style="border-top: 1px solid #e5e7eb; padding-top: 20px; font-size: 14px; color: #6b7280;">
        <p><a href="{escape(management_url(alert))}" style="color: #059669;">Update alert preferences</a></p>
        <p><a href="{escape(unsubscribe_url(alert))}" style="color: #dc2626;">Unsubscribe from all alerts</a></p>
        <p style="font-size: 12px; color: #9ca3af;">You received this because you have an instant tournament alert set up.</p>
    </div>
</body>
</html>
"""

    text = f"NEW TOURNAMENT ALERT\n\n{tournament.name}\n\n"
    text += "".join(f"{label}: {value}\n" for label, value in details if value)
    if tournament.description:
        text += f"\n{tournament.description}\n"
    text += f"""
View details: {entry['url']}

---
Manage alerts: {management_url(alert)}
Unsubscribe from all alerts: {unsubscribe_url(alert)}
"""

    return RenderedMessage(
        subject=subject,
        html=html,
        text=text,
        tournament_ids=[tournament.id],
        headers=_unsubscribe_headers(alert),
    )


def build_verification_message(alert: AlertSubscription) -> RenderedMessage:
    """Double opt-in email; the only message that carries the verification token."""
    url = verification_url(alert)
    html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Verify Your Tournament Alerts</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="text-align: center; margin-bottom: 30px;">
        <h1 style="color: #059669; margin-bottom: 10px;">Football Tournaments UK</h1>
        <h2 style="color: #374151; font-weight: 600;">Verify Your Tournament Alerts</h2>
    </div>
    <div style="background: #f9fafb; padding: 24px; border-radius: 8px; margin-bottom: 24px;">
        <p>You've requested to receive tournament alerts. To activate your subscription, please click the button below:</p>
        <div style="text-align: center; margin: 24px 0;">
            <a href="{escape(url)}" style="background: #059669; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: 600;">Activate My Alerts</a>
        </div>
        <p style="font-size: 14px; color: #6b7280;">If the button doesn't work, copy and paste this link into your browser:<br>{escape(url)}</p>
    </div>
    <p style="font-size: 14px; color: #6b7280;">If you didn't request this, you can safely ignore this email.</p>
</body>
</html>
"""
    text = f"""VERIFY YOUR TOURNAMENT ALERTS

You've requested to receive tournament alerts from Football Tournaments UK.
Activate your subscription here:

{url}

If you didn't request this, you can safely ignore this email.
"""
    return RenderedMessage(
        subject="Verify your tournament alerts subscription",
        html=html,
        text=text,
    )
