"""
Email sending via Resend API for tournament alerts.

A thin wrapper: rendering happens in digest_builder, and provider failures are
returned to the caller rather than raised so one bad address never aborts a
dispatch cycle.
"""

import os
from typing import Any, Dict, Optional

import resend

from notifications.digest_builder import RenderedMessage

# Initialize Resend with API key from environment
resend.api_key = os.getenv("RESEND_API_KEY")

ALERTS_FROM_EMAIL = os.getenv("ALERTS_FROM_EMAIL", "alerts@footballtournamentsuk.co.uk")
ALERTS_FROM_NAME = "Football Tournaments UK"


def send_email(
    to: str,
    subject: str,
    html: str,
    text: Optional[str] = None,
    reply_to: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Send a single transactional email.

    Args:
        to: Recipient email address
        subject: Subject line
        html: HTML body
        text: Optional plain text body
        reply_to: Optional Reply-To address
        headers: Optional extra headers (e.g. List-Unsubscribe)

    Returns:
        Dictionary with 'success' (bool), 'email_id' (str if success), 'error' (str if failed)
    """
    params: Dict[str, Any] = {
        "from": f"{ALERTS_FROM_NAME} <{ALERTS_FROM_EMAIL}>",
        "to": [to],
        "subject": subject,
        "html": html,
    }
    if text:
        params["text"] = text
    if reply_to:
        params["reply_to"] = reply_to
    if headers:
        params["headers"] = headers

    try:
        response = resend.Emails.send(params)
        return {"success": True, "email_id": response.get("id")}

    except Exception as e:
        return {"success": False, "error": str(e)}


def send_message(to: str, message: RenderedMessage) -> Dict[str, Any]:
    """Send a rendered alert message."""
    return send_email(
        to=to,
        subject=message.subject,
        html=message.html,
        text=message.text,
        headers=message.headers or None,
    )
