"""
Error logging utility for the alert system.

Writes alert processing errors to timestamped report files for debugging.
"""

import os
from datetime import datetime
from typing import Any

LOG_DIR = os.getenv(
    "ALERT_ERROR_LOG_DIR", os.path.join(os.path.dirname(__file__), "logs")
)


def log_notification_error(
    error_type: str, error_message: str, context: dict[str, Any] | None = None
) -> str:
    """
    Log an alert error to a timestamped file.

    Args:
        error_type: Type of error (e.g., 'loading', 'matching', 'sending', 'geocoding')
        error_message: The error message
        context: Optional dictionary with additional context (alert_id, tournament_id, etc.)

    Returns:
        Path to the log file created
    """
    os.makedirs(LOG_DIR, exist_ok=True)

    # Microseconds keep reports from one cycle from overwriting each other
    now = datetime.now()
    filename = os.path.join(
        LOG_DIR, f"alert_error_{error_type}_{now.strftime('%Y%m%d_%H%M%S_%f')}.txt"
    )

    with open(filename, "w", encoding="utf-8") as f:
        f.write(f"Alert Error Report - {now}\n")
        f.write("=" * 60 + "\n\n")
        f.write(f"Error Type: {error_type}\n")
        f.write(f"Error Message: {error_message}\n\n")

        if context:
            f.write("Context:\n")
            f.write("-" * 60 + "\n")
            for key, value in context.items():
                f.write(f"{key}: {value}\n")

    return filename
