# This module defines tunable alert delivery settings as module-level constants.
# Values that differ between deployments can be overridden from the environment.

import os

from dotenv import load_dotenv

load_dotenv()

# Instant alerts: maximum successful sends per recipient per UTC day.
INSTANT_DAILY_LIMIT = int(os.getenv("INSTANT_DAILY_LIMIT", "3"))

# Digest alerts: skip an alert that was already sent within this window.
DIGEST_MIN_INTERVAL_HOURS = {
    "daily": 20,
    "weekly": 6 * 24,
}

# Digest alerts: how far back to look for new tournaments.
DIGEST_LOOKBACK_HOURS = {
    "daily": 24,
    "weekly": 7 * 24,
}

# Radius used when an alert has coordinates but no explicit radius.
DEFAULT_ALERT_RADIUS_MILES = float(os.getenv("ALERT_DEFAULT_RADIUS_MILES", "50"))

EARTH_RADIUS_MILES = 3959

# Maximum tournaments rendered in one digest before the "+N more" block.
DIGEST_MAX_ENTRIES = 10

# Maximum active alerts a single email address may hold.
MAX_ACTIVE_ALERTS_PER_EMAIL = 5

# Verification links expire after this many days.
VERIFICATION_TOKEN_MAX_AGE_DAYS = 7

CONSENT_SOURCES = ["list", "city", "filters", "empty"]
