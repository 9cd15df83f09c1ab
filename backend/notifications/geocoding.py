"""
Mapbox Geocoding API client.

Resolves a subscriber's free-text location (postcode, town) to coordinates
and a coordinate back to a postcode. Falls back to None on any failure so
alert creation is never blocked.
"""

import os
from typing import Optional
from urllib.parse import quote

import requests
from pydantic import BaseModel

from notifications.error_logger import log_notification_error

MAPBOX_GEOCODING_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"
REQUEST_TIMEOUT_SECONDS = 10


class GeocodeResult(BaseModel):
    latitude: float
    longitude: float
    postcode: Optional[str] = None
    place_name: Optional[str] = None


def _get_mapbox_token() -> Optional[str]:
    return os.getenv("MAPBOX_ACCESS_TOKEN")


def _postcode_from_feature(feature: dict) -> Optional[str]:
    if "postcode" in feature.get("place_type", []):
        return feature.get("text")
    for item in feature.get("context", []):
        if str(item.get("id", "")).startswith("postcode"):
            return item.get("text")
    return None


def _query(path: str, params: dict) -> list:
    response = requests.get(
        f"{MAPBOX_GEOCODING_URL}/{path}.json",
        params=params,
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json().get("features", [])


def forward_geocode(query: str) -> Optional[GeocodeResult]:
    """
    Geocode a UK location string.

    Returns:
        GeocodeResult, or None if the token is missing, nothing matched, or the request failed
    """
    token = _get_mapbox_token()
    if not token or not query.strip():
        return None

    try:
        features = _query(
            quote(query.strip()),
            {"access_token": token, "country": "gb", "limit": 1},
        )
    except requests.RequestException as e:
        log_notification_error("geocoding", str(e), {"query": query})
        return None

    if not features:
        return None

    feature = features[0]
    # Mapbox returns [longitude, latitude]
    try:
        longitude, latitude = (float(c) for c in feature.get("center") or [])
    except (TypeError, ValueError):
        log_notification_error(
            "geocoding", f"Feature has no usable center: {feature.get('center')!r}", {"query": query}
        )
        return None
    return GeocodeResult(
        latitude=latitude,
        longitude=longitude,
        postcode=_postcode_from_feature(feature),
        place_name=feature.get("place_name"),
    )


def reverse_geocode(latitude: float, longitude: float) -> Optional[str]:
    """Postcode nearest to a coordinate, or None."""
    token = _get_mapbox_token()
    if not token:
        return None

    try:
        features = _query(
            f"{longitude},{latitude}",
            {"access_token": token, "types": "postcode", "limit": 1},
        )
    except requests.RequestException as e:
        log_notification_error(
            "geocoding", str(e), {"latitude": latitude, "longitude": longitude}
        )
        return None

    if not features:
        return None
    return _postcode_from_feature(features[0])
