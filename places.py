import logging
import threading
from typing import Any, List, Optional, Tuple

import requests
from cachetools import TTLCache

from config import settings
from errors import ExternalServiceError

logger = logging.getLogger(__name__)

# OpenTripMap "kinds" per lookup offered to clients
PLACE_KINDS = {
    "accommodations": "accomodations",  # sic, OpenTripMap spelling
    "attractions": "interesting_places",
}
SEARCH_RADIUS_M = 5000


# Responses keyed by query signature; routes run in a threadpool
cache = TTLCache(maxsize=512, ttl=settings.places_cache_ttl_s)
_cache_lock = threading.Lock()


def _cached(key: Tuple) -> Optional[Any]:
    with _cache_lock:
        return cache.get(key)


def _remember(key: Tuple, value: Any):
    with _cache_lock:
        cache[key] = value


def _get(path: str, params: dict):
    if not settings.opentripmap_api_key:
        raise ExternalServiceError("Places lookup is not configured")
    params = {**params, "apikey": settings.opentripmap_api_key}
    try:
        response = requests.get(
            f"{settings.opentripmap_url}/{path}",
            params=params,
            timeout=settings.external_api_timeout_s
        )
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("OpenTripMap %s failed: %s", path, e)
        raise ExternalServiceError("Places service unavailable") from e


def city_coordinates(city_name: str) -> Tuple[float, float]:
    key = ("geoname", city_name.lower())
    cached = _cached(key)
    if cached is not None:
        return cached
    data = _get("geoname", {"name": city_name})
    try:
        coords = (float(data["lat"]), float(data["lon"]))
    except (KeyError, TypeError, ValueError):
        raise ExternalServiceError(f"No coordinates found for {city_name}")
    _remember(key, coords)
    return coords


def nearby_places(city_name: str, kind: str, limit: int = 50) -> List[dict]:
    """Places of ``kind`` around a city, as plain dicts"""
    if kind not in PLACE_KINDS:
        raise ValueError(f"Unknown place kind: {kind}")
    key = ("radius", city_name.lower(), kind, limit)
    cached = _cached(key)
    if cached is not None:
        return cached
    lat, lon = city_coordinates(city_name)
    data = _get("radius", {
        "radius": SEARCH_RADIUS_M,
        "lon": lon,
        "lat": lat,
        "kinds": PLACE_KINDS[kind],
        "limit": limit,
        "rate": 2,
        "format": "json",
    })
    if not isinstance(data, list):
        raise ExternalServiceError("Unexpected response from places service")
    places = [
        {
            "xid": item.get("xid"),
            "name": item.get("name") or "Unnamed place",
            "kinds": item.get("kinds") or "unknown",
            "lat": (item.get("point") or {}).get("lat"),
            "lon": (item.get("point") or {}).get("lon"),
        }
        for item in data if isinstance(item, dict)
    ]
    _remember(key, places)
    return places
