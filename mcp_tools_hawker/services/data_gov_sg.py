"""data.gov.sg gateway.

Two independent fetch-and-cache pipelines:

1) hawker centres
   - Two-step fetch: `poll-download` returns a short-lived S3 url, which is
     then downloaded as a GeoJSON FeatureCollection.
   - Cached for 24h by default.

2) scheduled closures
   - Single `datastore_search` call.
   - Cached for 1h by default.

Both are fetched lazily by whichever tool needs them. A failed refresh never
raises: the previous dataset is served if there is one (even when expired),
otherwise an empty list. Tools treat "no data" and "no matches" the same way.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from ..core.cache import CacheSlot, CacheState
from ..core.config import Settings
from ..core.schemas import ClosureRecord, HawkerCentre

# Broken payloads count as a failed fetch, same as HTTP / network errors.
_FETCH_ERRORS = (requests.RequestException, ValueError, KeyError, TypeError, AttributeError)


class OpenDataGateway:
    """Fetches and caches the hawker centre and closure datasets."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.session = session or requests.Session()
        self.log = logger or logging.getLogger("hawker-mcp.gateway")
        self._clock = clock
        self._centres: CacheSlot[List[HawkerCentre]] = CacheSlot(ttl_seconds=self.settings.centres_ttl_s)
        self._closures: CacheSlot[List[ClosureRecord]] = CacheSlot(ttl_seconds=self.settings.closures_ttl_s)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_hawker_centres(self) -> List[HawkerCentre]:
        return self._cached(self._centres, self._fetch_hawker_centres, "hawker centres")

    def get_closures(self) -> List[ClosureRecord]:
        return self._cached(self._closures, self._fetch_closures, "closure records")

    def cache_state(self) -> Dict[str, CacheState]:
        now = self._clock()
        return {"centres": self._centres.state(now), "closures": self._closures.state(now)}

    def invalidate(self) -> None:
        self._centres.clear()
        self._closures.clear()

    # ------------------------------------------------------------------
    # Cache-or-refresh
    # ------------------------------------------------------------------

    def _cached(self, slot: CacheSlot, fetch: Callable[[], list], label: str) -> list:
        now = self._clock()
        if slot.state(now) is CacheState.FRESH:
            self.log.debug("Using cached %s", label)
            return slot.value

        self.log.info("Fetching fresh %s from data.gov.sg ...", label)
        try:
            data = fetch()
        except _FETCH_ERRORS as exc:
            self.log.warning("Error fetching %s: %s", label, exc)
            if slot.value is not None:
                self.log.warning("Serving stale %s (age %.0fs)", label, slot.age(now) or 0.0)
                return slot.value
            return []

        # atomic replace; concurrent refreshes just overwrite each other
        slot.store(data, self._clock())
        self.log.info("Fetched %d %s", len(data), label)
        return data

    def _headers(self, api_key: Optional[str]) -> Dict[str, str]:
        return {"x-api-key": api_key} if api_key else {}

    # ------------------------------------------------------------------
    # Fetchers
    # ------------------------------------------------------------------

    def _fetch_hawker_centres(self) -> List[HawkerCentre]:
        s = self.settings

        r = self.session.get(
            s.centres_poll_url,
            headers=self._headers(s.centres_api_key),
            timeout=s.centres_timeout_s,
        )
        r.raise_for_status()
        download_url = r.json()["data"]["url"]

        r = self.session.get(download_url, timeout=s.centres_timeout_s)
        r.raise_for_status()
        geojson: Dict[str, Any] = r.json()

        return _centres_from_geojson(geojson)

    def _fetch_closures(self) -> List[ClosureRecord]:
        s = self.settings
        params = {"resource_id": s.closures_resource_id, "limit": s.closures_limit}

        r = self.session.get(
            s.closures_url,
            params=params,
            headers=self._headers(s.closures_api_key),
            timeout=s.closures_timeout_s,
        )
        r.raise_for_status()
        data: Dict[str, Any] = r.json()

        return _closures_from_records(data["result"]["records"])


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _centres_from_geojson(geojson: Dict[str, Any]) -> List[HawkerCentre]:
    """Parse features one by one; a broken feature is skipped, not fatal."""
    centres: List[HawkerCentre] = []
    for feature in geojson.get("features") or []:
        if not isinstance(feature, dict):
            continue
        props = feature.get("properties")
        if not isinstance(props, dict):
            props = {}
        geometry = feature.get("geometry")
        coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            continue

        block = _str(props.get("ADDRESSBLOCKHOUSENUMBER"))
        street = _str(props.get("ADDRESSSTREETNAME"))

        try:
            # GeoJSON is [lon, lat]
            lat = float(coords[1])
            lon = float(coords[0])
            if not (math.isfinite(lat) and math.isfinite(lon)):
                continue
            centre = HawkerCentre(
                name=_str(props.get("NAME")),
                address=f"{block} {street}".strip(),
                postal_code=_str(props.get("ADDRESSPOSTALCODE")),
                lat=lat,
                lon=lon,
                description=_str(props.get("DESCRIPTION")),
                status=_str(props.get("STATUS")) or "Unknown",
                stall_count=_safe_int(props.get("NUMBER_OF_COOKED_FOOD_STALLS")),
                photo_url=_str(props.get("PHOTOURL")),
            )
        except (TypeError, ValueError):
            # pydantic.ValidationError is a ValueError
            continue
        centres.append(centre)
    return centres


def _closures_from_records(records: Any) -> List[ClosureRecord]:
    return [_closure_from_record(rec) for rec in records or [] if isinstance(rec, dict)]


def _closure_from_record(rec: Dict[str, Any]) -> ClosureRecord:
    return ClosureRecord(
        name=_str(rec.get("name")),
        quarter=_str(rec.get("quarter")),
        closure_dates=_str(rec.get("closure_dates")),
        reason=_str(rec.get("reason")) or "Scheduled closure",
    )


def _str(v: Any) -> str:
    return "" if v is None else str(v).strip()


def _safe_int(v: Any) -> int:
    try:
        return 0 if v in (None, "") else int(float(v))
    except (TypeError, ValueError):
        return 0
