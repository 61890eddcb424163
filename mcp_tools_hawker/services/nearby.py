from __future__ import annotations

import logging
from typing import Iterable, List

from ..core.schemas import HawkerCentre, NearbyHawkersArgs, RankedHawker
from ..utils.geo import haversine_m
from .data_gov_sg import OpenDataGateway

DEFAULT_RADIUS_M = 2000.0
DEFAULT_LIMIT = 10

logger = logging.getLogger("hawker-mcp")


def rank_by_distance(
    lat: float,
    lon: float,
    centres: Iterable[HawkerCentre],
    radius_m: float = DEFAULT_RADIUS_M,
    limit: int = DEFAULT_LIMIT,
) -> List[RankedHawker]:
    """Distance-filter and sort hawker centres around (lat, lon).

    Keeps centres within `radius_m`, nearest first, at most `limit` of them.
    Equal distances keep feed order (`sorted` is stable).
    """
    ranked = [RankedHawker(hawker=h, distance_m=haversine_m(lat, lon, h.lat, h.lon)) for h in centres]
    in_range = [r for r in ranked if r.distance_m <= radius_m]
    in_range.sort(key=lambda r: r.distance_m)
    return in_range[: max(0, int(limit))]


def find_nearby(
    gateway: OpenDataGateway,
    lat: float,
    lon: float,
    radius_m: float = DEFAULT_RADIUS_M,
    limit: int = DEFAULT_LIMIT,
) -> List[RankedHawker]:
    """Hawker centres near (lat, lon), fetched through the gateway cache."""
    return rank_by_distance(lat, lon, gateway.get_hawker_centres(), radius_m=radius_m, limit=limit)


def nearby_hawkers_text(gateway: OpenDataGateway, args: NearbyHawkersArgs) -> str:
    """Handler for `get_nearby_hawkers`."""
    logger.info("Finding hawkers near %s, %s within %sm", args.latitude, args.longitude, args.radius)

    nearby = find_nearby(gateway, args.latitude, args.longitude, radius_m=args.radius, limit=args.limit)
    logger.info("Found %d nearby hawkers", len(nearby))

    if not nearby:
        return f"No Hawker centres found within {args.radius:.0f}m of your location."

    lines = [f"Found {len(nearby)} Hawker centres within {args.radius:.0f}m:", ""]
    for i, r in enumerate(nearby, start=1):
        h = r.hawker
        lines.extend(
            [
                f"{i}. {h.name}",
                f"   Address: {h.address}",
                f"   Distance: {round(r.distance_m)}m away",
                f"   Stalls: {h.stall_count} cooked food stalls",
                f"   Status: {h.status}",
                "",
            ]
        )
    return "\n".join(lines).rstrip()
