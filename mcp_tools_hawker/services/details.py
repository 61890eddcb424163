from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.schemas import HawkerCentre, HawkerNameArgs
from .data_gov_sg import OpenDataGateway

logger = logging.getLogger("hawker-mcp")


def match_hawker(centres: Iterable[HawkerCentre], hawker_name: str) -> Optional[HawkerCentre]:
    """Exact case-insensitive name match, else the first substring match."""
    needle = hawker_name.lower()
    centres = list(centres)
    exact = next((h for h in centres if h.name.lower() == needle), None)
    if exact is not None:
        return exact
    return next((h for h in centres if needle in h.name.lower()), None)


def details_text(gateway: OpenDataGateway, args: HawkerNameArgs) -> str:
    """Handler for `get_hawker_details`."""
    name = args.hawker_name
    logger.info("Getting details for: %s", name)

    hawker = match_hawker(gateway.get_hawker_centres(), name)
    if hawker is None:
        logger.info("No hawker found matching: %s", name)
        return f'Could not find details for "{name}". Please check the name and try again.'

    text = (
        f"Details for {hawker.name}:\n\n"
        f"Address: {hawker.address}, Singapore {hawker.postal_code}\n"
        f"Status: {hawker.status}\n"
        f"Number of Stalls: {hawker.stall_count} cooked food stalls\n"
        f"Coordinates: {hawker.lat}, {hawker.lon}\n"
    )
    if hawker.description:
        text += f"\nDescription: {hawker.description}\n"
    if hawker.photo_url:
        text += f"\n![{hawker.name}]({hawker.photo_url})"
    return text
