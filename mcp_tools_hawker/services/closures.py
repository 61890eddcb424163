from __future__ import annotations

import logging
from typing import List

from ..core.schemas import ClosureRecord, HawkerNameArgs
from .data_gov_sg import OpenDataGateway

logger = logging.getLogger("hawker-mcp")


def find_closures(gateway: OpenDataGateway, hawker_name: str) -> List[ClosureRecord]:
    """Closure records whose name contains `hawker_name` (case-insensitive)."""
    needle = hawker_name.lower()
    return [c for c in gateway.get_closures() if needle in c.name.lower()]


def closures_text(gateway: OpenDataGateway, args: HawkerNameArgs) -> str:
    """Handler for `check_hawker_closures`."""
    name = args.hawker_name
    logger.info("Checking closures for: %s", name)

    closures = find_closures(gateway, name)
    logger.info("Found %d closure records for %s", len(closures), name)

    if not closures:
        return f'No scheduled closures found for "{name}". It should be open as per the latest data.'

    entries = [f"• {c.quarter}: {c.closure_dates}\n  Reason: {c.reason}" for c in closures]
    return f'Closure information for "{name}":\n\n' + "\n\n".join(entries)
