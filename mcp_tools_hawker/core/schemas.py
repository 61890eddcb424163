from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HawkerCentre(BaseModel):
    """A hawker centre parsed from the data.gov.sg GeoJSON feed.

    `name` is the lookup key used by the name-based tools; it is not
    guaranteed to be unique.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    address: str = ""
    postal_code: str = ""
    lat: float
    lon: float
    description: str = ""
    status: str = "Unknown"
    stall_count: int = 0
    photo_url: str = ""


class ClosureRecord(BaseModel):
    """A scheduled closure (cleaning / repairs) for a hawker centre."""
    model_config = ConfigDict(frozen=True)

    name: str = ""
    quarter: str = ""
    closure_dates: str = ""
    reason: str = "Scheduled closure"


class RankedHawker(BaseModel):
    """A hawker centre plus its distance from the query point."""
    hawker: HawkerCentre
    distance_m: float


# ---------------------------------------------------------------------------
# Tool arguments
# ---------------------------------------------------------------------------

def _require_number(value: Any) -> Any:
    # bool is an int subclass; JSON true/false must not pass as a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    return value


class NearbyHawkersArgs(BaseModel):
    """Arguments of `get_nearby_hawkers`."""
    model_config = ConfigDict(extra="ignore")

    latitude: float = Field(..., description="User's latitude coordinate")
    longitude: float = Field(..., description="User's longitude coordinate")
    radius: float = Field(default=2000, ge=0, description="Search radius in meters (default: 2000)")
    limit: int = Field(default=10, ge=0, description="Maximum number of results (default: 10)")

    @field_validator("latitude", "longitude", "radius", "limit", mode="before")
    @classmethod
    def _numbers_only(cls, v: Any) -> Any:
        return _require_number(v)


class HawkerNameArgs(BaseModel):
    """Arguments of the name-based tools (`check_hawker_closures`, `get_hawker_details`)."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    hawker_name: str = Field(..., alias="hawkerName", description="Name of the Hawker centre")

    @field_validator("hawker_name", mode="before")
    @classmethod
    def _string_only(cls, v: Any) -> Any:
        if not isinstance(v, str):
            raise ValueError("must be a string")
        return v
