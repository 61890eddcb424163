from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DATA_GOV_SG_API_BASE = "https://api-open.data.gov.sg/v1/public/api/datasets"
DATA_GOV_SG_DATASTORE_URL = "https://data.gov.sg/api/action/datastore_search"


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the hawker MCP server.

    Both API keys are optional; data.gov.sg serves anonymous requests with a
    lower rate limit.
    """
    # Hawker centres (GeoJSON via poll-download)
    centres_dataset_id: str = "d_4a086da0a5553be1d89383cd90d07ecd"
    centres_ttl_s: float = 24 * 3600
    centres_timeout_s: float = 30.0
    centres_api_key: Optional[str] = None

    # Scheduled closures (CKAN-style datastore_search)
    closures_resource_id: str = "d_bda4baa634dd1cc7a6c7cad5f19e2d68"
    closures_ttl_s: float = 3600
    closures_timeout_s: float = 30.0
    closures_limit: int = 1000
    closures_api_key: Optional[str] = None

    # Bridge
    request_timeout_s: float = 30.0

    @property
    def centres_poll_url(self) -> str:
        return f"{DATA_GOV_SG_API_BASE}/{self.centres_dataset_id}/poll-download"

    @property
    def closures_url(self) -> str:
        return DATA_GOV_SG_DATASTORE_URL

    @classmethod
    def from_env(cls) -> "Settings":
        api_key = os.getenv("DATA_GOV_SG_API_KEY") or None
        return cls(
            centres_dataset_id=os.getenv("HAWKER_CENTRES_DATASET_ID", cls.centres_dataset_id),
            centres_ttl_s=_env_float("HAWKER_CENTRES_TTL_S", cls.centres_ttl_s),
            centres_timeout_s=_env_float("HAWKER_CENTRES_TIMEOUT_S", cls.centres_timeout_s),
            centres_api_key=api_key,
            closures_resource_id=os.getenv("HAWKER_CLOSURES_RESOURCE_ID", cls.closures_resource_id),
            closures_ttl_s=_env_float("HAWKER_CLOSURES_TTL_S", cls.closures_ttl_s),
            closures_timeout_s=_env_float("HAWKER_CLOSURES_TIMEOUT_S", cls.closures_timeout_s),
            closures_limit=_env_int("HAWKER_CLOSURES_LIMIT", cls.closures_limit),
            closures_api_key=os.getenv("DATA_GOV_SG_CLOSURES_API_KEY") or api_key,
            request_timeout_s=_env_float("MCP_REQUEST_TIMEOUT_S", cls.request_timeout_s),
        )
