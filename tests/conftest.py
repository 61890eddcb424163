# tests/conftest.py
# Shared pytest fixtures: tiny synthetic data.gov.sg payloads, a fake HTTP
# session and a controllable clock. No network access.

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest
import requests

from mcp_tools_hawker.core.config import Settings
from mcp_tools_hawker.core.schemas import HawkerCentre
from mcp_tools_hawker.mcp.registry import ToolDispatcher, build_registry
from mcp_tools_hawker.services.data_gov_sg import OpenDataGateway

REPO_ROOT = Path(__file__).resolve().parents[1]
FAKE_SERVER = Path(__file__).resolve().parent / "fake_mcp_server.py"

DOWNLOAD_URL = "https://s3.example.com/hawker-centres.geojson"


def _feature(name: str, lat: float, lon: float, **props: Any) -> Dict[str, Any]:
    properties = {"NAME": name}
    properties.update(props)
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": properties,
    }


def make_geojson() -> Dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            _feature(
                "Place A",
                1.2834,
                103.8607,
                ADDRESSBLOCKHOUSENUMBER="1",
                ADDRESSSTREETNAME="Bayfront Avenue",
                ADDRESSPOSTALCODE="018971",
                DESCRIPTION="Open-air food centre by the bay",
                STATUS="Existing",
                NUMBER_OF_COOKED_FOOD_STALLS=42,
                PHOTOURL="https://example.com/place-a.jpg",
            ),
            _feature(
                "Place B",
                1.2803,
                103.8504,
                ADDRESSBLOCKHOUSENUMBER="18",
                ADDRESSSTREETNAME="Raffles Quay",
                ADDRESSPOSTALCODE="048582",
                STATUS="Existing",
                NUMBER_OF_COOKED_FOOD_STALLS="56",
            ),
            # missing optional properties
            _feature("Far Away Market", 1.4400, 103.8000),
        ],
    }


def make_closures() -> Dict[str, Any]:
    return {
        "result": {
            "records": [
                {
                    "name": "Place B",
                    "quarter": "Q1",
                    "closure_dates": "10/02/2025 - 13/02/2025",
                    "reason": "Cleaning",
                },
                {"name": "Some Other Centre", "quarter": "Q2", "closure_dates": "01/04/2025 - 30/06/2025"},
            ]
        }
    }


def make_response(payload: Any, status: int = 200) -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Server Error")
    else:
        resp.raise_for_status.return_value = None
    return resp


class FakeDataGovSg:
    """Duck-typed `requests.Session` that answers the three data.gov.sg urls."""

    def __init__(self) -> None:
        self.geojson: Dict[str, Any] = make_geojson()
        self.closures: Dict[str, Any] = make_closures()
        self.fail: bool = False
        self.status: int = 200
        self.calls: List[Dict[str, Any]] = []

    def urls(self) -> List[str]:
        return [c["url"] for c in self.calls]

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None,
            timeout: Optional[float] = None) -> Mock:
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.fail:
            raise requests.ConnectionError("network unreachable")
        if self.status >= 400:
            return make_response({}, status=self.status)
        if url.endswith("/poll-download"):
            return make_response({"code": 0, "data": {"url": DOWNLOAD_URL}})
        if url == DOWNLOAD_URL:
            return make_response(self.geojson)
        if "datastore_search" in url:
            return make_response(self.closures)
        return make_response({}, status=404)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    return Settings(centres_api_key="test-key")


@pytest.fixture
def fake_http() -> FakeDataGovSg:
    return FakeDataGovSg()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway(settings, fake_http, clock) -> OpenDataGateway:
    return OpenDataGateway(settings=settings, session=fake_http, clock=clock)


@pytest.fixture
def dispatcher(gateway) -> ToolDispatcher:
    return ToolDispatcher(build_registry(gateway))


@pytest.fixture
def place_a() -> HawkerCentre:
    return HawkerCentre(name="Place A", lat=1.2834, lon=103.8607)


@pytest.fixture
def place_b() -> HawkerCentre:
    return HawkerCentre(name="Place B", lat=1.2803, lon=103.8504)


@pytest.fixture
def fake_server_command() -> List[str]:
    return [sys.executable, str(FAKE_SERVER)]


@pytest.fixture
def real_server_command() -> List[str]:
    return [sys.executable, str(REPO_ROOT / "run_mcp_server.py"), "--transport", "stdio"]
