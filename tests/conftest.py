import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

# Ensure project root on sys.path so 'aggregator' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from aggregator.main import app  # type: ignore
from aggregator.api import deps  # type: ignore
from aggregator.config import config_from_dict  # type: ignore
from aggregator.errors import UpstreamHTTPError  # type: ignore
from aggregator.services.campaign_aggregator import build_aggregator  # type: ignore
"""Pytest fixtures and fakes.

Upstream HTTP is replaced by ``FakeUpstream``: routes are matched by method,
URL suffix and a subset of query params; each route replays its scripted
responses in order and keeps repeating the last one. An ``Exception`` in the
script is raised instead of returned.
"""

class FakeUpstream:
    def __init__(self):
        self.routes: List[Tuple[str, str, Dict[str, str], List[Any]]] = []
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def on_get(self, url_suffix: str, *responses: Any, params: Optional[Dict[str, Any]] = None):
        self.routes.append(("GET", url_suffix, {k: str(v) for k, v in (params or {}).items()}, list(responses)))

    def on_post(self, url_suffix: str, *responses: Any):
        self.routes.append(("POST", url_suffix, {}, list(responses)))

    def calls_to(self, url_suffix: str, method: str = "GET") -> List[Dict[str, Any]]:
        return [params for m, url, params in self.calls if m == method and url.endswith(url_suffix)]

    def _respond(self, method: str, url: str, params: Dict[str, Any]) -> Any:
        self.calls.append((method, url, dict(params)))
        for route_method, suffix, wanted, responses in self.routes:
            if route_method != method or not url.endswith(suffix):
                continue
            if any(str(params.get(k)) != v for k, v in wanted.items()):
                continue
            response = responses.pop(0) if len(responses) > 1 else responses[0]
            if isinstance(response, Exception):
                raise response
            return response
        raise UpstreamHTTPError(404, "no fake route", url)

    async def get_json(self, url, *, params=None, headers=None):
        return self._respond("GET", url, dict(params or {}))

    async def post_form(self, url, data, *, headers=None):
        return self._respond("POST", url, dict(data))


SNAP_API = "https://adsapi.snapchat.com/v1"
META_API = "https://graph.facebook.com/v19.0"
NEWSBREAK_API = "https://business.newsbreak.com/business-api/v1"

def fixture_config(**overrides):
    data = {
        "accounts": {
            "snap": ["snap-1", {"account_id": "snap-2", "label": "EU"}],
            "meta": [
                {"account_id": "act_100", "label": "BM One", "credential_ref": "bm_one"},
                {"account_id": "200", "label": "BM Two", "credential_ref": "bm_two"},
            ],
            "newsbreak": ["nb-1"],
        },
        "static_tokens": {"bm_one": "meta-token-1", "bm_two": "meta-token-2", "newsbreak": "nb-token"},
        "oauth_clients": {
            "snap": {"client_id": "cid", "client_secret": "secret", "refresh_token": "refresh"},
        },
    }
    data.update(overrides)
    return config_from_dict(data, source="tests")


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture()
def fake_http():
    return FakeUpstream()

@pytest.fixture()
def sleeper():
    return SleepRecorder()

@pytest.fixture()
def aggregator_factory(fake_http, sleeper):
    def _create(config=None):
        return build_aggregator(config or fixture_config(), fake_http, sleep=sleeper)
    return _create

@pytest.fixture()
def run():
    def _run(coro):
        return asyncio.run(coro)
    return _run

@pytest.fixture()
def client(aggregator_factory):
    created = {}

    def _client(config=None):
        aggregator = aggregator_factory(config)
        created["aggregator"] = aggregator
        app.dependency_overrides[deps.get_aggregator] = lambda: aggregator
        return TestClient(app)

    yield _client
    app.dependency_overrides.pop(deps.get_aggregator, None)

# ---------- Upstream script helpers ----------

@pytest.fixture()
def snap_upstream(fake_http):
    """Token exchange plus one page for snap-1 and two pages for snap-2."""
    fake_http.on_post("/login/oauth2/access_token", {"access_token": "snap-access"})
    fake_http.on_get(f"{SNAP_API}/adaccounts/snap-1", {"adaccounts": [{"adaccount": {"id": "snap-1", "name": "Snap US"}}]})
    fake_http.on_get(f"{SNAP_API}/adaccounts/snap-2", {"adaccount": {"id": "snap-2", "name": "Snap EU"}})
    fake_http.on_get(
        f"{SNAP_API}/adaccounts/snap-1/campaigns",
        {"campaigns": [
            {"sub_request_status": "SUCCESS", "campaign": {"id": "s1", "name": "A", "status": "ACTIVE", "daily_budget_micro": 1_000_000}},
            {"sub_request_status": "SUCCESS", "campaign": {"id": "s2", "name": "B", "status": "archived"}},
        ]},
    )
    fake_http.on_get(
        f"{SNAP_API}/adaccounts/snap-2/campaigns",
        {"campaigns": [{"campaign": {"id": "s4", "name": "D", "status": "ACTIVE", "created_at": "2025-01-02T00:00:00Z"}}]},
        params={"cursor": "c2"},
    )
    fake_http.on_get(
        f"{SNAP_API}/adaccounts/snap-2/campaigns",
        {"campaigns": [{"campaign": {"id": "s3", "name": "C", "status": "paused"}}], "paging": {"next_cursor": "c2"}},
    )
    return fake_http
