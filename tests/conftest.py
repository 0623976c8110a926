import os
import random
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from dexcatalog.core.catalog_client import CatalogClient
from dexcatalog.infrastructure.cache.caching_service import InMemoryCacheService
from dexcatalog.infrastructure.config import settings
from dexcatalog.infrastructure.http.catalog_http_client import CatalogHttpClient
from dexcatalog.infrastructure.resilience.api_retry import RetryingTransport
from dexcatalog.infrastructure.resilience.request_queue import RequestQueue

BASE_URL = "https://catalog.test/api/v2"

STAT_NAMES = ("hp", "attack", "defense", "special-attack", "special-defense", "speed")


def make_payload(
    entity_id: int,
    name: str,
    stats: Tuple[int, ...] = (45, 49, 49, 65, 65, 45),
    types: Tuple[str, ...] = ("grass", "poison"),
    abilities: Tuple[str, ...] = ("overgrow",),
    **extra: Any,
) -> Dict[str, Any]:
    """Builds an upstream-shaped entity payload."""
    payload = {
        "id": entity_id,
        "name": name,
        "height": 7,
        "weight": 69,
        "base_experience": 64,
        "types": [{"slot": i + 1, "type": {"name": t, "url": f"{BASE_URL}/type/{t}/"}} for i, t in enumerate(types)],
        "abilities": [{"ability": {"name": a, "url": f"{BASE_URL}/ability/{a}/"}, "is_hidden": False, "slot": 1} for a in abilities],
        "stats": [{"base_stat": v, "effort": 0, "stat": {"name": STAT_NAMES[i % 6]}} for i, v in enumerate(stats)],
        "sprites": {
            "front_default": f"https://img.test/{entity_id}.png",
            "other": {"official-artwork": {"front_default": f"https://img.test/art/{entity_id}.png"}},
        },
        "cries": {"latest": f"https://cries.test/{entity_id}.ogg"},
    }
    payload.update(extra)
    return payload


class FakeCatalog:
    """In-memory stand-in for the upstream catalog, served through httpx.MockTransport."""

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.failures: Dict[str, List[int]] = {}
        self.calls: List[str] = []

    def add(self, path: str, body: Any) -> None:
        self.routes[path.strip("/")] = body

    def add_entity(self, payload: Dict[str, Any]) -> None:
        self.add(f"pokemon/{payload['id']}", payload)
        self.add(f"pokemon/{payload['name']}", payload)

    def fail(self, path: str, statuses: List[int]) -> None:
        """Answers the next len(statuses) calls to `path` with those status codes."""
        self.failures[path.strip("/")] = list(statuses)

    def count(self, path: str) -> int:
        return self.calls.count(path.strip("/"))

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        prefix = httpx.URL(BASE_URL).path
        if path.startswith(prefix):
            path = path[len(prefix):]
        path = path.strip("/")
        self.calls.append(path)

        pending = self.failures.get(path)
        if pending:
            return httpx.Response(pending.pop(0))
        if path not in self.routes:
            return httpx.Response(404, json={"detail": "Not found."})
        body = self.routes[path]
        if isinstance(body, bytes):
            return httpx.Response(200, content=body, headers={"Content-Type": "application/json"})
        return httpx.Response(200, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class SleepRecorder:
    """Awaitable replacement for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    catalog = FakeCatalog()
    for payload in (
        make_payload(1, "bulbasaur"),
        make_payload(4, "charmander", stats=(39, 52, 43, 60, 50, 65), types=("fire",), abilities=("blaze",)),
        make_payload(5, "charmeleon", stats=(58, 64, 58, 80, 65, 80), types=("fire",), abilities=("blaze",)),
        make_payload(6, "charizard", stats=(78, 84, 78, 109, 85, 100), types=("fire", "flying"), abilities=("blaze",)),
        make_payload(25, "pikachu", stats=(35, 55, 40, 50, 50, 90), types=("electric",), abilities=("static",)),
        make_payload(150, "mewtwo", stats=(106, 110, 90, 154, 90, 130), types=("psychic",), abilities=("pressure",)),
    ):
        catalog.add_entity(payload)
    catalog.add("pokemon", {
        "count": 7,
        "next": None,
        "previous": None,
        "results": [
            {"name": n, "url": f"{BASE_URL}/pokemon/{i}/"}
            for i, n in ((1, "bulbasaur"), (4, "charmander"), (5, "charmeleon"), (6, "charizard"),
                         (25, "pikachu"), (150, "mewtwo"), (800, "chargone"))
        ],
    })
    catalog.add("type/fire", {
        "name": "fire",
        "pokemon": [{"slot": 1, "pokemon": {"name": n, "url": ""}} for n in ("charmander", "charmeleon", "charizard")],
    })
    catalog.add("type/electric", {
        "name": "electric",
        "pokemon": [{"slot": 1, "pokemon": {"name": "pikachu", "url": ""}}],
    })
    return catalog


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def http_client(fake_catalog: FakeCatalog) -> CatalogHttpClient:
    return CatalogHttpClient(base_url=BASE_URL, client=httpx.AsyncClient(transport=fake_catalog.transport()))


@pytest.fixture
def catalog_client(http_client: CatalogHttpClient, sleep_recorder: SleepRecorder) -> CatalogClient:
    """A fully wired client whose sleeps are recorded instead of awaited."""
    transport = RetryingTransport(http_client, sleep=sleep_recorder)
    return CatalogClient(
        transport=transport,
        cache_service=InMemoryCacheService(),
        request_queue=RequestQueue(min_interval_s=0.1, sleep=sleep_recorder),
        rng=random.Random(1234),
    )


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keeps tests independent of the developer's config files and environment."""
    for key in list(os.environ):
        if key.startswith(settings.ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    settings.reset_configuration()
    settings.clear_test_config()
    yield
    settings.reset_configuration()
    settings.clear_test_config()
