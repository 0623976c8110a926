import random

import httpx
import pytest
import yaml

from dexcatalog.domain.events.api_events import ApiCallSucceeded, BatchItemFailed, RequestQueued, RetryScheduled
from dexcatalog.infrastructure.config.settings import set_config_for_testing
from dexcatalog.main import create_catalog_client

from conftest import BASE_URL


@pytest.fixture
def fast_settings():
    set_config_for_testing({
        "catalog.base_url": BASE_URL,
        "queue.min_interval_seconds": 0,
        "retry.base_delay_seconds": 0,
    })


@pytest.mark.asyncio
async def test_browse_search_and_filter_end_to_end(fake_catalog, fast_settings, tmp_path):
    events = []
    fake_catalog.fail("pokemon/pikachu", [502])
    client = create_catalog_client(
        config_file=tmp_path / "absent.yaml",
        http_client=httpx.AsyncClient(transport=fake_catalog.transport()),
        rng=random.Random(0),
        event_handler=events.append,
        configure_logging=False,
    )

    async with client:
        page = await client.list_entities()
        found = await client.search("char")
        pikachu = await client.get_entity("pikachu")
        again = await client.get_entity(25)
        fire = await client.filter_by_category("fire")

    assert page.count == 7
    assert [c.name for c in found] == ["charmander", "charmeleon", "charizard"]
    assert pikachu is again
    assert pikachu.type_color == "#F8D030"
    assert [c.id for c in client.sort(fire, "stat_total", "desc")] == [6, 5, 4]

    assert fake_catalog.count("pokemon/pikachu") == 2
    assert fake_catalog.count("pokemon/25") == 0
    assert any(isinstance(e, RequestQueued) for e in events)
    assert any(isinstance(e, RetryScheduled) for e in events)
    assert any(isinstance(e, ApiCallSucceeded) for e in events)
    assert [e.identifier for e in events if isinstance(e, BatchItemFailed)] == ["chargone"]


@pytest.mark.asyncio
async def test_yaml_configuration_shapes_the_client(fake_catalog, tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump({
        "catalog": {"base_url": BASE_URL, "max_entity_id": 6, "language": "es"},
        "cache": {"ttl_seconds": 30, "max_items": 10},
        "queue": {"min_interval_seconds": 0},
        "retry": {"max_retries": 1, "base_delay_seconds": 0},
    }), encoding="utf-8")

    client = create_catalog_client(
        config_file=config_file,
        http_client=httpx.AsyncClient(transport=fake_catalog.transport()),
        configure_logging=False,
    )

    assert client.max_entity_id == 6
    assert client.language == "es"
    assert client.cache_service.max_items == 10
    assert client.transport.max_retries == 1

    entities = await client.sample_random(6)
    assert sorted(c.id for c in entities) == [1, 4, 5, 6]
    assert fake_catalog.count("pokemon/2") == 2
    await client.aclose()
