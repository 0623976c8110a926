import httpx
import pytest

from dexcatalog.domain.errors import HttpError, NetworkError
from dexcatalog.infrastructure.http.catalog_http_client import CatalogHttpClient

BASE = "https://catalog.test/api/v2"


def make_client(handler) -> CatalogHttpClient:
    return CatalogHttpClient(base_url=BASE + "/", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_build_url_joins_relative_and_keeps_absolute():
    client = CatalogHttpClient(base_url=BASE + "/", client=httpx.AsyncClient())
    assert client.build_url("pokemon/25") == f"{BASE}/pokemon/25"
    assert client.build_url("/type") == f"{BASE}/type"
    assert client.build_url("https://other.test/x") == "https://other.test/x"


@pytest.mark.asyncio
async def test_get_json_decodes_body_and_passes_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"count": 1, "results": []})

    client = make_client(handler)
    assert await client.get_json("pokemon", {"limit": 20, "offset": 0}) == {"count": 1, "results": []}
    assert seen["url"] == f"{BASE}/pokemon?limit=20&offset=0"


@pytest.mark.asyncio
async def test_non_success_status_raises_http_error():
    client = make_client(lambda request: httpx.Response(500))

    with pytest.raises(HttpError) as exc_info:
        await client.get_json("pokemon/1")
    assert exc_info.value.status_code == 500
    assert exc_info.value.url == f"{BASE}/pokemon/1"


@pytest.mark.asyncio
async def test_connection_failure_raises_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError) as exc_info:
        await make_client(handler).get_json("pokemon/1")
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_undecodable_body_raises_network_error():
    client = make_client(lambda request: httpx.Response(200, content=b"<html>"))

    with pytest.raises(NetworkError, match="Invalid JSON"):
        await client.get_json("pokemon/1")


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open():
    injected = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
    await CatalogHttpClient(base_url=BASE, client=injected).aclose()
    assert not injected.is_closed
    await injected.aclose()
