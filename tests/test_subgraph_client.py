import json
import pytest
import respx
from decimal import Decimal
from httpx import Response, TimeoutException, ConnectError

from pricechange.subgraph_client import SubgraphClient, UpstreamError, TokenNotFoundError
from pricechange.models import PricePoint, TokenPrice
from tests.mock_static_config import SUBGRAPH_URL, BUNDLE_ID, SUBGRAPH_TIMEOUT, TOKEN_ADDRESS

# Mark all tests in this file as asyncio
pytestmark = pytest.mark.asyncio

TOKEN_PRICE_RESPONSE = {
    "data": {
        "bundle": {"ethPrice": "3000.5"},
        "token": {"name": "Wrapped Ether", "symbol": "WETH", "derivedETH": "1"},
    }
}

DAY_DATAS_RESPONSE = {
    "data": {
        "tokenDayDatas": [
            {
                "id": f"{TOKEN_ADDRESS}-19000", "date": 1641600000, "priceUSD": "3200.25",
                "totalLiquidityToken": "1000", "totalLiquidityUSD": "3200250", "totalLiquidityETH": "1000",
                "dailyVolumeETH": "50", "dailyVolumeToken": "50", "dailyVolumeUSD": "160012.5",
            },
            {
                "id": f"{TOKEN_ADDRESS}-18999", "date": 1641513600, "priceUSD": "3100",
                "totalLiquidityToken": "990", "totalLiquidityUSD": "3069000", "totalLiquidityETH": "990",
                "dailyVolumeETH": "40", "dailyVolumeToken": "40", "dailyVolumeUSD": "124000",
            },
        ]
    }
}


@pytest.fixture
def subgraph_client():
    return SubgraphClient(url=SUBGRAPH_URL, bundle_id=BUNDLE_ID, timeout=SUBGRAPH_TIMEOUT)


@respx.mock
async def test_fetch_current_price(subgraph_client: SubgraphClient):
    route = respx.post(SUBGRAPH_URL).mock(return_value=Response(200, json=TOKEN_PRICE_RESPONSE))

    async with subgraph_client as client:
        token_price = await client.fetch_current_price(TOKEN_ADDRESS.upper().replace("0X", "0x"), "corr-id-1")

    assert isinstance(token_price, TokenPrice)
    assert token_price.symbol == "WETH"
    assert token_price.derived_eth == Decimal("1")
    assert token_price.price_usd == Decimal("3000.5")

    request = route.calls.last.request
    assert request.headers["X-Correlation-ID"] == "corr-id-1"
    payload = json.loads(request.content)
    assert payload["variables"] == {"bundleId": BUNDLE_ID, "tokenId": TOKEN_ADDRESS}


@respx.mock
async def test_fetch_current_price_unknown_token(subgraph_client: SubgraphClient):
    respx.post(SUBGRAPH_URL).mock(
        return_value=Response(200, json={"data": {"bundle": {"ethPrice": "3000"}, "token": None}})
    )

    async with subgraph_client as client:
        with pytest.raises(TokenNotFoundError):
            await client.fetch_current_price(TOKEN_ADDRESS, "corr-id")


@respx.mock
async def test_fetch_daily_series(subgraph_client: SubgraphClient):
    route = respx.post(SUBGRAPH_URL).mock(return_value=Response(200, json=DAY_DATAS_RESPONSE))

    async with subgraph_client as client:
        series = await client.fetch_daily_series(TOKEN_ADDRESS, 2, "corr-id")

    assert series == [
        PricePoint(timestamp=1641600000, price=Decimal("3200.25")),
        PricePoint(timestamp=1641513600, price=Decimal("3100")),
    ]
    payload = json.loads(route.calls.last.request.content)
    assert payload["variables"] == {"tokenAddress": TOKEN_ADDRESS, "first": 2}


@respx.mock
async def test_fetch_token_day_datas_keeps_volume_fields(subgraph_client: SubgraphClient):
    respx.post(SUBGRAPH_URL).mock(return_value=Response(200, json=DAY_DATAS_RESPONSE))

    async with subgraph_client as client:
        day_datas = await client.fetch_token_day_datas(TOKEN_ADDRESS, 2, "corr-id")

    assert day_datas[0].daily_volume_usd == Decimal("160012.5")
    assert day_datas[1].total_liquidity_eth == Decimal("990")


@respx.mock
async def test_fetch_daily_series_without_history(subgraph_client: SubgraphClient):
    respx.post(SUBGRAPH_URL).mock(return_value=Response(200, json={"data": {"tokenDayDatas": []}}))

    async with subgraph_client as client:
        assert await client.fetch_daily_series(TOKEN_ADDRESS, 7, "corr-id") == []


@respx.mock
async def test_server_error_is_not_retried(subgraph_client: SubgraphClient):
    route = respx.post(SUBGRAPH_URL).mock(return_value=Response(503))

    async with subgraph_client as client:
        with pytest.raises(UpstreamError):
            await client.fetch_daily_series(TOKEN_ADDRESS, 7, "corr-id")

    assert route.call_count == 1


@respx.mock
async def test_timeout_raises_upstream_error(subgraph_client: SubgraphClient):
    respx.post(SUBGRAPH_URL).mock(side_effect=TimeoutException("timed out"))

    async with subgraph_client as client:
        with pytest.raises(UpstreamError, match="timed out"):
            await client.fetch_current_price(TOKEN_ADDRESS, "corr-id")


@respx.mock
async def test_connection_error_raises_upstream_error(subgraph_client: SubgraphClient):
    respx.post(SUBGRAPH_URL).mock(side_effect=ConnectError("connection refused"))

    async with subgraph_client as client:
        with pytest.raises(UpstreamError):
            await client.fetch_current_price(TOKEN_ADDRESS, "corr-id")


@respx.mock
async def test_graphql_errors_raise_upstream_error(subgraph_client: SubgraphClient):
    respx.post(SUBGRAPH_URL).mock(
        return_value=Response(200, json={"errors": [{"message": "indexing error"}]})
    )

    async with subgraph_client as client:
        with pytest.raises(UpstreamError, match="indexing error"):
            await client.fetch_daily_series(TOKEN_ADDRESS, 7, "corr-id")


@respx.mock
async def test_invalid_json_raises_upstream_error(subgraph_client: SubgraphClient):
    respx.post(SUBGRAPH_URL).mock(return_value=Response(200, content=b"<html>bad gateway</html>"))

    async with subgraph_client as client:
        with pytest.raises(UpstreamError):
            await client.fetch_daily_series(TOKEN_ADDRESS, 7, "corr-id")


@respx.mock
async def test_malformed_day_data_raises_upstream_error(subgraph_client: SubgraphClient):
    respx.post(SUBGRAPH_URL).mock(
        return_value=Response(200, json={"data": {"tokenDayDatas": [{"id": "x", "date": "not-a-date"}]}})
    )

    async with subgraph_client as client:
        with pytest.raises(UpstreamError):
            await client.fetch_daily_series(TOKEN_ADDRESS, 7, "corr-id")


@respx.mock
async def test_malformed_bundle_raises_upstream_error(subgraph_client: SubgraphClient):
    respx.post(SUBGRAPH_URL).mock(
        return_value=Response(200, json={"data": {"bundle": "3000", "token": TOKEN_PRICE_RESPONSE["data"]["token"]}})
    )

    async with subgraph_client as client:
        with pytest.raises(UpstreamError):
            await client.fetch_current_price(TOKEN_ADDRESS, "corr-id")
