from __future__ import annotations

import json

import httpx
import pytest

from chain_providers import BALANCE_OF_SELECTOR, ChainQueryError, RPCChainProvider, get_provider
from chains import SUPPORTED_CHAINS

ADDRESS = "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_native_balance_uses_eth_get_balance():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0xde0b6b3a7640000"})

    async with _client(handler) as client:
        provider = get_provider(SUPPORTED_CHAINS["ethereum"], client)
        assert await provider.get_native_balance(ADDRESS) == 10**18

    assert seen[0]["method"] == "eth_getBalance"
    assert seen[0]["params"] == [ADDRESS, "latest"]


@pytest.mark.asyncio
async def test_token_balance_encodes_balance_of_call():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": hex(2_500_000)})

    async with _client(handler) as client:
        provider = RPCChainProvider(SUPPORTED_CHAINS["ethereum"], client)
        assert await provider.get_token_balance(ADDRESS, USDC) == 2_500_000

    call, block = seen[0]["params"]
    assert seen[0]["method"] == "eth_call"
    assert block == "latest"
    assert call["to"] == USDC
    assert call["data"] == BALANCE_OF_SELECTOR + "0" * 24 + ADDRESS[2:]
    assert len(call["data"]) == 2 + 8 + 64


@pytest.mark.asyncio
async def test_empty_result_reads_as_zero():
    def handler(request):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x"})

    async with _client(handler) as client:
        provider = RPCChainProvider(SUPPORTED_CHAINS["base"], client)
        assert await provider.get_token_balance(ADDRESS, USDC) == 0


@pytest.mark.asyncio
async def test_falls_back_to_next_endpoint():
    chain = SUPPORTED_CHAINS["ethereum"]
    first, second = chain.rpc_urls[:2]
    hits = []

    def handler(request: httpx.Request) -> httpx.Response:
        hits.append(str(request.url))
        if str(request.url).rstrip("/") == first.rstrip("/"):
            return httpx.Response(502)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x1"})

    async with _client(handler) as client:
        assert await RPCChainProvider(chain, client).get_native_balance(ADDRESS) == 1

    assert len(hits) == 2
    assert hits[1].rstrip("/") == second.rstrip("/")


@pytest.mark.asyncio
async def test_rpc_error_object_raises_after_all_endpoints():
    def handler(request):
        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}}
        )

    async with _client(handler) as client:
        provider = RPCChainProvider(SUPPORTED_CHAINS["sepolia"], client)
        with pytest.raises(ChainQueryError, match="header not found"):
            await provider.get_native_balance(ADDRESS)


@pytest.mark.asyncio
async def test_transport_failure_propagates():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        provider = RPCChainProvider(SUPPORTED_CHAINS["base-sepolia"], client)
        with pytest.raises(httpx.ConnectError):
            await provider.get_native_balance(ADDRESS)


@pytest.mark.asyncio
async def test_non_hex_result_is_rejected():
    def handler(request):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": 42})

    async with _client(handler) as client:
        provider = RPCChainProvider(SUPPORTED_CHAINS["arbitrum"], client)
        with pytest.raises(ChainQueryError):
            await provider.get_native_balance(ADDRESS)
