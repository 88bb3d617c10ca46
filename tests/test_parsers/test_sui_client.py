"""Tests for SuiClient JSON-RPC handling."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.parsers.exceptions import AdapterUnreachableError, DiscoveryError, RpcTimeoutError
from src.parsers.sui.client import SuiClient


def _response(status: int = 200, body: dict | None = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body or {}
    return resp


@pytest.mark.asyncio
async def test_query_events_payload_and_result() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0)
    events = [{"id": {"txDigest": "abc", "eventSeq": "0"}}, "garbage"]
    sui._client.post = AsyncMock(return_value=_response(body={"result": {"data": events}}))

    result = await sui.query_events("0xpkg::pool::PoolCreated", limit=25)

    assert result == [events[0]]
    payload = sui._client.post.await_args.kwargs["json"]
    assert payload["method"] == "suix_queryEvents"
    assert payload["params"] == [{"MoveEventType": "0xpkg::pool::PoolCreated"}, None, 25, True]
    await sui.close()


@pytest.mark.asyncio
async def test_query_events_empty_result() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0)
    sui._client.post = AsyncMock(return_value=_response(body={"result": None}))

    assert await sui.query_events("0xpkg::pool::PoolCreated") == []
    await sui.close()


@pytest.mark.asyncio
async def test_rpc_error_raises() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0)
    sui._client.post = AsyncMock(
        return_value=_response(body={"error": {"code": -32602, "message": "invalid type"}})
    )

    with pytest.raises(DiscoveryError):
        await sui.query_events("0xpkg::pool::PoolCreated")
    await sui.close()


@pytest.mark.asyncio
async def test_http_error_raises() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0)
    sui._client.post = AsyncMock(return_value=_response(status=503))

    with pytest.raises(DiscoveryError):
        await sui.query_events("0xpkg::pool::PoolCreated")
    await sui.close()


@pytest.mark.asyncio
async def test_timeout_maps_to_rpc_timeout() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0)
    sui._client.post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

    with pytest.raises(RpcTimeoutError):
        await sui.query_events("0xpkg::pool::PoolCreated")
    await sui.close()


@pytest.mark.asyncio
async def test_checkpoint_probe() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0)
    sui._client.post = AsyncMock(return_value=_response(body={"result": "123456"}))

    assert await sui.get_latest_checkpoint() == 123456
    await sui.close()


@pytest.mark.asyncio
async def test_checkpoint_probe_connection_refused() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0)
    sui._client.post = AsyncMock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(AdapterUnreachableError):
        await sui.get_latest_checkpoint()
    await sui.close()


@pytest.mark.asyncio
async def test_checkpoint_probe_rpc_error_is_unreachable() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0)
    sui._client.post = AsyncMock(return_value=_response(status=500))

    with pytest.raises(AdapterUnreachableError):
        await sui.get_latest_checkpoint()
    await sui.close()


@pytest.mark.asyncio
async def test_rate_limited_request_is_retried() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0, retry_delays=(0.0,))
    sui._client.post = AsyncMock(
        side_effect=[
            _response(status=429),
            _response(status=429),
            _response(body={"result": {"data": [{"id": {"txDigest": "abc", "eventSeq": "0"}}]}}),
        ]
    )

    result = await sui.query_events("0xpkg::pool::PoolCreated")

    assert len(result) == 1
    assert sui._client.post.await_count == 3
    await sui.close()


@pytest.mark.asyncio
async def test_persistent_rate_limit_gives_up() -> None:
    sui = SuiClient("https://fullnode.example", timeout=1.0, max_rps=0, retry_delays=(0.0,))
    sui._client.post = AsyncMock(return_value=_response(status=429))

    with pytest.raises(DiscoveryError, match="429"):
        await sui.query_events("0xpkg::pool::PoolCreated")
    assert sui._client.post.await_count == 3
    await sui.close()
