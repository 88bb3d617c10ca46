"""Async JSON-RPC client for a Sui fullnode (event queries only)."""

import asyncio
from typing import Any

import httpx
from loguru import logger

from src.parsers.exceptions import AdapterUnreachableError, DiscoveryError, RpcTimeoutError
from src.parsers.rate_limiter import RateLimiter

MAX_RETRIES = 2
RETRY_DELAYS = (1.0, 3.0)


class SuiClient:
    """Event source adapter over one shared httpx.AsyncClient."""

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout: float = 15.0,
        rate_limiter: RateLimiter | None = None,
        max_rps: float = 5.0,
        retry_delays: tuple[float, ...] = RETRY_DELAYS,
    ) -> None:
        self._rpc_url = rpc_url
        self._retry_delays = retry_delays
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self._rate_limiter = rate_limiter or RateLimiter(max_rps)

    async def close(self) -> None:
        await self._client.aclose()

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        for attempt in range(MAX_RETRIES + 1):
            await self._rate_limiter.acquire()
            try:
                resp = await asyncio.wait_for(
                    self._client.post(self._rpc_url, json=payload),
                    timeout=self._timeout,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as e:
                raise RpcTimeoutError(f"{method} timed out after {self._timeout}s") from e
            except httpx.TransportError as e:
                raise AdapterUnreachableError(f"{method} transport error: {e}") from e

            if resp.status_code != 429 or attempt == MAX_RETRIES:
                break
            delay = self._retry_delays[min(attempt, len(self._retry_delays) - 1)]
            logger.debug(f"[SUI] {method} rate limited, retrying in {delay}s")
            await asyncio.sleep(delay)

        if resp.status_code != 200:
            raise DiscoveryError(f"{method} HTTP {resp.status_code}")

        data = resp.json()
        if "error" in data:
            raise DiscoveryError(f"{method} RPC error: {data['error']}")
        return data.get("result")

    async def get_latest_checkpoint(self) -> int:
        """Connectivity probe. Raises AdapterUnreachableError on any failure."""
        try:
            result = await self._rpc("sui_getLatestCheckpointSequenceNumber", [])
            return int(result)
        except AdapterUnreachableError:
            raise
        except Exception as e:
            raise AdapterUnreachableError(f"Sui fullnode unusable: {e}") from e

    async def query_events(self, event_type: str, *, limit: int = 50) -> list[dict]:
        """Most recent ``limit`` events of a fully-qualified Move event type, newest first."""
        result = await self._rpc(
            "suix_queryEvents",
            [{"MoveEventType": event_type}, None, limit, True],
        )
        if not result:
            return []
        events = result.get("data", [])
        logger.debug(f"[SUI] {event_type[-40:]}: {len(events)} raw events")
        return [e for e in events if isinstance(e, dict)]
