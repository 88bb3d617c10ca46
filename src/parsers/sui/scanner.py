"""Sui multi-source scanner — one independent query per configured (package, event type)."""

from datetime import datetime, timedelta, timezone

from loguru import logger

from src.parsers.dedup import dedupe_and_sort
from src.parsers.discovery_types import CandidatePair, Network, ScanResult
from src.parsers.fanout import flatten_lists, gather_outcomes
from src.parsers.sui.client import SuiClient
from src.parsers.sui.constants import MoveChainConfig, MoveEventSource
from src.parsers.sui.decoder import decode_events


class SuiPairScanner:
    def __init__(self, client: SuiClient, chain: MoveChainConfig) -> None:
        self._client = client
        self._chain = chain

    @property
    def network(self) -> Network:
        return self._chain.network

    async def scan(self, *, now: datetime | None = None) -> ScanResult:
        try:
            await self._client.get_latest_checkpoint()
        except Exception as e:
            logger.error(f"[SUI] Scanner error, fullnode unreachable: {e}")
            return ScanResult(
                network=self.network,
                success=False,
                error=f"Failed to scan Sui network for new pairs: {e}",
            )

        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=self._chain.lookback_sec)
        logger.info(f"[SUI] Scanning {len(self._chain.sources)} event types since {cutoff:%H:%M:%S}")

        outcomes = await gather_outcomes(
            [
                (source.label, self._scan_source(source, cutoff=cutoff, now=now))
                for source in self._chain.sources
            ],
            log_tag="SUI",
        )
        for outcome in outcomes:
            if outcome.ok:
                logger.info(f"[SUI] {outcome.label}: {len(outcome.value)} events")

        # Sources are concatenated as-is; dedup happens once over the whole set
        unique = dedupe_and_sort(flatten_lists(outcomes))
        logger.info(f"[SUI] Sui tokens found: {len(unique)}")
        return ScanResult(network=self.network, success=True, data=unique)

    async def _scan_source(
        self, source: MoveEventSource, *, cutoff: datetime, now: datetime
    ) -> list[CandidatePair]:
        events = await self._client.query_events(
            source.fully_qualified, limit=self._chain.event_limit
        )
        return decode_events(events, network=self.network, cutoff=cutoff, now=now)
