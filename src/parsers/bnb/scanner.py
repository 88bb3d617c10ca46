"""BNB multi-strategy scanner — factory, liquidity and large-transfer signals in parallel.

All three signals share one block range per invocation. A failing signal
contributes nothing; only an unreachable RPC endpoint fails the scan.
"""

from collections.abc import Awaitable

from loguru import logger

from src.parsers.bnb.client import BnbClient
from src.parsers.bnb.constants import EvmChainConfig
from src.parsers.bnb.decoder import BnbLogDecoder, select_large_transfers
from src.parsers.bnb.models import EvmLog
from src.parsers.dedup import dedupe_and_sort
from src.parsers.discovery_types import CandidatePair, DiscoverySignal, Network, ScanResult
from src.parsers.fanout import flatten_lists, gather_outcomes


def compute_block_range(latest_block: int, chain: EvmChainConfig) -> tuple[int, int]:
    """(from_block, to_block) covering the lookback window ending at ``latest_block``."""
    return max(latest_block - chain.lookback_blocks, 0), latest_block


class BnbPairScanner:
    def __init__(
        self,
        client: BnbClient,
        chain: EvmChainConfig,
        decoder: BnbLogDecoder | None = None,
    ) -> None:
        self._client = client
        self._chain = chain
        self._decoder = decoder or BnbLogDecoder(client, chain)

    @property
    def network(self) -> Network:
        return self._chain.network

    async def scan(self) -> ScanResult:
        try:
            latest_block = await self._client.get_block_number()
        except Exception as e:
            logger.error(f"[BNB] Scanner error, RPC unreachable: {e}")
            return ScanResult(
                network=self.network,
                success=False,
                error=f"Failed to scan BNB network for new pairs: {e}",
            )

        from_block, to_block = compute_block_range(latest_block, self._chain)
        logger.info(f"[BNB] Scanning blocks {from_block} to {to_block}")

        outcomes = await gather_outcomes(
            [
                (DiscoverySignal.FACTORY.value, self._scan_factory(from_block, to_block)),
                (DiscoverySignal.LIQUIDITY.value, self._scan_liquidity(from_block, to_block)),
                (DiscoverySignal.TRANSFER.value, self._scan_transfers(from_block, to_block)),
            ],
            log_tag="BNB",
        )
        for outcome in outcomes:
            if outcome.ok:
                logger.info(f"[BNB] {outcome.label}: {len(outcome.value)} candidates")

        unique = dedupe_and_sort(flatten_lists(outcomes))
        logger.info(f"[BNB] Total unique tokens found: {len(unique)}")
        return ScanResult(network=self.network, success=True, data=unique)

    async def _scan_factory(self, from_block: int, to_block: int) -> list[CandidatePair]:
        logs = await self._client.get_logs(
            address=self._chain.factory_address,
            from_block=from_block,
            to_block=to_block,
            topics=[self._chain.pair_created_topic],
        )
        return await self._decoder.decode_all(logs, DiscoverySignal.FACTORY)

    async def _scan_liquidity(self, from_block: int, to_block: int) -> list[CandidatePair]:
        fetches: list[tuple[str, Awaitable[list[EvmLog]]]] = []
        for router in self._chain.router_addresses:
            for topic in (self._chain.add_liquidity_eth_topic, self._chain.add_liquidity_topic):
                fetches.append(
                    (
                        f"{router[:10]}:{topic[:10]}",
                        self._client.get_logs(
                            address=router,
                            from_block=from_block,
                            to_block=to_block,
                            topics=[topic],
                        ),
                    )
                )
        logs: list[EvmLog] = flatten_lists(await gather_outcomes(fetches, log_tag="BNB"))
        return await self._decoder.decode_all(logs, DiscoverySignal.LIQUIDITY)

    async def _scan_transfers(self, from_block: int, to_block: int) -> list[CandidatePair]:
        logs = await self._client.get_logs(
            from_block=from_block,
            to_block=to_block,
            topics=[self._chain.transfer_topic],
        )
        large = select_large_transfers(logs, self._chain)
        logger.debug(f"[BNB] {len(large)}/{len(logs)} transfers above threshold")
        return await self._decoder.decode_all(large, DiscoverySignal.TRANSFER)
