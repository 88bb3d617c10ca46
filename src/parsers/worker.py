"""Monitoring orchestrator — one discovery cycle across all enabled networks.

Per cycle:
1. BNB and Sui scanners run concurrently (each fans out its own strategies)
2. Each network's candidates are deduplicated and ordered newest first
3. The admission policy for the discovery source filters them
4. Survivors go to the persistence gate (existence check before insert)

A network that fails never affects the other one. Nothing here is fatal:
the worst case is fewer candidates discovered this cycle.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings
from src.parsers.admission import AdmissionPolicy, admission_for_source, apply_admission
from src.parsers.bnb.client import BnbClient
from src.parsers.bnb.constants import bnb_chain_config
from src.parsers.bnb.scanner import BnbPairScanner
from src.parsers.dedup import dedupe_and_sort
from src.parsers.discovery_types import CandidatePair, DiscoverySource, Network, ScanResult
from src.parsers.fanout import gather_outcomes
from src.parsers.persistence import CoinRepository
from src.parsers.sui.client import SuiClient
from src.parsers.sui.constants import sui_chain_config
from src.parsers.sui.scanner import SuiPairScanner


class PairScanner(Protocol):
    @property
    def network(self) -> Network: ...

    async def scan(self) -> ScanResult: ...


class CoinSink(Protocol):
    async def save_new_coins(self, candidates: list[CandidatePair]) -> int: ...


@dataclass
class CycleReport:
    network: Network
    scanned: int = 0
    admitted: int = 0
    inserted: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MonitoringWorker:
    def __init__(
        self,
        scanners: list[PairScanner],
        repository: CoinSink,
        *,
        admission: AdmissionPolicy,
        closers: list[Callable] | None = None,
    ) -> None:
        self._scanners = scanners
        self._repository = repository
        self._admission = admission
        self._closers = closers or []

    async def monitor_new_launches(self) -> list[CycleReport]:
        logger.info("[MONITOR] Starting new coin launch monitoring...")
        outcomes = await gather_outcomes(
            [(scanner.network.value, self._monitor_network(scanner)) for scanner in self._scanners],
            log_tag="MONITOR",
        )

        reports: list[CycleReport] = []
        for scanner, outcome in zip(self._scanners, outcomes):
            if outcome.ok:
                reports.append(outcome.value)
            else:
                reports.append(CycleReport(network=scanner.network, error=str(outcome.error)))
        return reports

    async def _monitor_network(self, scanner: PairScanner) -> CycleReport:
        network = scanner.network
        result = await scanner.scan()
        if not result.success:
            logger.error(f"[MONITOR] Error monitoring {network} launches: {result.error}")
            return CycleReport(network=network, error=result.error or "scan failed")

        candidates = dedupe_and_sort([c for c in result.data if c.network == network])
        admitted = apply_admission(candidates, self._admission)
        inserted = await self._repository.save_new_coins(admitted)

        logger.info(
            f"[MONITOR] Processed {len(admitted)} coins for {network} network "
            f"({inserted} new, {len(candidates) - len(admitted)} rejected)"
        )
        return CycleReport(
            network=network,
            scanned=len(candidates),
            admitted=len(admitted),
            inserted=inserted,
        )

    async def close(self) -> None:
        for close in self._closers:
            try:
                await close()
            except Exception as e:
                logger.debug(f"[MONITOR] Close error: {e}")


def create_worker(
    settings: Settings,
    session_factory: Callable[[], AsyncSession],
) -> MonitoringWorker:
    """Wire clients, scanners and persistence from settings."""
    scanners: list[PairScanner] = []
    closers: list[Callable] = []

    if settings.enable_bnb:
        bnb_client = BnbClient(settings.bnb_rpc_url, timeout=settings.rpc_timeout_sec)
        scanners.append(
            BnbPairScanner(
                bnb_client,
                bnb_chain_config(lookback_minutes=settings.scan_lookback_minutes),
            )
        )
        closers.append(bnb_client.close)

    if settings.enable_sui:
        sui_client = SuiClient(
            settings.sui_rpc_url,
            timeout=settings.rpc_timeout_sec,
            max_rps=settings.sui_max_rps,
        )
        scanners.append(
            SuiPairScanner(
                sui_client,
                sui_chain_config(
                    raw_sources=settings.sui_event_sources,
                    event_limit=settings.sui_event_limit,
                    lookback_minutes=settings.scan_lookback_minutes,
                ),
            )
        )
        closers.append(sui_client.close)

    admission = admission_for_source(
        DiscoverySource.ONCHAIN,
        min_market_cap=settings.min_market_cap,
        min_volume_24h=settings.min_volume_24h,
    )
    return MonitoringWorker(
        scanners,
        CoinRepository(session_factory),
        admission=admission,
        closers=closers,
    )
