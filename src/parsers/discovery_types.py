"""Types shared by the pair-discovery pipeline.

A CandidatePair is built by a decoder, passed through dedup and admission,
and handed to persistence. It is never mutated after construction.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, Field


class Network(StrEnum):
    BNB = "bnb"
    SUI = "sui"


class DiscoverySignal(StrEnum):
    """Which detection strategy produced a candidate."""

    FACTORY = "factory"
    LIQUIDITY = "liquidity"
    TRANSFER = "transfer"
    MOVE_EVENT = "move_event"


class DiscoverySource(StrEnum):
    """Where a batch of candidates came from — selects the admission policy."""

    ONCHAIN = "onchain"  # Fresh pairs, no market data yet
    AGGREGATOR = "aggregator"  # Enrichment-aware listings (mcap/volume populated)


# DexScreener / DEXTools use their own chain slugs
_DEXSCREENER_CHAIN = {Network.BNB: "bsc", Network.SUI: "sui"}
_DEXTOOLS_CHAIN = {Network.BNB: "bnb", Network.SUI: "sui"}


class RiskAssessment(BaseModel):
    score: int
    factors: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class CandidatePair(BaseModel):
    """A newly observed pair or token, not yet persisted."""

    identity: str
    symbol: str
    name: str
    network: Network
    contract_address: str
    launch_time: datetime
    source: DiscoverySignal

    # Market data is always zero at discovery time; enrichment happens elsewhere
    market_cap: Decimal = Decimal(0)
    volume_24h: Decimal = Decimal(0)
    price: Decimal = Decimal(0)
    price_change_24h: Decimal = Decimal(0)
    verified: bool = False

    total_supply: Decimal | None = None
    liquidity: Decimal | None = None
    risk: RiskAssessment | None = None

    model_config = {"frozen": True}

    @property
    def dexscreener_url(self) -> str:
        return f"https://dexscreener.com/{_DEXSCREENER_CHAIN[self.network]}/{self.contract_address}"

    @property
    def dextools_url(self) -> str:
        return (
            f"https://www.dextools.io/app/en/{_DEXTOOLS_CHAIN[self.network]}"
            f"/pair-explorer/{self.contract_address}"
        )


class ScanResult(BaseModel):
    """Network-level outcome of one scan invocation."""

    network: Network
    success: bool
    data: list[CandidatePair] = Field(default_factory=list)
    error: str | None = None
