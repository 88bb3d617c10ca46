"""Admission policies deciding which deduplicated candidates reach persistence.

Freshly discovered on-chain pairs legitimately carry zero market data, so
they go through NewPairAdmission. StrictAdmission is for enrichment-aware
sources that already report market cap and volume.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from src.parsers.discovery_types import CandidatePair, DiscoverySource


class AdmissionPolicy(Protocol):
    def __call__(self, candidate: CandidatePair) -> bool: ...


def has_identity_fields(candidate: CandidatePair) -> bool:
    return bool(
        candidate.contract_address.strip()
        and candidate.symbol.strip()
        and candidate.name.strip()
    )


@dataclass(frozen=True)
class NewPairAdmission:
    def __call__(self, candidate: CandidatePair) -> bool:
        return has_identity_fields(candidate)


@dataclass(frozen=True)
class StrictAdmission:
    min_market_cap: Decimal
    min_volume_24h: Decimal

    def __call__(self, candidate: CandidatePair) -> bool:
        return (
            candidate.market_cap >= self.min_market_cap
            and candidate.volume_24h >= self.min_volume_24h
            and has_identity_fields(candidate)
        )


def admission_for_source(
    source: DiscoverySource,
    *,
    min_market_cap: float | Decimal,
    min_volume_24h: float | Decimal,
) -> AdmissionPolicy:
    if source == DiscoverySource.ONCHAIN:
        return NewPairAdmission()
    return StrictAdmission(
        min_market_cap=Decimal(str(min_market_cap)),
        min_volume_24h=Decimal(str(min_volume_24h)),
    )


def apply_admission(
    candidates: list[CandidatePair], policy: AdmissionPolicy
) -> list[CandidatePair]:
    return [c for c in candidates if policy(c)]
