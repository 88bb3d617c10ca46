"""Tests for admission policies."""

from decimal import Decimal

from src.parsers.admission import (
    NewPairAdmission,
    StrictAdmission,
    admission_for_source,
    apply_admission,
)
from src.parsers.discovery_types import DiscoverySource


class TestNewPairAdmission:
    def test_zero_market_data_admitted(self, make_candidate) -> None:
        candidate = make_candidate()
        assert candidate.market_cap == 0
        assert NewPairAdmission()(candidate) is True

    def test_blank_symbol_rejected(self, make_candidate) -> None:
        assert NewPairAdmission()(make_candidate(symbol="  ")) is False

    def test_blank_address_rejected(self, make_candidate) -> None:
        assert NewPairAdmission()(make_candidate("", identity="x")) is False


class TestStrictAdmission:
    policy = StrictAdmission(min_market_cap=Decimal(10_000), min_volume_24h=Decimal(1_000))

    def test_thresholds_are_inclusive(self, make_candidate) -> None:
        candidate = make_candidate(market_cap=Decimal(10_000), volume_24h=Decimal(1_000))
        assert self.policy(candidate) is True

    def test_low_market_cap_rejected(self, make_candidate) -> None:
        candidate = make_candidate(market_cap=Decimal(9_999), volume_24h=Decimal(5_000))
        assert self.policy(candidate) is False

    def test_low_volume_rejected(self, make_candidate) -> None:
        candidate = make_candidate(market_cap=Decimal(50_000), volume_24h=Decimal(999))
        assert self.policy(candidate) is False

    def test_fresh_pair_rejected(self, make_candidate) -> None:
        assert self.policy(make_candidate()) is False


def test_policy_selected_by_source() -> None:
    onchain = admission_for_source(
        DiscoverySource.ONCHAIN, min_market_cap=10_000, min_volume_24h=1_000
    )
    aggregator = admission_for_source(
        DiscoverySource.AGGREGATOR, min_market_cap=10_000.0, min_volume_24h=1_000.0
    )
    assert isinstance(onchain, NewPairAdmission)
    assert aggregator == StrictAdmission(Decimal("10000.0"), Decimal("1000.0"))


def test_apply_admission_keeps_order(make_candidate) -> None:
    candidates = [
        make_candidate("0x1"),
        make_candidate("0x2", name=""),
        make_candidate("0x3"),
    ]
    admitted = apply_admission(candidates, NewPairAdmission())
    assert [c.contract_address for c in admitted] == ["0x1", "0x3"]
