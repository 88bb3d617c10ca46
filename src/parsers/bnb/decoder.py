"""Decode BNB Smart Chain logs into candidate pairs.

Three signals, each turned into CandidatePair records:

  factory    PairCreated from the factory. Payload width varies by factory
             version, so decoding goes through FACTORY_LAYOUTS:
               128 bytes  (token0, token1, pair, uint256), then (token0, token1, pair)
                96 bytes  (token0, token1, pair)
                64 bytes  (token0, token1), pair recovered from the tx receipt
               anything else is dropped
  liquidity  AddLiquidityETH / AddLiquidity from the routers
  transfer   large Transfer logs (secondary, low-confidence heuristic)

Every public ``decode_*_log`` method contains its own failures: a bad log
returns None and never affects sibling logs.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from eth_abi import decode as abi_decode
from loguru import logger

from src.parsers.bnb.client import BnbClient
from src.parsers.bnb.constants import ZERO_ADDRESS, EvmChainConfig
from src.parsers.bnb.models import EvmLog
from src.parsers.discovery_types import CandidatePair, DiscoverySignal, RiskAssessment
from src.parsers.exceptions import DecodeError, MetadataLookupError

WORD = 32

LIQUIDITY_RISK_SCORE = 50
TRANSFER_RISK_SCORE = 60

ADD_LIQUIDITY_ETH_TYPES = ["address", "uint256", "uint256", "uint256", "address", "uint256"]
ADD_LIQUIDITY_TYPES = [
    "address",
    "address",
    "uint256",
    "uint256",
    "uint256",
    "uint256",
    "address",
    "uint256",
]


@dataclass(frozen=True)
class FactoryLayout:
    name: str
    types: tuple[str, ...]

    @property
    def width(self) -> int:
        return WORD * len(self.types)

    @property
    def has_pair(self) -> bool:
        return len(self.types) >= 3


LAYOUT_WITH_SEQUENCE = FactoryLayout("token0,token1,pair,uint256", ("address", "address", "address", "uint256"))
LAYOUT_WITH_PAIR = FactoryLayout("token0,token1,pair", ("address", "address", "address"))
LAYOUT_TOKENS_ONLY = FactoryLayout("token0,token1", ("address", "address"))

# Payload width -> layouts to try, in order
FACTORY_LAYOUTS: dict[int, tuple[FactoryLayout, ...]] = {
    128: (LAYOUT_WITH_SEQUENCE, LAYOUT_WITH_PAIR),
    96: (LAYOUT_WITH_PAIR,),
    64: (LAYOUT_TOKENS_ONLY,),
}


@dataclass(frozen=True)
class FactoryAddresses:
    token0: str
    token1: str
    pair: str | None  # None when the layout carries no pair (64-byte payload)
    layout: str


def decode_factory_payload(data: bytes) -> FactoryAddresses:
    """Decode a PairCreated payload using the width→layout table.

    Raises DecodeError for an unknown width or when every candidate layout fails.
    """
    layouts = FACTORY_LAYOUTS.get(len(data))
    if not layouts:
        raise DecodeError(f"unknown factory payload width {len(data)}")

    last_error: Exception | None = None
    for layout in layouts:
        try:
            values = abi_decode(list(layout.types), data[: layout.width])
        except Exception as e:
            logger.debug(f"[BNB] Layout {layout.name} failed on {len(data)}-byte payload: {e}")
            last_error = e
            continue
        pair = str(values[2]).lower() if layout.has_pair else None
        return FactoryAddresses(
            token0=str(values[0]).lower(),
            token1=str(values[1]).lower(),
            pair=pair,
            layout=layout.name,
        )
    raise DecodeError(f"no layout matched {len(data)}-byte factory payload") from last_error


def select_pair_from_receipt(log_addresses: list[str], factory_address: str) -> str | None:
    """First receipt log address that is not the factory itself."""
    factory = factory_address.lower()
    for address in log_addresses:
        if address and address.lower() != factory:
            return address.lower()
    return None


def extract_liquidity_token(
    log: EvmLog, chain: EvmChainConfig
) -> str | None:
    """Non-native token of an AddLiquidityETH / AddLiquidity payload.

    Returns None for AddLiquidity between two non-native tokens.
    """
    if log.topic0 == chain.add_liquidity_eth_topic.lower():
        values = abi_decode(ADD_LIQUIDITY_ETH_TYPES, log.data)
        return str(values[0]).lower()
    if log.topic0 == chain.add_liquidity_topic.lower():
        values = abi_decode(ADD_LIQUIDITY_TYPES, log.data)
        token_a, token_b = str(values[0]).lower(), str(values[1]).lower()
        native = chain.wrapped_native_address.lower()
        if token_a == native:
            return token_b
        if token_b == native:
            return token_a
        return None
    raise DecodeError(f"not a liquidity topic: {log.topic0}")


def _topic_address(topic: str) -> str:
    return "0x" + topic[-40:].lower()


def decode_transfer(log: EvmLog) -> tuple[str, str, int]:
    """(from, to, amount) of a Transfer log.

    Standard ERC-20 encodes from/to as indexed topics; a non-indexed
    96-byte payload is accepted as well.
    """
    if len(log.topics) >= 3 and len(log.data) >= WORD:
        (amount,) = abi_decode(["uint256"], log.data[:WORD])
        return _topic_address(log.topics[1]), _topic_address(log.topics[2]), int(amount)
    if len(log.data) == 3 * WORD:
        sender, receiver, amount = abi_decode(["address", "address", "uint256"], log.data)
        return str(sender).lower(), str(receiver).lower(), int(amount)
    raise DecodeError(f"unrecognized Transfer shape: {len(log.topics)} topics, {len(log.data)} bytes")


def is_large_transfer(sender: str, receiver: str, amount: int, chain: EvmChainConfig) -> bool:
    # Mint (from zero) and burn (to zero) are not trades
    if sender == ZERO_ADDRESS or receiver == ZERO_ADDRESS:
        return False
    scaled = Decimal(amount) / (Decimal(10) ** chain.transfer_decimals)
    return scaled > chain.large_transfer_threshold


def select_large_transfers(logs: list[EvmLog], chain: EvmChainConfig) -> list[EvmLog]:
    """Keep large non-mint/burn transfers among the most recent ``transfer_window`` logs."""
    selected: list[EvmLog] = []
    window = logs[-chain.transfer_window :] if chain.transfer_window > 0 else []
    for log in window:
        try:
            sender, receiver, amount = decode_transfer(log)
        except Exception:
            continue
        if is_large_transfer(sender, receiver, amount, chain):
            selected.append(log)
    return selected


class BnbLogDecoder:
    """Turns raw logs into CandidatePair records, resolving metadata via BnbClient."""

    def __init__(self, client: BnbClient, chain: EvmChainConfig, *, max_concurrency: int = 10) -> None:
        self._client = client
        self._chain = chain
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def decode_all(self, logs: list[EvmLog], signal: DiscoverySignal) -> list[CandidatePair]:
        """Decode a batch concurrently; order of the result follows ``logs``."""
        decode = {
            DiscoverySignal.FACTORY: self.decode_factory_log,
            DiscoverySignal.LIQUIDITY: self.decode_liquidity_log,
            DiscoverySignal.TRANSFER: self.decode_transfer_log,
        }[signal]

        async def _bounded(log: EvmLog) -> CandidatePair | None:
            async with self._semaphore:
                return await decode(log)

        results = await asyncio.gather(*(_bounded(log) for log in logs))
        return [r for r in results if r is not None]

    async def _launch_time(self, log: EvmLog) -> datetime:
        timestamp = await self._client.get_block_timestamp(log.block_number)
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)

    async def _resolve_missing_pair(self, log: EvmLog) -> str | None:
        try:
            addresses = await self._client.get_receipt_log_addresses(log.transaction_hash)
        except Exception as e:
            logger.warning(f"[BNB] Receipt fetch failed for {log.transaction_hash[:14]}: {e}")
            return None
        return select_pair_from_receipt(addresses, self._chain.factory_address)

    async def decode_factory_log(self, log: EvmLog) -> CandidatePair | None:
        try:
            addresses = decode_factory_payload(log.data)
        except DecodeError as e:
            logger.warning(f"[BNB] Factory log {log.transaction_hash[:14]} skipped: {e}")
            return None

        try:
            pair = addresses.pair
            if pair is None:
                pair = await self._resolve_missing_pair(log)
                if pair is None:
                    logger.warning(
                        f"[BNB] Could not determine pair address for 2-param event "
                        f"in {log.transaction_hash[:14]}"
                    )
                    return None

            token0, token1 = await asyncio.gather(
                self._client.get_token_info(addresses.token0),
                self._client.get_token_info(addresses.token1),
            )
            launch_time = await self._launch_time(log)
        except MetadataLookupError as e:
            logger.debug(f"[BNB] Factory pair dropped: {e}")
            return None
        except Exception as e:
            logger.warning(f"[BNB] Failed to decode factory pair log: {e}")
            return None

        return CandidatePair(
            identity=pair,
            symbol=f"{token0.symbol}/{token1.symbol}",
            name=f"{token0.name} / {token1.name}",
            network=self._chain.network,
            contract_address=pair,
            launch_time=launch_time,
            source=DiscoverySignal.FACTORY,
        )

    async def decode_liquidity_log(self, log: EvmLog) -> CandidatePair | None:
        try:
            token = extract_liquidity_token(log, self._chain)
            if token is None:
                return None
            info = await self._client.get_extended_token_info(token)
            launch_time = await self._launch_time(log)
        except MetadataLookupError as e:
            logger.debug(f"[BNB] Liquidity token dropped: {e}")
            return None
        except Exception as e:
            logger.warning(f"[BNB] Failed to decode liquidity log: {e}")
            return None

        return CandidatePair(
            identity=f"{token}-{log.transaction_hash}",
            symbol=info.symbol,
            name=info.name,
            network=self._chain.network,
            contract_address=token,
            launch_time=launch_time,
            source=DiscoverySignal.LIQUIDITY,
            total_supply=info.total_supply,
            liquidity=Decimal(0),
            risk=RiskAssessment(
                score=LIQUIDITY_RISK_SCORE, factors=list(self._chain.liquidity_risk_factors)
            ),
        )

    async def decode_transfer_log(self, log: EvmLog) -> CandidatePair | None:
        token = log.address.lower()
        try:
            info = await self._client.get_extended_token_info(token)
            launch_time = await self._launch_time(log)
        except Exception as e:
            # Low-confidence signal: drop quietly
            logger.debug(f"[BNB] Transfer token {token[:10]} dropped: {e}")
            return None

        return CandidatePair(
            identity=f"{token}-transfer-{log.transaction_hash}",
            symbol=info.symbol,
            name=info.name,
            network=self._chain.network,
            contract_address=token,
            launch_time=launch_time,
            source=DiscoverySignal.TRANSFER,
            total_supply=info.total_supply,
            risk=RiskAssessment(
                score=TRANSFER_RISK_SCORE, factors=list(self._chain.transfer_risk_factors)
            ),
        )
