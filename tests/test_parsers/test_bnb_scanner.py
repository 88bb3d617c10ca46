"""Tests for BnbPairScanner: block range, signal fan-out and failure containment."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from eth_abi import encode

from src.parsers.bnb.constants import (
    ADD_LIQUIDITY_ETH_TOPIC,
    ADD_LIQUIDITY_TOPIC,
    PAIR_CREATED_TOPIC,
    TRANSFER_TOPIC,
    bnb_chain_config,
)
from src.parsers.bnb.decoder import ADD_LIQUIDITY_ETH_TYPES
from src.parsers.bnb.models import EvmLog, ExtendedTokenInfo, TokenInfo
from src.parsers.bnb.scanner import BnbPairScanner, compute_block_range
from src.parsers.discovery_types import DiscoverySignal, Network
from src.parsers.exceptions import AdapterUnreachableError, RpcTimeoutError

CHAIN = bnb_chain_config()
PAIR = "0x" + "33" * 20
LIQ_TOKEN = "0x" + "44" * 20
TRANSFER_TOKEN = "0x" + "55" * 20


def _log(data: bytes, topics: list[str], *, address: str, block: int) -> EvmLog:
    return EvmLog(
        address=address,
        topics=topics,
        data=data,
        block_number=block,
        transaction_hash="0x" + f"{block:064x}",
    )


FACTORY_LOG = _log(
    encode(["address", "address", "address"], ["0x" + "11" * 20, "0x" + "22" * 20, PAIR]),
    [PAIR_CREATED_TOPIC],
    address=CHAIN.factory_address,
    block=9_990,
)
LIQUIDITY_LOG = _log(
    encode(ADD_LIQUIDITY_ETH_TYPES, [LIQ_TOKEN, 1, 2, 3, "0x" + "66" * 20, 4]),
    [ADD_LIQUIDITY_ETH_TOPIC],
    address=CHAIN.router_addresses[0],
    block=9_995,
)
TRANSFER_LOG = _log(
    encode(["uint256"], [250_000 * 10**18]),
    [TRANSFER_TOPIC, "0x" + "0" * 24 + "77" * 20, "0x" + "0" * 24 + "88" * 20],
    address=TRANSFER_TOKEN,
    block=9_980,
)


def _client(latest_block: int = 10_000) -> AsyncMock:
    client = AsyncMock()
    client.get_block_number = AsyncMock(return_value=latest_block)

    async def get_logs(*, from_block, to_block, topics, address=None):
        topic = topics[0]
        if topic == PAIR_CREATED_TOPIC:
            return [FACTORY_LOG]
        if topic == ADD_LIQUIDITY_ETH_TOPIC and address == CHAIN.router_addresses[0]:
            return [LIQUIDITY_LOG]
        if topic == TRANSFER_TOPIC:
            return [TRANSFER_LOG]
        return []

    client.get_logs = AsyncMock(side_effect=get_logs)
    client.get_token_info = AsyncMock(
        side_effect=lambda a: TokenInfo(address=a, name="Tok", symbol="TOK")
    )
    client.get_extended_token_info = AsyncMock(
        side_effect=lambda a: ExtendedTokenInfo(
            address=a, name="Meme", symbol="MEME", decimals=18, total_supply=Decimal(10**9)
        )
    )
    client.get_block_timestamp = AsyncMock(side_effect=lambda n: 1_700_000_000 + n)
    return client


class TestBlockRange:
    def test_thirty_minute_window(self) -> None:
        assert CHAIN.lookback_blocks == 600
        assert compute_block_range(10_000, CHAIN) == (9_400, 10_000)

    def test_clamped_at_genesis(self) -> None:
        assert compute_block_range(100, CHAIN) == (0, 100)

    def test_custom_lookback(self) -> None:
        chain = bnb_chain_config(lookback_minutes=10)
        assert compute_block_range(1_000, chain) == (800, 1_000)


class TestScan:
    @pytest.mark.asyncio
    async def test_all_signals_merged_newest_first(self) -> None:
        client = _client()
        result = await BnbPairScanner(client, CHAIN).scan()

        assert result.success is True
        assert result.network == Network.BNB
        assert [c.contract_address for c in result.data] == [LIQ_TOKEN, PAIR, TRANSFER_TOKEN]
        assert [c.source for c in result.data] == [
            DiscoverySignal.LIQUIDITY,
            DiscoverySignal.FACTORY,
            DiscoverySignal.TRANSFER,
        ]

    @pytest.mark.asyncio
    async def test_all_queries_share_block_range(self) -> None:
        client = _client()
        await BnbPairScanner(client, CHAIN).scan()

        ranges = {
            (call.kwargs["from_block"], call.kwargs["to_block"])
            for call in client.get_logs.await_args_list
        }
        assert ranges == {(9_400, 10_000)}
        # factory + 2 routers x 2 liquidity topics + transfer
        assert client.get_logs.await_count == 6
        liquidity_topics = {
            call.kwargs["topics"][0]
            for call in client.get_logs.await_args_list
            if call.kwargs.get("address") in CHAIN.router_addresses
        }
        assert liquidity_topics == {ADD_LIQUIDITY_ETH_TOPIC, ADD_LIQUIDITY_TOPIC}

    @pytest.mark.asyncio
    async def test_failing_liquidity_signal_is_contained(self) -> None:
        client = _client()
        scanner = BnbPairScanner(client, CHAIN)
        scanner._decoder.decode_liquidity_log = AsyncMock(side_effect=RuntimeError("decoder crashed"))

        result = await scanner.scan()

        assert result.success is True
        addresses = {c.contract_address for c in result.data}
        assert addresses == {PAIR, TRANSFER_TOKEN}

    @pytest.mark.asyncio
    async def test_failing_log_query_is_contained(self) -> None:
        client = _client()
        base_get_logs = client.get_logs.side_effect

        async def flaky(**kwargs):
            if kwargs["topics"][0] == TRANSFER_TOPIC:
                raise RpcTimeoutError("eth_getLogs timed out")
            return await base_get_logs(**kwargs)

        client.get_logs = AsyncMock(side_effect=flaky)
        result = await BnbPairScanner(client, CHAIN).scan()

        assert result.success is True
        assert {c.contract_address for c in result.data} == {PAIR, LIQ_TOKEN}

    @pytest.mark.asyncio
    async def test_unreachable_endpoint_fails_scan(self) -> None:
        client = _client()
        client.get_block_number = AsyncMock(side_effect=AdapterUnreachableError("refused"))

        result = await BnbPairScanner(client, CHAIN).scan()

        assert result.success is False
        assert result.data == []
        assert "refused" in result.error
        client.get_logs.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_token_across_signals_kept_once(self) -> None:
        client = _client()
        duplicate = _log(
            encode(["uint256"], [300_000 * 10**18]),
            [TRANSFER_TOPIC, "0x" + "0" * 24 + "77" * 20, "0x" + "0" * 24 + "88" * 20],
            address=LIQ_TOKEN,
            block=9_999,
        )

        async def get_logs(*, from_block, to_block, topics, address=None):
            if topics[0] == TRANSFER_TOPIC:
                return [duplicate]
            if topics[0] == ADD_LIQUIDITY_ETH_TOPIC and address == CHAIN.router_addresses[0]:
                return [LIQUIDITY_LOG]
            return []

        client.get_logs = AsyncMock(side_effect=get_logs)
        result = await BnbPairScanner(client, CHAIN).scan()

        assert [c.contract_address for c in result.data] == [LIQ_TOKEN]
