"""Async web3 client for BNB Smart Chain — logs, blocks, receipts and ERC-20 metadata.

Every RPC call is bounded by ``timeout`` at this boundary. A timed-out call raises
RpcTimeoutError and is handled upstream exactly like any other failed call.
"""

import asyncio
from collections import OrderedDict
from collections.abc import Awaitable
from decimal import Decimal
from typing import Any, TypeVar

from hexbytes import HexBytes
from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.middleware import ExtraDataToPOAMiddleware

from src.parsers.bnb.constants import ERC20_METADATA_ABI
from src.parsers.bnb.models import EvmLog, ExtendedTokenInfo, TokenInfo
from src.parsers.exceptions import (
    AdapterUnreachableError,
    MetadataLookupError,
    RpcTimeoutError,
)

T = TypeVar("T")

# A scan touches at most one lookback window of blocks (600 on BSC)
BLOCK_CACHE_SIZE = 2048


def _to_hex(value: Any) -> str:
    if isinstance(value, str):
        return value.lower() if value.startswith("0x") else f"0x{value.lower()}"
    return Web3.to_hex(value).lower()


def _to_log(raw: Any) -> EvmLog:
    """Normalize a web3 log (AttributeDict with HexBytes) or plain JSON-RPC dict."""
    block_number = raw.get("blockNumber")
    if isinstance(block_number, str):
        block_number = int(block_number, 16)
    log_index = raw.get("logIndex") or 0
    if isinstance(log_index, str):
        log_index = int(log_index, 16)
    return EvmLog(
        address=str(raw["address"]).lower(),
        topics=[_to_hex(t) for t in raw.get("topics", [])],
        data=bytes(HexBytes(raw.get("data") or b"")),
        block_number=block_number or 0,
        transaction_hash=_to_hex(raw.get("transactionHash") or ""),
        log_index=log_index,
    )


class BnbClient:
    """Event source adapter over one shared AsyncWeb3 provider.

    Safe for concurrent read-only use by all strategies of one scan.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout: float = 15.0,
        w3: AsyncWeb3 | None = None,
        block_cache_size: int = BLOCK_CACHE_SIZE,
    ) -> None:
        if w3 is None:
            w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
            # BSC block extraData exceeds 32 bytes (PoSA validators)
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self._w3 = w3
        self._timeout = timeout
        self._block_timestamps: OrderedDict[int, int] = OrderedDict()
        self._block_cache_size = block_cache_size

    async def _call(self, label: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise RpcTimeoutError(f"{label} timed out after {self._timeout}s") from e

    async def get_block_number(self) -> int:
        """Current chain height. Any failure here means the endpoint is unusable."""
        try:
            return int(await self._call("eth_blockNumber", self._w3.eth.get_block_number()))
        except RpcTimeoutError:
            raise
        except Exception as e:
            raise AdapterUnreachableError(f"eth_blockNumber failed: {e}") from e

    async def get_logs(
        self,
        *,
        from_block: int,
        to_block: int,
        topics: list[str],
        address: str | None = None,
    ) -> list[EvmLog]:
        params: dict[str, Any] = {
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": topics,
        }
        if address:
            params["address"] = Web3.to_checksum_address(address)
        raw_logs = await self._call("eth_getLogs", self._w3.eth.get_logs(params))
        return [_to_log(raw) for raw in raw_logs]

    async def get_block_timestamp(self, block_number: int) -> int:
        cached = self._block_timestamps.get(block_number)
        if cached is not None:
            self._block_timestamps.move_to_end(block_number)
            return cached
        block = await self._call("eth_getBlockByNumber", self._w3.eth.get_block(block_number))
        timestamp = int(block["timestamp"])
        self._block_timestamps[block_number] = timestamp
        while len(self._block_timestamps) > self._block_cache_size:
            self._block_timestamps.popitem(last=False)
        return timestamp

    async def get_receipt_log_addresses(self, tx_hash: str) -> list[str]:
        """Emitting addresses of every log in a transaction receipt, lower case, in order."""
        receipt = await self._call(
            "eth_getTransactionReceipt", self._w3.eth.get_transaction_receipt(tx_hash)
        )
        return [str(log["address"]).lower() for log in receipt["logs"]]

    async def _read(self, address: str, function: str) -> Any:
        contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=ERC20_METADATA_ABI
        )
        return await self._call(
            f"{function}() on {address[:10]}",
            getattr(contract.functions, function)().call(),
        )

    async def get_token_info(self, address: str) -> TokenInfo:
        """name() + symbol(). Raises MetadataLookupError if either fails or is empty."""
        results = await asyncio.gather(
            self._read(address, "name"),
            self._read(address, "symbol"),
            return_exceptions=True,
        )
        name, symbol = results
        if isinstance(name, BaseException) or isinstance(symbol, BaseException):
            err = name if isinstance(name, BaseException) else symbol
            raise MetadataLookupError(f"metadata lookup failed for {address}: {err}") from err
        if not name or not symbol:
            raise MetadataLookupError(f"empty name/symbol for {address}")
        return TokenInfo(address=address.lower(), name=str(name), symbol=str(symbol))

    async def get_extended_token_info(self, address: str) -> ExtendedTokenInfo:
        """name/symbol/decimals/totalSupply — all four must succeed."""
        results = await asyncio.gather(
            self._read(address, "name"),
            self._read(address, "symbol"),
            self._read(address, "decimals"),
            self._read(address, "totalSupply"),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise MetadataLookupError(
                    f"extended metadata lookup failed for {address}: {result}"
                ) from result
        name, symbol, decimals, total_supply = results
        if not name or not symbol:
            raise MetadataLookupError(f"empty name/symbol for {address}")
        decimals = int(decimals)
        return ExtendedTokenInfo(
            address=address.lower(),
            name=str(name),
            symbol=str(symbol),
            decimals=decimals,
            total_supply=Decimal(int(total_supply)) / (Decimal(10) ** decimals),
        )

    async def close(self) -> None:
        provider = self._w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            try:
                await disconnect()
            except Exception as e:
                logger.debug(f"[BNB] Provider disconnect failed: {e}")
