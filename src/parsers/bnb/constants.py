"""BNB Smart Chain (PancakeSwap) constants for pair discovery."""

from dataclasses import dataclass, field
from decimal import Decimal

from web3 import Web3

from src.parsers.discovery_types import Network

PANCAKESWAP_FACTORY = "0xca143ce32fe78f1f7019d7d551a6402fc5350c73"
PANCAKESWAP_V2_ROUTER = "0x10ed43c718714eb63d5aa57b78b54704e256024e"
PANCAKESWAP_V3_ROUTER = "0x13f4ea83d0bd40e75c8222255bc855a974568dd4"
WBNB = "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

PAIR_CREATED_TOPIC = Web3.to_hex(Web3.keccak(text="PairCreated(address,address,address,uint256)"))
ADD_LIQUIDITY_ETH_TOPIC = Web3.to_hex(
    Web3.keccak(text="AddLiquidityETH(address,uint256,uint256,uint256,address,uint256)")
)
ADD_LIQUIDITY_TOPIC = Web3.to_hex(
    Web3.keccak(
        text="AddLiquidity(address,address,uint256,uint256,uint256,uint256,address,uint256)"
    )
)
TRANSFER_TOPIC = Web3.to_hex(Web3.keccak(text="Transfer(address,address,uint256)"))

BSC_BLOCK_TIME_SEC = 3

# Read-only subset of the ERC-20 interface used for metadata lookups
ERC20_METADATA_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "totalSupply",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


@dataclass(frozen=True)
class EvmChainConfig:
    """Immutable per-chain parameters injected into the EVM client, decoder and scanner.

    Addresses are stored lower case; comparisons are always case-insensitive.
    """

    network: Network
    factory_address: str
    router_addresses: tuple[str, ...]
    wrapped_native_address: str
    block_time_sec: float
    lookback_sec: int = 30 * 60
    pair_created_topic: str = PAIR_CREATED_TOPIC
    add_liquidity_eth_topic: str = ADD_LIQUIDITY_ETH_TOPIC
    add_liquidity_topic: str = ADD_LIQUIDITY_TOPIC
    transfer_topic: str = TRANSFER_TOPIC
    # Large-transfer heuristic: only the most recent N logs, amount in 18-decimal units
    transfer_window: int = 100
    large_transfer_threshold: Decimal = Decimal(100_000)
    transfer_decimals: int = 18
    liquidity_risk_factors: tuple[str, ...] = field(default=("New token",))
    transfer_risk_factors: tuple[str, ...] = field(
        default=("New token", "Large transfer detected")
    )

    @property
    def lookback_blocks(self) -> int:
        return int(self.lookback_sec // self.block_time_sec)


def bnb_chain_config(*, lookback_minutes: int = 30) -> EvmChainConfig:
    return EvmChainConfig(
        network=Network.BNB,
        factory_address=PANCAKESWAP_FACTORY,
        router_addresses=(PANCAKESWAP_V2_ROUTER, PANCAKESWAP_V3_ROUTER),
        wrapped_native_address=WBNB,
        block_time_sec=BSC_BLOCK_TIME_SEC,
        lookback_sec=lookback_minutes * 60,
    )
