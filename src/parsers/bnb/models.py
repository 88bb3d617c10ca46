"""Pydantic v2 models for raw BNB Smart Chain RPC data."""

from decimal import Decimal

from pydantic import BaseModel


class EvmLog(BaseModel):
    """One raw log record, normalized away from web3's HexBytes/AttributeDict types.

    ``address`` and ``topics`` are lower-case 0x-hex strings; ``data`` is the raw payload.
    """

    address: str
    topics: list[str]
    data: bytes
    block_number: int
    transaction_hash: str
    log_index: int = 0

    model_config = {"extra": "ignore", "frozen": True}

    @property
    def topic0(self) -> str | None:
        return self.topics[0] if self.topics else None


class TokenInfo(BaseModel):
    """Basic ERC-20 labels (factory signal)."""

    address: str
    name: str
    symbol: str


class ExtendedTokenInfo(TokenInfo):
    """Labels plus supply data (liquidity and transfer signals)."""

    decimals: int
    total_supply: Decimal
