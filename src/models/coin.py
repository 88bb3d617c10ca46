from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class Coin(Base):
    """A discovered pair/token. One row per (contract_address, network)."""

    __tablename__ = "coins"

    id: Mapped[int] = mapped_column(primary_key=True)
    identity: Mapped[str] = mapped_column(String(300))
    contract_address: Mapped[str] = mapped_column(String(255))
    network: Mapped[str] = mapped_column(String(10))
    symbol: Mapped[str] = mapped_column(String(100))
    name: Mapped[str] = mapped_column(String(255))
    source: Mapped[str | None] = mapped_column(String(20))  # factory | liquidity | transfer | move_event

    # Zero at discovery, filled by market-data enrichment later
    market_cap: Mapped[Decimal] = mapped_column(Numeric, default=0)
    volume_24h: Mapped[Decimal] = mapped_column(Numeric, default=0)
    price: Mapped[Decimal] = mapped_column(Numeric, default=0)
    price_change_24h: Mapped[Decimal] = mapped_column(Numeric, default=0)

    launch_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    total_supply: Mapped[Decimal | None] = mapped_column(Numeric)
    liquidity: Mapped[Decimal | None] = mapped_column(Numeric)
    risk_score: Mapped[int | None] = mapped_column(Integer)
    risk_factors: Mapped[list | None] = mapped_column(JSON)

    dexscreener_url: Mapped[str | None] = mapped_column(String(500))
    dextools_url: Mapped[str | None] = mapped_column(String(500))

    # Consumed by the social-posting pipeline
    is_posted: Mapped[bool] = mapped_column(Boolean, default=False)
    first_seen_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("contract_address", "network", name="uq_coin_address_network"),
        Index("idx_coins_network_launch", "network", "launch_time"),
        Index("idx_coins_is_posted", "is_posted"),
    )
