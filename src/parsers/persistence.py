"""Persistence gate — maps CandidatePair records to the ``coins`` table.

Every insert is preceded by an existence check on (contract_address, network);
existing rows are skipped silently, so re-running a discovery cycle over
unchanged data writes nothing.
"""

from collections.abc import Callable

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.coin import Coin
from src.parsers.discovery_types import CandidatePair, Network


def _sanitize(val: str) -> str:
    """Strip null bytes that PostgreSQL rejects."""
    return val.replace("\x00", "").strip()


async def get_coin(
    session: AsyncSession, contract_address: str, network: Network | str
) -> Coin | None:
    result = await session.execute(
        select(Coin).where(
            Coin.contract_address == contract_address,
            Coin.network == str(network),
        )
    )
    return result.scalar_one_or_none()


async def insert_coin(session: AsyncSession, candidate: CandidatePair) -> Coin:
    risk = candidate.risk
    coin = Coin(
        identity=candidate.identity,
        contract_address=candidate.contract_address,
        network=candidate.network.value,
        symbol=_sanitize(candidate.symbol),
        name=_sanitize(candidate.name),
        source=candidate.source.value,
        market_cap=candidate.market_cap,
        volume_24h=candidate.volume_24h,
        price=candidate.price,
        price_change_24h=candidate.price_change_24h,
        launch_time=candidate.launch_time,
        verified=candidate.verified,
        total_supply=candidate.total_supply,
        liquidity=candidate.liquidity,
        risk_score=risk.score if risk else None,
        risk_factors=list(risk.factors) if risk else None,
        dexscreener_url=candidate.dexscreener_url,
        dextools_url=candidate.dextools_url,
    )
    session.add(coin)
    await session.flush()
    return coin


class CoinRepository:
    """find_existing / insert contract over an async session factory.

    Each candidate is written in its own transaction so one failed insert
    never rolls back its siblings.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_existing(self, contract_address: str, network: Network | str) -> Coin | None:
        async with self._session_factory() as session:
            return await get_coin(session, contract_address, network)

    async def insert(self, candidate: CandidatePair) -> Coin:
        async with self._session_factory() as session:
            coin = await insert_coin(session, candidate)
            await session.commit()
            return coin

    async def save_new_coins(self, candidates: list[CandidatePair]) -> int:
        """Insert candidates not yet stored. Returns the number of rows written."""
        inserted = 0
        for candidate in candidates:
            try:
                existing = await self.find_existing(candidate.contract_address, candidate.network)
                if existing is not None:
                    continue
                await self.insert(candidate)
                inserted += 1
                logger.info(f"[PERSIST] New coin saved: {candidate.symbol} ({candidate.network})")
            except SQLAlchemyError as e:
                logger.error(f"[PERSIST] Error saving coin {candidate.symbol}: {e}")
        return inserted
