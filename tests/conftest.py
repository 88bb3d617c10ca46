"""Shared test fixtures."""

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.db.database import build_engine, build_session_factory, close_db, init_db
from src.parsers.discovery_types import CandidatePair, DiscoverySignal, Network


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh SQLite database file per test.

    A file (not :memory:) so concurrent sessions get their own connections,
    the same way they do against PostgreSQL.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'coins.db'}")
    await init_db(engine)

    yield build_session_factory(engine)

    await close_db(engine)


@pytest.fixture
def make_candidate() -> Callable[..., CandidatePair]:
    def _make(
        address: str = "0xpair",
        *,
        network: Network = Network.BNB,
        symbol: str = "AAA/WBNB",
        name: str = "Token A / Wrapped BNB",
        launch_ts: int = 1_700_000_000,
        source: DiscoverySignal = DiscoverySignal.FACTORY,
        identity: str | None = None,
        **extra,
    ) -> CandidatePair:
        return CandidatePair(
            identity=identity or address,
            symbol=symbol,
            name=name,
            network=network,
            contract_address=address,
            launch_time=datetime.fromtimestamp(launch_ts, tz=timezone.utc),
            source=source,
            **extra,
        )

    return _make
