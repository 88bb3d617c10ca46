"""Sui DEX packages and event types scanned for new pools."""

from dataclasses import dataclass

from src.parsers.discovery_types import Network

CETUS_PACKAGE = "0x1eabed72c53feb3805120a081dc15963c204dc8d091542592abaf7a35689b2fb"
TURBOS_PACKAGE = "0x91bfbc386a41afcfd9b2533058d7e915a1d3829089cc268ff4333d54d6339ca1"
CUSTOM_FACTORY_PACKAGE = "0x886b3ff4623c7a9d101e0470012e0612621fbc67fa4cedddd3b17b273e35a50e"

DEFAULT_EVENT_LIMIT = 50


@dataclass(frozen=True)
class MoveEventSource:
    package_id: str
    event_type: str

    @property
    def fully_qualified(self) -> str:
        return f"{self.package_id}::{self.event_type}"

    @property
    def label(self) -> str:
        return f"{self.package_id[:10]}...::{self.event_type}"


DEFAULT_EVENT_SOURCES: tuple[MoveEventSource, ...] = (
    MoveEventSource(CETUS_PACKAGE, "PoolCreatedEvent"),
    MoveEventSource(CETUS_PACKAGE, "AddLiquidityEvent"),
    MoveEventSource(TURBOS_PACKAGE, "PoolCreated"),
    MoveEventSource(TURBOS_PACKAGE, "LiquidityAdded"),
    MoveEventSource(CUSTOM_FACTORY_PACKAGE, "PairCreated"),
)


@dataclass(frozen=True)
class MoveChainConfig:
    network: Network
    sources: tuple[MoveEventSource, ...]
    event_limit: int = DEFAULT_EVENT_LIMIT
    lookback_sec: int = 30 * 60


def parse_event_sources(raw: list[dict]) -> tuple[MoveEventSource, ...]:
    """Expand ``[{"package_id": "0x..", "events": ["A", "B"]}]`` into flat sources."""
    sources: list[MoveEventSource] = []
    for entry in raw:
        package_id = str(entry["package_id"])
        for event_type in entry.get("events", []):
            sources.append(MoveEventSource(package_id, str(event_type)))
    return tuple(sources)


def sui_chain_config(
    *,
    raw_sources: list[dict] | None = None,
    event_limit: int = DEFAULT_EVENT_LIMIT,
    lookback_minutes: int = 30,
) -> MoveChainConfig:
    sources = parse_event_sources(raw_sources) if raw_sources else DEFAULT_EVENT_SOURCES
    return MoveChainConfig(
        network=Network.SUI,
        sources=sources,
        event_limit=event_limit,
        lookback_sec=lookback_minutes * 60,
    )
