"""Extract candidate pairs from untyped Sui event payloads (``parsedJson``).

Each DEX package emits its own event struct, so field extraction runs
through PAYLOAD_SHAPES, an ordered table of (predicate, extractor). The first
matching shape wins; an event matching none gets labels synthesized from its
transaction digest.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from src.parsers.discovery_types import CandidatePair, DiscoverySignal, Network


@dataclass(frozen=True)
class ExtractedLabels:
    symbol: str
    name: str
    contract_address: str


def type_name(type_tag: str, default: str = "UNK") -> str:
    """Trailing segment of a Move type: ``0xabc::mytoken::MYTOKEN`` -> ``MYTOKEN``."""
    return str(type_tag).split("::")[-1] or default


def _tail(value: str) -> str:
    return str(value)[-8:]


def _extract_token_pair(payload: dict[str, Any], digest: str) -> ExtractedLabels:
    x, y = payload["token_x"], payload["token_y"]
    return ExtractedLabels(
        symbol=f"{x.get('symbol') or 'UNK'}/{y.get('symbol') or 'UNK'}",
        name=f"{x.get('name') or 'Unknown'} / {y.get('name') or 'Unknown'}",
        contract_address=str(payload.get("pair") or digest),
    )


def _extract_coin_type_pair(payload: dict[str, Any], digest: str) -> ExtractedLabels:
    a = type_name(payload["coin_type_a"])
    b = type_name(payload["coin_type_b"])
    return ExtractedLabels(
        symbol=f"{a}/{b}",
        name=f"{a} / {b}",
        contract_address=str(payload.get("pool_id") or digest),
    )


def _extract_coin_type(payload: dict[str, Any], digest: str) -> ExtractedLabels:
    symbol = type_name(payload["coin_type"], default="UNKNOWN")
    return ExtractedLabels(symbol=symbol, name=symbol, contract_address=str(payload["coin_type"]))


def _extract_pool_id(payload: dict[str, Any], digest: str) -> ExtractedLabels:
    pool_id = str(payload["pool_id"])
    return ExtractedLabels(
        symbol=f"POOL_{_tail(pool_id)}",
        name=f"Pool {_tail(pool_id)}",
        contract_address=pool_id,
    )


def _extract_from_digest(digest: str) -> ExtractedLabels:
    return ExtractedLabels(
        symbol=f"TX_{_tail(digest)}",
        name=f"Transaction {_tail(digest)}",
        contract_address=digest,
    )


@dataclass(frozen=True)
class PayloadShape:
    name: str
    matches: Callable[[dict[str, Any]], bool]
    extract: Callable[[dict[str, Any], str], ExtractedLabels]


PAYLOAD_SHAPES: tuple[PayloadShape, ...] = (
    PayloadShape(
        "token_x/token_y",
        lambda p: isinstance(p.get("token_x"), dict) and isinstance(p.get("token_y"), dict),
        _extract_token_pair,
    ),
    PayloadShape(
        "coin_type_a/coin_type_b",
        lambda p: bool(p.get("coin_type_a")) and bool(p.get("coin_type_b")),
        _extract_coin_type_pair,
    ),
    PayloadShape("coin_type", lambda p: bool(p.get("coin_type")), _extract_coin_type),
    PayloadShape("pool_id", lambda p: bool(p.get("pool_id")), _extract_pool_id),
)


def extract_labels(payload: dict[str, Any], digest: str) -> ExtractedLabels:
    for shape in PAYLOAD_SHAPES:
        if shape.matches(payload):
            return shape.extract(payload, digest)
    return _extract_from_digest(digest)


def event_time(event: dict[str, Any], now: datetime) -> datetime:
    """Event timestamp (``timestampMs`` is a decimal string); missing means ``now``."""
    raw = event.get("timestampMs")
    if raw in (None, ""):
        return now
    return datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)


def decode_event(event: dict[str, Any], *, network: Network, now: datetime) -> CandidatePair:
    """Decode one event. Raises on a malformed envelope (missing id/digest)."""
    event_id = event["id"]
    digest = str(event_id["txDigest"])
    sequence = event_id.get("eventSeq", "0")

    payload = event.get("parsedJson")
    if not isinstance(payload, dict):
        payload = {}

    labels = extract_labels(payload, digest)
    # Multiple events in one tx stay distinct via eventSeq
    key = payload.get("pair") or payload.get("pool_id") or digest

    return CandidatePair(
        identity=f"{key}-{sequence}",
        symbol=labels.symbol,
        name=labels.name,
        network=network,
        contract_address=labels.contract_address,
        launch_time=event_time(event, now),
        source=DiscoverySignal.MOVE_EVENT,
    )


def decode_events(
    events: list[dict[str, Any]],
    *,
    network: Network,
    cutoff: datetime,
    now: datetime,
) -> list[CandidatePair]:
    """Decode a batch, skipping events older than ``cutoff`` and events that fail to parse."""
    candidates: list[CandidatePair] = []
    for event in events:
        try:
            if event_time(event, now) < cutoff:
                continue
            candidates.append(decode_event(event, network=network, now=now))
        except Exception as e:
            logger.warning(f"[SUI] Failed to parse event: {type(e).__name__}: {e}")
            continue
    return candidates
