from loguru import logger

from src.parsers.discovery_types import CandidatePair


def dedupe_and_sort(candidates: list[CandidatePair]) -> list[CandidatePair]:
    """One record per (contract_address, network), newest first.

    First occurrence in input order wins; fields are never merged across
    duplicates. The sort is stable, so equal launch times keep input order.
    """
    seen: set[tuple[str, str]] = set()
    unique: list[CandidatePair] = []
    for candidate in candidates:
        key = (candidate.contract_address, candidate.network.value)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)

    dropped = len(candidates) - len(unique)
    if dropped:
        logger.debug(f"[DEDUP] Dropped {dropped} duplicate candidates")

    return sorted(unique, key=lambda c: c.launch_time.timestamp(), reverse=True)
