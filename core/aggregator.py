"""
Chain Aggregator

Grouping, ranking and distinct-expiry helpers over NormalizedRecord lists.
None of these functions mutate their input.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List

from core.schemas import ChainSummary, ExpiryOption, NormalizedRecord


def group_by_expiry(records: Iterable[NormalizedRecord]) -> Dict[int, List[NormalizedRecord]]:
    """
    Group records by expiry_ms.

    Keys iterate in ascending order; each group keeps input order
    (sorting by strike happens in the series builder).
    """
    groups: Dict[int, List[NormalizedRecord]] = {}
    for record in records:
        groups.setdefault(record.expiry_ms, []).append(record)
    return {key: groups[key] for key in sorted(groups)}


def top_instruments_for_candles(
    records: Iterable[NormalizedRecord],
    option_type: str,
    top_n: int
) -> List[NormalizedRecord]:
    """
    Return the top-N records of one option type by open interest (descending).

    Missing open interest counts as 0. Ties keep their input order.

    Example:
        >>> top_instruments_for_candles(records, "call", 5)
    """
    if top_n <= 0:
        return []
    matching = [r for r in records if r.option_type == option_type]
    matching.sort(key=lambda r: r.open_interest or 0, reverse=True)
    return matching[:top_n]


def expiry_label(timestamp_ms: int) -> str:
    """Format a millisecond timestamp as a YYYY-MM-DD (UTC) label."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def get_expiry_options(records: Iterable[NormalizedRecord]) -> List[ExpiryOption]:
    """
    Distinct expiries, first seen per expiry_ms, sorted ascending.
    """
    seen: Dict[int, ExpiryOption] = {}
    for record in records:
        if record.expiry_ms not in seen:
            seen[record.expiry_ms] = ExpiryOption(
                expiry_ms=record.expiry_ms,
                expiry_date=record.expiry_date,
                expiry_raw=record.expiry_raw,
                display_label=record.expiry_date,
            )
    return [seen[key] for key in sorted(seen)]


def chain_summary(records: List[NormalizedRecord]) -> ChainSummary:
    """Distinct strikes/expiries, contract count and the first record's spot price."""
    return ChainSummary(
        strikes=len({r.strike for r in records}),
        expiries=len({r.expiry_date for r in records}),
        contracts=len(records),
        spot_price=records[0].spot_price if records else None,
    )
