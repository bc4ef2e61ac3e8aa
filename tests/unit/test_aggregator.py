"""
Unit Tests for the Chain Aggregator

Run with:
    pytest tests/unit/test_aggregator.py -v
"""

from core.aggregator import (
    chain_summary,
    expiry_label,
    get_expiry_options,
    group_by_expiry,
    top_instruments_for_candles,
)
from core.symbols import parse_option_symbol
from core.schemas import NormalizedRecord


def make_record(symbol, open_interest=None, **fields):
    sym = parse_option_symbol(symbol)
    return NormalizedRecord(
        symbol=symbol,
        asset=sym.asset,
        option_type=sym.option_type,
        strike=sym.strike,
        expiry_date=sym.expiry_date,
        expiry_ms=sym.expiry_ms,
        expiry_raw=sym.expiry_raw,
        open_interest=open_interest,
        **fields,
    )


# ============================================
# Grouping
# ============================================

class TestGroupByExpiry:
    """Tests for group_by_expiry"""

    def test_keys_iterate_ascending(self):
        records = [
            make_record("C-BTC-95000-280325"),
            make_record("C-BTC-95000-200225"),
            make_record("P-BTC-95000-270625"),
            make_record("P-BTC-90000-200225"),
        ]

        grouped = group_by_expiry(records)
        keys = list(grouped)

        assert keys == sorted(keys)
        assert len(keys) == 3

    def test_groups_keep_input_order(self):
        """Verify grouping is stable (no strike sorting here)"""
        records = [
            make_record("C-BTC-99000-200225"),
            make_record("C-BTC-91000-200225"),
            make_record("P-BTC-95000-200225"),
        ]

        grouped = group_by_expiry(records)
        (group,) = grouped.values()

        assert [r.strike for r in group] == [99000, 91000, 95000]

    def test_union_equals_input(self):
        """Verify no record is lost or duplicated"""
        records = [make_record(f"C-ETH-{2000 + i * 100}-{d}") for i, d in enumerate(
            ["200225", "280325", "200225", "270625", "280325"]
        )]

        grouped = group_by_expiry(records)
        flattened = [r for group in grouped.values() for r in group]

        assert len(flattened) == len(records)
        assert sorted(r.symbol for r in flattened) == sorted(r.symbol for r in records)

    def test_empty_input(self):
        assert group_by_expiry([]) == {}


# ============================================
# Top-N Selection
# ============================================

class TestTopInstrumentsForCandles:
    """Tests for top_instruments_for_candles"""

    def build(self):
        return [
            make_record("C-BTC-90000-200225", 5),
            make_record("P-BTC-90000-200225", 100),
            make_record("C-BTC-91000-200225", 50),
            make_record("C-BTC-92000-200225", None),
            make_record("C-BTC-93000-200225", 50),
            make_record("C-BTC-94000-200225", 7),
            make_record("C-BTC-95000-200225", 1),
            make_record("C-BTC-96000-200225", 30),
        ]

    def test_returns_at_most_n_of_requested_type_sorted_desc(self):
        top = top_instruments_for_candles(self.build(), "call", 5)

        assert len(top) == 5
        assert all(r.option_type == "call" for r in top)
        ois = [r.open_interest or 0 for r in top]
        assert ois == sorted(ois, reverse=True)

    def test_ties_keep_input_order(self):
        top = top_instruments_for_candles(self.build(), "call", 2)

        assert [r.strike for r in top] == [91000, 93000]

    def test_missing_open_interest_ranks_as_zero(self):
        top = top_instruments_for_candles(self.build(), "call", 10)

        assert top[-1].strike == 92000

    def test_idempotent_on_own_output(self):
        top = top_instruments_for_candles(self.build(), "call", 5)

        again = top_instruments_for_candles(top, "call", 10)

        assert [r.symbol for r in again] == [r.symbol for r in top]

    def test_non_positive_n_returns_empty(self):
        assert top_instruments_for_candles(self.build(), "put", 0) == []

    def test_does_not_mutate_input(self):
        records = self.build()
        before = [r.symbol for r in records]

        top_instruments_for_candles(records, "call", 3)

        assert [r.symbol for r in records] == before


# ============================================
# Expiry Options & Summary
# ============================================

class TestExpiryOptions:
    """Tests for get_expiry_options and expiry_label"""

    def test_distinct_sorted_ascending(self):
        records = [
            make_record("C-BTC-95000-280325"),
            make_record("P-BTC-95000-200225"),
            make_record("C-BTC-99000-280325"),
        ]

        options = get_expiry_options(records)

        assert [o.expiry_date for o in options] == ["2025-02-20", "2025-03-28"]
        assert options[0].expiry_raw == "200225"
        assert options[0].display_label == "2025-02-20"
        assert options[0].expiry_ms < options[1].expiry_ms

    def test_expiry_label(self):
        assert expiry_label(1740038400000) == "2025-02-20"


class TestChainSummary:
    """Tests for chain_summary"""

    def test_counts_and_spot(self):
        records = [
            make_record("C-BTC-95000-200225", spot_price=96000.0),
            make_record("P-BTC-95000-200225", spot_price=96001.0),
            make_record("C-BTC-99000-280325"),
        ]

        summary = chain_summary(records)

        assert summary.strikes == 2
        assert summary.expiries == 2
        assert summary.contracts == 3
        assert summary.spot_price == 96000.0

    def test_empty(self):
        summary = chain_summary([])

        assert summary.contracts == 0
        assert summary.spot_price is None
