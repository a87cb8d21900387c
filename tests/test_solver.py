"""Tests for the cutting plan orchestration.

Covers the stock pass, the offcut pass, validation and the plan-level
invariants (mass conservation, per-length bounds, determinism).
"""

from collections import Counter

import pytest

import settings
from cut_selection import CutStrategy, ScrapMinimizingSelector
from errors import InvalidInput, PlanInvariantError
from ledger import DemandLedger, LeftoverPool
from models import CostModel, CutSelection, DemandItem, StockLot
from ordering import StockOrder
from solver import PlanBuilder, optimize_cutting, reuse_leftovers


def stock(*pairs):
    return [StockLot(length=length, quantity=quantity) for length, quantity in pairs]


def demand(*pairs):
    return [DemandItem(length=length, quantity=quantity) for length, quantity in pairs]


def assert_mass_conserved(plan):
    for entry in plan.entries:
        assert sum(entry.cuts) <= entry.source_length
        assert sum(entry.cuts) + entry.leftover == entry.source_length
    cut_total = sum(sum(entry.cuts) for entry in plan.entries)
    assert plan.stock_consumed == cut_total + sum(plan.leftover)


@pytest.fixture
def shop_job():
    """Ten 12m bars against a mixed order."""
    return stock((12000, 10)), demand((5000, 5), (3000, 8), (2000, 6))


# =============================================================================
# Scenarios
# =============================================================================


def test_single_bar_takes_every_piece():
    plan = optimize_cutting(stock((12000, 1)), demand((5000, 1), (3000, 1), (2000, 1)))

    assert len(plan.entries) == 1
    entry = plan.entries[0]
    assert entry.source_length == 12000
    assert entry.cuts == [5000, 3000, 2000]
    assert entry.leftover == 2000
    assert plan.leftover == [2000]
    assert plan.cut_count == 2
    assert plan.weld_count == 0
    assert plan.is_complete


def test_partial_satisfaction_is_reported():
    plan = optimize_cutting(stock((10, 1)), demand((6, 1), (5, 1)))

    assert [entry.cuts for entry in plan.entries] == [[6]]
    assert plan.leftover == [4]
    assert plan.cut_count == 0
    assert plan.unmet_demand == [DemandItem(length=5, quantity=1)]
    assert not plan.is_complete


def test_offcut_is_used_as_stock():
    ledger = DemandLedger(demand((2500, 1)))
    builder = PlanBuilder(ScrapMinimizingSelector(), ledger)

    remaining = reuse_leftovers(builder, LeftoverPool([3000, 800]), StockOrder.ASCENDING, min_length=100)

    assert len(builder.entries) == 1
    entry = builder.entries[0]
    assert entry.source_length == 3000
    assert entry.cuts == [2500]
    assert entry.from_leftover
    assert remaining.to_list() == [800, 500]
    assert ledger.is_empty


def test_short_offcuts_are_not_offered():
    ledger = DemandLedger(demand((2500, 1)))
    builder = PlanBuilder(ScrapMinimizingSelector(), ledger)

    remaining = reuse_leftovers(builder, LeftoverPool([3000]), StockOrder.ASCENDING, min_length=5000)

    assert builder.entries == []
    assert remaining.to_list() == [3000]
    assert ledger.remaining(2500) == 1


def test_weld_complement_cut_from_offcut():
    # The 3mm bar is useless at first; it later supplies the 2mm complement
    # left over from welding a 6 out of the 10mm bar.
    costs = CostModel(alpha=1, beta=1, gamma=0, delta=2)
    plan = optimize_cutting(
        stock((10, 1), (3, 1)),
        demand((6, 2)),
        StockOrder.ASCENDING,
        CutStrategy.WELD_SEARCH,
        costs,
    )

    assert [(e.source_length, e.cuts, e.from_leftover) for e in plan.entries] == [
        (10, [4, 6], False),
        (3, [2], True),
    ]
    assert plan.weld_count == 1
    assert plan.cut_count == 1
    assert plan.leftover == [1]
    assert plan.is_complete
    assert_mass_conserved(plan)


# =============================================================================
# Invariants
# =============================================================================


def test_mass_conservation_dp(shop_job):
    plan = optimize_cutting(*shop_job)
    assert plan.is_complete
    assert_mass_conserved(plan)


def test_mass_conservation_weld_search(shop_job, monkeypatch):
    monkeypatch.setattr(settings, "WELD_SEARCH_BUDGET", 2000)
    plan = optimize_cutting(*shop_job, strategy=CutStrategy.WELD_SEARCH)
    assert_mass_conserved(plan)
    for entry in plan.entries:
        for weld in entry.welds:
            assert weld.segment_length in entry.cuts
            assert weld.complement_length > 0


def test_pieces_never_exceed_demand(shop_job):
    lots, items = shop_job
    plan = optimize_cutting(lots, items, StockOrder.DESCENDING)

    produced = Counter(cut for entry in plan.entries for cut in entry.cuts)
    for item in items:
        assert produced[item.length] == item.quantity
    assert set(produced) == {item.length for item in items}


def test_pieces_bounded_when_stock_is_plenty():
    # One 3 is needed; a bar of 10 must not yield three of them
    plan = optimize_cutting(stock((10, 3)), demand((3, 1)))
    produced = Counter(cut for entry in plan.entries for cut in entry.cuts)
    assert produced[3] == 1
    assert plan.stock_consumed == 10


def test_identical_inputs_identical_plans(shop_job):
    lots, items = shop_job
    first = optimize_cutting(lots, items)
    second = optimize_cutting(lots, items)
    assert first == second


def test_inputs_are_not_modified(shop_job):
    lots, items = shop_job
    optimize_cutting(lots, items)
    assert [(lot.length, lot.quantity) for lot in lots] == [(12000, 10)]
    assert [(item.length, item.quantity) for item in items] == [(5000, 5), (3000, 8), (2000, 6)]


def test_stock_order_is_applied():
    lots, items = stock((5, 1), (10, 1)), demand((5, 1))

    ascending = optimize_cutting(lots, items, StockOrder.ASCENDING)
    descending = optimize_cutting(lots, items, StockOrder.DESCENDING)

    assert [e.source_length for e in ascending.entries] == [5]
    assert sum(ascending.leftover) == 0
    assert [e.source_length for e in descending.entries] == [10]
    assert sum(descending.leftover) == 5


def test_useless_bar_goes_to_leftover():
    plan = optimize_cutting(stock((4, 1), (10, 1)), demand((6, 1)))
    assert [e.source_length for e in plan.entries] == [10]
    assert sorted(plan.leftover) == [4, 4]
    assert plan.stock_consumed == 14


def test_stops_once_demand_is_met():
    plan = optimize_cutting(stock((12000, 10)), demand((5000, 2)))
    assert len(plan.entries) == 1
    assert plan.stock_consumed == 12000


# =============================================================================
# Input handling
# =============================================================================


def test_empty_stock():
    plan = optimize_cutting([], demand((5000, 2)))
    assert plan.entries == []
    assert plan.leftover == []
    assert plan.unmet_demand == demand((5000, 2))


def test_empty_demand():
    plan = optimize_cutting(stock((12000, 3)), [])
    assert plan.entries == []
    assert plan.leftover == []
    assert plan.stock_consumed == 0


def test_duplicate_demand_lengths_reported_as_sent():
    plan = optimize_cutting(stock((6000, 1)), demand((5000, 2), (5000, 2)))
    assert plan.entries[0].cuts == [5000]
    assert plan.unmet_demand == demand((5000, 1), (5000, 2))


def test_weld_search_fills_bars_with_many_pieces():
    plan = optimize_cutting(stock((12000, 1)), demand((10, 1200)), strategy=CutStrategy.WELD_SEARCH)

    assert len(plan.entries) == 1
    assert len(plan.entries[0].cuts) == 1200
    assert plan.leftover == []
    assert plan.is_complete


def test_weld_search_depth_over_stack_limit(monkeypatch):
    monkeypatch.setattr(settings, "WELD_SEARCH_MAX_DEPTH", 100000)
    with pytest.raises(InvalidInput):
        optimize_cutting(stock((12000, 1)), demand((10, 1200)), strategy=CutStrategy.WELD_SEARCH)


def test_zero_quantities_are_inert():
    plan = optimize_cutting(stock((12000, 0), (6000, 1)), demand((5000, 1), (3000, 0)))
    assert [e.source_length for e in plan.entries] == [6000]
    assert plan.entries[0].cuts == [5000]


@pytest.mark.parametrize("lots, items", [
    (stock((0, 1)), demand((5, 1))),
    (stock((10, 1)), demand((-5, 1))),
    (stock((10, -1)), demand((5, 1))),
    (stock((10, 1)), demand((5, -2))),
    (stock((0, 0)), demand((5, 1))),
])
def test_invalid_records(lots, items):
    with pytest.raises(InvalidInput):
        optimize_cutting(lots, items)


def test_non_integer_length():
    lots = [StockLot.model_construct(length=10.5, quantity=1)]
    with pytest.raises(InvalidInput) as exc_info:
        optimize_cutting(lots, demand((5, 1)))
    assert exc_info.value.details["field"] == "stock.length"


def test_invalid_input_is_a_value_error():
    with pytest.raises(ValueError):
        optimize_cutting(stock((0, 1)), demand((5, 1)))


def test_unknown_stock_order():
    with pytest.raises(ValueError):
        optimize_cutting(stock((10, 1)), demand((5, 1)), stock_order="random")


# =============================================================================
# Fail fast on broken selectors
# =============================================================================


class _OversizedSelector:

    def select(self, source_length, demand):
        return CutSelection(cuts=[source_length + 1])


def test_cuts_longer_than_source_fail():
    builder = PlanBuilder(_OversizedSelector(), DemandLedger(demand((11, 1))))
    with pytest.raises(PlanInvariantError):
        builder.cut(10)
    assert builder.entries == []
