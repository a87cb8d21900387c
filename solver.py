"""
Cutting plan orchestration.

Walks the stock in the chosen order, asks the active cut selector what to
cut from every bar, books the pieces against the demand ledger and collects
offcuts. Demand still open after the stock is used up gets one pass over the
reusable offcuts.
"""

import logging
import time
from typing import List, Optional, Sequence

from cut_selection import CutSelector, CutStrategy, make_selector
from errors import InvalidInput, PlanInvariantError
from ledger import DemandLedger, LeftoverPool
from models import CostModel, CutPlanEntry, CuttingPlan, DemandItem, StockLot
from ordering import StockOrder, order_lots

logger = logging.getLogger(__name__)


def _check_record(kind: str, index: int, length, quantity):
    for name, value in (("length", length), ("quantity", quantity)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInput(f"{kind} #{index}: {name} must be an integer, got {value!r}", f"{kind}.{name}", value)
    if length <= 0:
        raise InvalidInput(f"{kind} #{index}: length must be positive, got {length}", f"{kind}.length", length)
    if quantity < 0:
        raise InvalidInput(f"{kind} #{index}: quantity must not be negative, got {quantity}", f"{kind}.quantity", quantity)


def validate_stock(stock: Sequence[StockLot]) -> List[StockLot]:
    """Check stock lots and return copies of the ones with bars left."""
    lots = []
    for index, lot in enumerate(stock):
        _check_record("stock", index, lot.length, lot.quantity)
        if lot.quantity > 0:
            lots.append(lot.model_copy())
    return lots


def validate_demand(demand: Sequence[DemandItem]) -> List[DemandItem]:
    """Check demand items and return copies of the ones still needed."""
    items = []
    for index, item in enumerate(demand):
        _check_record("demand", index, item.length, item.quantity)
        if item.quantity > 0:
            items.append(item.model_copy())
    return items


class PlanBuilder:
    """Accumulates entries and counters while sources are cut."""

    def __init__(self, selector: CutSelector, ledger: DemandLedger):
        self.selector = selector
        self.ledger = ledger
        self.entries: List[CutPlanEntry] = []
        self.cut_count = 0
        self.weld_count = 0

    def cut(self, source_length: int, from_leftover: bool = False) -> Optional[CutPlanEntry]:
        """
        Cut one source against the live demand.

        Returns:
            The new entry, or None if nothing fits (the whole source stays
            uncut).
        """
        selection = self.selector.select(source_length, self.ledger.snapshot())
        if not selection:
            return None

        leftover = source_length - selection.used
        if leftover < 0:
            raise PlanInvariantError(
                f"Cuts {selection.cuts} exceed source of {source_length}mm",
                details={"source_length": source_length, "cuts": selection.cuts},
            )

        entry = CutPlanEntry(
            source_length=source_length,
            cuts=selection.cuts,
            leftover=leftover,
            from_leftover=from_leftover,
            welds=selection.welds,
        )
        self.ledger.apply(selection)
        self.entries.append(entry)
        self.cut_count += len(selection.cuts) - 1
        self.weld_count += len(selection.welds)
        return entry


def reuse_leftovers(builder: PlanBuilder, pool: LeftoverPool, stock_order: StockOrder, min_length: int) -> LeftoverPool:
    """
    Offer collected offcuts as stock, once.

    Offcuts shorter than `min_length` are not offered. Offcuts of offcuts go
    into the returned pool but are not offered again.
    """
    remaining = LeftoverPool()
    for length in pool.ordered(stock_order):
        if builder.ledger.is_empty or length < min_length:
            remaining.push(length)
            continue

        entry = builder.cut(length, from_leftover=True)
        if entry is None:
            remaining.push(length)
            continue

        logger.debug(f"   ♻️  Offcut {length}mm -> {entry.cuts} (left {entry.leftover}mm)")
        if entry.leftover > 0:
            remaining.push(entry.leftover)
    return remaining


def optimize_cutting(
    stock: Sequence[StockLot],
    demand: Sequence[DemandItem],
    stock_order: StockOrder = StockOrder.ASCENDING,
    strategy: CutStrategy = CutStrategy.SCRAP_DP,
    cost_model: Optional[CostModel] = None,
) -> CuttingPlan:
    """
    Build a cutting plan for the given stock and demand.

    Args:
        stock: Available stock lots; not modified
        demand: Required pieces; not modified
        stock_order: Which stock lengths are used first
        strategy: Cut selector used for every bar and offcut
        cost_model: Scrap/weld costs and length thresholds

    Returns:
        CuttingPlan with entries, leftovers, counters and unmet demand
    """
    start_time = time.time()
    stock_order = StockOrder(stock_order)
    strategy = CutStrategy(strategy)
    cost_model = cost_model or CostModel()

    lots = validate_stock(stock)
    ledger = DemandLedger(validate_demand(demand))

    logger.info(f"🔧 Planning cuts ({strategy.value}, stock {stock_order.value})")
    logger.info(f"📏 Stock: {[(lot.length, lot.quantity) for lot in lots]}")
    logger.info(f"📦 Demand: {[(item.length, item.quantity) for item in ledger]}")

    builder = PlanBuilder(make_selector(strategy, cost_model), ledger)
    pool = LeftoverPool()
    stock_consumed = 0

    for lot in order_lots(lots, stock_order):
        for _ in range(lot.quantity):
            if ledger.is_empty:
                break
            stock_consumed += lot.length
            entry = builder.cut(lot.length)
            if entry is None:
                logger.debug(f"   🗑️  Bar {lot.length}mm: nothing fits, kept whole")
                pool.push(lot.length)
                continue
            logger.debug(f"   ✂️  Bar {lot.length}mm -> {entry.cuts} (left {entry.leftover}mm)")
            if entry.leftover > 0:
                pool.push(entry.leftover)
        if ledger.is_empty:
            break

    logger.info(f"✓ Stock pass: {len(builder.entries)} bars cut, {len(pool)} offcuts")

    if not ledger.is_empty and len(pool):
        used_before = len(builder.entries)
        pool = reuse_leftovers(builder, pool, stock_order, cost_model.gamma)
        logger.info(f"♻️  Offcut pass: {len(builder.entries) - used_before} offcuts reused")

    plan = CuttingPlan(
        entries=builder.entries,
        leftover=pool.to_list(),
        cut_count=builder.cut_count,
        weld_count=builder.weld_count,
        unmet_demand=ledger.snapshot(),
        stock_consumed=stock_consumed,
    )

    if not plan.is_complete:
        logger.warning(f"⚠️  Unmet demand: {[(item.length, item.quantity) for item in plan.unmet_demand]}")
    logger.info(
        f"📋 Results: {len(plan.entries)} entries, {plan.cut_count} cuts, "
        f"{plan.weld_count} welds, leftover {pool.total()}mm"
    )
    logger.info(f"⏱️  Planning time: {time.time() - start_time:.2f} seconds")
    return plan


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    # ---------- INPUT ----------
    STOCK = [StockLot(length=12000, quantity=10)]  # mm

    pieces = {
        5000: 5,
        3000: 8,
        2000: 6,
    }
    # ---------------------------

    result = optimize_cutting(
        STOCK,
        [DemandItem(length=length, quantity=count) for length, count in pieces.items()],
        StockOrder.ASCENDING,
    )

    # ---------- OUTPUT ----------
    for i, entry in enumerate(result.entries, 1):
        source = "offcut" if entry.from_leftover else "bar"
        print(f"{source.capitalize()} {i} ({entry.source_length}mm): cuts={entry.cuts} leftover={entry.leftover}")
    print(f"\nLeftovers: {result.leftover}")
    print(f"Cuts: {result.cut_count}  Welds: {result.weld_count}")
    if result.unmet_demand:
        print(f"Unmet demand: {[(item.length, item.quantity) for item in result.unmet_demand]}")
