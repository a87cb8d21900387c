"""
Cut selection for a single source (stock bar or offcut).

Two interchangeable strategies answer the same question, "what do we cut
from this piece of material given what is still needed":

- ScrapMinimizingSelector: bounded subset-sum DP. Uses as much material as
  possible, then as few pieces as possible. Never welds.
- WeldAwareSelector: cost-weighted recursive search that may cut a short
  segment of a demanded length and leave the rest to be welded on later.
"""

import logging
import sys
from enum import Enum
from typing import NamedTuple, Optional, Sequence, Tuple

import settings
from errors import InvalidInput, PlanInvariantError
from models import CostModel, CutSelection, DemandItem, WeldJoin
from ordering import sort_demand

logger = logging.getLogger(__name__)


class CutStrategy(str, Enum):
    SCRAP_DP = "scrap_dp"
    WELD_SEARCH = "weld_search"


class CutSelector:
    """Picks the pieces to cut from one source."""

    def select(self, source_length: int, demand: Sequence[DemandItem]) -> CutSelection:
        raise NotImplementedError


class ScrapMinimizingSelector(CutSelector):

    def select(self, source_length: int, demand: Sequence[DemandItem]) -> CutSelection:
        """
        Solve a bounded knapsack over the live demand.

        Args:
            source_length: Length of the bar or offcut in mm
            demand: Live demand; each length is used at most `quantity` times

        Returns:
            CutSelection with the chosen lengths, longest first. Empty if
            nothing fits.
        """
        items = [
            item for item in sort_demand(demand)
            if item.quantity > 0 and 0 < item.length <= source_length
        ]
        if not items:
            return CutSelection()

        # Binary-split the usable count of each length into 0/1 parts
        parts = []
        for index, item in enumerate(items):
            usable = min(item.quantity, source_length // item.length)
            chunk = 1
            while usable > 0:
                take = min(chunk, usable)
                parts.append((index, take))
                usable -= take
                chunk *= 2

        # best[c] = (pieces, per-length counts) for an exact fill of c
        best = [None] * (source_length + 1)
        best[0] = (0, (0,) * len(items))

        for index, take in parts:
            weight = items[index].length * take
            for capacity in range(source_length, weight - 1, -1):
                previous = best[capacity - weight]
                if previous is None:
                    continue
                pieces = previous[0] + take
                current = best[capacity]
                if current is None or pieces < current[0]:
                    counts = list(previous[1])
                    counts[index] += take
                    best[capacity] = (pieces, tuple(counts))

        used = next(c for c in range(source_length, -1, -1) if best[c] is not None)
        counts = best[used][1]

        cuts = []
        for item, count in zip(items, counts):
            if count > item.quantity:
                raise PlanInvariantError(
                    f"Selected {count} pieces of {item.length}mm but only {item.quantity} are needed",
                    details={"length": item.length, "selected": count, "needed": item.quantity},
                )
            cuts.extend([item.length] * count)

        return CutSelection(cuts=cuts)


class _Outcome(NamedTuple):
    cost: float
    cuts: Tuple[int, ...]
    welds: Tuple[Tuple[int, int], ...]


DemandState = Tuple[Tuple[int, int], ...]


def _take_one(state: DemandState, index: int) -> DemandState:
    length, quantity = state[index]
    if quantity > 1:
        return state[:index] + ((length, quantity - 1),) + state[index + 1:]
    return state[:index] + state[index + 1:]


def _merge(pairs) -> DemandState:
    merged = {}
    for length, quantity in pairs:
        merged[length] = merged.get(length, 0) + quantity
    return tuple(sorted(merged.items(), reverse=True))


def _add_one(state: DemandState, length: int) -> DemandState:
    return _merge(state + ((length, 1),))


def max_search_depth() -> int:
    """Deepest weld search the interpreter stack can take (one frame per piece)."""
    return sys.getrecursionlimit() // 2


class WeldAwareSelector(CutSelector):
    """
    Recursive search over whole pieces and split-and-weld options.

    Cost of an outcome is leftover + welds * beta / alpha, in mm. This is a
    heuristic: the search is memoised per call and ends the first time it
    reaches `budget` nodes or `max_depth` pieces. The length left at that
    node is filled by the scrap-minimizing DP, without welds, and no further
    options are tried.
    """

    def __init__(self, cost_model: CostModel, budget: int = None, max_depth: int = None):
        self.cost_model = cost_model
        self.budget = settings.WELD_SEARCH_BUDGET if budget is None else budget
        self.max_depth = settings.WELD_SEARCH_MAX_DEPTH if max_depth is None else max_depth
        if self.max_depth < 0 or self.max_depth > max_search_depth():
            raise InvalidInput(
                f"Weld search depth must be between 0 and {max_search_depth()}, got {self.max_depth}",
                "max_depth",
                self.max_depth,
            )
        self._filler = ScrapMinimizingSelector()
        self._memo = {}
        self._expansions = 0
        self._truncated = False

    def select(self, source_length: int, demand: Sequence[DemandItem]) -> CutSelection:
        # The search works on a merged view; the ledger keeps duplicates apart
        state = _merge(
            (item.length, item.quantity)
            for item in demand
            if item.quantity > 0 and item.length > 0
        )
        self._memo = {}
        self._expansions = 0
        self._truncated = False

        outcome = self._search(source_length, state, 0)

        if self._truncated:
            logger.warning(
                f"⚠️  Weld search limit reached for {source_length}mm source "
                f"({self._expansions} expansions), using best plan found"
            )

        return CutSelection(
            cuts=list(outcome.cuts),
            welds=[WeldJoin(target_length=t, segment_length=s) for t, s in outcome.welds],
        )

    def _search(self, remaining: int, state: DemandState, depth: int) -> _Outcome:
        best = _Outcome(float(remaining), (), ())
        if not state:
            return best

        key = (remaining, state)
        cached = self._memo.get(key)
        if cached is not None:
            return cached

        if depth >= self.max_depth or self._expansions >= self.budget:
            self._truncated = True
            best = self._fill(remaining, state)
            self._memo[key] = best
            return best
        self._expansions += 1

        penalty = self.cost_model.weld_penalty
        delta = self.cost_model.delta

        for index, (length, _quantity) in enumerate(state):
            if self._truncated:
                break
            if length <= remaining:
                sub = self._search(remaining - length, _take_one(state, index), depth + 1)
                if sub.cost < best.cost:
                    best = _Outcome(sub.cost, (length,) + sub.cuts, sub.welds)

            if length > delta and remaining > delta and not self._truncated:
                segment = min(length - delta, remaining - delta)
                if segment < length:
                    rest = _add_one(_take_one(state, index), length - segment)
                    sub = self._search(remaining - segment, rest, depth + 1)
                    cost = sub.cost + penalty
                    if cost < best.cost:
                        best = _Outcome(cost, (segment,) + sub.cuts, ((length, segment),) + sub.welds)

        self._memo[key] = best
        return best

    def _fill(self, remaining: int, state: DemandState) -> _Outcome:
        selection = self._filler.select(
            remaining, [DemandItem(length=length, quantity=quantity) for length, quantity in state]
        )
        return _Outcome(float(remaining - selection.used), tuple(selection.cuts), ())


def make_selector(strategy: CutStrategy, cost_model: Optional[CostModel] = None) -> CutSelector:
    strategy = CutStrategy(strategy)
    if strategy == CutStrategy.WELD_SEARCH:
        return WeldAwareSelector(cost_model or CostModel())
    return ScrapMinimizingSelector()
