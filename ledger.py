"""
Mutable bookkeeping shared by the allocation phases: what is still needed
(DemandLedger) and which offcuts are lying around (LeftoverPool).
"""

from typing import Iterable, Iterator, List

from errors import PlanInvariantError
from models import CutSelection, DemandItem
from ordering import StockOrder, order_lengths, sort_demand


class DemandLedger:
    """
    Remaining demand, longest length first.

    Lengths are expected to be unique. Duplicates in the caller's demand are
    kept as separate entries, in input order, and cuts take from the first.
    """

    def __init__(self, demand: Iterable[DemandItem] = ()):
        self._items: List[DemandItem] = sort_demand(
            DemandItem(length=item.length, quantity=item.quantity)
            for item in demand
            if item.quantity > 0
        )

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[DemandItem]:
        return iter(self.snapshot())

    @property
    def is_empty(self) -> bool:
        return not self._items

    def remaining(self, length: int) -> int:
        return sum(item.quantity for item in self._items if item.length == length)

    def snapshot(self) -> List[DemandItem]:
        """Copy of the live entries; safe to hand to a selector."""
        return [item.model_copy() for item in self._items]

    def add(self, length: int, quantity: int = 1):
        if length <= 0 or quantity <= 0:
            raise PlanInvariantError(
                f"Cannot add {quantity} x {length}mm to demand",
                details={"length": length, "quantity": quantity},
            )
        for index, item in enumerate(self._items):
            if item.length == length:
                self._items[index] = DemandItem(length=length, quantity=item.quantity + quantity)
                return
        self._items = sort_demand(self._items + [DemandItem(length=length, quantity=quantity)])

    def consume(self, cuts: Iterable[int]):
        """
        Take one unit off the demand entry of each cut length.

        Only the first entry with a matching length is touched. Entries
        that reach zero are dropped.
        """
        for cut in cuts:
            for index, item in enumerate(self._items):
                if item.length == cut:
                    if item.quantity > 1:
                        self._items[index] = DemandItem(length=item.length, quantity=item.quantity - 1)
                    else:
                        del self._items[index]
                    break
            else:
                raise PlanInvariantError(
                    f"Cut of {cut}mm does not match any open demand",
                    details={"cut": cut, "open": [i.length for i in self._items]},
                )

    def apply(self, selection: CutSelection):
        # Welds first: a complement created here may be cut from the same source
        whole = list(selection.cuts)
        for weld in selection.welds:
            if weld.segment_length not in whole:
                raise PlanInvariantError(
                    f"Weld segment {weld.segment_length}mm is not among the cuts",
                    details={"cuts": selection.cuts, "segment": weld.segment_length},
                )
            self.consume([weld.target_length])
            self.add(weld.complement_length)
            whole.remove(weld.segment_length)
        self.consume(whole)


class LeftoverPool:
    """Offcuts and unusable bars collected while cutting."""

    def __init__(self, lengths: Iterable[int] = ()):
        self._lengths: List[int] = []
        for length in lengths:
            self.push(length)

    def __len__(self) -> int:
        return len(self._lengths)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._lengths))

    def push(self, length: int):
        if length <= 0:
            raise PlanInvariantError(f"Leftover must be positive, got {length}mm", details={"length": length})
        self._lengths.append(length)

    def ordered(self, direction: StockOrder) -> List[int]:
        return order_lengths(self._lengths, direction)

    def total(self) -> int:
        return sum(self._lengths)

    def to_list(self) -> List[int]:
        return list(self._lengths)
