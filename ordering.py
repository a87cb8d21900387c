from enum import Enum
from typing import Iterable, List

from models import DemandItem, StockLot


class StockOrder(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


def order_lots(lots: Iterable[StockLot], direction: StockOrder) -> List[StockLot]:
    """
    Order stock lots by length for consumption.

    Ascending keeps the long bars for the long pieces, descending uses the
    long bars up first. Lots of equal length keep their input order.
    """
    direction = StockOrder(direction)
    return sorted(lots, key=lambda lot: lot.length, reverse=direction == StockOrder.DESCENDING)


def order_lengths(lengths: Iterable[int], direction: StockOrder) -> List[int]:
    """Same rule as order_lots, for bare offcut lengths."""
    direction = StockOrder(direction)
    return sorted(lengths, reverse=direction == StockOrder.DESCENDING)


def sort_demand(demand: Iterable[DemandItem]) -> List[DemandItem]:
    # Longest pieces are always tried first, whatever the stock order
    return sorted(demand, key=lambda item: item.length, reverse=True)
