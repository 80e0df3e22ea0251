"""Entries resting in the book and the price levels that queue them."""

from __future__ import annotations

import copy
import time
import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from lobook.orders import Order


class Side(Enum):
    UNKNOWN = 0
    BID = 1
    ASK = 2


@dataclass(frozen=True)
class OrderRecord:
    """Snapshot of one resting order and its place in the queue."""

    order_id: int
    quantity: int
    price: int
    is_buy_side: bool
    username: str
    security_id: int
    queue_position: int


class OrderBookEntry:
    """An order queued at a price level, linked to its neighbours."""

    def __init__(self, limit: Limit, order: Order) -> None:
        self.order = copy.copy(order)
        self._limit = weakref.ref(limit)
        self.creation_time = time.monotonic()
        self.next: OrderBookEntry | None = None
        self.previous: OrderBookEntry | None = None

    @property
    def limit(self) -> Limit | None:
        """The owning price level, or None once it no longer exists."""
        return self._limit()

    def decrease_quantity(self, quantity: int) -> None:
        self.order.decrease_quantity(quantity)

    def __repr__(self) -> str:
        return f"OrderBookEntry({self.order!r})"


class Limit:
    """A price level holding a FIFO queue of entries."""

    def __init__(self, price: int) -> None:
        self.price = price
        self._size = 0
        self._order_quantity = 0
        self.head: OrderBookEntry | None = None
        self.tail: OrderBookEntry | None = None

    def is_empty(self) -> bool:
        return self.head is None and self.tail is None

    def add_order(self, entry: OrderBookEntry) -> None:
        """Append an entry to the back of the queue."""
        if self.head is None:
            self.head = entry
            self.tail = entry
        else:
            tail = self.tail
            tail.next = entry
            entry.previous = tail
            self.tail = entry
        self._size += 1
        self._order_quantity += entry.order.current_quantity

    def remove_order(self, order_id: int, quantity: int) -> None:
        """Unlink the entry with this id; raise LookupError if it is not queued."""
        if self.head is None:
            raise LookupError("Order not found - limit is empty")
        current = self.head
        while current is not None and current.order.order_id != order_id:
            current = current.next
        if current is None:
            raise LookupError("Order not found")
        if current is self.head:
            self.head = self.head.next
            if self.head is not None:
                self.head.previous = None
        if current is self.tail:
            self.tail = self.tail.previous
            if self.tail is not None:
                self.tail.next = None
        if current.previous is not None:
            current.previous.next = current.next
        if current.next is not None:
            current.next.previous = current.previous
        self._size -= 1
        self._order_quantity -= quantity

    def decrease_quantity(self, quantity: int) -> None:
        if quantity > self._order_quantity:
            raise ValueError("removing too much")
        self._order_quantity -= quantity

    def side(self) -> Side:
        if self.is_empty():
            return Side.UNKNOWN
        return Side.BID if self.head.order.is_buy else Side.ASK

    def order_count(self) -> int:
        return self._size

    def order_quantity(self) -> int:
        return self._order_quantity

    def order_records(self) -> list[OrderRecord]:
        """Records of the queued orders with open quantity, in queue order."""
        records = []
        for entry in self:
            order = entry.order
            if order.current_quantity == 0:
                continue
            records.append(
                OrderRecord(
                    order_id=order.order_id,
                    quantity=order.current_quantity,
                    price=order.price,
                    is_buy_side=order.is_buy,
                    username=order.username,
                    security_id=order.security_id,
                    queue_position=len(records),
                )
            )
        return records

    def __iter__(self) -> Iterator[OrderBookEntry]:
        entry = self.head
        while entry is not None:
            yield entry
            entry = entry.next

    def __repr__(self) -> str:
        return f"Limit(price={self.price}, orders={self._size}, quantity={self._order_quantity})"