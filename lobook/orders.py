"""Order types handled by the order book."""

from __future__ import annotations

import itertools
from enum import Enum
from typing import ClassVar, Iterator


class OrderCore:
    """Identity shared by every kind of order: id, owner and instrument."""

    _ids: ClassVar[Iterator[int]] = itertools.count()

    def __init__(self, username: str, security_id: int, order_id: int | None = None) -> None:
        if order_id is None:
            order_id = next(OrderCore._ids)
        self.order_id = order_id
        self.username = username
        self.security_id = security_id

    def _core_args(self) -> tuple[str, int, int]:
        return self.username, self.security_id, self.order_id

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(order_id={self.order_id}, "
            f"username={self.username!r}, security_id={self.security_id})"
        )


def _as_quantity(quantity: float) -> int:
    value = int(quantity)
    if value < 0:
        raise ValueError(f"quantity must not be negative: {quantity}")
    return value


class Order(OrderCore):
    """A limit order resting on one side of the book."""

    def __init__(self, core: OrderCore, price: int, quantity: int, is_buy: bool) -> None:
        super().__init__(*core._core_args())
        self.price = int(price)
        self.initial_quantity = _as_quantity(quantity)
        self.current_quantity = self.initial_quantity
        self.is_buy = bool(is_buy)

    @classmethod
    def from_modify(cls, modify_order: ModifyOrder) -> Order:
        """Build a fresh order carrying the id and terms of a modification."""
        return cls(modify_order, modify_order.price, modify_order.quantity, modify_order.is_buy)

    def decrease_quantity(self, quantity: int) -> None:
        """Reduce the open quantity; raise ValueError if it would go negative."""
        if quantity > self.current_quantity:
            raise ValueError(
                f"Quantity decrease greater than current quantity for OrderId: {self.order_id}"
            )
        self.current_quantity -= quantity

    def __repr__(self) -> str:
        side = "buy" if self.is_buy else "sell"
        return (
            f"Order(order_id={self.order_id}, {side} {self.current_quantity}/"
            f"{self.initial_quantity} @ {self.price})"
        )


class CancelOrder(OrderCore):
    """Request to cancel the order with this id."""

    def __init__(self, core: OrderCore) -> None:
        super().__init__(*core._core_args())


class ModifyOrder(OrderCore):
    """Request to replace an order's price, quantity and side."""

    def __init__(self, core: OrderCore, price: int, quantity: int, is_buy: bool) -> None:
        super().__init__(*core._core_args())
        self.price = int(price)
        self.quantity = _as_quantity(quantity)
        self.is_buy = bool(is_buy)

    def to_cancel_order(self) -> CancelOrder:
        return CancelOrder(self)

    def to_new_order(self) -> Order:
        return Order.from_modify(self)


class RejectionReason(Enum):
    UNKNOWN = 0
    ORDER_NOT_FOUND = 1
    INSTRUMENT_NOT_FOUND = 2
    INCORRECT_ORDER_SIDE = 3


class RejectOrder(OrderCore):
    """Notice that an order was rejected, and why."""

    def __init__(self, rejected_order: OrderCore, rejection_reason: RejectionReason) -> None:
        super().__init__(*rejected_order._core_args())
        self.rejection_reason = rejection_reason