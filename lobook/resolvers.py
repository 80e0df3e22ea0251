"""Status and rejection notices produced for incoming orders."""

from __future__ import annotations

from dataclasses import dataclass

from lobook.orders import CancelOrder, ModifyOrder, Order, OrderCore, RejectionReason, RejectOrder


@dataclass(frozen=True)
class NewOrderStatus:
    """Acknowledgement of a new order."""


@dataclass(frozen=True)
class CancelOrderStatus:
    """Acknowledgement of a cancellation."""


@dataclass(frozen=True)
class ModifyOrderStatus:
    """Acknowledgement of a modification."""


@dataclass(frozen=True)
class RejectOrderStatus:
    """Acknowledgement of a rejection."""


def generate_order_rejection(
    rejected_order: OrderCore, rejection_reason: RejectionReason
) -> RejectOrder:
    return RejectOrder(rejected_order, rejection_reason)


def generate_cancel_order_status(cancel_order: CancelOrder) -> CancelOrderStatus:
    return CancelOrderStatus()


def generate_new_order_status(order: Order) -> NewOrderStatus:
    return NewOrderStatus()


def generate_modify_order_status(modify_order: ModifyOrder) -> ModifyOrderStatus:
    return ModifyOrderStatus()