"""The limit order book and its matching engine."""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import Iterator

from lobook.entry import Limit, OrderBookEntry, OrderRecord
from lobook.orders import CancelOrder, ModifyOrder, Order
from lobook.security import Security

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a matching pass."""


@dataclass(frozen=True)
class OrderBookSpread:
    """Best bid and best ask at one moment, either of which may be missing."""

    bid: int | None
    ask: int | None

    def spread(self) -> int | None:
        """Ask minus bid, or None unless both sides are quoted."""
        if self.bid is not None and self.ask is not None:
            return self.ask - self.bid
        return None


class _Levels:
    """Price levels of one side, kept in priority order."""

    def __init__(self, descending: bool) -> None:
        self._descending = descending
        self._limits: dict[int, Limit] = {}
        self._prices: list[int] = []

    def get(self, price: int) -> Limit | None:
        return self._limits.get(price)

    def add(self, limit: Limit) -> None:
        bisect.insort(self._prices, limit.price)
        self._limits[limit.price] = limit

    def discard(self, price: int) -> None:
        if self._limits.pop(price, None) is not None:
            index = bisect.bisect_left(self._prices, price)
            del self._prices[index]

    def best(self) -> Limit | None:
        if not self._prices:
            return None
        price = self._prices[-1] if self._descending else self._prices[0]
        return self._limits[price]

    def __bool__(self) -> bool:
        return bool(self._prices)

    def __iter__(self) -> Iterator[Limit]:
        prices = reversed(self._prices) if self._descending else self._prices
        return iter([self._limits[price] for price in prices])


def _as_quantity(quantity: float) -> int:
    value = int(quantity)
    if value < 0:
        raise ValueError(f"quantity must not be negative: {quantity}")
    return value


class OrderBook:
    """Bids and asks for one instrument, queued by price then time."""

    def __init__(self, instrument: Security) -> None:
        self.instrument = instrument
        self._orders_matched = 0
        self._asks = _Levels(descending=False)
        self._bids = _Levels(descending=True)
        self._orders: dict[int, OrderBookEntry] = {}

    def count(self) -> int:
        return len(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def contains_order(self, order_id: int) -> bool:
        return order_id in self._orders

    def get_spread(self) -> OrderBookSpread:
        best_ask = self._asks.best()
        best_bid = self._bids.best()
        ask = best_ask.price if best_ask is not None and best_ask.head is not None else None
        bid = best_bid.price if best_bid is not None and best_bid.head is not None else None
        return OrderBookSpread(bid, ask)

    def best_bid_limit(self) -> Limit | None:
        return self._bids.best()

    def best_ask_limit(self) -> Limit | None:
        return self._asks.best()

    def best_bid_price(self) -> int | None:
        limit = self._bids.best()
        return None if limit is None else limit.price

    def best_ask_price(self) -> int | None:
        limit = self._asks.best()
        return None if limit is None else limit.price

    def orders_matched(self) -> int:
        """Total quantity traded by this book so far."""
        return self._orders_matched

    def _levels_for(self, is_buy: bool) -> _Levels:
        return self._bids if is_buy else self._asks

    def _insert(self, order: Order, price: int, levels: _Levels) -> None:
        limit = levels.get(price)
        if limit is None:
            limit = Limit(price)
            levels.add(limit)
        entry = OrderBookEntry(limit, order)
        limit.add_order(entry)
        self._orders[order.order_id] = entry

    def _remove(self, order_id: int, entry: OrderBookEntry, levels: _Levels) -> None:
        limit = entry.limit
        if limit is None:
            self._orders.pop(order_id, None)
            return
        if limit.order_count() == 1:
            levels.discard(limit.price)
            self._orders.pop(order_id, None)
            return
        limit.remove_order(entry.order.order_id, entry.order.current_quantity)
        self._orders.pop(order_id, None)

    def add_order(self, order: Order) -> None:
        """Rest a limit order on its side of the book."""
        self._insert(order, order.price, self._levels_for(order.is_buy))

    def change_order(self, modify_order: ModifyOrder) -> None:
        """Replace a resting order; the replacement loses its queue position.

        Unknown order ids are ignored.
        """
        entry = self._orders.get(modify_order.order_id)
        if entry is None:
            return
        old = entry.order
        self.remove_order(modify_order.to_cancel_order())
        self._insert(modify_order.to_new_order(), old.price, self._levels_for(old.is_buy))

    def remove_order(self, cancel_order: CancelOrder) -> None:
        """Cancel a resting order; raise KeyError if its id is not in the book."""
        entry = self._orders.get(cancel_order.order_id)
        if entry is None:
            raise KeyError("order id not found")
        self._remove(cancel_order.order_id, entry, self._levels_for(entry.order.is_buy))

    def _place_market_order(self, quantity: float, levels: _Levels, taker: str, maker: str) -> None:
        quantity = _as_quantity(quantity)
        if not levels:
            return
        filled: list[OrderBookEntry] = []
        for limit in levels:
            for entry in limit:
                resting = entry.order.current_quantity
                if quantity == resting:
                    logger.info("market %s order filled @ %s pence", taker, limit.price)
                    logger.info("%s order %s filled @ %s pence", maker, entry.order.order_id, limit.price)
                    filled.append(entry)
                    self._orders_matched += quantity
                    quantity = 0
                    break
                if quantity < resting:
                    entry.decrease_quantity(quantity)
                    limit.decrease_quantity(quantity)
                    logger.info("market %s order filled @ %s pence", taker, limit.price)
                    logger.info(
                        "%s order %s partially filled @ %s pence",
                        maker, entry.order.order_id, limit.price,
                    )
                    self._orders_matched += quantity
                    quantity = 0
                    break
                quantity -= resting
                logger.info("market %s order partially filled @ %s pence", taker, limit.price)
                logger.info("%s order %s filled @ %s pence", maker, entry.order.order_id, limit.price)
                filled.append(entry)
                self._orders_matched += resting
            if quantity == 0:
                break
        for entry in filled:
            self._remove(entry.order.order_id, entry, levels)

    def place_market_buy_order(self, quantity: float) -> None:
        """Buy up to ``quantity`` from the asks, best price first."""
        self._place_market_order(quantity, self._asks, "buy", "sell")

    def place_market_sell_order(self, quantity: float) -> None:
        """Sell up to ``quantity`` into the bids, best price first."""
        self._place_market_order(quantity, self._bids, "sell", "buy")

    def _entries(self, levels: _Levels) -> list[OrderBookEntry]:
        return [entry for limit in levels if not limit.is_empty() for entry in limit]

    def ask_orders(self) -> list[OrderBookEntry]:
        """Resting asks, best price first, in queue order within a price."""
        return self._entries(self._asks)

    def bid_orders(self) -> list[OrderBookEntry]:
        """Resting bids, best price first, in queue order within a price."""
        return self._entries(self._bids)

    @staticmethod
    def _quantities(levels: _Levels) -> dict[int, int]:
        quantities = {limit.price: limit.order_quantity() for limit in levels if not limit.is_empty()}
        return dict(sorted(quantities.items()))

    def bid_quantities(self) -> dict[int, int]:
        """Open bid quantity per price, in ascending price order."""
        return self._quantities(self._bids)

    def ask_quantities(self) -> dict[int, int]:
        """Open ask quantity per price, in ascending price order."""
        return self._quantities(self._asks)

    def orders(self) -> list[OrderRecord]:
        """Records of every resting order: asks first, then bids."""
        records: list[OrderRecord] = []
        for limit in self._asks:
            records.extend(limit.order_records())
        for limit in self._bids:
            records.extend(limit.order_records())
        return records

    def match(self) -> MatchResult:
        """Cross the best bid level against the best ask level if they overlap."""
        best_bid = self._bids.best()
        best_ask = self._asks.best()
        if best_bid is None or best_ask is None:
            return MatchResult()
        bid_price = best_bid.price
        if bid_price < best_ask.price:
            return MatchResult()
        bid = best_bid.head
        ask = best_ask.head
        while bid is not None and ask is not None:
            bid_qty = bid.order.current_quantity
            ask_qty = ask.order.current_quantity
            if bid_qty > ask_qty:
                bid.decrease_quantity(ask_qty)
                best_bid.decrease_quantity(ask_qty)
                logger.info("buy order %s partially filled @ %s pence", bid.order.order_id, bid_price)
                logger.info("sell order %s filled @ %s pence", ask.order.order_id, bid_price)
                self._orders_matched += ask_qty
                following = ask.next
                self._remove(ask.order.order_id, ask, self._asks)
                ask = following
            elif bid_qty < ask_qty:
                ask.decrease_quantity(bid_qty)
                best_ask.decrease_quantity(bid_qty)
                logger.info("sell order %s partially filled @ %s pence", ask.order.order_id, bid_price)
                logger.info("buy order %s filled @ %s pence", bid.order.order_id, bid_price)
                self._orders_matched += bid_qty
                following = bid.next
                self._remove(bid.order.order_id, bid, self._bids)
                bid = following
            else:
                logger.info("sell order %s filled @ %s pence", ask.order.order_id, bid_price)
                logger.info("buy order %s filled @ %s pence", bid.order.order_id, bid_price)
                self._orders_matched += ask_qty
                following = ask.next
                self._remove(ask.order.order_id, ask, self._asks)
                ask = following
                following = bid.next
                self._remove(bid.order.order_id, bid, self._bids)
                bid = following
        return MatchResult()

    def __repr__(self) -> str:
        return (
            f"OrderBook({self.instrument.ticker}, orders={len(self._orders)}, "
            f"bid={self.best_bid_price()}, ask={self.best_ask_price()})"
        )