"""A randomised market that feeds an order book and samples its state."""

from __future__ import annotations

import argparse
import math
import random
import threading
import time
from dataclasses import dataclass

from lobook.book import OrderBook
from lobook.orders import Order, OrderCore
from lobook.security import Security

SECURITY_ID = 1
USERNAME = "test"

_FIRST_BID = 497
_FIRST_ASK = 503
_FIRST_QUANTITY = 2500

_QUANTITY_MEAN = 100
_QUANTITY_SD = 10
_PRICE_SD = 5
_PRESSURE_PRICE_SD = 3
_PRESSURE_LIMIT_PROBABILITY = 0.3
_PRESSURE_MIN_SPREAD = 6
_CANCEL_WARMUP = 200
_CANCEL_A = 0.02
_CANCEL_B = 0.0


@dataclass(frozen=True)
class GraphData:
    """One sample of the book's state for display."""

    bid_price: int
    ask_price: int
    bid_quantities: dict[int, int]
    ask_quantities: dict[int, int]
    orders: int
    spread: int
    best_bid: int
    best_ask: int
    best_bid_depth: int
    best_ask_depth: int
    volume: int


def _round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    magnitude = math.floor(abs(value) + 0.5)
    return magnitude if value >= 0 else -magnitude


def _or_default(value: int | None, default: int) -> int:
    return default if value is None else value


def _cancel_probability(distance: int, imbalance: float, order_count: int) -> float:
    if distance <= 0:
        return 0.0
    probability = (
        _CANCEL_A * (5 * (1 - math.exp(-distance))) * (imbalance + _CANCEL_B) / order_count
    )
    return min(probability, 1.0)


class MarketSimulation:
    """Drives an order book with random limit and market orders.

    All access to the book goes through one lock, so the simulation, the
    pressure routines and sampling may run in different threads.
    """

    def __init__(self, book: OrderBook, rng: random.Random | None = None) -> None:
        self.book = book
        self.rng = rng if rng is not None else random.Random()
        self.last_bid = _FIRST_BID
        self.last_ask = _FIRST_ASK
        self._orders_matched_seen = 0
        self._lock = threading.Lock()

    def _new_order(self, price: float, quantity: float, is_buy: bool) -> Order:
        return Order(OrderCore(USERNAME, SECURITY_ID), int(price), max(0.0, quantity), is_buy)

    def _quantity(self) -> float:
        return self.rng.gauss(_QUANTITY_MEAN, _QUANTITY_SD)

    def _best_prices(self) -> tuple[int, int]:
        best_bid = _or_default(self.book.best_bid_price(), self.last_bid)
        best_ask = _or_default(self.book.best_ask_price(), self.last_ask)
        return best_bid, best_ask

    def seed_book(self) -> None:
        """Place the opening bid and ask around which trading starts."""
        with self._lock:
            self.book.add_order(self._new_order(_FIRST_BID, _FIRST_QUANTITY, True))
            self.book.add_order(self._new_order(_FIRST_ASK, _FIRST_QUANTITY, False))
            self.last_bid = _FIRST_BID
            self.last_ask = _FIRST_ASK

    def _place(self, price_f: float, mid: float, best_bid: int, best_ask: int,
               min_deviance: int) -> None:
        price = _round_half_away(price_f)
        if mid - price_f < min_deviance and price_f - mid < min_deviance:
            is_buy = self.rng.random() < 0.5
            quantity = max(0.0, self._quantity() / 2)
            if is_buy:
                self.book.place_market_buy_order(quantity)
            else:
                self.book.place_market_sell_order(quantity)
        elif price > best_ask or (price >= best_bid and price > mid):
            self.book.add_order(self._new_order(price, self._quantity(), False))
            self.last_ask = price + 3
        elif price < best_bid or price < mid:
            self.book.add_order(self._new_order(price, self._quantity(), True))
            self.last_bid = price - 3

    def _cancellation_draws(self, best_bid: int, best_ask: int) -> list[int]:
        order_count = len(self.book)
        if order_count == 0:
            return []
        flagged: list[int] = []
        bids = self.book.bid_orders()
        bid_imbalance = len(bids) / order_count
        for entry in bids:
            distance = best_ask - entry.order.price
            if self.rng.random() < _cancel_probability(distance, bid_imbalance, order_count):
                flagged.append(entry.order.order_id)
        asks = self.book.ask_orders()
        ask_imbalance = len(asks) / order_count
        for entry in asks:
            distance = entry.order.price - best_bid
            if self.rng.random() < _cancel_probability(distance, ask_imbalance, order_count):
                flagged.append(entry.order.order_id)
        return flagged

    def step(self, iteration: int = 0) -> list[int]:
        """Submit two random orders and run one matching pass.

        After the warm-up iterations the cancellation model is sampled for
        every resting order; the ids it selects are returned and the orders
        are left in the book.
        """
        rng = self.rng
        with self._lock:
            best_bid, best_ask = self._best_prices()
            spread = best_ask - best_bid
            min_deviance = 1 + (rng.randrange(spread) if spread > 0 else 0)
            mid = (best_ask + best_bid) / 2
            bid_mean = (best_bid + mid) / 2
            ask_mean = (best_ask + mid) / 2
            price_f = rng.gauss(bid_mean, _PRICE_SD)
            for _ in range(2):
                self._place(price_f, mid, best_bid, best_ask, min_deviance)
                price_f = rng.gauss(ask_mean, _PRICE_SD)
            flagged = (
                self._cancellation_draws(best_bid, best_ask)
                if iteration > _CANCEL_WARMUP
                else []
            )
            self.book.match()
        return flagged

    def run(self, steps: int = 2_000_000, delay: float = 0.01) -> float:
        """Seed the book and run ``steps`` iterations; return elapsed seconds."""
        self.seed_book()
        start = time.perf_counter()
        for iteration in range(steps):
            if delay > 0:
                time.sleep(delay)
            self.step(iteration)
        return time.perf_counter() - start

    def apply_sell_pressure(self, rounds: int = 500, delay: float = 0.002) -> None:
        """Hit the bids with market sells, now and then refilling both sides."""
        rng = self.rng
        for _ in range(rounds):
            if delay > 0:
                time.sleep(delay)
            with self._lock:
                self.book.place_market_sell_order(max(0.0, self._quantity()))
                best_bid, best_ask = self._best_prices()
                place_limits = rng.random() < _PRESSURE_LIMIT_PROBABILITY
                if not (place_limits and best_ask - best_bid > _PRESSURE_MIN_SPREAD):
                    continue
                mid = (best_ask + best_bid) / 2
                sell_price = rng.gauss(mid, _PRESSURE_PRICE_SD)
                buy_price = rng.gauss(float(best_bid), _PRESSURE_PRICE_SD)
                if sell_price < best_bid:
                    sell_price = mid
                if buy_price > sell_price:
                    buy_price = best_bid
                self.book.add_order(self._new_order(sell_price, self._quantity(), False))
                self.last_ask = int(sell_price)
                self.book.add_order(self._new_order(buy_price, self._quantity(), True))
                self.last_bid = int(buy_price)
                self.book.match()

    def apply_buy_pressure(self, rounds: int = 500, delay: float = 0.002) -> None:
        """Lift the asks with a run of market buys."""
        for _ in range(rounds):
            if delay > 0:
                time.sleep(delay)
            with self._lock:
                self.book.place_market_buy_order(max(0.0, self._quantity()))

    def fetch_data(self) -> GraphData:
        """Sample the book; volume is the quantity traded since the last sample."""
        with self._lock:
            book = self.book
            best_bid, best_ask = self._best_prices()
            bid_limit = book.best_bid_limit()
            ask_limit = book.best_ask_limit()
            best_bid_depth = bid_limit.order_quantity() if bid_limit is not None else 0
            best_ask_depth = ask_limit.order_quantity() if ask_limit is not None else 0
            volume = book.orders_matched() - self._orders_matched_seen
            self._orders_matched_seen += volume
            spread = book.get_spread().spread()
            return GraphData(
                bid_price=best_bid,
                ask_price=best_ask,
                bid_quantities=book.bid_quantities(),
                ask_quantities=book.ask_quantities(),
                orders=len(book),
                spread=spread if spread is not None else 0,
                best_bid=best_bid,
                best_ask=best_ask,
                best_bid_depth=best_bid_depth,
                best_ask_depth=best_ask_depth,
                volume=volume,
            )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run a random order book simulation.")
    parser.add_argument("--steps", type=int, default=2000, help="iterations to run")
    parser.add_argument("--delay", type=float, default=0.0, help="seconds between iterations")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--sell-pressure", action="store_true", help="apply sell pressure too")
    parser.add_argument("--buy-pressure", action="store_true", help="apply buy pressure too")
    args = parser.parse_args(argv)

    book = OrderBook(Security("apple", "aapl", SECURITY_ID))
    simulation = MarketSimulation(book, random.Random(args.seed))

    workers = []
    if args.sell_pressure:
        workers.append(threading.Thread(target=simulation.apply_sell_pressure,
                                        kwargs={"delay": args.delay}))
    if args.buy_pressure:
        workers.append(threading.Thread(target=simulation.apply_buy_pressure,
                                        kwargs={"delay": args.delay}))

    simulation.seed_book()
    for worker in workers:
        worker.start()
    start = time.perf_counter()
    for iteration in range(args.steps):
        if args.delay > 0:
            time.sleep(args.delay)
        simulation.step(iteration)
    elapsed = time.perf_counter() - start
    for worker in workers:
        worker.join()

    data = simulation.fetch_data()
    print(f"Elapsed Time: {int(elapsed * 1000)}ms")
    print(
        f"Order Count: {data.orders}  Spread: {data.spread}  "
        f"Best Bid: {data.best_bid} p  Best Ask: {data.best_ask}p  "
        f"Volume: {data.volume}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())