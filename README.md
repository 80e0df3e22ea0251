# lobook

A limit order book for a single instrument, with price-time priority
matching, market orders and a small random market simulation.

Prices are whole numbers (pence) and quantities are non-negative integers.
Orders at the same price queue in arrival order; bids are served from the
highest price down, asks from the lowest price up.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `lobook.orders`: `OrderCore`, `Order`, `ModifyOrder`, `CancelOrder`,
  `RejectOrder` and the `RejectionReason` enum. An `OrderCore` created
  without an `order_id` takes the next id from a process-wide counter.
- `lobook.security`: the `Security` dataclass (name, ticker, security id).
- `lobook.entry`: `Limit` (a FIFO price level), `OrderBookEntry`,
  `OrderRecord` snapshots and the `Side` enum.
- `lobook.book`: `OrderBook`, `OrderBookSpread` and `MatchResult`.
- `lobook.resolvers`: `generate_order_rejection()` and the status
  acknowledgements `NewOrderStatus`, `CancelOrderStatus`,
  `ModifyOrderStatus` and `RejectOrderStatus`.
- `lobook.simulation`: `MarketSimulation`, `GraphData` and the
  `lobook-sim` command.

## Using the book

```python
from lobook.security import Security
from lobook.orders import OrderCore, Order, ModifyOrder, CancelOrder
from lobook.book import OrderBook

book = OrderBook(Security("apple", "AAPL", 1))

bid = Order(OrderCore("trader", 1), 51, 20, True)
ask = Order(OrderCore("trader", 1), 49, 15, False)
book.add_order(bid)
book.add_order(ask)

book.match()
print(book.contains_order(ask.order_id))            # False
print(book.best_bid_limit().order_quantity())        # 5
print(book.get_spread().spread())                    # None

# Change or cancel a resting order by its id
book.change_order(ModifyOrder(OrderCore("trader", 1, bid.order_id), 51, 3, True))
book.remove_order(CancelOrder(OrderCore("trader", 1, bid.order_id)))
print(len(book))                                     # 0
```

`match()` crosses the best bid level against the best ask level when the
bid price is at or above the ask price; each call works on those two levels
only.

`change_order()` replaces the order and sends it to the back of the queue
at its original price; an unknown order id is ignored. Cancelling an order
the book does not hold raises `KeyError`.

Market orders walk the opposite side of the book until they are filled or
the side runs out. Fractional quantities are truncated; a negative quantity
raises `ValueError`.

```python
book.place_market_buy_order(50)
book.place_market_sell_order(50)
```

Other queries on `OrderBook`: `count()`, `best_bid_price()`,
`best_ask_price()`, `best_ask_limit()`, `bid_orders()`, `ask_orders()`,
`bid_quantities()`, `ask_quantities()`, `orders()` and `orders_matched()`
(total quantity traded so far). Fills are reported through the standard
`logging` module under the logger `lobook.book`.

## Simulation

`lobook.simulation.MarketSimulation` drives a book with randomly placed limit
and market orders. `seed_book()` places the opening bid and ask, `step()`
runs one iteration, `run()` seeds and runs many, and `apply_sell_pressure()`
/ `apply_buy_pressure()` push the price down or up. `fetch_data()` returns a
`GraphData` snapshot of the best prices, depths, spread and the volume
traded since the previous sample. Access to the book is guarded by a lock,
so these may run in separate threads.

After 200 iterations `step()` also samples a cancellation model and returns
the ids it selects; those orders stay in the book.

Run it from the command line:

```
lobook-sim --steps 2000 --seed 42
```

Options: `--steps`, `--delay` (seconds between iterations), `--seed`,
`--sell-pressure` and `--buy-pressure`. It prints the elapsed time and a
final summary of order count, spread, best prices and volume.

## What it does not do

There is no graphical display: the simulation produces `GraphData` samples
and a text summary, but draws no charts. The book is in memory only and is
not served over a network.