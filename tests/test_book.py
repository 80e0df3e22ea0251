import random

import pytest

from lobook.book import MatchResult, OrderBook, OrderBookSpread
from lobook.orders import CancelOrder, ModifyOrder, Order, OrderCore
from lobook.security import Security

SECURITY_ID = 1
USERNAME = "test"


@pytest.fixture
def book():
    return OrderBook(Security("apple", "AAPL", SECURITY_ID))


def make_order(price, quantity, is_buy):
    return Order(OrderCore(USERNAME, SECURITY_ID), price, quantity, is_buy)


def test_order_book_initialises_correctly(book):
    assert book.count() == 0
    assert len(book) == 0
    assert book.ask_orders() == []
    assert book.bid_orders() == []


def test_can_add_bids(book):
    order1 = make_order(50, 20, True)
    book.add_order(order1)
    assert book.count() == 1
    assert book.contains_order(order1.order_id)
    bids = book.bid_orders()
    limit = bids[0].limit
    assert limit.price == 50
    assert limit.is_empty() is False
    assert limit.order_count() == 1
    assert limit.order_quantity() == 20
    assert bids[0].order.order_id == order1.order_id


def test_can_add_asks(book):
    order1 = make_order(45, 15, False)
    book.add_order(order1)
    assert book.count() == 1
    assert book.contains_order(order1.order_id)
    asks = book.ask_orders()
    limit = asks[0].limit
    assert limit.price == 45
    assert limit.is_empty() is False
    assert limit.order_count() == 1
    assert limit.order_quantity() == 15
    assert asks[0].order.order_id == order1.order_id


def test_can_add_bids_same_level(book):
    order1 = make_order(45, 3, True)
    order2 = make_order(45, 5, True)
    book.add_order(order1)
    book.add_order(order2)
    assert book.count() == 2
    limit = book.bid_orders()[0].limit
    assert limit.price == 45
    assert limit.is_empty() is False
    assert limit.order_count() == 2
    assert limit.order_quantity() == 8
    assert limit.head.order.order_id == order1.order_id
    assert limit.head.next.order.order_id == order2.order_id


def test_can_get_bid_ask_spread(book):
    book.add_order(make_order(48, 15, True))
    book.add_order(make_order(47, 10, True))
    book.add_order(make_order(50, 5, False))
    book.add_order(make_order(51, 20, False))
    assert book.get_spread().spread() == 50 - 48
    assert book.count() == 4


def test_can_cancel_bids(book):
    order1 = make_order(50, 20, True)
    book.add_order(order1)
    book.remove_order(CancelOrder(OrderCore(USERNAME, SECURITY_ID, order1.order_id)))
    assert book.count() == 0
    assert book.bid_orders() == []


def test_cancel_unknown_order_raises(book):
    with pytest.raises(KeyError):
        book.remove_order(CancelOrder(OrderCore(USERNAME, SECURITY_ID, 10**9)))


def test_cancel_middle_order_keeps_queue(book):
    first, middle, last = make_order(50, 1, True), make_order(50, 2, True), make_order(50, 4, True)
    for order in (first, middle, last):
        book.add_order(order)
    book.remove_order(CancelOrder(middle))
    ids = [entry.order.order_id for entry in book.bid_orders()]
    assert ids == [first.order_id, last.order_id]
    assert book.best_bid_limit().order_quantity() == 5
    assert book.best_bid_limit().order_count() == 2


def test_can_modify_bids(book):
    order1 = make_order(50, 20, True)
    book.add_order(order1)
    book.change_order(ModifyOrder(OrderCore(USERNAME, SECURITY_ID, order1.order_id), 50, 15, True))
    assert book.count() == 1
    bids = book.bid_orders()
    limit = bids[0].limit
    assert limit.price == 50
    assert limit.is_empty() is False
    assert limit.order_count() == 1
    assert limit.order_quantity() == 15
    assert bids[0].order.order_id == order1.order_id


def test_modify_unknown_order_is_ignored(book):
    book.add_order(make_order(50, 20, True))
    book.change_order(ModifyOrder(OrderCore(USERNAME, SECURITY_ID, 10**9), 50, 15, True))
    assert book.count() == 1
    assert book.bid_quantities() == {50: 20}


def test_can_match_crossed_spread_equal_quantity(book):
    bid = make_order(51, 20, True)
    ask = make_order(49, 20, False)
    book.add_order(bid)
    book.add_order(ask)
    assert book.match() == MatchResult()
    assert not book.contains_order(bid.order_id)
    assert not book.contains_order(ask.order_id)
    assert book.count() == 0
    assert book.best_bid_limit() is None
    assert book.best_ask_limit() is None
    assert book.get_spread().spread() is None
    assert book.orders_matched() == 20


def test_can_match_crossed_spread_more_bids(book):
    bid = make_order(51, 20, True)
    ask = make_order(49, 15, False)
    book.add_order(bid)
    book.add_order(ask)
    book.match()
    assert book.contains_order(bid.order_id)
    assert not book.contains_order(ask.order_id)
    assert book.count() == 1
    assert book.best_bid_limit().order_quantity() == 20 - 15
    assert book.best_ask_limit() is None
    assert book.get_spread().spread() is None


def test_can_match_crossed_spread_more_asks(book):
    bid = make_order(51, 15, True)
    ask = make_order(49, 20, False)
    book.add_order(bid)
    book.add_order(ask)
    book.match()
    assert not book.contains_order(bid.order_id)
    assert book.contains_order(ask.order_id)
    assert book.count() == 1
    assert book.best_bid_limit() is None
    assert book.best_ask_limit().order_quantity() == 20 - 15
    assert book.get_spread().spread() is None


def test_doesnt_match_insufficient_bids(book):
    bid = make_order(49, 15, True)
    ask = make_order(51, 20, False)
    book.add_order(bid)
    book.add_order(ask)
    book.match()
    assert book.contains_order(bid.order_id)
    assert book.contains_order(ask.order_id)
    assert book.count() == 2
    assert book.best_bid_limit().order_quantity() == 15
    assert book.best_ask_limit().order_quantity() == 20
    assert book.get_spread().spread() == 51 - 49
    assert book.orders_matched() == 0


def test_match_on_empty_side_returns_result(book):
    book.add_order(make_order(50, 10, True))
    assert book.match() == MatchResult()
    assert book.count() == 1


def test_market_sell_partial_fill(book):
    book.add_order(make_order(500, 100, True))
    book.place_market_sell_order(50)
    assert book.count() == 1
    assert book.bid_orders()[0].order.current_quantity == 50
    assert book.bid_quantities() == {500: 50}
    assert book.orders_matched() == 50


def test_market_sell_across_three_bids(book):
    for _ in range(3):
        book.add_order(make_order(500, 100, True))
    book.place_market_sell_order(125)
    assert book.count() == 2
    assert [e.order.current_quantity for e in book.bid_orders()] == [75, 100]
    assert book.bid_quantities() == {500: 175}
    assert book.orders_matched() == 125


def test_market_buy_sweeps_levels_best_first(book):
    cheap = make_order(50, 10, False)
    dear = make_order(52, 10, False)
    book.add_order(dear)
    book.add_order(cheap)
    book.place_market_buy_order(15)
    assert not book.contains_order(cheap.order_id)
    assert book.best_ask_price() == 52
    assert book.ask_quantities() == {52: 5}
    assert book.orders_matched() == 15


def test_market_order_on_empty_side_does_nothing(book):
    book.add_order(make_order(50, 10, False))
    book.place_market_sell_order(10)
    assert book.count() == 1
    assert book.orders_matched() == 0


def test_market_order_rejects_negative_quantity(book):
    with pytest.raises(ValueError):
        book.place_market_buy_order(-1)


def test_best_prices_and_ordering(book):
    for price in (47, 49, 48):
        book.add_order(make_order(price, 1, True))
    for price in (53, 51, 52):
        book.add_order(make_order(price, 1, False))
    assert book.best_bid_price() == 49
    assert book.best_ask_price() == 51
    assert [e.order.price for e in book.bid_orders()] == [49, 48, 47]
    assert [e.order.price for e in book.ask_orders()] == [51, 52, 53]
    assert list(book.bid_quantities()) == [47, 48, 49]
    assert book.get_spread() == OrderBookSpread(49, 51)


def test_orders_records_asks_then_bids(book):
    bid = make_order(48, 3, True)
    ask1 = make_order(50, 2, False)
    ask2 = make_order(50, 4, False)
    for order in (bid, ask1, ask2):
        book.add_order(order)
    records = book.orders()
    assert [(r.order_id, r.queue_position, r.is_buy_side) for r in records] == [
        (ask1.order_id, 0, False),
        (ask2.order_id, 1, False),
        (bid.order_id, 0, True),
    ]
    assert [r.quantity for r in records] == [2, 4, 3]


def test_spread_with_one_side_missing():
    assert OrderBookSpread(None, 51).spread() is None
    assert OrderBookSpread(49, None).spread() is None
    assert OrderBookSpread(49, 51).spread() == 2


def test_random_flow_keeps_book_consistent(book):
    rng = random.Random(12345)
    matched = 0
    for _ in range(500):
        quantity = int(rng.gauss(1000, 20))
        book.add_order(make_order(int(rng.gauss(50, 3)), quantity, True))
        book.match()
        book.add_order(make_order(int(rng.gauss(55, 3)), quantity, False))
        book.match()
        assert book.orders_matched() >= matched
        matched = book.orders_matched()
    bids = book.bid_orders()
    asks = book.ask_orders()
    assert book.count() == len(bids) + len(asks)
    assert sum(book.bid_quantities().values()) == sum(e.order.current_quantity for e in bids)
    assert sum(book.ask_quantities().values()) == sum(e.order.current_quantity for e in asks)
    assert all(e.order.current_quantity > 0 for e in bids + asks)