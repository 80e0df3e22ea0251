"""Limit order book with a price-time priority matching engine and a random market simulation."""

__version__ = "0.1.0"
__all__ = ["book", "entry", "orders", "resolvers", "security", "simulation"]