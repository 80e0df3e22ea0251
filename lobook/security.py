"""Tradable instruments."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Security:
    """An instrument traded on an order book."""

    name: str
    ticker: str
    security_id: int