"""Order book depth model and derived liquidity analytics."""

from .depth import OrderBookDepth, OrderBookStats, PriceLevel

__all__ = [
    "OrderBookDepth",
    "OrderBookStats",
    "PriceLevel",
]
