"""Synthetic market: asset universe and price process."""

from arena.market.price_generator import (DEFAULT_ASSETS, Market,
                                          PriceGenerator, create_default_assets)

__all__ = [
    "DEFAULT_ASSETS",
    "Market",
    "PriceGenerator",
    "create_default_assets",
]
