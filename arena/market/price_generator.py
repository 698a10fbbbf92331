"""Synthetic price process and the asset universe it drives.

Each tick every asset moves by a uniform drift, a non-negative volatility
kick and, rarely, a large shock. A floor keeps prices from collapsing:
the next price is never below half of the previous one, nor below the
configured minimum price.
"""
import random
from datetime import datetime
from decimal import ROUND_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from arena.core.config import MarketConfig
from arena.core.models import (Asset, AssetQuote, MarketSnapshot, PricePoint,
                               to_money)

logger = structlog.get_logger(__name__)


# Seed universe: (symbol, display name, starting price)
DEFAULT_ASSETS: Tuple[Tuple[str, str, str], ...] = (
    ("BTC", "Bitcoin", "31500"),
    ("ETH", "Ethereum", "2200"),
    ("AAPL", "Apple", "189"),
    ("TSLA", "Tesla", "172"),
)


def create_default_assets(
    timestamp: datetime,
    seeds: Iterable[Tuple[str, str, str]] = DEFAULT_ASSETS,
) -> List[Asset]:
    """Build the asset universe, each history starting at its seed price."""
    assets = []
    for symbol, name, price in seeds:
        seed_price = to_money(price)
        assets.append(
            Asset(
                symbol=symbol,
                display_name=name,
                price=seed_price,
                history=[PricePoint(time=timestamp, price=seed_price)],
            )
        )
    return assets


class PriceGenerator:
    """
    Bounded stochastic price process.

    All randomness comes from the injected ``rng`` so a seeded or scripted
    source reproduces a price path exactly. Draw order per call:
    drift, volatility, shock trigger, then shock size if triggered.
    """

    def __init__(
        self,
        config: Optional[MarketConfig] = None,
        rng: Optional[random.Random] = None,
        history_limit: int = 120,
    ):
        self.config = config or MarketConfig()
        self.rng = rng or random.Random()
        self.history_limit = history_limit

        self._floor_ratio = Decimal(str(self.config.floor_ratio))
        self._min_price = to_money(self.config.min_price)

    def next_price(self, price: Decimal) -> Decimal:
        """Draw the next price for an asset currently trading at ``price``."""
        cfg = self.config
        drift = self.rng.uniform(-cfg.drift_pct, cfg.drift_pct)
        volatility = self.rng.uniform(0, cfg.volatility_pct)
        shock = 0.0
        if self.rng.random() < cfg.shock_probability:
            shock = self.rng.uniform(-cfg.shock_pct, cfg.shock_pct)
            logger.debug("market.shock", shock=round(shock, 4))

        move = Decimal(str(1 + drift + volatility + shock))
        candidate = to_money(price * move)
        floor = (price * self._floor_ratio).quantize(Decimal("0.01"), rounding=ROUND_UP)
        return max(candidate, floor, self._min_price)

    def advance(self, asset: Asset, timestamp: datetime) -> Decimal:
        """Move ``asset`` forward one tick and record the point in its history.

        Returns:
            The new price
        """
        next_price = self.next_price(asset.price)
        asset.price = next_price
        asset.history.append(PricePoint(time=timestamp, price=next_price))
        overflow = len(asset.history) - self.history_limit
        if overflow > 0:
            del asset.history[:overflow]
        return next_price


class Market:
    """
    Asset universe owned by the price generator.

    Nothing else writes asset prices; the orchestrator and projections only
    read them between ticks.
    """

    def __init__(self, assets: Sequence[Asset], generator: PriceGenerator):
        if not assets:
            raise ValueError("Market needs at least one asset")
        symbols = [a.symbol for a in assets]
        if len(set(symbols)) != len(symbols):
            raise ValueError(f"Duplicate asset symbols: {symbols}")

        self.assets: List[Asset] = list(assets)
        self.generator = generator
        self.tick = 0

    @property
    def symbols(self) -> List[str]:
        return [a.symbol for a in self.assets]

    @property
    def assets_map(self) -> Dict[str, Asset]:
        return {a.symbol: a for a in self.assets}

    def get(self, symbol: str) -> Optional[Asset]:
        for asset in self.assets:
            if asset.symbol == symbol:
                return asset
        return None

    def price_of(self, symbol: str) -> Optional[Decimal]:
        asset = self.get(symbol)
        return asset.price if asset else None

    def advance_market(self, timestamp: datetime) -> MarketSnapshot:
        """Advance every asset once, in universe order.

        Args:
            timestamp: Time stamped on the new history points

        Returns:
            Snapshot of the new prices
        """
        for asset in self.assets:
            self.generator.advance(asset, timestamp)
        self.tick += 1

        snapshot = self.snapshot(timestamp)
        logger.debug(
            "market.advanced",
            tick=self.tick,
            prices={q.symbol: str(q.price) for q in snapshot.assets},
        )
        return snapshot

    def snapshot(self, timestamp: datetime) -> MarketSnapshot:
        return MarketSnapshot(
            timestamp=timestamp,
            tick=self.tick,
            assets=[
                AssetQuote(symbol=a.symbol, display_name=a.display_name, price=a.price)
                for a in self.assets
            ],
        )
