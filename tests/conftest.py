"""Pytest fixtures and utilities for the agent arena test suite."""
import random
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

import pytest

from arena.agents.policy import TradingPolicy
from arena.agents.registry import AgentRegistry
from arena.core.config import MarketConfig, PolicyConfig
from arena.core.engine import SimulationClock, SimulationEngine
from arena.core.models import (AgentProfile, AnalysisStyle, Asset, PricePoint,
                               RiskTolerance)
from arena.ledger.position_ledger import PositionLedger
from arena.market.price_generator import Market, PriceGenerator


# =============================================================================
# Random Sources
# =============================================================================

class ScriptedRandom(random.Random):
    """Random source replaying a fixed sequence of ``random()`` values.

    ``uniform(a, b)`` is inherited and resolves to ``a + (b - a) * random()``;
    ``choice`` also consumes one scripted value. When the script runs out,
    ``default`` is returned, or AssertionError is raised if there is none.
    """

    def __init__(self, values: Sequence[float], default: Optional[float] = None):
        super().__init__(0)
        self.values: List[float] = list(values)
        self.default = default
        self.draws = 0

    def random(self) -> float:
        self.draws += 1
        if self.values:
            return self.values.pop(0)
        if self.default is None:
            raise AssertionError("Scripted random source exhausted")
        return self.default

    def choice(self, seq):
        index = int(self.random() * len(seq))
        return seq[min(index, len(seq) - 1)]

    @property
    def exhausted(self) -> bool:
        return not self.values


@pytest.fixture
def make_rng():
    """Factory for scripted random sources."""
    def _make(values: Sequence[float] = (), default: Optional[float] = None) -> ScriptedRandom:
        return ScriptedRandom(values, default)
    return _make


# =============================================================================
# Time Fixtures
# =============================================================================

@pytest.fixture
def start_time():
    """Fixed simulation start time."""
    return datetime(2024, 1, 1, 12, 0, 0)


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def flat_market_config():
    """Market config with no movement: prices stay put, draws still happen."""
    return MarketConfig(
        drift_pct=0.0,
        volatility_pct=0.0,
        shock_probability=0.0,
        shock_pct=0.06,
    )


# =============================================================================
# Model Fixtures
# =============================================================================

@pytest.fixture
def alpha_profile():
    """High-risk technical agent that prefers TEST."""
    return AgentProfile(
        id="alpha",
        display_name="Alpha",
        avatar="A",
        color="alpha",
        risk_tolerance=RiskTolerance.HIGH,
        preferred_assets=frozenset({"TEST"}),
        analysis_style=AnalysisStyle.TECHNICAL,
    )


@pytest.fixture
def cautious_profile():
    """Low-risk agent with mixed analysis."""
    return AgentProfile(
        id="cautious",
        display_name="Cautious",
        risk_tolerance=RiskTolerance.LOW,
        preferred_assets=frozenset({"TEST"}),
        analysis_style=AnalysisStyle.MIXED,
    )


def create_test_asset(
    symbol: str = "TEST",
    price: str = "100",
    timestamp: Optional[datetime] = None,
    name: Optional[str] = None,
) -> Asset:
    """Helper to create an asset with a single history point."""
    timestamp = timestamp or datetime(2024, 1, 1, 12, 0, 0)
    return Asset(
        symbol=symbol,
        display_name=name or symbol.title(),
        price=Decimal(price),
        history=[PricePoint(time=timestamp, price=Decimal(price))],
    )


@pytest.fixture
def make_asset():
    """Factory for single-point test assets."""
    return create_test_asset


# =============================================================================
# Component Fixtures
# =============================================================================

@pytest.fixture
def ledger():
    """Fresh position ledger with the default 3% bracket."""
    return PositionLedger()


@pytest.fixture
def registry(alpha_profile, start_time):
    """Registry holding only the alpha agent at 10000."""
    return AgentRegistry(
        profiles=[alpha_profile],
        initial_balance=Decimal("10000"),
        timestamp=start_time,
    )


@pytest.fixture
def build_engine(start_time):
    """Factory wiring a SimulationEngine around explicit components."""
    def _build(
        assets: Sequence[Asset],
        profiles: Sequence[AgentProfile],
        rng: random.Random,
        market_config: Optional[MarketConfig] = None,
        policy_config: Optional[PolicyConfig] = None,
        ledger: Optional[PositionLedger] = None,
        registry: Optional[AgentRegistry] = None,
    ) -> SimulationEngine:
        generator = PriceGenerator(config=market_config or MarketConfig(), rng=rng)
        market = Market(list(assets), generator)
        ledger = ledger or PositionLedger()
        registry = registry or AgentRegistry(
            profiles=profiles, initial_balance=Decimal("10000"), timestamp=start_time
        )
        policy = TradingPolicy(config=policy_config or PolicyConfig(), rng=rng)
        clock = SimulationClock(start=start_time, interval_seconds=1.5)
        return SimulationEngine(market, ledger, registry, policy, clock)
    return _build


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        if not any(marker.name in ["unit", "integration"] for marker in item.own_markers):
            item.add_marker(pytest.mark.unit)
