"""Simulation engine - the tick orchestrator tying all components together."""
import random
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

import structlog

from arena.agents.policy import TradingPolicy
from arena.agents.registry import DEFAULT_PROFILES, AgentRegistry
from arena.core.config import ArenaConfig
from arena.core.models import Agent, Asset, TickResult, Trade
from arena.ledger.position_ledger import PositionLedger
from arena.market.price_generator import (Market, PriceGenerator,
                                          create_default_assets)

logger = structlog.get_logger(__name__)


class SimulationClock:
    """Simulated wall clock: advances a fixed interval per tick."""

    def __init__(self, start: Optional[datetime] = None, interval_seconds: float = 1.5):
        self.current = start or datetime.utcnow()
        self.interval = timedelta(seconds=interval_seconds)

    def now(self) -> datetime:
        return self.current

    def advance(self) -> datetime:
        self.current = self.current + self.interval
        return self.current


class SimulationEngine:
    """
    Tick orchestrator.

    One call to tick():
    1. advances every asset price once
    2. for each agent in registry order: evaluates exits on its open
       positions (in open order), then evaluates a single entry

    Everything runs synchronously to completion; state is only meant to be
    read between ticks.
    """

    def __init__(
        self,
        market: Market,
        ledger: PositionLedger,
        registry: AgentRegistry,
        policy: TradingPolicy,
        clock: Optional[SimulationClock] = None,
    ):
        self.market = market
        self.ledger = ledger
        self.registry = registry
        self.policy = policy
        self.clock = clock or SimulationClock()

        self.last_result: Optional[TickResult] = None

    @property
    def tick_count(self) -> int:
        return self.market.tick

    def tick(self) -> TickResult:
        """Run one simulation step and report what changed."""
        timestamp = self.clock.advance()
        snapshot = self.market.advance_market(timestamp)

        opened: List[Trade] = []
        closed: List[Trade] = []
        for agent in self.registry:
            closed.extend(self._evaluate_exits(agent, timestamp))
            trade = self._evaluate_entry(agent, timestamp)
            if trade is not None:
                opened.append(trade)

        result = TickResult(
            tick=self.market.tick,
            timestamp=timestamp,
            market=snapshot,
            opened=opened,
            closed=closed,
        )
        self.last_result = result

        logger.info(
            "engine.tick_completed",
            tick=result.tick,
            opened=len(opened),
            closed=len(closed),
            open_positions=self.ledger.open_count,
        )
        return result

    def run(self, ticks: int) -> List[TickResult]:
        """Run ``ticks`` steps back to back."""
        return [self.tick() for _ in range(ticks)]

    # ------------------------------------------------------------------
    # Exit / entry
    # ------------------------------------------------------------------

    def _evaluate_exits(self, agent: Agent, timestamp: datetime) -> List[Trade]:
        closed: List[Trade] = []
        for trade in self.ledger.positions_for(agent.id):
            price = self.market.price_of(trade.asset)
            if price is None:
                logger.warning(
                    "engine.missing_price", trade_id=trade.id, asset=trade.asset
                )
                price = trade.entry_price

            reason = self.policy.evaluate_exit(trade, price, agent.risk_tolerance)
            if reason is None:
                continue

            # Trade.close() is pure, so the note can be worded before booking
            summary = self.policy.closing_summary(
                agent.profile, trade.close(price, timestamp, reason)
            )
            result = self.ledger.close_position(
                trade.id, price, timestamp, reason=reason, summary=summary
            )
            if result is None:
                continue

            self.registry.adjust_balance(agent.id, result.realized_pnl, timestamp)
            self.registry.record_trade(agent.id, result)
            self.registry.set_last_analysis(agent.id, summary)
            closed.append(result)
        return closed

    def _evaluate_entry(self, agent: Agent, timestamp: datetime) -> Optional[Trade]:
        if not self.policy.can_open(len(self.ledger.positions_for(agent.id))):
            return None
        if not self.policy.should_enter():
            return None

        asset: Asset = self.policy.select_asset(agent.profile, self.market.assets)
        direction = self.policy.choose_direction()
        size = self.policy.position_size(agent.risk_tolerance)
        analysis = self.policy.entry_analysis(
            agent.profile.analysis_style, direction, asset.symbol
        )

        trade = self.ledger.open_position(
            agent_id=agent.id,
            asset=asset.symbol,
            direction=direction,
            entry_price=asset.price,
            size=size,
            analysis=analysis,
            timestamp=timestamp,
        )
        self.registry.set_last_analysis(agent.id, analysis)
        return trade

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> Dict:
        """Plain-data summary of the current state."""
        return {
            "tick": self.market.tick,
            "timestamp": self.clock.now().isoformat(),
            "assets": {a.symbol: str(a.price) for a in self.market.assets},
            "agents": {
                agent.id: {
                    "balance": str(agent.balance),
                    "open_positions": len(self.ledger.positions_for(agent.id)),
                    "total_trades": agent.stats.total_trades,
                    "win_rate": agent.stats.win_rate,
                    "max_drawdown": str(agent.stats.max_drawdown),
                }
                for agent in self.registry
            },
            "open_positions": self.ledger.open_count,
            "closed_trades": len(self.ledger.history),
        }


def create_simulation(
    config: Optional[ArenaConfig] = None,
    rng: Optional[random.Random] = None,
    start_time: Optional[datetime] = None,
    assets: Optional[List[Asset]] = None,
    profiles=DEFAULT_PROFILES,
) -> SimulationEngine:
    """
    Build a fresh simulation; calling it again is a full reset.

    Args:
        config: Arena configuration (defaults to environment-driven settings)
        rng: Random source shared by the price process and the policy
            (defaults to ``random.Random(config.simulation.seed)``)
        start_time: Simulated start time (defaults to now, UTC)
        assets: Asset universe (defaults to the built-in four assets)
        profiles: Agent profiles in processing order

    Returns:
        Ready-to-tick SimulationEngine
    """
    config = config or ArenaConfig()
    sim = config.simulation
    rng = rng or random.Random(sim.seed)
    start_time = start_time or datetime.utcnow()

    generator = PriceGenerator(
        config=config.market, rng=rng, history_limit=sim.asset_history_limit
    )
    market = Market(assets or create_default_assets(start_time), generator)
    ledger = PositionLedger(
        bracket_pct=Decimal(str(config.policy.bracket_pct)),
        closed_trade_limit=sim.closed_trade_limit,
    )
    registry = AgentRegistry(
        profiles=profiles,
        initial_balance=Decimal(str(sim.initial_balance)),
        timestamp=start_time,
        balance_history_limit=sim.balance_history_limit,
    )
    policy = TradingPolicy(config=config.policy, rng=rng)
    clock = SimulationClock(start=start_time, interval_seconds=sim.tick_interval_seconds)

    logger.info(
        "engine.created",
        assets=market.symbols,
        agents=[p.id for p in profiles],
        seed=sim.seed,
    )
    return SimulationEngine(market, ledger, registry, policy, clock)
