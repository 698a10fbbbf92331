"""Agent registry - capital, balance history and performance statistics.

Mutations on an unknown agent id are ignored (logged, never raised): the
orchestrator only ever passes ids it got from the registry itself.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Sequence

import structlog

from arena.core.models import (Agent, AgentProfile, AgentStats, AnalysisStyle,
                               BalancePoint, RiskTolerance, Trade, to_money)

logger = structlog.get_logger(__name__)


DEFAULT_PROFILES: Sequence[AgentProfile] = (
    AgentProfile(
        id="grok",
        display_name="Grok",
        avatar="🤖",
        color="grok",
        risk_tolerance=RiskTolerance.HIGH,
        preferred_assets=frozenset({"BTC", "ETH"}),
        analysis_style=AnalysisStyle.TECHNICAL,
    ),
    AgentProfile(
        id="claude",
        display_name="Claude",
        avatar="🧠",
        color="claude",
        risk_tolerance=RiskTolerance.MEDIUM,
        preferred_assets=frozenset({"AAPL", "TSLA", "ETH"}),
        analysis_style=AnalysisStyle.FUNDAMENTAL,
    ),
    AgentProfile(
        id="chatgpt",
        display_name="ChatGPT",
        avatar="💡",
        color="chatgpt",
        risk_tolerance=RiskTolerance.LOW,
        preferred_assets=frozenset({"AAPL", "TSLA"}),
        analysis_style=AnalysisStyle.MIXED,
    ),
    AgentProfile(
        id="gemini",
        display_name="Gemini",
        avatar="🌌",
        color="gemini",
        risk_tolerance=RiskTolerance.VARIABLE,
        preferred_assets=frozenset({"BTC", "ETH", "TSLA"}),
        analysis_style=AnalysisStyle.QUANTITATIVE,
    ),
)

INITIAL_ANALYSIS = "Initializing strategy..."


class AgentRegistry:
    """
    Owns every agent of a simulation run, in registration order.

    Balance tracking:
    - ``balance`` moves only through adjust_balance()
    - ``peak_balance`` and ``max_drawdown`` never decrease
    - ``balance_history`` keeps the last ``balance_history_limit`` points
    """

    def __init__(
        self,
        profiles: Sequence[AgentProfile] = DEFAULT_PROFILES,
        initial_balance: Decimal = Decimal("10000"),
        timestamp: Optional[datetime] = None,
        balance_history_limit: int = 240,
    ):
        ids = [p.id for p in profiles]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate agent ids: {ids}")

        self.balance_history_limit = balance_history_limit
        timestamp = timestamp or datetime.utcnow()
        initial_balance = to_money(initial_balance)
        self.initial_balance = initial_balance

        self.agents: Dict[str, Agent] = {}
        for profile in profiles:
            self.agents[profile.id] = Agent(
                profile=profile,
                balance=initial_balance,
                start_of_period_balance=initial_balance,
                balance_history=[BalancePoint(time=timestamp, balance=initial_balance)],
                last_analysis=INITIAL_ANALYSIS,
                stats=AgentStats(peak_balance=initial_balance),
            )

        logger.info(
            "registry.initialized",
            agents=ids,
            initial_balance=str(initial_balance),
        )

    def __iter__(self) -> Iterator[Agent]:
        return iter(list(self.agents.values()))

    def __len__(self) -> int:
        return len(self.agents)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self.agents

    def get(self, agent_id: str) -> Optional[Agent]:
        return self.agents.get(agent_id)

    def agent_list(self) -> List[Agent]:
        return list(self.agents.values())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def adjust_balance(self, agent_id: str, delta: Decimal, at: datetime) -> None:
        """
        Add ``delta`` to an agent's balance and update drawdown tracking.

        Args:
            agent_id: Agent to credit/debit
            delta: Amount to add (negative for losses)
            at: Time stamped on the balance history point
        """
        agent = self._lookup(agent_id, "adjust_balance")
        if agent is None:
            return

        agent.balance = to_money(agent.balance + Decimal(str(delta)))
        agent.balance_history.append(BalancePoint(time=at, balance=agent.balance))
        overflow = len(agent.balance_history) - self.balance_history_limit
        if overflow > 0:
            del agent.balance_history[:overflow]

        stats = agent.stats
        stats.peak_balance = max(stats.peak_balance, agent.balance)
        drawdown = to_money(stats.peak_balance - agent.balance)
        stats.max_drawdown = max(stats.max_drawdown, drawdown)

    def record_trade(self, agent_id: str, trade: Trade) -> None:
        """
        Fold a closed trade into the agent's statistics.

        A trade is a win only if its realized PnL is strictly positive.
        Best/worst trade are replaced only on strict improvement, so ties
        keep the earlier trade.
        """
        agent = self._lookup(agent_id, "record_trade")
        if agent is None:
            return

        stats = agent.stats
        pnl = trade.realized_pnl if trade.realized_pnl is not None else Decimal("0")

        stats.total_trades += 1
        if pnl > 0:
            stats.wins += 1
        stats.win_rate = round(stats.wins / stats.total_trades * 100, 1)

        if stats.best_trade is None or pnl > (stats.best_trade.realized_pnl or Decimal("0")):
            stats.best_trade = trade
        if stats.worst_trade is None or pnl < (stats.worst_trade.realized_pnl or Decimal("0")):
            stats.worst_trade = trade

        logger.debug(
            "registry.trade_recorded",
            agent=agent_id,
            pnl=str(pnl),
            total_trades=stats.total_trades,
            win_rate=stats.win_rate,
        )

    def set_last_analysis(self, agent_id: str, text: str) -> None:
        """Overwrite the free-text note shown for an agent."""
        agent = self._lookup(agent_id, "set_last_analysis")
        if agent is None:
            return
        agent.last_analysis = text

    def reset_period(self) -> None:
        """Start a new period: every agent's period baseline becomes its balance."""
        for agent in self.agents.values():
            agent.start_of_period_balance = agent.balance
        logger.info("registry.period_reset", agents=len(self.agents))

    def _lookup(self, agent_id: str, operation: str) -> Optional[Agent]:
        agent = self.agents.get(agent_id)
        if agent is None:
            logger.warning("registry.unknown_agent", agent=agent_id, operation=operation)
        return agent
