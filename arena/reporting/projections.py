"""Read-only projections over ledger, registry and market state.

None of these functions mutate their inputs; they are recomputed on demand
instead of being cached on the state objects.
"""
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from arena.agents.registry import AgentRegistry
from arena.core.models import Agent, AnalysisNote, Asset, Trade, to_money
from arena.ledger.position_ledger import PositionLedger
from arena.market.price_generator import Market


def positions_by_agent(ledger: PositionLedger) -> Dict[str, List[Trade]]:
    """Open positions grouped by agent id, each group in open order."""
    return ledger.grouped_by_agent()


def recent_analyses(ledger: PositionLedger, n: int = 8) -> List[AnalysisNote]:
    """Most recent ``n`` analysis notes, newest first."""
    return ledger.recent_analyses(n)


def agent_list(registry: AgentRegistry) -> List[Agent]:
    return registry.agent_list()


def asset_list(market: Market) -> List[Asset]:
    return list(market.assets)


def assets_by_symbol(market: Market) -> Dict[str, Asset]:
    return market.assets_map


def daily_pnl(agent: Agent) -> Decimal:
    """Balance change since the start of the current period."""
    return to_money(agent.balance - agent.start_of_period_balance)


def daily_pnl_pct(agent: Agent) -> float:
    if agent.start_of_period_balance == 0:
        return 0.0
    return round(float(daily_pnl(agent) / agent.start_of_period_balance * 100), 2)


def unrealized_pnl(trade: Trade, price: Decimal) -> Decimal:
    """Mark-to-market PnL of an open trade at ``price``."""
    return trade.calculate_pnl(price)


def agent_equity(
    agent: Agent,
    open_positions: List[Trade],
    prices: Mapping[str, Decimal],
) -> Decimal:
    """Realized balance plus mark-to-market of the agent's open positions.

    Positions whose asset has no price are marked at their entry price.
    """
    total = agent.balance
    for trade in open_positions:
        if trade.agent_id != agent.id:
            continue
        total += unrealized_pnl(trade, prices.get(trade.asset, trade.entry_price))
    return to_money(total)


def leaderboard(registry: AgentRegistry) -> List[Agent]:
    """Agents by balance, richest first (registry order breaks ties)."""
    return sorted(registry.agent_list(), key=lambda a: a.balance, reverse=True)


def closed_trades(
    ledger: PositionLedger,
    agent_id: Optional[str] = None,
    asset: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Trade]:
    """Closed trade history, newest first, optionally filtered."""
    trades = [
        t
        for t in ledger.history
        if (agent_id is None or t.agent_id == agent_id)
        and (asset is None or t.asset == asset)
    ]
    if limit is not None:
        trades = trades[:limit]
    return trades


def reset_period(registry: AgentRegistry) -> None:
    """Roll every agent into a new period (e.g. at the start of a day)."""
    registry.reset_period()
