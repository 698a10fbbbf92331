"""
Performance Report Generator.

Tabulates how each agent is doing:
- Trade statistics (win rate, average/best/worst PnL)
- Balance, return and drawdown
- Equity curve from balance history
"""

from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from arena.agents.registry import AgentRegistry
from arena.core.models import Trade
from arena.ledger.position_ledger import PositionLedger

SUMMARY_COLUMNS = [
    "agent",
    "name",
    "balance",
    "return_pct",
    "trades",
    "wins",
    "losses",
    "win_rate",
    "total_pnl",
    "avg_pnl",
    "best_pnl",
    "worst_pnl",
    "max_drawdown",
]


class PerformanceReport:
    """Generate per-agent performance tables from a simulation's state."""

    def __init__(self, registry: AgentRegistry, ledger: PositionLedger):
        self.registry = registry
        self.ledger = ledger

    def trades_frame(self) -> pd.DataFrame:
        """Closed trades in the ledger's log as a DataFrame (newest first)."""
        records = [_trade_record(t) for t in self.ledger.history]
        return pd.DataFrame(
            records,
            columns=[
                "id",
                "agent",
                "asset",
                "direction",
                "entry_price",
                "exit_price",
                "size",
                "pnl",
                "reason",
                "opened_at",
                "closed_at",
            ],
        )

    def summary(self) -> pd.DataFrame:
        """One row per agent, in registry order.

        Trade counts come from the agent statistics (every trade ever
        recorded); PnL aggregates come from the capped closed-trade log.
        """
        trades = self.trades_frame()
        rows = []
        for agent in self.registry:
            stats = agent.stats
            agent_pnl = trades.loc[trades["agent"] == agent.id, "pnl"]
            initial = float(self.registry.initial_balance)

            rows.append(
                {
                    "agent": agent.id,
                    "name": agent.display_name,
                    "balance": float(agent.balance),
                    "return_pct": (float(agent.balance) - initial) / initial * 100 if initial else 0.0,
                    "trades": stats.total_trades,
                    "wins": stats.wins,
                    "losses": stats.losses,
                    "win_rate": stats.win_rate,
                    "total_pnl": float(agent_pnl.sum()) if not agent_pnl.empty else 0.0,
                    "avg_pnl": float(np.mean(agent_pnl)) if not agent_pnl.empty else 0.0,
                    "best_pnl": _pnl_or_nan(stats.best_trade),
                    "worst_pnl": _pnl_or_nan(stats.worst_trade),
                    "max_drawdown": float(stats.max_drawdown),
                }
            )
        return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)

    def equity_curve(self, agent_id: str) -> pd.DataFrame:
        """Balance history of one agent indexed by time (empty if unknown)."""
        agent = self.registry.get(agent_id)
        if agent is None:
            return pd.DataFrame(columns=["balance"])
        df = pd.DataFrame(
            [{"time": p.time, "balance": float(p.balance)} for p in agent.balance_history]
        )
        return df.set_index("time")

    def equity_curves(self) -> Dict[str, pd.DataFrame]:
        return {agent.id: self.equity_curve(agent.id) for agent in self.registry}

    def generate_markdown_report(self, title: Optional[str] = None) -> str:
        """Generate markdown formatted report."""
        summary = self.summary()
        lines: List[str] = []

        lines.append(f"# {title or 'Agent Arena Performance Report'}")
        lines.append("")
        lines.append(f"**Agents:** {len(summary)}")
        lines.append(f"**Closed Trades (logged):** {len(self.ledger.history)}")
        lines.append(f"**Open Positions:** {self.ledger.open_count}")
        lines.append("")

        lines.append("## Leaderboard")
        lines.append("")
        lines.append("| Agent | Balance | Return | Trades | Win Rate | Max Drawdown |")
        lines.append("|-------|---------|--------|--------|----------|--------------|")
        for _, row in summary.sort_values("balance", ascending=False).iterrows():
            lines.append(
                f"| {row['name']} | ${row['balance']:,.2f} | {row['return_pct']:+.2f}% "
                f"| {row['trades']} | {row['win_rate']:.1f}% | ${row['max_drawdown']:,.2f} |"
            )
        lines.append("")

        lines.append("## Trade Statistics")
        lines.append("")
        lines.append("| Agent | Total PnL | Avg PnL | Best | Worst |")
        lines.append("|-------|-----------|---------|------|-------|")
        for _, row in summary.iterrows():
            lines.append(
                f"| {row['name']} | {row['total_pnl']:+,.2f} | {row['avg_pnl']:+,.2f} "
                f"| {_fmt(row['best_pnl'])} | {_fmt(row['worst_pnl'])} |"
            )
        lines.append("")

        return "\n".join(lines)


def _trade_record(trade: Trade) -> dict:
    return {
        "id": trade.id,
        "agent": trade.agent_id,
        "asset": trade.asset,
        "direction": trade.direction.value,
        "entry_price": float(trade.entry_price),
        "exit_price": float(trade.exit_price) if trade.exit_price is not None else np.nan,
        "size": float(trade.size),
        "pnl": float(trade.realized_pnl) if trade.realized_pnl is not None else np.nan,
        "reason": trade.close_reason.value if trade.close_reason else None,
        "opened_at": trade.opened_at,
        "closed_at": trade.closed_at,
    }


def _pnl_or_nan(trade: Optional[Trade]) -> float:
    if trade is None or trade.realized_pnl is None:
        return np.nan
    return float(trade.realized_pnl)


def _fmt(value: float) -> str:
    return "-" if pd.isna(value) else f"{value:+,.2f}"
