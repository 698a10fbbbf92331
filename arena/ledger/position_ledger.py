"""Position ledger - open positions, closed trade log and analysis notes.

The ledger references agents and assets by identifier only. Risk and
capital checks are the caller's job; the ledger just books what it is told.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Set

import structlog

from arena.core.models import (AnalysisNote, CloseReason, Trade,
                               TradeDirection, create_trade, make_trade_id)

logger = structlog.get_logger(__name__)


class PositionLedger:
    """
    Owns every trade of a simulation run.

    - ``open_positions``: open trades in the order they were opened
    - ``history``: closed trades, newest first, capped at ``closed_trade_limit``
    - ``analyses``: every analysis note ever written, oldest first
    """

    def __init__(
        self,
        bracket_pct: Decimal = Decimal("0.03"),
        closed_trade_limit: int = 200,
    ):
        self.bracket_pct = Decimal(str(bracket_pct))
        self.closed_trade_limit = closed_trade_limit

        self.open_positions: List[Trade] = []
        self.history: List[Trade] = []
        self.analyses: List[AnalysisNote] = []
        self._issued_ids: Set[str] = set()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def open_position(
        self,
        agent_id: str,
        asset: str,
        direction: TradeDirection,
        entry_price: Decimal,
        size: Decimal,
        analysis: str,
        timestamp: datetime,
    ) -> Trade:
        """
        Book a new open trade and its analysis note.

        Args:
            agent_id: Owning agent
            asset: Asset symbol
            direction: Long or short
            entry_price: Entry price
            size: Position size
            analysis: Entry analysis text
            timestamp: Open time

        Returns:
            The open trade with its stop loss / take profit bracket
        """
        trade = create_trade(
            agent_id=agent_id,
            asset=asset,
            direction=direction,
            entry_price=entry_price,
            size=size,
            opened_at=timestamp,
            analysis=analysis,
            bracket_pct=self.bracket_pct,
            trade_id=self._unique_id(agent_id, timestamp),
        )
        self.open_positions.append(trade)
        self.analyses.append(
            AnalysisNote(
                id=trade.id, agent_id=agent_id, summary=analysis, timestamp=timestamp
            )
        )

        logger.info(
            "ledger.position_opened",
            trade_id=trade.id,
            agent=agent_id,
            asset=asset,
            direction=direction.value,
            entry_price=str(trade.entry_price),
            size=str(trade.size),
            stop_loss=str(trade.stop_loss_price),
            take_profit=str(trade.take_profit_price),
        )
        return trade

    def close_position(
        self,
        trade_id: str,
        exit_price: Decimal,
        timestamp: datetime,
        reason: CloseReason = CloseReason.DISCRETIONARY,
        summary: Optional[str] = None,
    ) -> Optional[Trade]:
        """
        Close an open trade at ``exit_price``.

        Args:
            trade_id: ID of the open trade
            exit_price: Exit price
            timestamp: Close time
            reason: Why the trade is being closed
            summary: Closing note text (a default one is written if omitted)

        Returns:
            The closed trade, or None if no open trade has that ID
        """
        index = self._find_open(trade_id)
        if index is None:
            logger.debug("ledger.close_missing", trade_id=trade_id)
            return None

        trade = self.open_positions.pop(index)
        closed = trade.close(exit_price, timestamp, reason)

        self.history.insert(0, closed)
        del self.history[self.closed_trade_limit:]

        self.analyses.append(
            AnalysisNote(
                id=closed.id,
                agent_id=closed.agent_id,
                summary=summary or describe_close(closed),
                timestamp=timestamp,
            )
        )

        logger.info(
            "ledger.position_closed",
            trade_id=closed.id,
            agent=closed.agent_id,
            asset=closed.asset,
            exit_price=str(closed.exit_price),
            pnl=str(closed.realized_pnl),
            reason=reason.value,
        )
        return closed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def recent_analyses(self, n: int = 8) -> List[AnalysisNote]:
        """Last ``n`` analysis notes, newest first."""
        if n <= 0:
            return []
        return list(reversed(self.analyses[-n:]))

    def positions_for(self, agent_id: str) -> List[Trade]:
        """Open trades of one agent, in open order."""
        return [t for t in self.open_positions if t.agent_id == agent_id]

    def get_open(self, trade_id: str) -> Optional[Trade]:
        index = self._find_open(trade_id)
        return self.open_positions[index] if index is not None else None

    def grouped_by_agent(self) -> Dict[str, List[Trade]]:
        grouped: Dict[str, List[Trade]] = {}
        for trade in self.open_positions:
            grouped.setdefault(trade.agent_id, []).append(trade)
        return grouped

    @property
    def open_count(self) -> int:
        return len(self.open_positions)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find_open(self, trade_id: str) -> Optional[int]:
        for index, trade in enumerate(self.open_positions):
            if trade.id == trade_id:
                return index
        return None

    def _unique_id(self, agent_id: str, timestamp: datetime) -> str:
        # Ids are never reused within a run, including ids of closed trades.
        base = make_trade_id(agent_id, timestamp)
        trade_id, suffix = base, 1
        while trade_id in self._issued_ids:
            trade_id = f"{base}-{suffix}"
            suffix += 1
        self._issued_ids.add(trade_id)
        return trade_id


def describe_close(trade: Trade) -> str:
    """Default closing note for a trade."""
    reason = trade.close_reason.value.replace("_", " ") if trade.close_reason else "closed"
    return (
        f"Closed {trade.direction.value} {trade.asset} at {trade.exit_price} "
        f"({reason}), PnL {trade.realized_pnl:+}"
    )
