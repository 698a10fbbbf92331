"""Data models for the agent trading arena.

This module defines the data structures shared by the simulation engine:
- Market: assets and their bounded price history
- Agents: immutable profiles plus mutable capital and statistics
- Ledger: trades (open/closed) and the analysis notes attached to them

All monetary values use Decimal quantized to cents.
All timestamps are naive UTC datetime objects supplied by the simulation clock.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

CENT = Decimal("0.01")


def to_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """Quantize a monetary value to two decimal places (half-up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# =============================================================================
# Enums
# =============================================================================

class RiskTolerance(str, Enum):
    """How aggressively an agent sizes and holds positions."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VARIABLE = "variable"


class AnalysisStyle(str, Enum):
    """Flavour of the analysis text an agent writes."""
    TECHNICAL = "technical"
    FUNDAMENTAL = "fundamental"
    MIXED = "mixed"
    QUANTITATIVE = "quantitative"


class TradeDirection(str, Enum):
    """Trade direction - long profits from rising prices, short from falling."""
    LONG = "long"
    SHORT = "short"


class TradeStatus(str, Enum):
    """Trade lifecycle status. OPEN -> CLOSED is the only transition."""
    OPEN = "open"
    CLOSED = "closed"


class CloseReason(str, Enum):
    """Why a trade was closed."""
    TAKE_PROFIT = "take_profit"
    STOP_LOSS = "stop_loss"
    DISCRETIONARY = "discretionary"


# =============================================================================
# Market Models
# =============================================================================

class PricePoint(BaseModel):
    """Single entry of an asset's price history."""
    time: datetime
    price: Decimal


class Asset(BaseModel):
    """Tradable synthetic asset.

    Attributes:
        symbol: Ticker symbol (e.g. "BTC")
        display_name: Human readable name
        price: Current price
        history: Recent price points, oldest first
    """
    symbol: str = Field(..., description="Ticker symbol")
    display_name: str = Field(..., description="Display name")
    price: Decimal = Field(..., gt=0, description="Current price")
    history: List[PricePoint] = Field(default_factory=list, description="Price history")

    @property
    def last_update(self) -> Optional[datetime]:
        """Time of the most recent price point."""
        return self.history[-1].time if self.history else None


class AssetQuote(BaseModel):
    """Price of one asset as published in a market snapshot."""
    symbol: str
    display_name: str
    price: Decimal


class MarketSnapshot(BaseModel):
    """Result of advancing the market by one tick."""
    timestamp: datetime
    tick: int = Field(..., ge=0)
    assets: List[AssetQuote] = Field(default_factory=list)

    def price_of(self, symbol: str) -> Optional[Decimal]:
        """Price of a symbol in this snapshot (None if absent)."""
        for quote in self.assets:
            if quote.symbol == symbol:
                return quote.price
        return None


# =============================================================================
# Trade Models
# =============================================================================

def calculate_brackets(
    entry_price: Decimal,
    direction: TradeDirection,
    bracket_pct: Decimal = Decimal("0.03"),
) -> Tuple[Decimal, Decimal]:
    """Compute the (stop_loss, take_profit) pair for a new trade.

    Longs stop below and take profit above the entry; shorts the reverse.

    Args:
        entry_price: Entry execution price
        direction: Trade direction
        bracket_pct: Distance from entry as a fraction (0.03 = 3%)

    Returns:
        Tuple of (stop_loss_price, take_profit_price), both rounded to cents
    """
    below = entry_price * (Decimal("1") - bracket_pct)
    above = entry_price * (Decimal("1") + bracket_pct)
    if direction == TradeDirection.LONG:
        return to_money(below), to_money(above)
    return to_money(above), to_money(below)


class Trade(BaseModel):
    """Directional position on an asset with a fixed exit bracket.

    Identity, entry and bracket fields are frozen: they are set when the
    trade is opened and cannot be reassigned afterwards. Closing produces a
    new CLOSED copy carrying exit price, realized PnL and close time.

    Attributes:
        id: Trade ID (agent id + open time)
        agent_id: Owning agent
        asset: Asset symbol
        direction: Long or short
        entry_price: Entry price
        size: Position size in asset units
        opened_at: Open timestamp
        status: OPEN or CLOSED
        stop_loss_price: Stop loss level
        take_profit_price: Take profit level
        analysis: Analysis text written when the trade was opened
        exit_price: Exit price (closed trades only)
        realized_pnl: Booked PnL (closed trades only)
        closed_at: Close timestamp (closed trades only)
        close_reason: Why the trade closed (closed trades only)
    """

    id: str = Field(..., frozen=True, description="Trade ID")
    agent_id: str = Field(..., frozen=True, description="Owning agent")
    asset: str = Field(..., frozen=True, description="Asset symbol")
    direction: TradeDirection = Field(..., frozen=True, description="Direction")
    entry_price: Decimal = Field(..., gt=0, frozen=True, description="Entry price")
    size: Decimal = Field(..., gt=0, frozen=True, description="Position size")
    opened_at: datetime = Field(..., frozen=True, description="Open time")

    stop_loss_price: Decimal = Field(..., frozen=True, description="Stop loss price")
    take_profit_price: Decimal = Field(..., frozen=True, description="Take profit price")

    status: TradeStatus = Field(default=TradeStatus.OPEN, description="Trade status")
    analysis: str = Field(default="", description="Entry analysis")

    exit_price: Optional[Decimal] = Field(default=None, description="Exit price")
    realized_pnl: Optional[Decimal] = Field(default=None, description="Realized PnL")
    closed_at: Optional[datetime] = Field(default=None, description="Close time")
    close_reason: Optional[CloseReason] = Field(default=None, description="Close reason")

    @property
    def is_open(self) -> bool:
        return self.status == TradeStatus.OPEN

    @property
    def is_long(self) -> bool:
        return self.direction == TradeDirection.LONG

    @property
    def notional(self) -> Decimal:
        """Position value at entry price."""
        return to_money(self.entry_price * self.size)

    @property
    def duration(self) -> Optional[float]:
        """Trade duration in seconds (None if still open)."""
        if self.closed_at is None:
            return None
        return (self.closed_at - self.opened_at).total_seconds()

    def hits_take_profit(self, price: Decimal) -> bool:
        """True if price reached the take profit level."""
        if self.is_long:
            return price >= self.take_profit_price
        return price <= self.take_profit_price

    def hits_stop_loss(self, price: Decimal) -> bool:
        """True if price reached the stop loss level."""
        if self.is_long:
            return price <= self.stop_loss_price
        return price >= self.stop_loss_price

    def calculate_pnl(self, exit_price: Decimal) -> Decimal:
        """PnL of closing the full size at exit_price, rounded to cents."""
        if self.is_long:
            return to_money((exit_price - self.entry_price) * self.size)
        return to_money((self.entry_price - exit_price) * self.size)

    def close(
        self,
        exit_price: Decimal,
        closed_at: datetime,
        reason: CloseReason = CloseReason.DISCRETIONARY,
    ) -> "Trade":
        """Return the CLOSED version of this trade.

        Args:
            exit_price: Exit execution price
            closed_at: Close timestamp
            reason: Why the trade closed

        Returns:
            New Trade with status CLOSED and realized PnL

        Raises:
            ValueError: If the trade is already closed
        """
        if not self.is_open:
            raise ValueError(f"Trade {self.id} is already closed")

        exit_price = to_money(exit_price)
        return self.model_copy(
            update={
                "status": TradeStatus.CLOSED,
                "exit_price": exit_price,
                "realized_pnl": self.calculate_pnl(exit_price),
                "closed_at": closed_at,
                "close_reason": reason,
            }
        )


class AnalysisNote(BaseModel):
    """Analysis text attached to a trade open or close."""
    id: str = Field(..., description="Trade ID the note refers to")
    agent_id: str
    summary: str
    timestamp: datetime


# =============================================================================
# Agent Models
# =============================================================================

class AgentProfile(BaseModel):
    """Immutable strategy profile of an agent."""
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    avatar: str = ""
    color: str = ""
    risk_tolerance: RiskTolerance
    preferred_assets: FrozenSet[str] = Field(default_factory=frozenset)
    analysis_style: AnalysisStyle


class BalancePoint(BaseModel):
    """Single entry of an agent's balance history."""
    time: datetime
    balance: Decimal


class AgentStats(BaseModel):
    """Rolling performance statistics of an agent.

    peak_balance and max_drawdown only ever grow. Losses are not tracked
    separately: trades with zero PnL are neither wins nor explicit losses.
    """
    best_trade: Optional[Trade] = None
    worst_trade: Optional[Trade] = None
    win_rate: float = Field(default=0.0, ge=0.0, le=100.0, description="Win rate %")
    total_trades: int = Field(default=0, ge=0)
    wins: int = Field(default=0, ge=0)
    max_drawdown: Decimal = Field(default=Decimal("0"), ge=0)
    peak_balance: Decimal = Field(default=Decimal("0"))

    @property
    def losses(self) -> int:
        """Non-winning trades (includes break-even trades)."""
        return self.total_trades - self.wins


class Agent(BaseModel):
    """Simulated trading participant.

    Attributes:
        profile: Strategy profile
        balance: Current realized balance
        start_of_period_balance: Balance at the start of the current period
        balance_history: Recent balance points, oldest first
        last_analysis: Latest analysis text for display
        stats: Performance statistics
    """
    profile: AgentProfile
    balance: Decimal
    start_of_period_balance: Decimal
    balance_history: List[BalancePoint] = Field(default_factory=list)
    last_analysis: str = ""
    stats: AgentStats = Field(default_factory=AgentStats)

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def display_name(self) -> str:
        return self.profile.display_name

    @property
    def risk_tolerance(self) -> RiskTolerance:
        return self.profile.risk_tolerance


# =============================================================================
# Tick Models
# =============================================================================

class TickResult(BaseModel):
    """Everything that happened during one simulation tick."""
    tick: int
    timestamp: datetime
    market: MarketSnapshot
    opened: List[Trade] = Field(default_factory=list)
    closed: List[Trade] = Field(default_factory=list)


# =============================================================================
# Factory Functions
# =============================================================================

def create_trade(
    agent_id: str,
    asset: str,
    direction: TradeDirection,
    entry_price: Decimal,
    size: Decimal,
    opened_at: datetime,
    analysis: str = "",
    bracket_pct: Decimal = Decimal("0.03"),
    trade_id: Optional[str] = None,
) -> Trade:
    """Factory function to create an open trade with its bracket.

    Args:
        agent_id: Owning agent
        asset: Asset symbol
        direction: Long or short
        entry_price: Entry price (rounded to cents)
        size: Position size (rounded to cents)
        opened_at: Open timestamp
        analysis: Entry analysis text
        bracket_pct: Stop/take distance from entry
        trade_id: Explicit ID (defaults to agent id + open time in ms)

    Returns:
        Configured open trade
    """
    entry_price = to_money(entry_price)
    stop_loss, take_profit = calculate_brackets(entry_price, direction, bracket_pct)
    return Trade(
        id=trade_id or make_trade_id(agent_id, opened_at),
        agent_id=agent_id,
        asset=asset,
        direction=direction,
        entry_price=entry_price,
        size=to_money(size),
        opened_at=opened_at,
        stop_loss_price=stop_loss,
        take_profit_price=take_profit,
        analysis=analysis,
    )


def make_trade_id(agent_id: str, opened_at: datetime) -> str:
    """Trade ID from owning agent and open time in milliseconds."""
    millis = int(opened_at.timestamp() * 1000)
    return f"{agent_id}-{millis}"
