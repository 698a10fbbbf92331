"""Per-agent decision policy: when to exit, when and what to enter.

The policy is stateless apart from its random source. Draw order matters
for reproducible runs and is fixed:

- exit check: one ``random()`` per open position, only when neither
  bracket was hit
- entry check: ``random()`` for the entry roll, then ``choice()`` for the
  asset, ``random()`` for the direction and ``uniform()`` for the size
"""
import random
from decimal import Decimal
from typing import Dict, Optional, Sequence

import structlog

from arena.core.config import PolicyConfig
from arena.core.models import (AgentProfile, AnalysisStyle, Asset, CloseReason,
                               RiskTolerance, Trade, TradeDirection, to_money)

logger = structlog.get_logger(__name__)


# Entry analysis phrases, keyed by analysis style then direction.
ANALYSIS_PHRASES: Dict[AnalysisStyle, Dict[TradeDirection, str]] = {
    AnalysisStyle.TECHNICAL: {
        TradeDirection.LONG: "{asset}: breakout above resistance with rising momentum, going long.",
        TradeDirection.SHORT: "{asset}: bearish divergence on the oscillators, opening a short.",
    },
    AnalysisStyle.FUNDAMENTAL: {
        TradeDirection.LONG: "{asset}: fundamentals look undervalued relative to growth, buying.",
        TradeDirection.SHORT: "{asset}: valuation stretched against earnings outlook, selling short.",
    },
    AnalysisStyle.MIXED: {
        TradeDirection.LONG: "{asset}: trend and fundamentals agree, small long with tight risk.",
        TradeDirection.SHORT: "{asset}: weak trend and soft fundamentals, cautious short.",
    },
    AnalysisStyle.QUANTITATIVE: {
        TradeDirection.LONG: "{asset}: model signal positive, mean-reversion edge favours a long.",
        TradeDirection.SHORT: "{asset}: model signal negative, statistical edge favours a short.",
    },
}

CLOSE_REASON_TEXT = {
    CloseReason.TAKE_PROFIT: "take profit reached",
    CloseReason.STOP_LOSS: "stop loss hit",
    CloseReason.DISCRETIONARY: "discretionary exit",
}


class TradingPolicy:
    """
    Entry/exit rules shared by all agents, parameterized by risk tolerance.

    Exit: close when the take profit or stop loss is reached, otherwise
    close with probability ``1 - hold_probability``.

    Entry: with fewer than ``max_open_positions`` open, enter with
    probability ``entry_probability`` on a preferred asset (any asset if
    none of the preferred ones trade), random direction, and a size of
    ``base_size(risk) * uniform(size_jitter_min, size_jitter_max)``.
    """

    def __init__(
        self,
        config: Optional[PolicyConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or PolicyConfig()
        self.rng = rng or random.Random()

        self.base_sizes: Dict[RiskTolerance, Decimal] = {
            RiskTolerance.HIGH: Decimal(str(self.config.base_size_high)),
            RiskTolerance.MEDIUM: Decimal(str(self.config.base_size_medium)),
            RiskTolerance.LOW: Decimal(str(self.config.base_size_low)),
            RiskTolerance.VARIABLE: Decimal(str(self.config.base_size_variable)),
        }

    # ------------------------------------------------------------------
    # Exit
    # ------------------------------------------------------------------

    def hold_probability(self, risk: RiskTolerance) -> float:
        if risk == RiskTolerance.LOW:
            return self.config.hold_probability_low
        return self.config.hold_probability_default

    def evaluate_exit(
        self, trade: Trade, price: Decimal, risk: RiskTolerance
    ) -> Optional[CloseReason]:
        """
        Decide whether an open trade closes at ``price``.

        Returns:
            The close reason, or None to keep the trade open
        """
        if trade.hits_take_profit(price):
            return CloseReason.TAKE_PROFIT
        if trade.hits_stop_loss(price):
            return CloseReason.STOP_LOSS
        if self.rng.random() > self.hold_probability(risk):
            return CloseReason.DISCRETIONARY
        return None

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    def can_open(self, open_count: int) -> bool:
        return open_count < self.config.max_open_positions

    def should_enter(self) -> bool:
        return self.rng.random() < self.config.entry_probability

    def select_asset(self, profile: AgentProfile, assets: Sequence[Asset]) -> Asset:
        """Pick uniformly among the agent's preferred assets, else among all."""
        candidates = [a for a in assets if a.symbol in profile.preferred_assets]
        if not candidates:
            candidates = list(assets)
        return self.rng.choice(candidates)

    def choose_direction(self) -> TradeDirection:
        return TradeDirection.LONG if self.rng.random() < 0.5 else TradeDirection.SHORT

    def base_size(self, risk: RiskTolerance) -> Decimal:
        return self.base_sizes[risk]

    def position_size(self, risk: RiskTolerance) -> Decimal:
        jitter = self.rng.uniform(self.config.size_jitter_min, self.config.size_jitter_max)
        return to_money(self.base_size(risk) * Decimal(str(jitter)))

    # ------------------------------------------------------------------
    # Analysis text
    # ------------------------------------------------------------------

    @staticmethod
    def entry_analysis(
        style: AnalysisStyle, direction: TradeDirection, asset: str
    ) -> str:
        """Display text for a new position; depends only on its inputs."""
        return ANALYSIS_PHRASES[style][direction].format(asset=asset)

    @staticmethod
    def closing_summary(profile: AgentProfile, trade: Trade) -> str:
        """Display text for a closed position."""
        reason = CLOSE_REASON_TEXT.get(trade.close_reason, "position closed")
        return (
            f"{profile.display_name} closed {trade.direction.value} {trade.asset} "
            f"at {trade.exit_price} ({reason}). PnL: {trade.realized_pnl:+}"
        )
