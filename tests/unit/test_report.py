"""Unit tests for the performance report."""
from datetime import timedelta
from decimal import Decimal

import pandas as pd
import pytest

from arena.core.models import CloseReason, TradeDirection
from arena.reporting.report import SUMMARY_COLUMNS, PerformanceReport


@pytest.fixture
def populated(registry, ledger, start_time):
    """Alpha with one winning and one losing long, booked like the engine does."""
    outcomes = [
        ("100", "103", CloseReason.TAKE_PROFIT),
        ("100", "98", CloseReason.DISCRETIONARY),
    ]
    for i, (entry, exit_price, reason) in enumerate(outcomes):
        at = start_time + timedelta(seconds=i * 3)
        trade = ledger.open_position(
            agent_id="alpha",
            asset="TEST",
            direction=TradeDirection.LONG,
            entry_price=Decimal(entry),
            size=Decimal("1"),
            analysis="",
            timestamp=at,
        )
        closed = ledger.close_position(trade.id, Decimal(exit_price), at, reason=reason)
        registry.adjust_balance("alpha", closed.realized_pnl, at)
        registry.record_trade("alpha", closed)
    return PerformanceReport(registry, ledger)


class TestPerformanceReport:
    """Test report tables and markdown output."""

    def test_trades_frame(self, populated):
        frame = populated.trades_frame()

        assert len(frame) == 2
        assert list(frame["pnl"]) == [-2.0, 3.0]
        assert list(frame["reason"]) == ["discretionary", "take_profit"]
        assert set(frame["direction"]) == {"long"}

    def test_empty_trades_frame(self, registry, ledger):
        frame = PerformanceReport(registry, ledger).trades_frame()
        assert frame.empty
        assert "pnl" in frame.columns

    def test_summary(self, populated):
        summary = populated.summary()
        row = summary.iloc[0]

        assert list(summary.columns) == SUMMARY_COLUMNS
        assert row["agent"] == "alpha"
        assert row["balance"] == pytest.approx(10001.0)
        assert row["return_pct"] == pytest.approx(0.01)
        assert row["trades"] == 2
        assert row["wins"] == 1
        assert row["losses"] == 1
        assert row["win_rate"] == 50.0
        assert row["total_pnl"] == pytest.approx(1.0)
        assert row["avg_pnl"] == pytest.approx(0.5)
        assert row["best_pnl"] == pytest.approx(3.0)
        assert row["worst_pnl"] == pytest.approx(-2.0)
        assert row["max_drawdown"] == pytest.approx(2.0)

    def test_summary_without_trades(self, registry, ledger):
        row = PerformanceReport(registry, ledger).summary().iloc[0]

        assert row["trades"] == 0
        assert row["total_pnl"] == 0.0
        assert pd.isna(row["best_pnl"])
        assert pd.isna(row["worst_pnl"])

    def test_equity_curve(self, populated, start_time):
        curve = populated.equity_curve("alpha")

        assert list(curve["balance"]) == [10000.0, 10003.0, 10001.0]
        assert curve.index[0] == start_time

    def test_equity_curve_unknown_agent(self, populated):
        curve = populated.equity_curve("nobody")
        assert curve.empty
        assert list(curve.columns) == ["balance"]

    def test_equity_curves(self, populated):
        assert set(populated.equity_curves()) == {"alpha"}

    def test_markdown_report(self, populated):
        report = populated.generate_markdown_report()

        assert report.startswith("# Agent Arena Performance Report")
        assert "## Leaderboard" in report
        assert "## Trade Statistics" in report
        assert "| Alpha | $10,001.00 | +0.01% | 2 | 50.0% | $2.00 |" in report
        assert "**Closed Trades (logged):** 2" in report

    def test_markdown_custom_title(self, registry, ledger):
        report = PerformanceReport(registry, ledger).generate_markdown_report("Run 7")
        assert report.startswith("# Run 7")
        assert "| Alpha | +0.00 | +0.00 | - | - |" in report
