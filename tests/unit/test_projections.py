"""Unit tests for read-only projections."""
from datetime import timedelta
from decimal import Decimal

from arena.agents.registry import AgentRegistry
from arena.core.models import AgentProfile, AnalysisStyle, RiskTolerance, TradeDirection
from arena.market.price_generator import Market, PriceGenerator, create_default_assets
from arena.reporting import projections


def book(ledger, agent_id, asset, direction, entry, size, at):
    return ledger.open_position(
        agent_id=agent_id,
        asset=asset,
        direction=direction,
        entry_price=Decimal(entry),
        size=Decimal(size),
        analysis=f"{agent_id} {direction.value} {asset}",
        timestamp=at,
    )


class TestLedgerProjections:
    """Test projections over ledger state."""

    def test_positions_by_agent(self, ledger, start_time):
        a = book(ledger, "alpha", "TEST", TradeDirection.LONG, "100", "1", start_time)
        b = book(ledger, "beta", "TEST", TradeDirection.SHORT, "100", "1", start_time)

        assert projections.positions_by_agent(ledger) == {"alpha": [a], "beta": [b]}

    def test_recent_analyses(self, ledger, start_time):
        for i in range(10):
            book(ledger, "alpha", f"A{i}", TradeDirection.LONG, "10", "1",
                 start_time + timedelta(seconds=i))

        notes = projections.recent_analyses(ledger)

        assert len(notes) == 8
        assert notes[0].summary == "alpha long A9"
        assert notes[-1].summary == "alpha long A2"

    def test_closed_trades_filters(self, ledger, start_time):
        for i, (agent_id, asset) in enumerate(
            [("alpha", "BTC"), ("beta", "BTC"), ("alpha", "ETH"), ("alpha", "BTC")]
        ):
            at = start_time + timedelta(seconds=i)
            trade = book(ledger, agent_id, asset, TradeDirection.LONG, "100", "1", at)
            ledger.close_position(trade.id, Decimal("101"), at)

        assert len(projections.closed_trades(ledger)) == 4
        alpha = projections.closed_trades(ledger, agent_id="alpha")
        assert [t.asset for t in alpha] == ["BTC", "ETH", "BTC"]
        assert len(projections.closed_trades(ledger, asset="BTC")) == 3
        assert len(projections.closed_trades(ledger, agent_id="alpha", asset="BTC")) == 2
        assert len(projections.closed_trades(ledger, limit=1)) == 1


class TestAgentProjections:
    """Test projections over agent state."""

    def test_daily_pnl(self, registry, start_time):
        agent = registry.get("alpha")
        registry.adjust_balance("alpha", Decimal("-250"), start_time)

        assert projections.daily_pnl(agent) == Decimal("-250.00")
        assert projections.daily_pnl_pct(agent) == -2.5

    def test_daily_pnl_after_reset(self, registry, start_time):
        registry.adjust_balance("alpha", Decimal("100"), start_time)
        projections.reset_period(registry)
        registry.adjust_balance("alpha", Decimal("10.10"), start_time)
        agent = registry.get("alpha")

        assert projections.daily_pnl(agent) == Decimal("10.10")
        assert projections.daily_pnl_pct(agent) == 0.1

    def test_unrealized_pnl(self, ledger, start_time):
        trade = book(ledger, "alpha", "TEST", TradeDirection.SHORT, "50", "2", start_time)
        assert projections.unrealized_pnl(trade, Decimal("49")) == Decimal("2.00")

    def test_agent_equity(self, registry, ledger, start_time):
        book(ledger, "alpha", "TEST", TradeDirection.LONG, "100", "2", start_time)
        book(ledger, "alpha", "GONE", TradeDirection.LONG, "100", "1", start_time)
        book(ledger, "beta", "TEST", TradeDirection.LONG, "100", "5", start_time)
        agent = registry.get("alpha")

        equity = projections.agent_equity(
            agent, ledger.open_positions, {"TEST": Decimal("105")}
        )

        assert equity == Decimal("10010.00")

    def test_leaderboard(self, start_time):
        profiles = [
            AgentProfile(
                id=name,
                display_name=name.title(),
                risk_tolerance=RiskTolerance.MEDIUM,
                analysis_style=AnalysisStyle.MIXED,
            )
            for name in ("a", "b", "c")
        ]
        registry = AgentRegistry(profiles=profiles, timestamp=start_time)
        registry.adjust_balance("b", Decimal("50"), start_time)
        registry.adjust_balance("c", Decimal("-50"), start_time)

        assert [a.id for a in projections.leaderboard(registry)] == ["b", "a", "c"]
        assert [a.id for a in projections.agent_list(registry)] == ["a", "b", "c"]


class TestMarketProjections:
    """Test projections over the market."""

    def test_asset_views(self, start_time):
        market = Market(create_default_assets(start_time), PriceGenerator())

        assert [a.symbol for a in projections.asset_list(market)] == [
            "BTC", "ETH", "AAPL", "TSLA"
        ]
        by_symbol = projections.assets_by_symbol(market)
        assert by_symbol["TSLA"].price == Decimal("172.00")
        assert set(by_symbol) == {"BTC", "ETH", "AAPL", "TSLA"}
