"""
Agent Arena - Main Entry Point

Four simulated trading agents competing on a synthetic market.

Usage:
    # Check configuration
    python main.py --check

    # Run 200 ticks as fast as possible and print a summary
    python main.py --ticks 200 --seed 42

    # Same, followed by the markdown performance report
    python main.py --ticks 200 --seed 42 --report

    # Run live at the configured cadence until Ctrl+C
    python main.py --live --interval 1.5
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Dict, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

import structlog

from arena.core.config import ArenaConfig, SimulationConfig, arena_config
from arena.core.engine import SimulationEngine, create_simulation
from arena.core.models import TickResult
from arena.core.runner import SimulationRunner
from arena.reporting import projections
from arena.reporting.report import PerformanceReport
from arena.utils.logging_config import setup_logging

logger = structlog.get_logger(__name__)


class ArenaApp:
    """
    Command line application wrapping one simulation run.

    Owns the engine and, in live mode, the runner that ticks it on a
    fixed cadence until a shutdown signal arrives.
    """

    def __init__(self, config: ArenaConfig):
        self.config = config
        self.engine: SimulationEngine = create_simulation(config=config)
        self.runner: Optional[SimulationRunner] = None
        self._shutdown_event = asyncio.Event()

    def run_ticks(self, ticks: int):
        """Run ``ticks`` ticks back to back."""
        logger.info("app.run_ticks", ticks=ticks)
        self.engine.run(ticks)

    async def run_live(self):
        """Tick at the configured cadence until SIGINT/SIGTERM."""
        self.runner = SimulationRunner(
            self.engine,
            interval=self.config.simulation.tick_interval_seconds,
            on_tick=self._print_tick,
        )

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._signal_handler)

        try:
            await self.runner.start()
            await self._shutdown_event.wait()
        finally:
            await self.runner.stop()

    def _signal_handler(self):
        logger.info("app.shutdown_signal_received")
        self._shutdown_event.set()

    def _print_tick(self, result: TickResult):
        prices = "  ".join(f"{q.symbol} {q.price}" for q in result.market.assets)
        print(
            f"[tick {result.tick:>5}] {prices}  "
            f"(+{len(result.opened)} opened, -{len(result.closed)} closed)"
        )

    def get_status(self) -> Dict:
        return self.engine.get_status()


def check_configuration(config: ArenaConfig) -> Dict:
    """
    Check if configuration is valid.

    Returns:
        Dictionary with validation results
    """
    validation = config.validate_configuration()
    return {
        "valid": validation["valid"],
        "issues": validation["issues"],
        "initial_balance": config.simulation.initial_balance,
        "tick_interval_seconds": config.simulation.tick_interval_seconds,
        "seed": config.simulation.seed,
    }


def print_summary(engine: SimulationEngine, analyses_limit: int = 8):
    """Print formatted end-of-run summary."""
    print("\n" + "=" * 60)
    print("              AGENT ARENA - SUMMARY")
    print("=" * 60)

    print(f"\nTicks: {engine.tick_count}")

    print("\nMarket:")
    for asset in projections.asset_list(engine.market):
        print(f"   {asset.symbol:<5} {asset.display_name:<10} {asset.price:>12}")

    print("\nLeaderboard:")
    open_by_agent = projections.positions_by_agent(engine.ledger)
    for agent in projections.leaderboard(engine.registry):
        print(
            f"   {agent.profile.avatar} {agent.display_name:<8} "
            f"balance {agent.balance:>10}  "
            f"period {projections.daily_pnl(agent):>+9}  "
            f"trades {agent.stats.total_trades:>4}  "
            f"win {agent.stats.win_rate:>5.1f}%  "
            f"open {len(open_by_agent.get(agent.id, [])):>1}"
        )

    notes = projections.recent_analyses(engine.ledger, analyses_limit)
    if notes:
        print("\nRecent Analyses:")
        for note in notes:
            print(f"   [{note.agent_id}] {note.summary}")

    print("\n" + "=" * 60)


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Agent Arena - simulated trading agents on a synthetic market"
    )
    parser.add_argument("--ticks", type=int, default=100, help="Ticks to run (default: 100)")
    parser.add_argument("--seed", type=int, help="Random seed for a reproducible run")
    parser.add_argument("--interval", type=float, help="Seconds between ticks in live mode")
    parser.add_argument("--live", action="store_true", help="Tick on a timer until Ctrl+C")
    parser.add_argument("--check", action="store_true", help="Check configuration and exit")
    parser.add_argument("--report", action="store_true", help="Print markdown report at the end")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")

    args = parser.parse_args()

    setup_logging(level=args.log_level)

    overrides = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.interval is not None:
        overrides["tick_interval_seconds"] = args.interval
    config = arena_config
    if overrides:
        simulation = SimulationConfig(
            **{**arena_config.simulation.model_dump(), **overrides}
        )
        config = ArenaConfig(
            simulation=simulation,
            policy=arena_config.policy,
            market=arena_config.market,
            logging=arena_config.logging,
        )

    config_check = check_configuration(config)

    if args.check:
        print("\n" + "=" * 60)
        print("           CONFIGURATION CHECK")
        print("=" * 60)
        if config_check["valid"]:
            print("\n✓ Configuration is valid")
        else:
            print("\n✗ Configuration issues:")
            for issue in config_check["issues"]:
                print(f"   - {issue}")
        print(f"\nInitial Balance: {config_check['initial_balance']}")
        print(f"Tick Interval: {config_check['tick_interval_seconds']}s")
        print(f"Seed: {config_check['seed']}")
        print("\n" + "=" * 60)
        return

    if not config_check["valid"]:
        print("\n✗ Configuration issues:")
        for issue in config_check["issues"]:
            print(f"   - {issue}")
        print("\nPlease check your .env file and try again.")
        return

    app = ArenaApp(config)

    try:
        if args.live:
            await app.run_live()
        else:
            app.run_ticks(args.ticks)
    except KeyboardInterrupt:
        print("\n\nShutdown requested by user...")
    except Exception as e:
        logger.error("main.error", error=str(e), exc_info=True)
        print(f"\n✗ Fatal error: {e}")
        raise

    print_summary(app.engine, config.simulation.recent_analyses_limit)

    if args.report:
        print()
        print(PerformanceReport(app.engine.registry, app.engine.ledger).generate_markdown_report())


if __name__ == "__main__":
    asyncio.run(main())
