"""Agents: registry of capital/statistics and the shared decision policy."""

from arena.agents.policy import ANALYSIS_PHRASES, TradingPolicy
from arena.agents.registry import DEFAULT_PROFILES, AgentRegistry

__all__ = [
    "AgentRegistry",
    "DEFAULT_PROFILES",
    "TradingPolicy",
    "ANALYSIS_PHRASES",
]
