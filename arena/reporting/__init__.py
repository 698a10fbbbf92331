"""Read-only projections and performance reports."""

from arena.reporting import projections
from arena.reporting.report import PerformanceReport

__all__ = ["PerformanceReport", "projections"]
