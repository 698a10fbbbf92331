"""Agent trading arena - four simulated agents competing on a synthetic market."""

__version__ = "1.0.0"
