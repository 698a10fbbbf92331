"""Configuration management for the agent trading arena."""

from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# Simulation Configuration
# =============================================================================


class SimulationConfig(BaseSettings):
    """Run-level settings: starting capital, cadence and buffer bounds."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    initial_balance: float = Field(
        default=10000.0, validation_alias="ARENA_INITIAL_BALANCE"
    )
    tick_interval_seconds: float = Field(
        default=1.5, validation_alias="ARENA_TICK_INTERVAL_SECONDS"
    )
    seed: Optional[int] = Field(default=None, validation_alias="ARENA_SEED")

    # Ring buffer bounds
    asset_history_limit: int = Field(
        default=120, validation_alias="ARENA_ASSET_HISTORY_LIMIT"
    )
    balance_history_limit: int = Field(
        default=240, validation_alias="ARENA_BALANCE_HISTORY_LIMIT"
    )
    closed_trade_limit: int = Field(
        default=200, validation_alias="ARENA_CLOSED_TRADE_LIMIT"
    )
    recent_analyses_limit: int = Field(
        default=8, validation_alias="ARENA_RECENT_ANALYSES_LIMIT"
    )

    @field_validator("initial_balance", "tick_interval_seconds")
    @classmethod
    def validate_positive(cls, v):
        """Validate value is strictly positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator(
        "asset_history_limit",
        "balance_history_limit",
        "closed_trade_limit",
        "recent_analyses_limit",
    )
    @classmethod
    def validate_limit(cls, v):
        """Validate buffer bounds hold at least one entry."""
        if v < 1:
            raise ValueError("Limit must be at least 1")
        return v


# =============================================================================
# Decision Policy Configuration
# =============================================================================


class PolicyConfig(BaseSettings):
    """Entry/exit policy shared by every agent."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    max_open_positions: int = Field(
        default=3, validation_alias="ARENA_MAX_OPEN_POSITIONS"
    )
    entry_probability: float = Field(
        default=0.4, validation_alias="ARENA_ENTRY_PROBABILITY"
    )

    # Probability of keeping a position open when no bracket is hit
    hold_probability_low: float = Field(
        default=0.20, validation_alias="ARENA_HOLD_PROBABILITY_LOW"
    )
    hold_probability_default: float = Field(
        default=0.35, validation_alias="ARENA_HOLD_PROBABILITY_DEFAULT"
    )

    # Stop loss / take profit distance from entry (0.03 = 3%)
    bracket_pct: float = Field(default=0.03, validation_alias="ARENA_BRACKET_PCT")

    # Size = base size for risk tolerance * uniform(min, max)
    size_jitter_min: float = Field(default=0.4, validation_alias="ARENA_SIZE_JITTER_MIN")
    size_jitter_max: float = Field(default=1.0, validation_alias="ARENA_SIZE_JITTER_MAX")
    base_size_high: float = Field(default=1.8, validation_alias="ARENA_BASE_SIZE_HIGH")
    base_size_medium: float = Field(
        default=1.2, validation_alias="ARENA_BASE_SIZE_MEDIUM"
    )
    base_size_low: float = Field(default=0.8, validation_alias="ARENA_BASE_SIZE_LOW")
    base_size_variable: float = Field(
        default=1.5, validation_alias="ARENA_BASE_SIZE_VARIABLE"
    )

    @field_validator(
        "entry_probability", "hold_probability_low", "hold_probability_default"
    )
    @classmethod
    def validate_probability(cls, v):
        """Validate probability is between 0 and 1."""
        if v < 0 or v > 1:
            raise ValueError("Probability must be between 0 and 1")
        return v

    @field_validator("bracket_pct")
    @classmethod
    def validate_bracket(cls, v):
        """Validate bracket leaves a positive stop price."""
        if v <= 0 or v >= 1:
            raise ValueError("Bracket percentage must be between 0 and 1")
        return v

    @field_validator(
        "base_size_high", "base_size_medium", "base_size_low", "base_size_variable"
    )
    @classmethod
    def validate_base_size(cls, v):
        if v <= 0:
            raise ValueError("Base size must be positive")
        return v

    @field_validator("max_open_positions")
    @classmethod
    def validate_max_positions(cls, v):
        if v < 0:
            raise ValueError("max_open_positions cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_jitter_range(self):
        """Validate the size jitter range is ordered and positive."""
        if self.size_jitter_min <= 0 or self.size_jitter_min > self.size_jitter_max:
            raise ValueError("size_jitter_min must be positive and <= size_jitter_max")
        return self


# =============================================================================
# Market Configuration
# =============================================================================


class MarketConfig(BaseSettings):
    """Parameters of the synthetic price process."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    # Uniform drift in [-drift_pct, +drift_pct]
    drift_pct: float = Field(default=0.01, validation_alias="ARENA_DRIFT_PCT")
    # Uniform volatility in [0, volatility_pct]
    volatility_pct: float = Field(default=0.015, validation_alias="ARENA_VOLATILITY_PCT")

    # Rare shock in [-shock_pct, +shock_pct]
    shock_probability: float = Field(
        default=0.05, validation_alias="ARENA_SHOCK_PROBABILITY"
    )
    shock_pct: float = Field(default=0.06, validation_alias="ARENA_SHOCK_PCT")

    # Collapse guard: next >= max(price * floor_ratio, min_price)
    floor_ratio: float = Field(default=0.5, validation_alias="ARENA_FLOOR_RATIO")
    min_price: float = Field(default=5.0, validation_alias="ARENA_MIN_PRICE")

    @field_validator("drift_pct", "volatility_pct", "shock_pct")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Value cannot be negative")
        return v

    @field_validator("shock_probability")
    @classmethod
    def validate_probability(cls, v):
        if v < 0 or v > 1:
            raise ValueError("Probability must be between 0 and 1")
        return v

    @field_validator("floor_ratio")
    @classmethod
    def validate_floor_ratio(cls, v):
        if v <= 0 or v > 1:
            raise ValueError("Floor ratio must be between 0 and 1")
        return v

    @field_validator("min_price")
    @classmethod
    def validate_min_price(cls, v):
        if v <= 0:
            raise ValueError("Minimum price must be positive")
        return v


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_file: str = Field(default="logs/arena.log", validation_alias="LOG_FILE")


# =============================================================================
# Global Configuration Container
# =============================================================================


class ArenaConfig:
    """
    Container for all arena configurations.

    Usage:
        from arena.core.config import arena_config

        engine = create_simulation(config=arena_config)
        if arena_config.policy.max_open_positions > 3:
            ...
    """

    def __init__(
        self,
        simulation: Optional[SimulationConfig] = None,
        policy: Optional[PolicyConfig] = None,
        market: Optional[MarketConfig] = None,
        logging: Optional[LoggingConfig] = None,
    ):
        self.simulation = simulation or SimulationConfig()
        self.policy = policy or PolicyConfig()
        self.market = market or MarketConfig()
        self.logging = logging or LoggingConfig()

    def validate_configuration(self) -> dict:
        """
        Cross-check settings that individual fields cannot validate alone.

        Returns:
            Dictionary with 'valid' boolean and 'issues' list
        """
        issues: List[str] = []

        if self.policy.hold_probability_low > self.policy.hold_probability_default:
            issues.append(
                "Low-risk hold probability should not exceed the default hold probability"
            )

        if self.policy.max_open_positions == 0:
            issues.append("max_open_positions is 0: agents will never trade")

        if self.policy.entry_probability == 0:
            issues.append("entry_probability is 0: agents will never trade")

        return {"valid": len(issues) == 0, "issues": issues}


# =============================================================================
# Global Configuration Instances
# =============================================================================

logging_config = LoggingConfig()
arena_config = ArenaConfig(logging=logging_config)


__all__ = [
    "ArenaConfig",
    "arena_config",
    "logging_config",
    "SimulationConfig",
    "PolicyConfig",
    "MarketConfig",
    "LoggingConfig",
]
