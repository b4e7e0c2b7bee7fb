"""
Settings Management with Pydantic

Provides type-safe configuration management with:
- Environment variable support
- Validation
- One settings block per pipeline concern
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApprovalGateConfig(BaseSettings):
    """
    Approval gate policy.

    Read once per process; the model is frozen so a running
    scheduler always evaluates against the same policy.
    """
    model_config = SettingsConfigDict(
        env_prefix="APPROVAL_GATE_",
        extra="ignore",
        frozen=True
    )

    enforced: bool = True
    strict_mode: bool = True
    threshold: int = Field(default=70, ge=0, le=100)
    require_queue_approval: bool = False
    allow_user_override: bool = True


class SchedulerConfig(BaseSettings):
    """Scheduler polling configuration."""
    model_config = SettingsConfigDict(
        env_prefix="SCHEDULER_",
        extra="ignore"
    )

    poll_interval_seconds: float = Field(default=60.0, gt=0)
    default_cadence_minutes: int = Field(default=1440, ge=0)


class ConvictionConfig(BaseSettings):
    """Conviction scoring weights."""
    model_config = SettingsConfigDict(
        env_prefix="CONVICTION_",
        extra="ignore"
    )

    performance_weight: float = Field(default=0.6, ge=0, le=1)
    brand_weight: float = Field(default=0.4, ge=0, le=1)

    # Project the genome's learned weights when a genome is available
    use_learned_weights: bool = True

    def default_weights(self) -> dict[str, float]:
        return {
            "performance": self.performance_weight,
            "brand": self.brand_weight
        }


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Application
    app_name: str = "Taste Gate"
    debug: bool = False
    log_level: str = "INFO"

    # Sub-configurations
    approval_gate: ApprovalGateConfig = Field(default_factory=ApprovalGateConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    conviction: ConvictionConfig = Field(default_factory=ConvictionConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls(
            approval_gate=ApprovalGateConfig(),
            scheduler=SchedulerConfig(),
            conviction=ConvictionConfig()
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
