"""Configuration management using Pydantic Settings"""

from decimal import Decimal
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="BOND_", extra="ignore"
    )

    # Database
    database_url: str = "sqlite:///./bond_engine.db"

    # Service
    service_name: str = "bond-engine"
    log_level: str = "INFO"

    # Organization defaults
    premium_rate: Decimal = Decimal("0.12")
    down_payment_fraction: Decimal = Decimal("0.5")
    high_bond_threshold: Decimal = Decimal("100000")
    agent_rate: Decimal = Decimal("0.06")
    general_agent_rate: Decimal = Decimal("0.035")
    build_up_fund_rate: Decimal = Decimal("0.005")
    jail_rate: Decimal = Decimal("0.02")

    # Recommendation service (optional)
    recommendation_url: str | None = None
    recommendation_timeout_seconds: float = 2.0

    # Reports
    aging_boundaries: Tuple[int, ...] = (30, 60, 90)
    reminder_lead_days: Tuple[int, ...] = (1, 3, 7)


class OrgConfig(BaseModel):
    """
    Organization-level pricing rules.

    Passed explicitly into every calculation; nothing in the engine reads
    the current organization from ambient state.
    """

    model_config = ConfigDict(frozen=True)

    premium_rate: Decimal = Field(default=Decimal("0.12"), gt=0, le=1)
    down_payment_fraction: Decimal = Field(default=Decimal("0.5"), ge=0, le=1)
    high_bond_threshold: Decimal = Field(default=Decimal("100000"), gt=0)

    # Premium split shown on the advisor and tracker
    agent_rate: Decimal = Field(default=Decimal("0.06"), ge=0, le=1)
    general_agent_rate: Decimal = Field(default=Decimal("0.035"), ge=0, le=1)
    build_up_fund_rate: Decimal = Field(default=Decimal("0.005"), ge=0, le=1)
    jail_rate: Decimal = Field(default=Decimal("0.02"), ge=0, le=1)

    @classmethod
    def from_settings(cls, source: Settings) -> "OrgConfig":
        return cls(
            premium_rate=source.premium_rate,
            down_payment_fraction=source.down_payment_fraction,
            high_bond_threshold=source.high_bond_threshold,
            agent_rate=source.agent_rate,
            general_agent_rate=source.general_agent_rate,
            build_up_fund_rate=source.build_up_fund_rate,
            jail_rate=source.jail_rate,
        )


DEFAULT_ORG_CONFIG = OrgConfig()

settings = Settings()
