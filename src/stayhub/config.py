"""Environment-driven configuration for the booking engine.

Every setting is read from an environment variable once, then cached.
Tests call ``get_settings.cache_clear()`` after changing the environment.
"""

import os
from decimal import Decimal
from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field


class StoreBackend(str, Enum):
    """Where bookings and calendars are persisted."""

    DYNAMODB = "dynamodb"
    MEMORY = "memory"


class TaxPolicyName(str, Enum):
    """Tax strategies selectable from configuration."""

    NONE = "none"
    PERCENTAGE = "percentage"
    PER_NIGHT = "per_night"


class Settings(BaseModel):
    """Engine configuration."""

    model_config = ConfigDict(frozen=True)

    environment: str = "dev"
    dynamodb_table_prefix: str = "stayhub-dev"
    aws_region: str = "us-east-1"
    store_backend: StoreBackend = StoreBackend.DYNAMODB
    service_fee_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    tax_policy: TaxPolicyName = TaxPolicyName.NONE
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)
    tax_includes_fees: bool = False
    frontend_url: str = "http://localhost:3000"
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        environment = os.getenv("ENVIRONMENT", "dev")
        return cls(
            environment=environment,
            # Allow override via DYNAMODB_TABLE_PREFIX for testing
            dynamodb_table_prefix=os.getenv("DYNAMODB_TABLE_PREFIX", f"stayhub-{environment}"),
            aws_region=os.getenv("AWS_DEFAULT_REGION") or os.getenv("AWS_REGION", "us-east-1"),
            store_backend=StoreBackend(os.getenv("STORE_BACKEND", "dynamodb").lower()),
            service_fee_percent=Decimal(os.getenv("SERVICE_FEE_PERCENT", "0")),
            tax_policy=TaxPolicyName(os.getenv("TAX_POLICY", "none").lower()),
            tax_rate=Decimal(os.getenv("TAX_RATE", "0")),
            tax_includes_fees=os.getenv("TAX_INCLUDES_FEES", "false").lower() in ("1", "true", "yes"),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance."""
    return Settings.from_env()
