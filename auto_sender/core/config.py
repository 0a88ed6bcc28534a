"""
Configuration management using Pydantic Settings.
Supports multiple environments: development, staging, production.
"""

from typing import Optional, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment-based configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application
    app_name: str = "Solana Auto-Sender"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = Field(default="development")

    # API
    api_v1_prefix: str = "/api/v1"
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Solana
    solana_rpc_url: str = Field(default="https://api.mainnet-beta.solana.com")
    solana_commitment: str = "processed"
    solana_rpc_timeout: float = 10.0

    # Scheduler settings
    scheduler_interval_ms: int = Field(default=500, gt=0)
    scheduler_parallel: bool = False
    evaluation_timeout_seconds: float = Field(default=20.0, gt=0)

    # Sweep policy
    sol_to_usd_rate: float = Field(default=195.0, ge=0)
    min_usd_threshold: float = Field(default=15.0, ge=0)
    min_transfer_amount: float = Field(default=0.0001, ge=0)  # SOL, covers network fees
    default_reserve_amount: float = Field(default=5.0, ge=0)

    # Signing secrets
    secret_ttl_seconds: float = Field(default=300.0, gt=0)  # 5 minutes of inactivity
    secret_sweep_interval_seconds: float = Field(default=30.0, gt=0)

    # Failure handling
    deactivate_on_configuration_error: bool = True
    transient_backoff_base_seconds: float = Field(default=0.0, ge=0)  # 0 disables backoff
    transient_backoff_max_seconds: float = Field(default=30.0, ge=0)

    # Price feed
    price_feed_enabled: bool = False
    price_feed_interval_seconds: int = 60
    coingecko_api_url: str = "https://api.coingecko.com/api/v3"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console
    log_file: Optional[str] = None

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = ["development", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("solana_commitment")
    @classmethod
    def validate_commitment(cls, v: str) -> str:
        allowed = ["processed", "confirmed", "finalized"]
        if v.lower() not in allowed:
            raise ValueError(f"Commitment must be one of: {allowed}")
        return v.lower()

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def scheduler_interval_seconds(self) -> float:
        return self.scheduler_interval_ms / 1000


# Global settings instance
settings = Settings()


class SolanaConfig:
    """Solana-specific configuration and constants."""

    LAMPORTS_PER_SOL = 1_000_000_000

    @staticmethod
    def get_rpc_config() -> dict:
        """Get Solana RPC client configuration."""
        return {
            "endpoint": settings.solana_rpc_url,
            "commitment": settings.solana_commitment,
            "timeout": settings.solana_rpc_timeout,
        }
