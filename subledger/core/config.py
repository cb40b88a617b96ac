import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = "sqlite:///./subledger.db"
    TEST_DATABASE_URL: Optional[str] = None

    # Ledger namespace (mixed into every derived address)
    PROGRAM_ID: str = "8hSScVud3dY7iV2r4aGDFBduXAZh5j31X3P8GnCaznZd"

    # Plan limits
    MAX_PLAN_PRICE: int = 1_000_000_000_000  # 1000 SOL in lamports
    MAX_DURATION_DAYS: int = 365
    MAX_PLAN_NAME_LENGTH: int = 200

    # Extra lamports a subscriber must hold on top of price + rent
    FEE_BUFFER_LAMPORTS: int = 0

    # Dev faucet; never enable in production
    AIRDROP_ENABLED: bool = False

    # HTTP
    CORS_ORIGINS: str = "http://localhost:5173"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate ledger configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("subledger")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    if not getattr(cfg, "DATABASE_URL", None):
        problems.append("DATABASE_URL is not set")
    if not getattr(cfg, "PROGRAM_ID", None):
        problems.append("PROGRAM_ID is not set")
    if getattr(cfg, "MAX_PLAN_PRICE", 0) <= 0:
        problems.append("MAX_PLAN_PRICE must be positive")
    if getattr(cfg, "MAX_DURATION_DAYS", 0) <= 0:
        problems.append("MAX_DURATION_DAYS must be positive")
    if getattr(cfg, "FEE_BUFFER_LAMPORTS", 0) < 0:
        problems.append("FEE_BUFFER_LAMPORTS must not be negative")
    if getattr(cfg, "AIRDROP_ENABLED", False) and getattr(cfg, "ENV", "") == "production":
        problems.append("AIRDROP_ENABLED must be off in production")

    if problems:
        message = f"Invalid configuration: {'; '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)
        return False

    return True
