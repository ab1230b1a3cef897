"""SDK configuration"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """SDK settings loaded from environment variables"""

    # Bundler
    currency: str = "solana"

    # Solana
    provider_url: str = "https://api.mainnet-beta.solana.com"
    finality: str = "finalized"
    confirm_commitment: str = "confirmed"

    # Submission
    resubmit_interval: float = 0.5  # seconds
    blockhash_retries: int = 3
    blockhash_min_timeout: float = 1.0  # seconds

    # Fees / confirmations
    fee_lamports: int = 5000
    min_confirmations: int = 1

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "BUNDLER_"
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
