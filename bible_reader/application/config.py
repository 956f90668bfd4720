"""Application configuration using Pydantic Settings."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "bible-reading-coach"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    # Speech recognition
    speech_language: str = "ko-KR"
    constrained_platforms: list[str] = ["ios"]
    constrained_settle_delay_ms: int = 150
    retry_settle_delay_ms: int = 100

    # Verse matching
    lookback_factor: float = 1.8
    similarity_threshold: float = 60.0
    relaxed_similarity_threshold: float = 50.0
    min_length_ratio: float = 0.9
    relaxed_min_length_ratio: float = 0.8
    absolute_length_allowance: int = 5
    relaxation_policy: str = "difficulty"  # "difficulty", "platform" or "none"
    extra_difficult_words: list[str] = []

    # Verse source
    verse_source_type: str = "file"  # "file" or "s3"
    bible_data_path: Optional[str] = None  # packaged sample when unset
    bible_bucket_name: str = "bible-reading-coach-data"
    bible_object_key: str = "bible_hierarchical.json"

    # Progress store
    progress_store_type: str = "local"  # "local" or "dynamodb"
    progress_table_name: str = "UserProgress"
    aws_region: str = "us-west-2"


# Create a singleton instance
settings = Settings()
