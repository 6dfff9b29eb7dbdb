import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Cache
    cache_enabled: bool = _env_bool("CACHE_ENABLED", "true")
    cache_ttl: int = int(os.getenv("CACHE_TTL", "2592000"))  # 30 days default
    cache_cleanup_interval: float = float(os.getenv("CACHE_CLEANUP_INTERVAL", "86400"))

    # Compression
    compression_enabled: bool = _env_bool("CACHE_COMPRESSION_ENABLED", "true")
    compression_min_length: int = int(os.getenv("CACHE_COMPRESSION_MIN_LENGTH", "500"))

    # Similarity
    similarity_enabled: bool = _env_bool("CACHE_SIMILARITY_ENABLED", "true")
    similarity_threshold: float = float(os.getenv("CACHE_SIMILARITY_THRESHOLD", "0.8"))
    similarity_ignore_case: bool = _env_bool("CACHE_SIMILARITY_IGNORE_CASE", "true")
    similarity_normalize_text: bool = _env_bool("CACHE_SIMILARITY_NORMALIZE_TEXT", "true")
    similarity_memo_size: int = int(os.getenv("CACHE_SIMILARITY_MEMO_SIZE", "500"))

    # Persistence
    persistence: bool = _env_bool("CACHE_PERSISTENCE", "true")
    persist_path: str = os.getenv("CACHE_PERSIST_PATH", "./cache")
    persist_interval: float = float(os.getenv("CACHE_PERSIST_INTERVAL", "300"))  # 5 minutes

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = _env_bool("API_RELOAD", "true")

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not 0 <= self.similarity_threshold <= 1:
            raise ValueError("CACHE_SIMILARITY_THRESHOLD must be between 0 and 1")

        if self.cache_ttl <= 0:
            raise ValueError(f"CACHE_TTL must be positive, got {self.cache_ttl}")

        if self.compression_min_length < 0:
            raise ValueError(
                f"CACHE_COMPRESSION_MIN_LENGTH must be >= 0, got {self.compression_min_length}"
            )

        if self.similarity_memo_size < 1:
            raise ValueError(
                f"CACHE_SIMILARITY_MEMO_SIZE must be >= 1, got {self.similarity_memo_size}"
            )

        if self.cache_cleanup_interval < 0 or self.persist_interval <= 0:
            raise ValueError("Cleanup interval must be >= 0 and persist interval > 0")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
