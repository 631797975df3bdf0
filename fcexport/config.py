"""Configuration management."""
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration from environment variables."""

    # Credential (bearer token captured from a logged-in session)
    FC_TOKEN: str = os.getenv("FC_TOKEN", "")

    # Endpoints
    API_BASE_URL: str = os.getenv("API_BASE_URL", "https://api.takanekofc.com/auth")
    MEDIA_BASE_URL: str = os.getenv("MEDIA_BASE_URL", "https://takanekofc.com/")

    # Output
    EXPORT_DIR: str = os.getenv("EXPORT_DIR", "exported")
    EXPORT_TIMEZONE: str = os.getenv("EXPORT_TIMEZONE", "Asia/Tokyo")
    LOGS_DIR: str = os.getenv("LOGS_DIR", "logs")

    # Batching
    DETAIL_BATCH_SIZE: int = int(os.getenv("DETAIL_BATCH_SIZE", "5"))
    EXPORT_BATCH_SIZE: int = int(os.getenv("EXPORT_BATCH_SIZE", "5"))
    LIST_PAGE_SIZE: int = int(os.getenv("LIST_PAGE_SIZE", "1000"))
    DETAIL_YIELD_DELAY: float = float(os.getenv("DETAIL_YIELD_DELAY", "0.05"))
    EXPORT_YIELD_DELAY: float = float(os.getenv("EXPORT_YIELD_DELAY", "0.01"))
    PAUSE_POLL_INTERVAL: float = float(os.getenv("PAUSE_POLL_INTERVAL", "0.5"))

    # Timeouts (seconds)
    LIST_TIMEOUT: int = int(os.getenv("LIST_TIMEOUT", "30"))
    DETAIL_TIMEOUT: int = int(os.getenv("DETAIL_TIMEOUT", "15"))
    DOWNLOAD_TIMEOUT: int = int(os.getenv("DOWNLOAD_TIMEOUT", "60"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_MAX_BYTES: int = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10 MB
    LOG_BACKUP_COUNT: int = int(os.getenv("LOG_BACKUP_COUNT", "10"))

    @classmethod
    def get_log_level(cls) -> int:
        """
        Get logging level as integer.

        Returns:
            Logging level constant
        """
        import logging
        return getattr(logging, cls.LOG_LEVEL.upper(), logging.INFO)

    @classmethod
    def get_token(cls) -> Optional[str]:
        """
        Get the configured bearer token.

        Returns:
            Token string or None if not set
        """
        return cls.FC_TOKEN.strip() or None

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not cls.API_BASE_URL:
            errors.append("API_BASE_URL is not set")

        if not cls.MEDIA_BASE_URL:
            errors.append("MEDIA_BASE_URL is not set")

        if cls.DETAIL_BATCH_SIZE < 1:
            errors.append("DETAIL_BATCH_SIZE must be >= 1")

        if cls.EXPORT_BATCH_SIZE < 1:
            errors.append("EXPORT_BATCH_SIZE must be >= 1")

        if cls.LIST_PAGE_SIZE < 1:
            errors.append("LIST_PAGE_SIZE must be >= 1")

        if cls.DETAIL_TIMEOUT < 1:
            errors.append("DETAIL_TIMEOUT must be >= 1")

        if cls.LIST_TIMEOUT < 1:
            errors.append("LIST_TIMEOUT must be >= 1")

        if cls.DOWNLOAD_TIMEOUT < 1:
            errors.append("DOWNLOAD_TIMEOUT must be >= 1")

        if cls.PAUSE_POLL_INTERVAL <= 0:
            errors.append("PAUSE_POLL_INTERVAL must be > 0")

        return errors

    @classmethod
    def display(cls) -> None:
        """Display current configuration."""
        print("=== Configuration ===")
        print(f"API_BASE_URL: {cls.API_BASE_URL}")
        print(f"MEDIA_BASE_URL: {cls.MEDIA_BASE_URL}")
        print(f"EXPORT_DIR: {cls.EXPORT_DIR}")
        print(f"EXPORT_TIMEZONE: {cls.EXPORT_TIMEZONE}")
        print(f"LOGS_DIR: {cls.LOGS_DIR}")
        print(f"DETAIL_BATCH_SIZE: {cls.DETAIL_BATCH_SIZE}")
        print(f"EXPORT_BATCH_SIZE: {cls.EXPORT_BATCH_SIZE}")
        print(f"LIST_PAGE_SIZE: {cls.LIST_PAGE_SIZE}")
        print(f"LIST_TIMEOUT: {cls.LIST_TIMEOUT}s")
        print(f"DETAIL_TIMEOUT: {cls.DETAIL_TIMEOUT}s")
        print(f"DOWNLOAD_TIMEOUT: {cls.DOWNLOAD_TIMEOUT}s")
        print(f"LOG_LEVEL: {cls.LOG_LEVEL}")
        print(f"FC_TOKEN: {'set' if cls.get_token() else 'None'}")
        print("=" * 30)
