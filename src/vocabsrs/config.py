"""Configuration settings for the review engine."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)

# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))

# Learning settings
REPETITION_INTERVALS = [1, 2, 4, 7, 15, 30]  # days between reviews
MIN_LADDER_LENGTH = 3
DEFAULT_QUEUE_LIMIT = 30
DEFAULT_TIMEZONE = "Asia/Tokyo"
DEFAULT_SESSION_ID = "schedule"


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def get_repetition_intervals() -> list[int]:
    """Get the default interval ladder from environment variable."""
    raw = os.getenv("REPETITION_INTERVALS", "")
    if not raw:
        return list(REPETITION_INTERVALS)
    return [int(value) for value in raw.split(",") if value.strip()]


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'vocabsrs.db'}")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = os.getenv("LOG_FILE", None)


@dataclass
class LearningSettings:
    """Learning process settings."""
    repetition_intervals: list[int] = field(default_factory=get_repetition_intervals)
    queue_limit: int = int(os.getenv("QUEUE_LIMIT", str(DEFAULT_QUEUE_LIMIT)))
    timezone: str = os.getenv("TIMEZONE", DEFAULT_TIMEZONE)
    session_id: str = os.getenv("SESSION_ID", DEFAULT_SESSION_ID)

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone all calendar dates are computed in."""
        return ZoneInfo(self.timezone)


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.learning.queue_limit < 1:
            raise ValueError("QUEUE_LIMIT must be positive")

        if len(set(v for v in self.learning.repetition_intervals if v > 0)) < MIN_LADDER_LENGTH:
            raise ValueError(
                f"REPETITION_INTERVALS needs at least {MIN_LADDER_LENGTH} distinct positive values"
            )

        try:
            self.learning.tzinfo
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown TIMEZONE: {self.learning.timezone}") from e

        if not self.learning.session_id:
            raise ValueError("SESSION_ID must not be empty")


# Create global settings instance
settings = Settings()
settings.validate()
