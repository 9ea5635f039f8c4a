"""
Configuration module for the Bookly booking core.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase (data store + identity provider)
    supabase_url: str = ""
    supabase_key: str = ""

    # Calendar
    timezone: str = "America/Sao_Paulo"  # Single implicit local zone
    weekday_locale: str = "pt-BR"  # Selects the weekday key names
    calendar_first_weekday: int = 6  # 0 = Monday ... 6 = Sunday
    booking_window_days: int = 14

    # Admission control
    max_appointments_per_day: int = 10

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_all_required(self) -> None:
        """
        Validate that all required settings are present and in range.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        required_fields = ["supabase_url", "supabase_key"]

        missing = []
        for field in required_fields:
            value = getattr(self, field, None)

            if not value:
                missing.append(field)
                continue

            # Placeholder values copied from .env.example
            if str(value).lower().startswith("your_"):
                missing.append(field)

        if missing:
            raise ValueError(
                f"Missing or invalid required configuration: "
                f"{', '.join(missing)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )

        if self.max_appointments_per_day < 1:
            raise ValueError(
                f"MAX_APPOINTMENTS_PER_DAY must be >= 1, got {self.max_appointments_per_day}"
            )
        if not 0 <= self.calendar_first_weekday <= 6:
            raise ValueError(
                f"CALENDAR_FIRST_WEEKDAY must be between 0 and 6, got {self.calendar_first_weekday}"
            )
        if self.booking_window_days < 1:
            raise ValueError(
                f"BOOKING_WINDOW_DAYS must be >= 1, got {self.booking_window_days}"
            )


# Global settings instance
settings = Settings()
