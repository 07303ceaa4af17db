"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import date
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

DEFAULT_CONFIG_FILENAME = "dayslot.yaml"


class HolidaysConfig(BaseModel):
    """Where holiday dates come from."""
    country_code: Optional[str] = None
    fetch_remote: bool = False
    api_url: str = "https://date.nager.at/api/v3"
    dates: List[date] = Field(default_factory=list)

    @field_validator("country_code")
    @classmethod
    def validate_country_code(cls, value: Optional[str]) -> Optional[str]:
        """Normalize to an upper-case ISO 3166-1 alpha-2 code."""
        if value is None:
            return None
        value = value.strip().upper()
        if len(value) != 2 or not value.isalpha():
            raise ValueError(f"country_code must be a two-letter code, got {value!r}")
        return value

    @model_validator(mode="after")
    def validate_remote_source(self) -> "HolidaysConfig":
        """Remote fetching needs to know which country to ask for."""
        if self.fetch_remote and not self.country_code:
            raise ValueError("fetch_remote requires a country_code")
        return self


class SmtpConfig(BaseModel):
    """Outgoing mail server settings."""
    host: str = "localhost"
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = False
    start_tls: Optional[bool] = None
    timeout: float = 30

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value


class Recipient(BaseModel):
    """Someone who is told about every cancellation."""
    name: str
    email: EmailStr


class NotificationsConfig(BaseModel):
    """Cancellation subscribers registered at startup."""
    audit_log: bool = True
    sender: str = "reservations@localhost"
    recipients: List[Recipient] = Field(default_factory=list)
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)

    @field_validator("recipients")
    @classmethod
    def validate_recipients(cls, value: List[Recipient]) -> List[Recipient]:
        """Ensure nobody is notified twice."""
        seen: set[str] = set()
        for recipient in value:
            key = recipient.email.lower()
            if key in seen:
                raise ValueError(f"Duplicate recipient email detected: {recipient.email}")
            seen.add(key)
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    database_url: str = "sqlite:///reservations.db"
    booking_hour: int = 9
    max_available_dates: int = 4
    search_horizon_days: int = 366
    max_booking_attempts: int = 3
    exclude_days: List[int] = Field(default_factory=lambda: [5, 6])  # Saturday, Sunday
    holidays: HolidaysConfig = Field(default_factory=HolidaysConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)

    @field_validator("booking_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @field_validator("max_available_dates", "search_horizon_days", "max_booking_attempts")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"Value must be at least 1, got {value}")
        return value

    @field_validator("exclude_days")
    @classmethod
    def validate_exclude_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"exclude_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        seen: set[int] = set()
        deduped: List[int] = []
        for day in value:
            if day not in seen:
                deduped.append(day)
                seen.add(day)
        return deduped

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a {DEFAULT_CONFIG_FILENAME} file. "
                "See dayslot.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for dayslot.yaml in current directory
    config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / DEFAULT_CONFIG_FILENAME

    return config_path
