"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path
from typing import Any, List, Optional, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from .domain.exceptions import ConfigurationError
from .domain.models import DEFAULT_TIMEZONE, SchedulingRequest, parse_holiday, validate_timezone


class DefaultsConfig(BaseModel):
    """Default settings for a meeting suggestion run."""
    meeting_length_minutes: int = 60
    start_hour: int = 9
    end_hour: int = 17
    slots_per_day: int = 1
    days_to_search: int = 3
    max_days_to_look_ahead: int = 30

    @field_validator("meeting_length_minutes")
    @classmethod
    def validate_length(cls, value: int) -> int:
        """Ensure meeting length is positive."""
        if value <= 0:
            raise ValueError("meeting_length_minutes must be greater than zero")
        return value

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @field_validator("slots_per_day", "days_to_search", "max_days_to_look_ahead")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"Value must not be negative, got {value}")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self


class CalendarAlias(BaseModel):
    """Named calendar configuration."""
    name: str  # Used as alias
    calendar_id: str


class GoogleCredentials(BaseModel):
    """OAuth client and stored refresh token for the Google Calendar API."""
    model_config = ConfigDict(validate_default=True)

    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""

    @field_validator("client_id", "client_secret", "refresh_token", mode="before")
    @classmethod
    def fall_back_to_environment(cls, value: Any, info: ValidationInfo) -> Any:
        """Blank values are read from GOOGLE_* environment variables."""
        if value in (None, ""):
            return os.environ.get(f"GOOGLE_{info.field_name.upper()}", "")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    google: GoogleCredentials = Field(default_factory=GoogleCredentials)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    timezone: str = DEFAULT_TIMEZONE
    calendars: List[CalendarAlias] = Field(default_factory=list)
    default_calendars: List[str] = Field(default_factory=lambda: ["primary"])
    bank_holidays: List[str] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        return validate_timezone(value)

    @field_validator("bank_holidays")
    @classmethod
    def validate_bank_holidays(cls, value: List[Any]) -> List[str]:
        """Normalise holidays to YYYY-MM-DD and drop duplicates."""
        normalized: List[str] = []
        for day in value:
            holiday = parse_holiday(str(day))
            if holiday not in normalized:
                normalized.append(holiday)
        return normalized

    @field_validator("calendars")
    @classmethod
    def validate_calendars(cls, value: List[CalendarAlias]) -> List[CalendarAlias]:
        """Ensure calendar aliases are unique."""
        seen_names: set[str] = set()
        for calendar in value:
            name_key = calendar.name.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate calendar name detected: {calendar.name}")
            seen_names.add(name_key)
        return value

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
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_calendar_by_name(self, name: str) -> CalendarAlias | None:
        """Find a calendar by its name (alias)."""
        for calendar in self.calendars:
            if calendar.name.lower() == name.lower():
                return calendar
        return None

    def resolve_calendar(self, identifier: str) -> str:
        """
        Resolve a calendar identifier (alias, ``primary`` or calendar ID).

        Raises:
            ValueError: If identifier cannot be resolved
        """
        if identifier == "primary" or "@" in identifier:
            return identifier

        calendar = self.find_calendar_by_name(identifier)
        if calendar:
            return calendar.calendar_id

        raise ValueError(
            f"Unknown calendar identifier: '{identifier}'. "
            f"Use a calendar ID or a configured name."
        )

    def resolve_calendars(self, identifiers: Sequence[str]) -> List[str]:
        """
        Resolve multiple calendar identifiers, ensuring uniqueness.

        Falls back to ``default_calendars`` when nothing is given.
        """
        resolved: List[str] = []
        unknown_identifiers: List[str] = []

        for identifier in identifiers or self.default_calendars:
            try:
                calendar_id = self.resolve_calendar(identifier)
            except ValueError:
                unknown_identifiers.append(identifier)
                continue

            if calendar_id not in resolved:
                resolved.append(calendar_id)

        if unknown_identifiers:
            missing = ", ".join(sorted(set(unknown_identifiers)))
            raise ValueError(
                f"Unknown calendar identifier(s): {missing}. "
                "Ensure they exist in the configuration or provide calendar IDs."
            )

        return resolved

    def build_request(
        self,
        calendars: Sequence[str] = (),
        *,
        meeting_length_minutes: Optional[int] = None,
        working_hours_start: Optional[int] = None,
        working_hours_end: Optional[int] = None,
        timezone: Optional[str] = None,
        slots_per_day: Optional[int] = None,
        days_to_search: Optional[int] = None,
        max_days_to_look_ahead: Optional[int] = None,
        bank_holidays: Sequence[str] = (),
        start_date: Optional[str] = None,
    ) -> SchedulingRequest:
        """
        Build a SchedulingRequest from configured defaults and overrides.

        Holidays given here are added to the configured ones.

        Raises:
            ConfigurationError: If the resulting request is invalid
        """
        try:
            calendar_ids = self.resolve_calendars(calendars)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        defaults = self.defaults

        return SchedulingRequest(
            meeting_length_minutes=_pick(meeting_length_minutes, defaults.meeting_length_minutes),
            working_hours_start=_pick(working_hours_start, defaults.start_hour),
            working_hours_end=_pick(working_hours_end, defaults.end_hour),
            timezone=timezone or self.timezone,
            slots_per_day=_pick(slots_per_day, defaults.slots_per_day),
            days_to_search=_pick(days_to_search, defaults.days_to_search),
            max_days_to_look_ahead=_pick(max_days_to_look_ahead, defaults.max_days_to_look_ahead),
            bank_holidays=frozenset(self.bank_holidays) | frozenset(bank_holidays),
            calendar_ids=tuple(calendar_ids),
            start_date=start_date,
        )


def _pick(value: Optional[int], default: int) -> int:
    return default if value is None else value


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
