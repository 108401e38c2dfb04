"""Configuration loading and validation."""

from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from gitstats_report.models import Period, StatsShape, ensure_utc, last_completed_week


class AuthConfig(BaseModel):
    """GitHub authentication configuration."""

    token_env: str = "GITHUB_TOKEN"


class GitHubConfig(BaseModel):
    """GitHub configuration section."""

    owner: str = Field(min_length=1)
    base_url: str = "https://api.github.com"
    timeout: float = Field(default=30.0, gt=0)
    auth: AuthConfig = Field(default_factory=AuthConfig)


class PeriodConfig(BaseModel):
    """Comparison period configuration.

    Either ``week_start`` or both ``previous`` and ``next`` may be given. With
    neither, the period covers the last two completed weeks.
    """

    week_start: date | None = None
    previous: datetime | None = None
    next: datetime | None = None

    @model_validator(mode="after")
    def validate_boundaries(self) -> "PeriodConfig":
        """Reject half-specified or inverted boundaries."""
        if (self.previous is None) != (self.next is None):
            msg = "previous and next must be given together"
            raise ValueError(msg)

        if self.previous is not None and self.week_start is not None:
            msg = "week_start cannot be combined with previous/next"
            raise ValueError(msg)

        if (
            self.previous is not None
            and self.next is not None
            and ensure_utc(self.previous) >= ensure_utc(self.next)
        ):
            msg = "previous must be before next"
            raise ValueError(msg)

        return self

    def resolve(self, now: datetime | None = None) -> Period:
        """Build the Period these settings describe.

        Args:
            now: Reference time for the default period. Defaults to current UTC time.

        Returns:
            Resolved Period.
        """
        if self.previous is not None and self.next is not None:
            return Period(previous=self.previous, next=self.next)

        if self.week_start is not None:
            return Period.for_week(self.week_start)

        return Period.for_week(last_completed_week(now or datetime.now(UTC)))


class PollingConfig(BaseModel):
    """Contributor statistics polling configuration."""

    interval_seconds: float = Field(default=0.5, gt=0)
    max_attempts: int | None = Field(default=None, ge=1)


class FetchConfig(BaseModel):
    """REST listing and fan-out configuration."""

    per_page: int = Field(default=100, ge=1, le=100)
    pulls_per_page: int = Field(default=50, ge=1, le=100)
    max_concurrency: int = Field(default=4, ge=1, le=32)


class BatchConfig(BaseModel):
    """Bounds for the pull request activity query."""

    repositories: int = Field(default=10, ge=1, le=100)
    pull_requests: int = Field(default=20, ge=1, le=100)
    comments: int = Field(default=50, ge=1, le=100)
    commits: int = Field(default=50, ge=1, le=250)


class StatsConfig(BaseModel):
    """Contributor statistics shaping."""

    report_shape: StatsShape = "window"
    email_shape: StatsShape = "weekly"
    weeks: int = Field(default=5, ge=1, le=52)


class Config(BaseModel):
    """Root configuration model."""

    github: GitHubConfig
    period: PeriodConfig = Field(default_factory=PeriodConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)


def load_config(path: Path) -> Config:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValidationError: If the config is invalid.
    """
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open() as f:
        raw_config: dict[str, Any] = yaml.safe_load(f) or {}

    return Config.model_validate(raw_config)
