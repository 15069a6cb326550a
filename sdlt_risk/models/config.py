from __future__ import annotations

from dataclasses import dataclass

from sdlt_risk.exceptions import ConfigError

DEFAULT_EXPIRY_DAYS = 14
DEFAULT_MIN_EXPIRY_DAYS = 5


@dataclass
class AppConfig:
    api_url: str
    bearer_token: str

    def __post_init__(self) -> None:
        if not self.api_url:
            raise ConfigError("API URL cannot be empty.")
        if not self.api_url.endswith("/"):
            self.api_url = self.api_url + "/"
        if not self.bearer_token:
            raise ConfigError("Bearer token cannot be empty.")


@dataclass
class ScoringConfig:
    expiry_days: int = DEFAULT_EXPIRY_DAYS
    min_expiry_days: int = DEFAULT_MIN_EXPIRY_DAYS
    score_floor: float = 0.0

    def __post_init__(self) -> None:
        if self.score_floor < 0:
            raise ConfigError("Score floor cannot be negative.")
        if self.min_expiry_days < 1:
            raise ConfigError("Minimum expiry days must be at least 1.")
        if self.expiry_days < self.min_expiry_days:
            raise ConfigError(
                f"Expiry days ({self.expiry_days}) cannot be lower than "
                f"the minimum expiry days ({self.min_expiry_days})."
            )
