from __future__ import annotations

import configparser
from pathlib import Path
from typing import Optional

from sdlt_risk.exceptions import ConfigError
from sdlt_risk.models.config import AppConfig, ScoringConfig

CONFIG_FILENAME = ".sdlt-risk.ini"
_SECTION = "sdlt"
_SCORING_SECTION = "scoring"
_REQUIRED_KEYS = ("api_url", "bearer_token")


def config_exists(directory: Path) -> bool:
    return (directory / CONFIG_FILENAME).is_file()


def write_config(
    directory: Path,
    config: AppConfig,
    scoring: Optional[ScoringConfig] = None,
) -> None:
    scoring = scoring or ScoringConfig()
    cp = configparser.ConfigParser()
    cp[_SECTION] = {
        "api_url": config.api_url,
        "bearer_token": config.bearer_token,
    }
    cp[_SCORING_SECTION] = {
        "expiry_days": str(scoring.expiry_days),
        "min_expiry_days": str(scoring.min_expiry_days),
        "score_floor": f"{scoring.score_floor:g}",
    }
    path = directory / CONFIG_FILENAME
    with open(path, "w", encoding="utf-8") as f:
        cp.write(f)


def _load(directory: Path) -> Optional[configparser.ConfigParser]:
    path = directory / CONFIG_FILENAME
    if not path.is_file():
        return None

    cp = configparser.ConfigParser()
    try:
        cp.read(str(path), encoding="utf-8")
    except configparser.Error as exc:
        raise ConfigError(
            f"Invalid configuration format in {CONFIG_FILENAME}. "
            "Run sdlt-risk --init to reconfigure."
        ) from exc
    return cp


def read_config(directory: Path) -> AppConfig:
    cp = _load(directory)
    if cp is None:
        raise ConfigError(
            "Configuration not found. Run sdlt-risk --init first."
        )

    if not cp.has_section(_SECTION):
        raise ConfigError(
            f"Invalid configuration: missing [{_SECTION}] section in {CONFIG_FILENAME}."
        )

    for key in _REQUIRED_KEYS:
        if not cp.has_option(_SECTION, key) or not cp.get(_SECTION, key).strip():
            raise ConfigError(
                f"Invalid configuration: missing or empty '{key}' in {CONFIG_FILENAME}. "
                "Run sdlt-risk --init to reconfigure."
            )

    return AppConfig(
        api_url=cp.get(_SECTION, "api_url"),
        bearer_token=cp.get(_SECTION, "bearer_token"),
    )


def read_scoring_config(directory: Path) -> ScoringConfig:
    """Scoring settings; defaults apply when the file or section is absent."""
    cp = _load(directory)
    if cp is None or not cp.has_section(_SCORING_SECTION):
        return ScoringConfig()

    defaults = ScoringConfig()
    try:
        return ScoringConfig(
            expiry_days=cp.getint(
                _SCORING_SECTION, "expiry_days", fallback=defaults.expiry_days,
            ),
            min_expiry_days=cp.getint(
                _SCORING_SECTION, "min_expiry_days", fallback=defaults.min_expiry_days,
            ),
            score_floor=cp.getfloat(
                _SCORING_SECTION, "score_floor", fallback=defaults.score_floor,
            ),
        )
    except ValueError as exc:
        raise ConfigError(
            f"Invalid configuration: non-numeric value in [{_SCORING_SECTION}] "
            f"section of {CONFIG_FILENAME}."
        ) from exc
