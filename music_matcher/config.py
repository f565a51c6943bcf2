"""Configuration management for music-matcher."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli_w

from music_matcher.catalog.client import (
    DEFAULT_BASE_URL,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
)
from music_matcher.catalog.ratelimit import DEFAULT_INTERVAL
from music_matcher.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)
from music_matcher.matching.assigner import (
    DEFAULT_HIGH_CONFIDENCE_FLOOR,
    DEFAULT_LOW_RELEVANCE_FLOOR,
)
from music_matcher.matching.coordinator import DEFAULT_WORKERS


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "music-matcher" / "config.toml"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        colored_output: Whether to use colored terminal output.
        catalog_base_url: MusicBrainz web service root (ws/2).
        catalog_user_agent: User-Agent sent with every request. MusicBrainz
            asks for an application name and a contact address.
        request_interval: Minimum seconds between two catalog requests,
            shared by all matchers.
        request_timeout: Socket timeout of a catalog request in seconds.
        search_limit: Recordings requested per track search.
        low_relevance_floor: File/track scores at or below this are dropped.
        high_confidence_floor: Files scoring above this against a compared
            album are not searched for again.
        workers: Groups matched in parallel.
        config_path: Path where config was loaded from (None if defaults).
    """

    colored_output: bool = True
    catalog_base_url: str = DEFAULT_BASE_URL
    catalog_user_agent: str = DEFAULT_USER_AGENT
    request_interval: float = DEFAULT_INTERVAL
    request_timeout: float = DEFAULT_TIMEOUT
    search_limit: int = DEFAULT_SEARCH_LIMIT
    low_relevance_floor: float = DEFAULT_LOW_RELEVANCE_FLOOR
    high_confidence_floor: float = DEFAULT_HIGH_CONFIDENCE_FLOOR
    workers: int = DEFAULT_WORKERS
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.
        """
        warnings: list[str] = []

        if self.request_interval < 1.0:
            warnings.append(
                f"catalog.request_interval={self.request_interval} is below the "
                f"one request per second MusicBrainz allows"
            )
        if self.request_timeout <= 0:
            warnings.append(f"catalog.request_timeout={self.request_timeout} must be positive")
        if not 1 <= self.search_limit <= 100:
            warnings.append(
                f"catalog.search_limit={self.search_limit} is outside valid range 1-100"
            )
        for key in ("low_relevance_floor", "high_confidence_floor"):
            value = getattr(self, key)
            if not 0.0 <= value <= 1.0:
                warnings.append(f"matching.{key}={value} is outside valid range 0-1")
        if self.low_relevance_floor > self.high_confidence_floor:
            warnings.append(
                "matching.low_relevance_floor is above matching.high_confidence_floor"
            )
        if self.workers < 1:
            warnings.append(f"matching.workers={self.workers} must be at least 1, using 1")
            self.workers = 1

        return warnings


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: music-matcher init-config"
        )
        return config, warnings + config.validate()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    config_warnings = config.validate()

    return config, warnings + config_warnings


def _number(key: str, value: Any, *, integer: bool = False) -> float | int:
    # bool is an int subclass, TOML true/false must not pass as numbers
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(key, value, "must be a number")
    if integer and not isinstance(value, int):
        raise ConfigValidationError(key, value, "must be an integer")
    return value if integer else float(value)


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        value = display["colored_output"]
        if not isinstance(value, bool):
            raise ConfigValidationError("display.colored_output", value, "must be a boolean")
        config.colored_output = value

    # Parse [catalog] section
    catalog = data.get("catalog", {})
    if "base_url" in catalog:
        value = catalog["base_url"]
        if not isinstance(value, str) or not value:
            raise ConfigValidationError("catalog.base_url", value, "must be a non-empty string")
        config.catalog_base_url = value.rstrip("/")

    if "user_agent" in catalog:
        value = catalog["user_agent"]
        if not isinstance(value, str) or not value:
            raise ConfigValidationError(
                "catalog.user_agent", value, "must be a non-empty string"
            )
        config.catalog_user_agent = value

    if "request_interval" in catalog:
        config.request_interval = _number("catalog.request_interval", catalog["request_interval"])

    if "request_timeout" in catalog:
        config.request_timeout = _number("catalog.request_timeout", catalog["request_timeout"])

    if "search_limit" in catalog:
        config.search_limit = int(
            _number("catalog.search_limit", catalog["search_limit"], integer=True)
        )

    # Parse [matching] section
    matching = data.get("matching", {})
    if "low_relevance_floor" in matching:
        config.low_relevance_floor = _number(
            "matching.low_relevance_floor", matching["low_relevance_floor"]
        )

    if "high_confidence_floor" in matching:
        config.high_confidence_floor = _number(
            "matching.high_confidence_floor", matching["high_confidence_floor"]
        )

    if "workers" in matching:
        config.workers = int(_number("matching.workers", matching["workers"], integer=True))

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {
        "display": {
            "colored_output": config.colored_output,
        },
        "catalog": {
            "base_url": config.catalog_base_url,
            "user_agent": config.catalog_user_agent,
            "request_interval": config.request_interval,
            "request_timeout": config.request_timeout,
            "search_limit": config.search_limit,
        },
        "matching": {
            "low_relevance_floor": config.low_relevance_floor,
            "high_confidence_floor": config.high_confidence_floor,
            "workers": config.workers,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
