"""Exception hierarchy for music-matcher."""

from pathlib import Path


class MusicMatcherError(Exception):
    """Base exception for all music-matcher errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all music-matcher errors with
    a single except clause.
    """

    pass


# Configuration Errors
class ConfigError(MusicMatcherError):
    """Configuration-related errors."""

    pass


class ConfigNotFoundError(ConfigError):
    """Configuration file not found (non-fatal, defaults used)."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Config file not found: {path}")


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Catalog Errors
class CatalogError(MusicMatcherError):
    """Remote catalog request failed."""

    pass


class CatalogConnectionError(CatalogError):
    """Could not reach the catalog web service."""

    pass


class CatalogParseError(CatalogError):
    """Catalog response could not be mapped to records."""

    def __init__(self, url: str, detail: str, snippet: str = "") -> None:
        self.url = url
        self.detail = detail
        self.snippet = snippet
        super().__init__(f"Unexpected response from {url}: {detail}")


# Metadata Errors
class MetadataError(MusicMatcherError):
    """Invalid local or catalog metadata."""

    pass


class InvalidTrackError(MetadataError):
    """Track cannot be attached to an album."""

    def __init__(self, track_id: str, reason: str) -> None:
        self.track_id = track_id
        self.reason = reason
        super().__init__(f"Invalid track {track_id}: {reason}")
