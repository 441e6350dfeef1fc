"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class ConfigurationError(PackageError):
    """Raised when a field descriptor cannot be normalized or validated."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class DuplicateFieldError(ConfigurationError):
    """Raised when a key is registered twice in the same category."""

    message: str = "Duplicate field"
    category: str = ""
    key: str = ""

    def __str__(self) -> str:
        """Return error message payload."""
        return f"A {self.category} with the key {self.key} already exists."


class KeyNotFoundError(PackageError, KeyError):
    """Raised by `Document.fetch` when a key is missing and no fallback is given."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        """Return error message payload."""
        return f"key not found: {self.key!r}"


@dataclass(frozen=True)
class MissingExportMethodError(PackageError):
    """Raised when an export format has no backing exporter."""

    format_name: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"No exporter available for format '{self.format_name}'"


@dataclass(frozen=True)
class ReflectionError(PackageError):
    """Raised when the search index schema cannot be reflected."""

    message: str
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message
