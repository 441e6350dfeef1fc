"""Discovery interface configuration and document core."""

from discoverycore.exceptions import (
    ConfigurationError,
    DuplicateFieldError,
    KeyNotFoundError,
    MissingExportMethodError,
    PackageError,
    ReflectionError,
    SettingsError,
)
from discoverycore.logging import configure_logging, get_logger
from discoverycore.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("discoverycore")

from discoverycore.configuration import Configuration  # noqa: E402
from discoverycore.document import Document, ExportFormat  # noqa: E402
from discoverycore.extensions import Extension, ExtensionRegistry  # noqa: E402
from discoverycore.reflection import ReflectionCache, SolrLukeReflectionProvider  # noqa: E402

__all__ = [
    "Configuration",
    "ConfigurationError",
    "Document",
    "DuplicateFieldError",
    "ExportFormat",
    "Extension",
    "ExtensionRegistry",
    "KeyNotFoundError",
    "MissingExportMethodError",
    "PackageError",
    "ReflectionCache",
    "ReflectionError",
    "Settings",
    "SettingsError",
    "SolrLukeReflectionProvider",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
]
