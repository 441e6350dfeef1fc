"""Content type lookup for export formats."""

from __future__ import annotations

import mimetypes
import threading


class MimeTypeRegistry:
    """Format name to content type registry backed by `mimetypes`.

    Aliases registered at run time take precedence over the platform table.
    """

    def __init__(self) -> None:
        self._aliases: dict[str, str] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _normalize(name: str) -> str:
        return str(name).lstrip(".").lower()

    def lookup_by_extension(self, name: str) -> str | None:
        """Return the content type of a format name, e.g. `text/html` for `html`."""
        normalized = self._normalize(name)
        alias = self._aliases.get(normalized)
        if alias is not None:
            return alias
        content_type, _ = mimetypes.guess_type(f"export.{normalized}", strict=False)
        return content_type

    def register_alias(self, content_type: str, name: str) -> None:
        """Register a content type under a format name."""
        with self._lock:
            self._aliases[self._normalize(name)] = content_type


default_mime_registry = MimeTypeRegistry()
