"""Collaborator interfaces consumed by the configuration and document core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


class ReflectionProvider(Protocol):
    """Source of the search index field names."""

    def reflect_fields(self) -> Mapping[str, Any]:
        """Return the index fields.

        Returns:
            Mapping[str, Any]: Field name to field metadata.
        """


class ResponseEnvelope(Protocol):
    """Search response a document was read from."""

    @property
    def highlighting(self) -> Mapping[str, Mapping[str, Sequence[str]]]:
        """Return highlighting fragments keyed by document id, then field name."""

    def more_like(self, document: Any) -> Sequence[Mapping[str, Any]]:
        """Return the raw records related to a document.

        Args:
            document: Document whose related records are requested.

        Returns:
            Sequence[Mapping[str, Any]]: Raw related records.
        """


class MimeRegistry(Protocol):
    """Content type lookup by format name."""

    def lookup_by_extension(self, name: str) -> str | None:
        """Return the content type registered for a format name.

        Args:
            name: Format name, e.g. `html`.

        Returns:
            str | None: Content type, or None when unknown.
        """

    def register_alias(self, content_type: str, name: str) -> None:
        """Register a content type under a format name.

        Args:
            content_type: Content type, e.g. `application/marc`.
            name: Format name.
        """
