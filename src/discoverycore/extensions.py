"""Conditional per-document extensions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from discoverycore.document import Document

    Predicate = Callable[[Document], bool]


class Extension:
    """Optional behavior attached to a single document.

    Public methods of a subclass become capabilities of the documents it is
    applied to. `on_apply` runs once the extension is attached, e.g. to
    declare export formats:

        class MarcExtension(Extension):
            def on_apply(self) -> None:
                self.document.will_export_as("marc", "application/marc")

            def export_as_marc(self) -> str:
                return self.document["marc_ss"]
    """

    def __init__(self, document: Document) -> None:
        self.document = document

    def on_apply(self) -> None:
        """Hook run after the extension is attached to its document."""

    @classmethod
    def capability_names(cls) -> list[str]:
        """Return the public method names the extension contributes."""
        reserved = set(dir(Extension))
        return [
            name
            for name in dir(cls)
            if not name.startswith("_") and name not in reserved and callable(getattr(cls, name))
        ]

    def capabilities(self) -> dict[str, Callable[..., Any]]:
        """Return the contributed methods bound to this extension."""
        return {name: getattr(self, name) for name in self.capability_names()}


@dataclass(frozen=True)
class ExtensionEntry:
    """Registered extension and the condition under which it applies."""

    extension: type[Extension]
    predicate: Predicate | None = None

    def applies_to(self, document: Document) -> bool:
        """Return whether the extension applies; a missing predicate always applies."""
        if self.predicate is None:
            return True
        return bool(self.predicate(document))


class ExtensionRegistry:
    """Ordered list of extensions registered for one document class."""

    def __init__(self) -> None:
        self._entries: list[ExtensionEntry] = []

    def register(self, extension: type[Extension], predicate: Predicate | None = None) -> ExtensionEntry:
        """Append an extension, applied when `predicate` is true for a document.

        Args:
            extension (type[Extension]): Extension class.
            predicate: Condition evaluated against each new document; None always applies.

        Raises:
            TypeError: If `extension` is not an `Extension` subclass.

        Returns:
            ExtensionEntry: The registered entry.
        """
        if not (isinstance(extension, type) and issubclass(extension, Extension)):
            raise TypeError(f"Extensions must subclass Extension, got {extension!r}")
        entry = ExtensionEntry(extension=extension, predicate=predicate)
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> tuple[ExtensionEntry, ...]:
        """Return the registered entries in registration order."""
        return tuple(self._entries)

    def clear(self) -> None:
        """Remove every registered extension."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ExtensionEntry]:
        return iter(tuple(self._entries))

    def __contains__(self, extension: object) -> bool:
        return any(entry.extension is extension for entry in self._entries)

    def apply(self, document: Document) -> list[Extension]:
        """Attach every extension whose predicate holds for a document.

        Extensions are attached in registration order, so a later extension's
        capabilities replace earlier ones with the same name. Predicate
        errors propagate.

        Args:
            document (Document): Freshly built document.

        Returns:
            list[Extension]: Attached extension instances.
        """
        applied: list[Extension] = []
        for entry in self.entries:
            if entry.applies_to(document):
                applied.append(document.attach_extension(entry.extension(document)))
        return applied
