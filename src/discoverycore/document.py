"""Document model wrapping raw search index records."""

from __future__ import annotations

import functools
import re
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Final

from markupsafe import Markup

from discoverycore.exceptions import KeyNotFoundError, MissingExportMethodError
from discoverycore.extensions import Extension, ExtensionRegistry
from discoverycore.mime import default_mime_registry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from discoverycore.extensions import ExtensionEntry, Predicate
    from discoverycore.typing.protocol import MimeRegistry, ResponseEnvelope

UNSET: Final = object()

__all__ = ["UNSET", "Document", "ExportFormat", "Extension"]


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _copy_semantic_values(values: Mapping[str, list[Any]]) -> defaultdict[str, list[Any]]:
    return defaultdict(list, {name: list(items) for name, items in values.items()})


def _value_matches(candidate: Any, matcher: Any) -> bool:
    if isinstance(matcher, re.Pattern):
        return matcher.search(str(candidate)) is not None
    return candidate == matcher


@dataclass(frozen=True)
class ExportFormat:
    """Export format a document can be rendered as."""

    name: str
    content_type: str | None
    exporter: Callable[[], Any] | None = None


class Document(Mapping[str, Any]):
    """Read-only mapping over one raw index record.

    Each subclass owns its extension registry, extension parameters and
    field semantics; they are never shared with the parent class.
    """

    unique_key: ClassVar[str] = "id"
    extensions: ClassVar[ExtensionRegistry] = ExtensionRegistry()
    extension_parameters: ClassVar[dict[str, Any]] = {}
    field_semantics: ClassVar[dict[str, str | Sequence[str]]] = {}
    mime_registry: ClassVar[MimeRegistry] = default_mime_registry

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.extensions = ExtensionRegistry()
        cls.extension_parameters = dict(cls.__dict__.get("extension_parameters", {}))
        inherited = cls.__dict__.get("field_semantics", cls.field_semantics)
        cls.field_semantics = dict(inherited)

    def __init__(
        self,
        source: Mapping[Any, Any] | None = None,
        response: ResponseEnvelope | Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> None:
        data = {str(key): value for key, value in (source or {}).items()}
        data.update(fields)
        self._source: dict[str, Any] = data
        self._response = response
        self._extensions: list[Extension] = []
        self._capabilities: dict[str, Callable[..., Any]] = {}
        self._export_formats: dict[str, ExportFormat] = {}
        self._semantic_values: defaultdict[str, list[Any]] | None = None
        type(self).extensions.apply(self)

    @classmethod
    def use_extension(cls, extension: type[Extension], predicate: Predicate | None = None) -> ExtensionEntry:
        """Register an extension for documents of this class built from now on."""
        return cls.extensions.register(extension, predicate)

    @classmethod
    def primary_key(cls) -> str:
        """Return the name of the unique key field."""
        return cls.unique_key

    def __getitem__(self, key: str) -> Any:
        return self._source[str(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._source)

    def __len__(self) -> int:
        return len(self._source)

    def __contains__(self, key: object) -> bool:
        return str(key) in self._source

    def __getattr__(self, name: str) -> Any:
        capabilities = self.__dict__.get("_capabilities", {})
        if name in capabilities:
            return capabilities[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._source!r})"

    @property
    def id(self) -> Any:
        """Return the value of the configured unique key field."""
        return self._source.get(type(self).unique_key)

    def to_param(self) -> str | None:
        """Return the id as a string, or None when the document has no id."""
        return None if self.id is None else str(self.id)

    @property
    def response(self) -> ResponseEnvelope | Mapping[str, Any] | None:
        """Return the search response the document was read from."""
        return self._response

    def get(self, key: str, default: Any = None, *, sep: str | None = None) -> Any:
        """Return a raw field value.

        Args:
            key (str): Field name.
            default (Any): Value returned when the field is missing.
            sep (str | None): Join multi-valued fields with this separator.

        Returns:
            Any: Field value.
        """
        value = self._source.get(str(key), default)
        if sep is not None and isinstance(value, (list, tuple)):
            return sep.join(str(item) for item in value)
        return value

    def has(self, key: str, *matchers: Any) -> bool:
        """Return whether a field is present and, given matchers, whether any value matches one.

        String matchers compare for equality; compiled regexes are searched.
        """
        if key not in self:
            return False
        if not matchers:
            return True
        return any(_value_matches(value, matcher) for value in _as_list(self[key]) for matcher in matchers)

    def fetch(self, key: str, default: Any = UNSET, callback: Callable[[str], Any] | None = None) -> Any:
        """Return a field value, falling back to `default`, then to `callback(key)`.

        Raises:
            KeyNotFoundError: If the field is missing and no fallback is given.
        """
        if key in self:
            return self[key]
        if default is not UNSET:
            return default
        if callback is not None:
            return callback(key)
        raise KeyNotFoundError(str(key))

    def first(self, key: str) -> Any:
        """Return the first value of a multi-valued field, or the value of a single-valued one."""
        value = self.get(key)
        if isinstance(value, (list, tuple)):
            return value[0] if value else None
        return value

    def to_semantic_values(
        self,
        field_semantics: Mapping[str, str | Sequence[str]] | None = None,
    ) -> defaultdict[str, list[Any]]:
        """Project the document onto semantic names such as `title` or `author`.

        Every configured semantic name maps to a flat list of the values found
        in its source fields, empty when none has a value. Unknown names read
        as empty lists too.

        Args:
            field_semantics: Semantic name to one or more field names. Defaults to the class `field_semantics`.

        Returns:
            defaultdict[str, list[Any]]: Semantic name to values.
        """
        if field_semantics is None and self._semantic_values is not None:
            return _copy_semantic_values(self._semantic_values)

        semantics = type(self).field_semantics if field_semantics is None else field_semantics
        values: defaultdict[str, list[Any]] = defaultdict(list)
        for name, sources in semantics.items():
            source_fields = [sources] if isinstance(sources, str) else list(sources)
            values[name] = [value for source in source_fields for value in _as_list(self.get(source))]

        if field_semantics is None:
            self._semantic_values = _copy_semantic_values(values)
        return values

    def _highlight_entry(self) -> Mapping[str, Sequence[str]] | None:
        response = self._response
        if response is None:
            return None
        if isinstance(response, Mapping):
            section = response.get("highlighting")
        else:
            section = getattr(response, "highlighting", None)
        if not section or self.id is None:
            return None
        return section.get(str(self.id))

    def has_highlight_field(self, field: str) -> bool:
        """Return whether the response carries highlighting for a field of this document."""
        entry = self._highlight_entry()
        return bool(entry) and str(field) in entry

    def highlight_field(self, field: str) -> list[Markup] | None:
        """Return the highlighted fragments of a field, marked safe for rendering.

        Returns:
            list[Markup] | None: Fragments, or None when the response has none for this field.
        """
        entry = self._highlight_entry()
        if not entry or str(field) not in entry:
            return None
        return [Markup(fragment) for fragment in entry[str(field)]]  # noqa: S704

    def more_like_this(self) -> list[Document]:
        """Return the related records of the response as documents of the same class.

        Returns:
            list[Document]: Related documents sharing this document's response.
        """
        response = self._response
        if response is None:
            return []
        if isinstance(response, Mapping):
            section = response.get("moreLikeThis") or {}
            records = (section.get(str(self.id)) or {}).get("docs", [])
        else:
            records = response.more_like(self)
        return [type(self)(record, response) for record in records or []]

    def attach_extension(self, extension: Extension) -> Extension:
        """Attach an extension instance and expose its capabilities.

        Args:
            extension (Extension): Extension built for this document.

        Returns:
            Extension: The attached extension.
        """
        self._extensions.append(extension)
        self._capabilities.update(extension.capabilities())
        extension.on_apply()
        return extension

    @property
    def applied_extensions(self) -> tuple[Extension, ...]:
        """Return the extensions attached to this document, in application order."""
        return tuple(self._extensions)

    def responds_to(self, name: str) -> bool:
        """Return whether the document has a method or capability called `name`."""
        return name in self._capabilities or callable(getattr(type(self), name, None))

    def capability(self, name: str) -> Callable[..., Any] | None:
        """Return the capability contributed by extensions under `name`, if any."""
        return self._capabilities.get(name)

    def invoke(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Call a capability contributed by extensions.

        Raises:
            AttributeError: If no applied extension contributes `name`.
        """
        capability = self.capability(name)
        if capability is None:
            raise AttributeError(f"{type(self).__name__!r} has no capability {name!r}")
        return capability(*args, **kwargs)

    def will_export_as(
        self,
        name: str,
        content_type: str | None = None,
        exporter: Callable[[Document], Any] | None = None,
    ) -> ExportFormat:
        """Declare an export format.

        The content type is looked up by format name when omitted; a given
        content type is registered as an alias when the name is unknown.

        Args:
            name (str): Format name, e.g. `marc`.
            content_type (str | None): Content type of the export.
            exporter: Callable receiving the document. Defaults to the `export_as_<name>` method or capability.

        Returns:
            ExportFormat: The declared format.
        """
        name = str(name)
        registry = type(self).mime_registry
        if content_type is None:
            content_type = registry.lookup_by_extension(name)
        elif registry.lookup_by_extension(name) is None:
            registry.register_alias(content_type, name)

        bound = functools.partial(exporter, self) if exporter is not None else None
        export_format = ExportFormat(name=name, content_type=content_type, exporter=bound)
        self._export_formats[name] = export_format
        return export_format

    def export_formats(self) -> Mapping[str, ExportFormat]:
        """Return the declared export formats by name."""
        return MappingProxyType(self._export_formats)

    def exports_as(self, name: str) -> bool:
        """Return whether an export format was declared."""
        return str(name) in self._export_formats

    def export_as(self, name: str) -> Any:
        """Export the document in a format.

        Raises:
            MissingExportMethodError: If no exporter backs the format.

        Returns:
            Any: Exported payload.
        """
        name = str(name)
        declared = self._export_formats.get(name)
        if declared is not None and declared.exporter is not None:
            return declared.exporter()

        method_name = f"export_as_{name}"
        exporter = self._capabilities.get(method_name)
        if exporter is None and callable(getattr(type(self), method_name, None)):
            exporter = getattr(self, method_name)
        if exporter is None:
            raise MissingExportMethodError(format_name=name)
        return exporter()
