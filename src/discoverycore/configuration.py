"""Field configuration registry.

A `Configuration` owns one ordered collection of field descriptors per
category (index fields, facet fields, ...). Each category is declared with
the descriptor type it builds, and fields are registered through `define`:

    config = Configuration()
    config.define("index_field", "title_tsim", label="Title")
    config.add_facet_field({"field": "format", "limit": True})
    config.add_show_field("subject_*")  # expanded against the index schema
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from discoverycore.exceptions import ConfigurationError, DuplicateFieldError
from discoverycore.logging import get_logger
from discoverycore.settings import Settings, get_settings
from discoverycore.typing.enums import FieldCategory
from discoverycore.typing.models import (
    FacetField,
    FieldDescriptor,
    IndexField,
    SearchField,
    ShowField,
    SortField,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from discoverycore.reflection import ReflectionCache

    Customize = Callable[[FieldDescriptor], None]

logger = get_logger(__name__)

DEFAULT_FIELD_CLASSES: Mapping[str, type[FieldDescriptor]] = MappingProxyType(
    {
        FieldCategory.INDEX_FIELD.value: IndexField,
        FieldCategory.SHOW_FIELD.value: ShowField,
        FieldCategory.FACET_FIELD.value: FacetField,
        FieldCategory.SEARCH_FIELD.value: SearchField,
        FieldCategory.SORT_FIELD.value: SortField,
    },
)


class Configuration:
    """Category-scoped registry of field descriptors."""

    def __init__(
        self,
        reflection_cache: ReflectionCache | None = None,
        *,
        settings: Settings | None = None,
        field_classes: Mapping[str, type[FieldDescriptor]] | None = None,
    ) -> None:
        self._settings = settings
        self._reflection_cache = reflection_cache
        self._lock = threading.RLock()
        self._field_classes: dict[str, type[FieldDescriptor]] = {}
        self._reflecting: dict[str, bool] = {}
        self._fields: dict[str, dict[str, FieldDescriptor]] = {}
        self._expansions: dict[tuple[str, str], tuple[str, ...]] = {}

        for category, field_class in (field_classes or DEFAULT_FIELD_CLASSES).items():
            self.define_field_access(category, field_class)

    @property
    def settings(self) -> Settings:
        """Return the settings this configuration reads defaults from."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def facet_default_limit(self) -> int:
        """Return the limit given to facet fields declared with `limit=True`."""
        return self.settings.facet_default_limit

    @property
    def reflection_cache(self) -> ReflectionCache | None:
        """Return the schema reflection cache, if any."""
        return self._reflection_cache

    def define_field_access(
        self,
        category: str,
        field_class: type[FieldDescriptor] = FieldDescriptor,
        *,
        reflect: bool = True,
    ) -> Callable[..., None]:
        """Declare a field category and the descriptor type it builds.

        Declaring an existing category again swaps its descriptor type and keeps the registered fields.

        Args:
            category (str): Category name, e.g. `index_field`.
            field_class (type[FieldDescriptor]): Descriptor type built from options.
            reflect (bool): Whether wildcard fields of this category expand against the index schema.

        Returns:
            Callable[..., None]: Registration callable bound to the category.
        """
        category = str(category)
        with self._lock:
            self._field_classes[category] = field_class
            self._reflecting[category] = reflect
            self._fields.setdefault(category, {})
        return self.field_access(category)

    def field_access(self, category: str) -> Callable[..., None]:
        """Return a registration callable bound to a declared category.

        Args:
            category (str): Declared category name.

        Returns:
            Callable[..., None]: Callable accepting the same arguments as `define` minus the category.
        """
        self.field_class_for(category)

        def _define(*args: Any, customize: Customize | None = None, **options: Any) -> None:
            self.define(category, *args, customize=customize, **options)

        _define.__name__ = f"add_{category}"
        return _define

    def field_class_for(self, category: str) -> type[FieldDescriptor]:
        """Return the descriptor type of a category.

        Raises:
            ConfigurationError: If the category was never declared.
        """
        try:
            return self._field_classes[str(category)]
        except KeyError as exc:
            raise ConfigurationError(message=f"Unknown field category '{category}'") from exc

    def categories(self) -> list[str]:
        """Return the declared categories in declaration order."""
        return list(self._field_classes)

    def fields(self, category: str) -> Mapping[str, FieldDescriptor]:
        """Return the descriptors of a category in registration order.

        Args:
            category (str): Declared category name.

        Returns:
            Mapping[str, FieldDescriptor]: Read-only view keyed by field key.
        """
        self.field_class_for(category)
        return MappingProxyType(self._fields[str(category)])

    def __getitem__(self, category: str) -> Mapping[str, FieldDescriptor]:
        return self.fields(category)

    def expanded_fields(self, category: str, pattern: str) -> tuple[str, ...]:
        """Return the keys a wildcard definition produced in a category.

        Args:
            category (str): Category name.
            pattern (str): Wildcard field name as defined, e.g. `subject_*`.

        Returns:
            tuple[str, ...]: Matched keys, empty when the wildcard was never defined.
        """
        return self._expansions.get((str(category), pattern), ())

    def reflected_fields(self, category: str | None = None) -> Mapping[str, Any]:
        """Return the reflected index fields, or an empty mapping when reflection is unavailable.

        Args:
            category: Category asking; categories declared with `reflect=False` always get an empty mapping.

        Returns:
            Mapping[str, Any]: Field name to metadata.
        """
        if category is not None and not self._reflecting.get(str(category), True):
            return {}
        if self._reflection_cache is None:
            return {}
        return self._reflection_cache.reflected_fields()

    def define(
        self,
        category: str,
        *args: Any,
        customize: Customize | None = None,
        **options: Any,
    ) -> None:
        """Register one or more fields in a category.

        Accepted shapes:

        * a key and options: `define("index_field", "format", label="Format")`
          or `define("index_field", "format", {"label": "Format"})`;
        * options alone: `define("index_field", {"field": "format"})` or `define("index_field", field="format")`;
        * a descriptor: `define("index_field", IndexField(field="format"))`;
        * a sequence of any of the above, registered in order, each element receiving `**options`;
        * nothing but a `customize` callback filling an empty descriptor.

        Args:
            category (str): Declared category name.
            *args: Field key, options mapping, descriptor or sequence.
            customize: Callback receiving the descriptor before normalization.
            **options: Descriptor attributes.

        Raises:
            ConfigurationError: If the category is unknown or the descriptor is invalid.
            DuplicateFieldError: If the key is already registered in the category.
        """
        category = str(category)
        field_class = self.field_class_for(category)

        if args and isinstance(args[0], Sequence) and not isinstance(args[0], str):
            for item in args[0]:
                self.define(category, item, customize=customize, **options)
            return

        descriptor = self._build_descriptor(field_class, args, options)

        if descriptor.compile_match() is not None:
            self._define_matching_fields(category, descriptor, customize)
            return

        if customize is not None:
            customize(descriptor)

        descriptor.normalize(self)
        descriptor.validate_config()

        with self._lock:
            registered = self._fields[category]
            if descriptor.key in registered:
                raise DuplicateFieldError(category=category, key=str(descriptor.key))
            registered[str(descriptor.key)] = descriptor.finalize()
        logger.debug("Registered field", category=category, key=descriptor.key)

    @staticmethod
    def _build_descriptor(
        field_class: type[FieldDescriptor],
        args: tuple[Any, ...],
        options: dict[str, Any],
    ) -> FieldDescriptor:
        """Build a descriptor from one of the accepted argument shapes."""
        key: str | None = None
        remaining = list(args)
        if remaining and isinstance(remaining[0], str):
            key = remaining.pop(0)
        if len(remaining) > 1:
            raise ConfigurationError(message=f"Unexpected field arguments: {args!r}")

        source = remaining[0] if remaining else None
        try:
            if isinstance(source, FieldDescriptor):
                descriptor = source.model_copy(deep=True) if not options else source.merge(field_class(**options))
                descriptor._frozen = False  # noqa: SLF001
            elif source is None or isinstance(source, Mapping):
                descriptor = field_class.model_validate({**(source or {}), **options})
            else:
                raise ConfigurationError(message=f"Cannot build a field from {type(source)!r}")
        except ValidationError as exc:
            raise ConfigurationError(message=f"Invalid {field_class.__name__} options: {exc}") from exc

        if key is not None:
            descriptor.key = key
        return descriptor

    def _define_matching_fields(
        self,
        category: str,
        descriptor: FieldDescriptor,
        customize: Customize | None,
    ) -> None:
        """Register one concrete field per reflected index field matching a wildcard descriptor.

        A concrete key that is already registered is merged with the derived
        descriptor, the registered attributes taking precedence.
        """
        assert descriptor.match is not None  # noqa: S101
        pattern = str(descriptor.source_name)
        matching = [name for name in self.reflected_fields(category) if descriptor.match.search(name)]

        with self._lock:
            for name in matching:
                derived = descriptor.clone_for_match(name)
                registered = self._fields[category]
                existing = registered.get(name)
                if existing is not None:
                    registered[name] = derived.merge(existing).finalize()
                else:
                    self.define(category, derived, customize=customize)
            self._expansions[(category, pattern)] = tuple(matching)

        logger.debug("Expanded wildcard field", category=category, pattern=pattern, matched=len(matching))

    def add_index_field(self, *args: Any, customize: Customize | None = None, **options: Any) -> None:
        """Register fields displayed in search result lists."""
        self.define(FieldCategory.INDEX_FIELD, *args, customize=customize, **options)

    def add_show_field(self, *args: Any, customize: Customize | None = None, **options: Any) -> None:
        """Register fields displayed on record pages."""
        self.define(FieldCategory.SHOW_FIELD, *args, customize=customize, **options)

    def add_facet_field(self, *args: Any, customize: Customize | None = None, **options: Any) -> None:
        """Register facet fields."""
        self.define(FieldCategory.FACET_FIELD, *args, customize=customize, **options)

    def add_search_field(self, *args: Any, customize: Customize | None = None, **options: Any) -> None:
        """Register search scopes."""
        self.define(FieldCategory.SEARCH_FIELD, *args, customize=customize, **options)

    def add_sort_field(self, *args: Any, customize: Customize | None = None, **options: Any) -> None:
        """Register sort options."""
        self.define(FieldCategory.SORT_FIELD, *args, customize=customize, **options)

    @property
    def index_fields(self) -> Mapping[str, FieldDescriptor]:
        """Return the registered index fields."""
        return self.fields(FieldCategory.INDEX_FIELD)

    @property
    def show_fields(self) -> Mapping[str, FieldDescriptor]:
        """Return the registered show fields."""
        return self.fields(FieldCategory.SHOW_FIELD)

    @property
    def facet_fields(self) -> Mapping[str, FieldDescriptor]:
        """Return the registered facet fields."""
        return self.fields(FieldCategory.FACET_FIELD)

    @property
    def search_fields(self) -> Mapping[str, FieldDescriptor]:
        """Return the registered search fields."""
        return self.fields(FieldCategory.SEARCH_FIELD)

    @property
    def sort_fields(self) -> Mapping[str, FieldDescriptor]:
        """Return the registered sort fields."""
        return self.fields(FieldCategory.SORT_FIELD)
