"""Field descriptor models used by the configuration registry."""

from __future__ import annotations

import copy
import re
from typing import TYPE_CHECKING, Any, Self

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from discoverycore.exceptions import ConfigurationError

if TYPE_CHECKING:
    from discoverycore.configuration import Configuration

WILDCARD = "*"
DEFAULT_FACET_LIMIT = 10


def has_wildcard(name: str | None) -> bool:
    """Return whether a field name carries the wildcard marker."""
    return bool(name) and WILDCARD in str(name)


def wildcard_pattern(name: str) -> re.Pattern[str]:
    """Compile a wildcard field name into an anchored regex.

    Each `*` matches one or more characters; the literal segments are escaped.

    Args:
        name (str): Field name containing `*`.

    Returns:
        re.Pattern[str]: Anchored pattern, e.g. `^foo_.+$` for `foo_*`.
    """
    segments = (re.escape(segment) for segment in name.split(WILDCARD))
    return re.compile(f"^{'.+'.join(segments)}$")


class FieldDescriptor(BaseModel):
    """Configuration of one logical field.

    Descriptors stay mutable while the registry builds them (customization
    callbacks, normalization) and are frozen once inserted.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, arbitrary_types_allowed=True)

    key: str | None = None
    field: str | None = None
    label: str | None = None
    match: re.Pattern[str] | None = Field(default=None, exclude=True)
    if_: Any = Field(default=True, alias="if")
    unless: Any = False

    _frozen: bool = PrivateAttr(default=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_") and getattr(self, "_frozen", False):
            raise ConfigurationError(
                message=f"Field '{self.key}' is finalized; attribute '{name}' cannot be changed",
            )
        super().__setattr__(name, value)

    @property
    def frozen(self) -> bool:
        """Return whether the descriptor was finalized."""
        return self._frozen

    @property
    def source_name(self) -> str | None:
        """Return the name used to detect wildcards, the field first then the key."""
        return self.field or self.key

    def display_label(self) -> str:
        """Return the explicit label, or a label derived from the key."""
        if self.label:
            return self.label
        return (self.key or self.field or "").replace("_", " ").strip().capitalize()

    def compile_match(self) -> re.Pattern[str] | None:
        """Compile and store the wildcard pattern when the field or key carries one.

        Returns:
            re.Pattern[str] | None: Stored pattern, None for concrete fields.
        """
        name = self.source_name
        if has_wildcard(name):
            self.match = wildcard_pattern(str(name))
        return self.match

    def normalize(self, configuration: Configuration | None = None) -> Self:  # noqa: ARG002
        """Fill the field from the key and the key from the field.

        Args:
            configuration: Owning configuration, read by subtypes for defaults.

        Returns:
            Self: The normalized descriptor.
        """
        self.compile_match()
        if self.field is None and self.key is not None:
            self.field = self.key
        if self.key is None and self.field is not None:
            self.key = self.field
        return self

    def validate_config(self) -> Self:
        """Check the descriptor can be registered.

        Raises:
            ConfigurationError: If no concrete field nor match pattern is present, or names are malformed.

        Returns:
            Self: The validated descriptor.
        """
        for name in ("key", "field", "label"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(message=f"Field attribute '{name}' must be a string, got {type(value)!r}")
        if self.match is None and not self.field:
            raise ConfigurationError(message="Must supply a field name")
        if self.match is None and not self.key:
            raise ConfigurationError(message=f"Field '{self.field}' has no key")
        return self

    def finalize(self) -> Self:
        """Freeze the descriptor against further changes."""
        self._frozen = True
        return self

    def explicit_attributes(self) -> dict[str, Any]:
        """Return the attributes that were explicitly set, extras included."""
        declared = type(self).model_fields
        values = {name: getattr(self, name) for name in self.model_fields_set if name in declared}
        values.update(self.model_extra or {})
        values.pop("match", None)
        return values

    def _unfrozen_copy(self) -> Self:
        copied = self.model_copy(deep=True)
        copied._frozen = False
        return copied

    def clone_for_match(self, name: str) -> Self:
        """Derive a concrete descriptor for one index field matched by a wildcard.

        Args:
            name (str): Concrete index field name.

        Returns:
            Self: Unfrozen copy with no match pattern, keyed on `name`.
        """
        clone = self._unfrozen_copy()
        clone.match = None
        clone.field = name
        clone.key = name
        return clone

    def merge(self, other: FieldDescriptor) -> Self:
        """Overlay another descriptor's explicit attributes on a copy of this one.

        Args:
            other (FieldDescriptor): Descriptor whose attributes take precedence.

        Returns:
            Self: Unfrozen merged descriptor.
        """
        merged = self._unfrozen_copy()
        for name, value in other.explicit_attributes().items():
            setattr(merged, name, copy.deepcopy(value))
        return merged


class DisplayField(FieldDescriptor):
    """Field rendered in result lists or on the record page."""

    helper_method: str | None = None
    link_to_facet: bool | str = False
    highlight: bool = False
    separator_options: dict[str, str] | None = None


class IndexField(DisplayField):
    """Field displayed in search result lists."""


class ShowField(DisplayField):
    """Field displayed on a single record page."""


class FacetField(FieldDescriptor):
    """Field offered as a facet."""

    show: bool = True
    collapse: bool = True
    limit: int | bool | None = None
    sort: str | None = None
    pivot: list[str] | None = None
    query: dict[str, dict[str, Any]] | None = None

    def normalize(self, configuration: Configuration | None = None) -> Self:
        """Apply facet defaults on top of the common normalization.

        `limit=True` resolves to the configured default facet limit, and the
        display condition follows `show` unless it was set explicitly.

        Args:
            configuration: Owning configuration.

        Returns:
            Self: The normalized descriptor.
        """
        super().normalize(configuration)
        if self.limit is True:
            self.limit = getattr(configuration, "facet_default_limit", DEFAULT_FACET_LIMIT)
        if "if_" not in self.model_fields_set:
            self.if_ = self.show
        return self


class SearchField(FieldDescriptor):
    """Selectable search scope, e.g. `title` or `all_fields`."""

    include_in_simple_select: bool = True
    include_in_advanced_search: bool = True
    solr_parameters: dict[str, Any] | None = None
    solr_local_parameters: dict[str, Any] | None = None
    qt: str | None = None

    def normalize(self, configuration: Configuration | None = None) -> Self:
        """Make the display condition follow `include_in_simple_select` unless set explicitly.

        Args:
            configuration: Owning configuration.

        Returns:
            Self: The normalized descriptor.
        """
        if "if_" not in self.model_fields_set:
            self.if_ = self.include_in_simple_select
        return super().normalize(configuration)


class SortField(FieldDescriptor):
    """Sort option; `sort` holds the sort clause sent to the index."""

    sort: str | None = None

    def normalize(self, configuration: Configuration | None = None) -> Self:
        """Derive the sort clause, field and key from whichever was given.

        Args:
            configuration: Owning configuration.

        Returns:
            Self: The normalized descriptor.
        """
        if self.sort is None and self.field is not None:
            self.sort = self.field
        super().normalize(configuration)
        if self.field is None and self.sort:
            slug = re.sub(r"[^a-z0-9]+", "_", self.sort.lower()).strip("_")
            self.field = slug
            self.key = self.key or slug
        if self.sort is None:
            self.sort = self.field
        return self
