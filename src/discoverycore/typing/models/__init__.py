"""Core domain model exports."""

from discoverycore.typing.models.fields import (
    DisplayField,
    FacetField,
    FieldDescriptor,
    IndexField,
    SearchField,
    ShowField,
    SortField,
    has_wildcard,
    wildcard_pattern,
)
from discoverycore.typing.models.response import SearchResponse

__all__ = [
    "DisplayField",
    "FacetField",
    "FieldDescriptor",
    "IndexField",
    "SearchField",
    "SearchResponse",
    "ShowField",
    "SortField",
    "has_wildcard",
    "wildcard_pattern",
]
