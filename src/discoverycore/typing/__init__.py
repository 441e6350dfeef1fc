"""Typing-centric domain modules."""

from discoverycore.typing.enums import FieldCategory, ReflectionState
from discoverycore.typing.models import (
    FacetField,
    FieldDescriptor,
    IndexField,
    SearchField,
    SearchResponse,
    ShowField,
    SortField,
)
from discoverycore.typing.protocol import MimeRegistry, ReflectionProvider, ResponseEnvelope

__all__ = [
    "FacetField",
    "FieldCategory",
    "FieldDescriptor",
    "IndexField",
    "MimeRegistry",
    "ReflectionProvider",
    "ReflectionState",
    "ResponseEnvelope",
    "SearchField",
    "SearchResponse",
    "ShowField",
    "SortField",
]
