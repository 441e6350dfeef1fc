from __future__ import annotations

import pytest

from discoverycore.typing.enums import FieldCategory, ReflectionState


def test_field_category_from_str() -> None:
    assert FieldCategory.from_str("facet_field") == FieldCategory.FACET_FIELD


def test_field_category_from_str_raises_on_invalid_value() -> None:
    with pytest.raises(ValueError, match="Unsupported FieldCategory value"):
        FieldCategory.from_str("facet")


def test_reflection_state_to_str() -> None:
    assert ReflectionState.FAILED.to_str() == "failed"
