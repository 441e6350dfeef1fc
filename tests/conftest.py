"""Shared fixtures and pytest marker auto-assignment by folder."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from discoverycore import logger
from discoverycore.configuration import Configuration
from discoverycore.reflection import ReflectionCache
from discoverycore.settings import Settings


class StaticReflectionProvider:
    """Reflection provider returning a fixed schema and counting calls."""

    def __init__(self, fields: dict[str, Any] | None = None, *, error: Exception | None = None) -> None:
        self.fields = fields or {}
        self.error = error
        self.calls = 0

    def reflect_fields(self) -> dict[str, Any]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.fields


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def provider_factory() -> type[StaticReflectionProvider]:
    return StaticReflectionProvider


@pytest.fixture
def reflection_provider() -> StaticReflectionProvider:
    return StaticReflectionProvider(
        {
            "foo_bar": {"type": "string"},
            "foo_baz": {"type": "string"},
            "other": {"type": "text_general"},
        },
    )


@pytest.fixture
def configuration(settings: Settings, reflection_provider: StaticReflectionProvider) -> Configuration:
    return Configuration(ReflectionCache(reflection_provider), settings=settings)


def _mark_tests_by_directory(
    config: pytest.Config,
    items: list[pytest.Item],
    marker: str,
) -> None:
    """Mark collected tests located under tests/<marker>/."""
    target_dir = Path(config.rootpath) / "tests" / marker
    target_dir = target_dir.resolve()

    for item in items:
        try:
            path = Path(str(item.fspath)).resolve()
        except Exception:
            logger.warning("Could not resolve test path; skipping marker", test=item.name, marker=marker)
            continue

        if path == target_dir or target_dir in path.parents:
            item.add_marker(getattr(pytest.mark, marker))


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Apply directory-based markers to test items."""
    _mark_tests_by_directory(config, items, "unit")
    _mark_tests_by_directory(config, items, "integration")
    _mark_tests_by_directory(config, items, "end2end")
