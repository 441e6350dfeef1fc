"""Time-bounded cache of the search index schema, used to expand wildcard fields."""

from __future__ import annotations

import threading
import time
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import httpx

from discoverycore.exceptions import ReflectionError
from discoverycore.logging import get_logger
from discoverycore.settings import Settings, build_httpx_client_kwargs, get_settings
from discoverycore.typing.enums import ReflectionState

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from discoverycore.typing.protocol import ReflectionProvider

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 3600.0
_EMPTY: Mapping[str, Any] = MappingProxyType({})


class SolrLukeReflectionProvider:
    """Read the field list of a Solr core through its Luke request handler."""

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.Client | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._settings = settings
        self._client = client

    @property
    def luke_url(self) -> str:
        """Return the Luke handler URL of the core."""
        return f"{self._base_url}/admin/luke"

    def reflect_fields(self) -> Mapping[str, Any]:
        """Return the fields known to the index.

        Raises:
            ReflectionError: If the request fails or the payload has no `fields` object.

        Returns:
            Mapping[str, Any]: Field name to Luke field metadata.
        """
        params = {"numTerms": "0", "wt": "json"}
        try:
            if self._client is not None:
                response = self._client.get(self.luke_url, params=params)
            else:
                settings = self._settings or get_settings()
                with httpx.Client(**build_httpx_client_kwargs(settings)) as client:
                    response = client.get(self.luke_url, params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ReflectionError(message=f"Luke request to {self.luke_url} failed", exc=exc) from exc

        fields = payload.get("fields") if isinstance(payload, dict) else None
        if not isinstance(fields, dict):
            raise ReflectionError(message=f"Luke response from {self.luke_url} has no 'fields' object")
        return fields


class ReflectionCache:
    """Cache of reflected index fields with a fixed time-to-live.

    A provider failure is logged and cached as a negative entry, so repeated
    lookups inside the same window neither retry nor raise.
    """

    def __init__(
        self,
        provider: ReflectionProvider | None,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._ttl_seconds = ttl_seconds
        self._enabled = enabled and provider is not None
        self._clock = clock
        self._lock = threading.Lock()
        self._state = ReflectionState.EMPTY
        self._fields: Mapping[str, Any] = _EMPTY
        self._fetched_at: float | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        provider: ReflectionProvider | None = None,
    ) -> ReflectionCache:
        """Build a cache from settings, reflecting `SOLR_URL` when no provider is given.

        Args:
            settings: Runtime settings. Defaults to the cached settings.
            provider: Explicit reflection provider.

        Returns:
            ReflectionCache: Configured cache.
        """
        config = settings or get_settings()
        if provider is None and config.solr_url:
            provider = SolrLukeReflectionProvider(config.solr_url, settings=config)
        return cls(
            provider,
            ttl_seconds=config.reflection_ttl_seconds,
            enabled=config.reflection_enabled,
        )

    @property
    def enabled(self) -> bool:
        """Return whether reflection is enabled."""
        return self._enabled

    @property
    def state(self) -> ReflectionState:
        """Return the state of the cached entry."""
        return self._state

    @property
    def is_fetched(self) -> bool:
        """Return whether a successful result is cached."""
        return self._state == ReflectionState.FETCHED

    @property
    def is_negative(self) -> bool:
        """Return whether a failed fetch is cached."""
        return self._state == ReflectionState.FAILED

    def _expired(self) -> bool:
        if self._fetched_at is None:
            return True
        return self._clock() - self._fetched_at >= self._ttl_seconds

    def reflected_fields(self) -> Mapping[str, Any]:
        """Return the reflected index fields, fetching them when missing or expired.

        Returns:
            Mapping[str, Any]: Field name to metadata; empty when disabled or unavailable.
        """
        if not self._enabled:
            return _EMPTY

        with self._lock:
            if self._state == ReflectionState.EMPTY or self._expired():
                self._refresh()
            return self._fields

    def _refresh(self) -> None:
        assert self._provider is not None  # noqa: S101
        try:
            fields = MappingProxyType(dict(self._provider.reflect_fields()))
        except Exception as exc:
            logger.warning("Error retrieving field metadata", error=str(exc))
            self._state = ReflectionState.FAILED
            self._fields = _EMPTY
        else:
            self._state = ReflectionState.FETCHED
            self._fields = fields
            logger.debug("Reflected index fields", count=len(self._fields))
        self._fetched_at = self._clock()

    def invalidate(self) -> None:
        """Drop the cached entry so the next lookup fetches again."""
        with self._lock:
            self._state = ReflectionState.EMPTY
            self._fields = _EMPTY
            self._fetched_at = None
