"""Search response envelope model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchResponse(BaseModel):
    """Parts of a search response that documents read back."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    highlighting: dict[str, dict[str, list[str]]] = Field(default_factory=dict)
    more_like_this: dict[str, dict[str, Any]] = Field(default_factory=dict, alias="moreLikeThis")

    def more_like(self, document: Any) -> list[dict[str, Any]]:
        """Return the raw records related to a document.

        Args:
            document: Document whose `id` keys the more-like-this section.

        Returns:
            list[dict[str, Any]]: Raw related records, empty when none.
        """
        entry = self.more_like_this.get(str(document.id)) or {}
        return list(entry.get("docs", []))
