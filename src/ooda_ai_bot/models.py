"""Data models for Vectara query responses and the normalized bot result."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict


# --- Wire models (Vectara v2 query response) ---


class DocumentMetadata(BaseModel):
    """Metadata Vectara attaches to an indexed document."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    title: str | None = None
    url: str | None = None
    type: str | None = None
    excerpt: str | None = None


class SearchResult(BaseModel):
    """A scored passage returned by the search stage."""

    model_config = ConfigDict(extra="ignore")

    text: str | None = None
    score: float | None = None
    document_metadata: DocumentMetadata | None = None


class VectaraResponse(BaseModel):
    """Body of a Vectara query reply. Everything is optional until validated by the client."""

    model_config = ConfigDict(extra="ignore")

    summary: str | None = None
    search_results: list[SearchResult] | None = None
    factual_consistency_score: float | None = None
    field_errors: Any = None
    messages: Any = None

    @property
    def errors(self) -> Any:
        """Field errors if present, otherwise messages; None when the reply is clean."""
        if self.field_errors:
            return self.field_errors
        if self.messages:
            return self.messages
        return None


# --- Bot-facing models ---


@dataclass(frozen=True)
class Source:
    """A citation link derived from a search result."""

    title: str
    url: str


@dataclass(frozen=True)
class QueryResult:
    """Normalized answer: a non-empty summary plus deduplicated sources."""

    summary: str
    sources: list[Source] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "sources": [{"title": s.title, "url": s.url} for s in self.sources],
        }
