"""Vectara query client: builds search+generation requests and normalizes replies."""

from collections.abc import Iterable
from typing import Any

import httpx
from pydantic import ValidationError

from .config import QueryConfig
from .exceptions import InvalidResponse, RemoteError
from .models import QueryResult, SearchResult, Source, VectaraResponse
from .observability import get_logger
from .observability.logging import REDACTED
from .prompts import SYSTEM_PROMPT, build_prompt_template

logger = get_logger(__name__)

TITLE_FALLBACK_CHARS = 100


def _source_title(result: SearchResult) -> str:
    metadata = result.document_metadata
    if metadata and metadata.title:
        return metadata.title
    if result.text:
        return result.text[:TITLE_FALLBACK_CHARS]
    if metadata and metadata.excerpt:
        return metadata.excerpt[:TITLE_FALLBACK_CHARS]
    return "Untitled"


def extract_sources(results: Iterable[SearchResult], cutoff: float) -> list[Source]:
    """Turn search results into citation links.

    Results scoring below ``cutoff`` are dropped (a missing score counts as 0),
    as are results without a url. Duplicate urls keep their first occurrence,
    and the original order is preserved.
    """
    sources: list[Source] = []
    seen: set[str] = set()
    for result in results:
        if (result.score or 0.0) < cutoff:
            continue
        url = (result.document_metadata.url if result.document_metadata else None) or ""
        if not url or url in seen:
            continue
        seen.add(url)
        sources.append(Source(title=_source_title(result), url=url))
    return sources


def _upstream_detail(response: httpx.Response) -> str | None:
    """Best-effort error text from a Vectara error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        for key in ("messages", "message", "field_errors"):
            if body.get(key):
                value = body[key]
                return value if isinstance(value, str) else str(value)
    return response.text or None


class VectaraClient:
    """Sends one question to Vectara and returns a ``QueryResult``.

    Stateless between calls; safe to share across concurrent handlers. The
    HTTP client can be injected so tests substitute a fake transport.
    """

    def __init__(
        self,
        config: QueryConfig,
        http_client: httpx.AsyncClient | None = None,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.config = config
        self.system_prompt = system_prompt
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout)

        logger.info(
            "vectara_configured",
            customer_id=config.customer_id,
            corpus_key=config.corpus_key,
            max_results=config.max_results,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            frequency_penalty=config.frequency_penalty,
            presence_penalty=config.presence_penalty,
            relevance_threshold=config.relevance_threshold,
            diversity_bias=config.diversity_bias,
        )

    async def __aenter__(self) -> "VectaraClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.config.get_api_key(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def build_generation(self, question: str) -> dict[str, Any]:
        """Generation stage: prompt, limits, decoding parameters. Citations are rendered by the bot, not inline."""
        cfg = self.config
        return {
            "generation_preset_name": cfg.generation_preset_name,
            "prompt_template": build_prompt_template(question, self.system_prompt),
            "max_used_search_results": cfg.max_results,
            "max_response_characters": cfg.max_response_chars,
            "response_language": cfg.response_language,
            "model_parameters": {
                "temperature": cfg.temperature,
                "max_tokens": cfg.max_tokens,
                "frequency_penalty": cfg.frequency_penalty,
                "presence_penalty": cfg.presence_penalty,
            },
            "citations": {"style": "none", "url_pattern": "", "text_pattern": ""},
        }

    def build_search(self) -> dict[str, Any]:
        """Search stage: corpus, scan depth and the MMR reranker."""
        cfg = self.config
        return {
            "corpora": [{"corpus_key": cfg.corpus_key}],
            "limit": cfg.search_depth,
            "reranker": {
                "type": cfg.reranker_type,
                "diversity_bias": cfg.diversity_bias,
                "limit": cfg.max_results,
                "cutoff": cfg.relevance_threshold,
            },
        }

    def build_payload(self, question: str) -> dict[str, Any]:
        return {
            "query": question,
            "search": self.build_search(),
            "generation": self.build_generation(question),
        }

    async def query(self, question: str) -> QueryResult:
        """Ask Vectara a question.

        Args:
            question: Free-text question; callers are expected to reject blank input

        Returns:
            Summary text plus citation sources

        Raises:
            RemoteError: Transport failure, timeout or non-success status
            InvalidResponse: Success status with errors, no summary, or an unparseable body
        """
        payload = self.build_payload(question)
        logger.debug(
            "vectara_request",
            url=self.config.api_url,
            headers={**self.headers, "x-api-key": REDACTED},
            payload={**payload, "generation": {**payload["generation"], "prompt_template": REDACTED}},
        )

        try:
            response = await self._client.post(self.config.api_url, json=payload, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _upstream_detail(e.response)
            logger.error(
                "vectara_api_error",
                status=e.response.status_code,
                reason=e.response.reason_phrase,
                detail=detail,
            )
            raise RemoteError(
                f"Vectara API error ({e.response.status_code}): {detail or e.response.reason_phrase}",
                status_code=e.response.status_code,
                detail=detail,
            ) from e
        except httpx.HTTPError as e:
            message = str(e) or type(e).__name__
            logger.error("vectara_transport_error", error_type=type(e).__name__, message=message)
            raise RemoteError(f"Vectara API request failed: {message}", detail=message) from e

        logger.debug("vectara_response", status=response.status_code, reason=response.reason_phrase)
        return self.parse_response(response)

    def parse_response(self, response: httpx.Response) -> QueryResult:
        """Validate a successful reply and normalize it into a QueryResult."""
        try:
            body = response.json()
        except ValueError as e:
            logger.error("vectara_invalid_json", status=response.status_code)
            raise InvalidResponse("Invalid response from Vectara: body is not JSON") from e

        if not isinstance(body, dict):
            raise InvalidResponse(f"Invalid response from Vectara: expected an object, got {type(body).__name__}")

        try:
            data = VectaraResponse.model_validate(body)
        except ValidationError as e:
            logger.error("vectara_invalid_payload", errors=e.errors(include_url=False))
            raise InvalidResponse(f"Invalid response from Vectara: {e}", errors=e.errors(include_url=False)) from e

        if data.errors is not None:
            logger.error("vectara_response_errors", errors=data.errors)
            raise InvalidResponse(f"Invalid response from Vectara: {data.errors}", errors=data.errors)

        summary = data.summary or ""
        if not summary.strip():
            raise InvalidResponse("No summary in Vectara response")

        results = data.search_results or []
        sources = extract_sources(results, self.config.relevance_threshold)
        logger.info(
            "vectara_answer",
            search_results=len(results),
            sources=len(sources),
            factual_consistency_score=data.factual_consistency_score,
        )
        return QueryResult(summary=summary, sources=sources)
