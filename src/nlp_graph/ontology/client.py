from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from ..errors import OntologyError
from ..settings import settings
from .http import HttpClientFactory, transient_retry
from .models import OntologyEdge

logger = logging.getLogger(__name__)


class OntologyClient(Protocol):
    """Synchronous access to a lexical knowledge graph."""

    def lookup(self, key: str, language: str) -> set[OntologyEdge]: ...


def _term_parts(node: dict[str, Any]) -> tuple[str, str]:
    """Split a ConceptNet node into (word, language).

    Terms look like `/c/en/cat` or `/c/en/cat/n/wn/animal`.
    """
    term = node.get("term") or node.get("@id") or ""
    parts = term.split("/")
    if len(parts) < 4 or parts[1] != "c":
        raise OntologyError(f"Unexpected ConceptNet term: {term!r}")
    language = node.get("language") or parts[2]
    return parts[3], language


def _relation_name(rel: dict[str, Any]) -> str:
    label = rel.get("label")
    if label:
        return label
    rid = rel.get("@id") or ""
    if not rid.startswith("/r/"):
        raise OntologyError(f"Unexpected ConceptNet relation: {rid!r}")
    return rid[3:]


class ConceptNetClient:
    """ConceptNet 5 REST API client.

    Docs: https://github.com/commonsense/conceptnet5/wiki/API

    One `lookup` is one request to `/c/<lang>/<key>`; transient network
    errors are retried, everything else surfaces as `OntologyError`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        limit: int | None = None,
        read_timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.conceptnet_url).rstrip("/")
        self.limit = limit or settings.conceptnet_limit
        self._client = HttpClientFactory.client(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            read_timeout=read_timeout or settings.http_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ConceptNetClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @transient_retry()
    def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        return self._client.get(path, params=params)

    def lookup(self, key: str, language: str) -> set[OntologyEdge]:
        path = f"/c/{quote(language, safe='')}/{quote(key, safe='')}"
        try:
            r = self._get(path, {"limit": self.limit})
            r.raise_for_status()
            payload = r.json()
        except httpx.HTTPError as e:
            raise OntologyError(f"ConceptNet lookup failed for {key} ({language}): {e}") from e
        except ValueError as e:
            raise OntologyError(f"ConceptNet returned invalid JSON for {key} ({language})") from e

        edges = payload.get("edges") if isinstance(payload, dict) else None
        if edges is None:
            raise OntologyError(f"ConceptNet payload for {key} ({language}) has no edges")
        out = {self._to_edge(e) for e in edges}
        logger.debug("ConceptNet %s (%s): %d edges", key, language, len(out))
        return out

    def _to_edge(self, d: dict[str, Any]) -> OntologyEdge:
        try:
            start, start_language = _term_parts(d["start"])
            end, end_language = _term_parts(d["end"])
            relation = _relation_name(d["rel"])
            weight = float(d.get("weight", 1.0))
        except (KeyError, TypeError, AttributeError) as e:
            raise OntologyError(f"Malformed ConceptNet edge: {d!r}") from e
        return OntologyEdge(
            start=start,
            start_language=start_language,
            end=end,
            end_language=end_language,
            relation=relation,
            weight=weight,
        )
