"""Typesense adapter – TypesenseSearchProjection."""
from __future__ import annotations

import json
from typing import Any

import httpx

from overflow.application.projection import QUESTIONS_SCHEMA, ProjectionDocument
from overflow.kernel.errors import ExternalServiceError, ProjectionUnavailableError
from overflow.observability import get_logger

logger = get_logger(__name__)

_SERVICE = "typesense"


class TypesenseSearchProjection:
    """The ``questions`` collection of a Typesense server, over its HTTP API.

    Timeouts, transport errors, 429 and 5xx responses are transient and raise
    ``ProjectionUnavailableError``; any other unexpected status raises
    ``ExternalServiceError``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        collection: str = "questions",
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._collection = collection
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {"X-TYPESENSE-API-KEY": api_key}
        self._base_url = base_url.rstrip("/")

    @property
    def collection(self) -> str:
        return self._collection

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "TypesenseSearchProjection":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Collection lifecycle
    # ------------------------------------------------------------------

    async def collection_exists(self) -> bool:
        response = await self._request("GET", f"/collections/{self._collection}", allow=(404,))
        return response.status_code != 404

    async def create_collection(self) -> None:
        schema = dict(QUESTIONS_SCHEMA, name=self._collection)
        # 409: created concurrently by another instance
        await self._request("POST", "/collections", json=schema, allow=(409,))

    async def ensure_collection(self) -> bool:
        if await self.collection_exists():
            logger.info("search.collection_exists", collection=self._collection)
            return False
        await self.create_collection()
        logger.info("search.collection_created", collection=self._collection)
        return True

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def upsert(self, document: ProjectionDocument) -> None:
        await self._request(
            "POST",
            f"/collections/{self._collection}/documents",
            params={"action": "upsert"},
            json=document.to_search(),
        )

    async def delete(self, document_id: str) -> None:
        await self._request(
            "DELETE", f"/collections/{self._collection}/documents/{document_id}", allow=(404,)
        )

    async def get(self, document_id: str) -> ProjectionDocument | None:
        response = await self._request(
            "GET", f"/collections/{self._collection}/documents/{document_id}", allow=(404,)
        )
        if response.status_code == 404:
            return None
        return ProjectionDocument.from_search(response.json())

    async def list_ids(self) -> list[str]:
        response = await self._request(
            "GET",
            f"/collections/{self._collection}/documents/export",
            params={"include_fields": "id"},
        )
        return [json.loads(line)["id"] for line in response.text.splitlines() if line.strip()]

    # ------------------------------------------------------------------

    async def _request(
        self, method: str, path: str, *, allow: tuple[int, ...] = (), **kwargs: Any
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise ProjectionUnavailableError(f"Typesense timed out: {method} {path}", cause=exc) from exc
        except httpx.HTTPError as exc:
            raise ProjectionUnavailableError(f"Typesense unreachable: {method} {path}", cause=exc) from exc
        if response.status_code in allow or response.is_success:
            return response
        if response.status_code >= 500 or response.status_code == 429:
            raise ProjectionUnavailableError(
                f"HTTP {response.status_code} from Typesense {method} {path}",
                detail={"status_code": response.status_code},
            )
        raise ExternalServiceError(
            _SERVICE,
            f"HTTP {response.status_code} from Typesense {method} {path}: {response.text}",
            status_code=response.status_code,
        )


__all__ = ["TypesenseSearchProjection"]
