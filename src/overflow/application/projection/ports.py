"""Port of the search engine holding the projection."""

from __future__ import annotations

from typing import Protocol

from overflow.application.projection.document import ProjectionDocument


class SearchProjection(Protocol):
    """Port: the search collection of question documents.

    Implementations raise ``ProjectionUnavailableError`` for transient
    failures.  ``delete`` of a missing document is not an error.
    """

    async def collection_exists(self) -> bool: ...

    async def create_collection(self) -> None: ...

    async def ensure_collection(self) -> bool:
        """Create the collection when missing; ``True`` if it was created."""
        ...

    async def upsert(self, document: ProjectionDocument) -> None: ...

    async def delete(self, document_id: str) -> None: ...

    async def list_ids(self) -> list[str]: ...


__all__ = ["SearchProjection"]
