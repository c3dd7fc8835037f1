"""Tag vocabulary backed by a fixed set of slugs."""

from __future__ import annotations

from typing import Iterable, Sequence


class StaticTagValidator:
    """``TagValidator`` that accepts only slugs from a known vocabulary."""

    def __init__(self, slugs: Iterable[str]) -> None:
        self._slugs = frozenset(slugs)

    async def are_tags_valid(self, tags: Sequence[str]) -> bool:
        return all(tag in self._slugs for tag in tags)

    @property
    def slugs(self) -> frozenset[str]:
        return self._slugs


__all__ = ["StaticTagValidator"]
