"""Aggregate consistency checks run before a repository writes."""

from __future__ import annotations

from typing import Any

from overflow.kernel.errors.domain import InvariantViolationError


class Invariant:
    """Namespace for invariant assertions."""

    @staticmethod
    def require(condition: bool, message: str, **detail: Any) -> None:
        """Raise ``InvariantViolationError`` when *condition* is False.

        Keyword arguments land in the error's ``detail`` so a failed write
        names the aggregate it refused.
        """
        if not condition:
            raise InvariantViolationError(message, detail=detail)


__all__ = ["Invariant"]
