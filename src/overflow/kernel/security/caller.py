"""Kernel security – Caller identity snapshot."""
from __future__ import annotations

import dataclasses

from overflow.kernel.errors import UnauthenticatedError


@dataclasses.dataclass(frozen=True)
class Caller:
    """Authenticated identity handed in by the boundary layer.

    Captured as an immutable snapshot on the questions and answers the caller
    creates; later display-name changes do not rewrite history.
    """

    id: str
    display_name: str

    def __str__(self) -> str:
        return self.id


def require_caller(caller: Caller | None) -> Caller:
    """Return *caller* or raise ``UnauthenticatedError`` when claims are missing."""
    if caller is None or not caller.id or not caller.display_name:
        raise UnauthenticatedError("Cannot get user details")
    return caller


__all__ = ["Caller", "require_caller"]
