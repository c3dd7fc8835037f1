"""Opaque string identifiers."""

from __future__ import annotations

import uuid


def new_id() -> str:
    """Return a new opaque identifier (UUID v4 string)."""
    return str(uuid.uuid4())


__all__ = ["new_id"]
