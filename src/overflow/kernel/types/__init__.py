"""Kernel types – identifiers."""
from overflow.kernel.types.ids import new_id

__all__ = ["new_id"]
