"""Typesense adapter – the search projection over httpx."""
from overflow.adapters.typesense.projection import TypesenseSearchProjection

__all__ = ["TypesenseSearchProjection"]
