"""Resilience – bounded retry with exponential backoff."""
from overflow.resilience.retry import RetryPolicy

__all__ = ["RetryPolicy"]
