"""Kernel time – clock abstraction."""
from overflow.kernel.time.clock import Clock, FrozenClock, SystemClock, to_unix_seconds, utc_now

__all__ = ["Clock", "FrozenClock", "SystemClock", "to_unix_seconds", "utc_now"]
