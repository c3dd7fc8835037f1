"""Kernel security – caller identity."""
from overflow.kernel.security.caller import Caller, require_caller

__all__ = ["Caller", "require_caller"]
