"""Function-call counters shared by every package."""

from .runtime import configure, reset, snapshot, t

__all__ = ["t", "configure", "snapshot", "reset"]
