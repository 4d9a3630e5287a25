"""Kernel time – Clock port + implementations."""
from schedcore.kernel.time.clock import Clock, ManualClock, SystemClock, utc_now

__all__ = ["Clock", "ManualClock", "SystemClock", "utc_now"]
