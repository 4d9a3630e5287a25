"""
schedcore – in-process cron and interval scheduling primitives.

Import path convention::

    from schedcore.scheduling import Scheduler, ScheduledEvent
    from schedcore.scheduling.cron import CronExpression
    from schedcore.kernel.errors import ConfigurationError
    from schedcore.config import SchedulerSettings
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
