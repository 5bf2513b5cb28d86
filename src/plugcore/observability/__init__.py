"""plugcore observability package.

Re-exports all public observability classes for convenient access::

    from plugcore.observability import (
        LifecycleObserver, LoggingObserver,
        MetricsCollector, MetricsObserver,
    )
"""

from plugcore.observability.metrics import MetricsCollector, MetricsObserver
from plugcore.observability.observer import LifecycleObserver, LoggingObserver

__all__ = [
    "LifecycleObserver",
    "LoggingObserver",
    "MetricsCollector",
    "MetricsObserver",
]
