"""Thread-safe in-memory lifecycle counters with Prometheus export."""

from __future__ import annotations

import threading
from typing import Any

from plugcore.errors import ModuleError
from plugcore.observability.observer import LifecycleObserver

_DESCRIPTIONS = {
    "plugcore_module_transitions_total": "Total module lifecycle transitions",
    "plugcore_hook_errors_total": "Total failed hook handler invocations",
}


class MetricsCollector:
    """Thread-safe in-memory store for labelled counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}

    @staticmethod
    def _labels_key(labels: dict[str, str]) -> tuple[tuple[str, str], ...]:
        return tuple(sorted(labels.items()))

    def increment(self, name: str, labels: dict[str, str], amount: int = 1) -> None:
        key = (name, self._labels_key(labels))
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def get(self, name: str, labels: dict[str, str]) -> int:
        """Current value of one counter, 0 if never incremented."""
        with self._lock:
            return self._counters.get((name, self._labels_key(labels)), 0)

    def snapshot(self) -> dict:
        with self._lock:
            return {"counters": dict(self._counters)}

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()

    def export_prometheus(self) -> str:
        with self._lock:
            lines: list[str] = []
            counter_names: set[str] = set()
            for (name, labels_tuple), value in sorted(self._counters.items()):
                if name not in counter_names:
                    desc = _DESCRIPTIONS.get(name, name)
                    lines.append(f"# HELP {name} {desc}")
                    lines.append(f"# TYPE {name} counter")
                    counter_names.add(name)
                lines.append(f"{name}{self._format_labels(dict(labels_tuple))} {value}")
            return "\n".join(lines) + "\n" if lines else ""

    @staticmethod
    def _format_labels(labels: dict[str, str]) -> str:
        if not labels:
            return ""
        pairs = ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))
        return "{" + pairs + "}"

    # --- Convenience methods ---

    def increment_transitions(self, module_id: str, transition: str) -> None:
        self.increment(
            "plugcore_module_transitions_total",
            {"module_id": module_id, "transition": transition},
        )

    def increment_hook_errors(self, hook_name: str, module_id: str, error_code: str) -> None:
        self.increment(
            "plugcore_hook_errors_total",
            {"hook": hook_name, "module_id": module_id, "error_code": error_code},
        )


class MetricsObserver(LifecycleObserver):
    """Observer that counts lifecycle transitions and hook failures."""

    def __init__(self, collector: MetricsCollector) -> None:
        self._collector = collector

    def on_registered(self, module_id: str, module: Any) -> None:
        self._collector.increment_transitions(module_id, "registered")

    def on_unregistered(self, module_id: str, module: Any) -> None:
        self._collector.increment_transitions(module_id, "unregistered")

    def on_activated(self, module_id: str, module: Any) -> None:
        self._collector.increment_transitions(module_id, "activated")

    def on_deactivated(self, module_id: str, module: Any) -> None:
        self._collector.increment_transitions(module_id, "deactivated")

    def on_hook_error(self, hook_name: str, module_id: str, error: Exception, context: Any) -> None:
        error_code = error.code if isinstance(error, ModuleError) else type(error).__name__
        self._collector.increment_hook_errors(hook_name, module_id, error_code)


__all__ = ["MetricsCollector", "MetricsObserver"]
