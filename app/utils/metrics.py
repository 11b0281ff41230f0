"""
Metrics Collection for the Checklist Scheduler.

In-process counters for checklists, delegations, tickets and scheduling
anomalies, plus call counts and cumulative wall time per timed operation.
Exposed by the /metrics endpoint; reset on process restart.
"""

import time
from typing import Dict, Any, Callable
from collections import Counter
from datetime import datetime, timezone
from functools import wraps
import threading

COUNTERS = (
    "checklists_created_total",
    "instances_completed_total",
    "pointer_advances_total",
    "backlog_completions_total",
    "completion_conflicts_total",
    "scheduling_anomalies_total",
    "delegations_created_total",
    "delegation_transitions_total",
    "tickets_raised_total",
    "tickets_resolved_total",
)


class MetricsCollector:
    """Thread-safe counters and timers."""

    def __init__(self):
        self.lock = threading.Lock()
        self.reset()

    def reset(self):
        with self.lock:
            self.counters = Counter({name: 0 for name in COUNTERS})
            self.timer_seconds = Counter()
            self.timer_calls = Counter()

    def increment_counter(self, metric_name: str, value: int = 1):
        with self.lock:
            self.counters[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        with self.lock:
            self.timer_seconds[metric_name] += duration
            self.timer_calls[metric_name] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Snapshot of every counter and timer."""
        with self.lock:
            timers = {
                name: {
                    "calls": self.timer_calls[name],
                    "total_seconds": round(total, 6),
                    "avg_seconds": round(total / self.timer_calls[name], 6),
                }
                for name, total in self.timer_seconds.items()
            }
            return {
                "counters": dict(self.counters),
                "timers": timers,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

    def checklist_created(self):
        self.increment_counter("checklists_created_total")

    def instance_completed(self, advanced: bool, backlog: bool):
        """Record a completion, whether it moved the due date, and whether it caught up a past day."""
        self.increment_counter("instances_completed_total")
        if advanced:
            self.increment_counter("pointer_advances_total")
        if backlog:
            self.increment_counter("backlog_completions_total")

    def completion_conflict(self):
        self.increment_counter("completion_conflicts_total")

    def scheduling_anomaly(self):
        self.increment_counter("scheduling_anomalies_total")

    def delegation_created(self):
        self.increment_counter("delegations_created_total")

    def delegation_transition(self, status: str):
        self.increment_counter("delegation_transitions_total")
        self.increment_counter(f"delegations_{status.lower().replace(' ', '_')}_total")

    def ticket_raised(self):
        self.increment_counter("tickets_raised_total")

    def ticket_resolved(self):
        self.increment_counter("tickets_resolved_total")

    def time_operation(self, metric_name: str) -> Callable:
        """Decorator recording the wall time of each call under metric_name."""
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                started = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    self.record_timer(metric_name, time.perf_counter() - started)
            return wrapper
        return decorator


# Global metrics instance
metrics_collector = MetricsCollector()
