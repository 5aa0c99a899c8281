"""
Metrics Collection Module for FormSQL
Counts parse, compile and guardrail outcomes for operators and dashboards
"""
from __future__ import annotations

import json
import statistics
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional


class MetricsCollector:
    """Thread-safe metrics collector"""

    _instance: Optional["MetricsCollector"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "MetricsCollector":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._counters: Dict[str, float] = defaultdict(float)
        self._timers: Dict[str, List[float]] = defaultdict(list)
        self._data_lock = threading.Lock()
        self._enabled = True
        self._initialized = True

    def enable(self) -> None:
        """Enable metrics collection"""
        self._enabled = True

    def disable(self) -> None:
        """Disable metrics collection"""
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    def counter(self, name: str, value: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        """Increment a counter"""
        if not self._enabled:
            return

        key = self._make_key(name, labels)
        with self._data_lock:
            self._counters[key] += value

    def timer(self, name: str, duration: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Record a timer value"""
        if not self._enabled:
            return

        key = self._make_key(name, labels)
        with self._data_lock:
            self._timers[key].append(duration)

    def _make_key(self, name: str, labels: Optional[Dict[str, str]] = None) -> str:
        """Create a unique key for metric with labels"""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        with self._data_lock:
            return self._counters.get(self._make_key(name, labels), 0.0)

    def get_metrics(self) -> Dict[str, Any]:
        """Get all collected metrics"""
        with self._data_lock:
            metrics: Dict[str, Any] = {
                "counters": dict(self._counters),
                "timers": {},
            }

            for key, values in self._timers.items():
                if values:
                    metrics["timers"][key] = {
                        "count": len(values),
                        "sum": sum(values),
                        "min": min(values),
                        "max": max(values),
                        "mean": statistics.mean(values),
                        "median": statistics.median(values),
                    }

            return metrics

    def reset(self) -> None:
        """Reset all metrics"""
        with self._data_lock:
            self._counters.clear()
            self._timers.clear()

    def export_json(self) -> str:
        """Export metrics as JSON string"""
        return json.dumps(self.get_metrics(), indent=2, default=str)


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance"""
    return MetricsCollector()


def counter(name: str, value: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
    """Increment a counter"""
    get_metrics_collector().counter(name, value, labels)


def timer(name: str, duration: float, labels: Optional[Dict[str, str]] = None) -> None:
    """Record a timer value"""
    get_metrics_collector().timer(name, duration, labels)


class FormSQLMetrics:
    """FormSQL specific metrics helper"""

    @staticmethod
    def record_ddl_parse(duration: float, tables: int, skipped_clauses: int) -> None:
        timer("ddl_parse_duration", duration)
        counter("ddl_tables_parsed_total", float(tables))
        counter("ddl_clauses_skipped_total", float(skipped_clauses))

    @staticmethod
    def record_compile(duration: float, statements: int, skipped_operations: int) -> None:
        timer("sql_compile_duration", duration)
        counter("sql_statements_compiled_total", float(statements))
        counter("sql_operations_gated_total", float(skipped_operations))

    @staticmethod
    def record_guardrail(check: str, flagged: bool) -> None:
        labels = {"check": check, "flagged": str(flagged).lower()}
        counter("guardrail_checks_total", 1.0, labels)

    @staticmethod
    def record_identifier_rejection(reason: str) -> None:
        counter("identifier_rejections_total", 1.0, {"reason": reason})
