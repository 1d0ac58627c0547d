"""
Observability Manager - Structured Audit Log and Metrics.

Provides:
    - Structured logging via structlog (JSON lines or console rendering)
    - Exchange id, route and source bound through structlog.contextvars
    - In-process metrics (stage timings, exchange counters)

Design Notes:
    - Context variables are local to the thread or task running an
      exchange, so concurrent exchanges never share identity
    - The event buffer and the per-metric sample buffers are bounded;
      count, total and last are kept as running aggregates per tag set
    - Implements both the AuditLogger and MetricsCollector protocols
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional, Tuple

import structlog

DEFAULT_MAX_EVENTS = 10_000
DEFAULT_MAX_SAMPLES = 1_000

TagKey = Tuple[Tuple[str, str], ...]

_exchange_id: ContextVar[Optional[str]] = ContextVar("exchange_id", default=None)


def get_exchange_id() -> Optional[str]:
    """Exchange bound in the current thread or task, if any."""
    return _exchange_id.get()


class ObservabilityManager:
    """
    Audit log sink and metrics collector for routes.

    Every lifecycle event is written through structlog and kept in a
    bounded buffer for later inspection.
    """

    def __init__(
        self,
        service_name: str = "hl7_bridge",
        use_json: bool = True,
        log_level: int = logging.INFO,
        max_events: int = DEFAULT_MAX_EVENTS,
        max_samples: int = DEFAULT_MAX_SAMPLES,
    ) -> None:
        """
        Args:
            service_name: Logger name on every entry
            use_json: JSON lines instead of console output
            log_level: Minimum level written; lower events are still buffered
            max_events: Capacity of the event buffer
            max_samples: Recent samples kept per metric name
        """
        self.service_name = service_name
        self.use_json = use_json
        self.log_level = log_level
        self.max_samples = max_samples
        self._samples: Dict[str, Deque[Dict[str, Any]]] = defaultdict(
            lambda: deque(maxlen=self.max_samples)
        )
        # name -> sorted tag items -> running count, total and last
        self._series: Dict[str, Dict[TagKey, Dict[str, Any]]] = defaultdict(dict)
        self._last: Dict[str, float] = {}
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self._lock = threading.Lock()

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.format_exc_info,
                self._renderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=False,
        )
        self._logger = structlog.get_logger(service_name)

    def _renderer(self):
        if self.use_json:
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer(colors=False)

    def bind_exchange(self, exchange_id: str, route: str, source: str) -> None:
        """Replace the bound identity with a new exchange's."""
        _exchange_id.set(exchange_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            exchange_id=exchange_id, route=route, source=source
        )

    def log_event(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        level: str = "info",
    ) -> None:
        """
        Buffer an event and write it to the log sink.

        Args:
            event_type: e.g. "stage_start", "exchange_recovered"
            data: Event fields
            level: debug, info, warning, error or critical
        """
        fields = dict(data or {})
        with self._lock:
            self._events.append(
                {
                    "event_type": event_type,
                    "recorded_at": datetime.now().isoformat(),
                    "exchange_id": get_exchange_id(),
                    **fields,
                }
            )

        emit = getattr(self._logger, level.lower(), self._logger.info)
        emit(event_type, **fields)

    def record_metric(
        self,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None,
        metric_type: str = "gauge",
    ) -> None:
        """Fold one sample into its tag set's aggregate and keep it as recent."""
        tags = dict(tags or {})
        sample = {
            "value": value,
            "tags": tags,
            "type": metric_type,
            "exchange_id": get_exchange_id(),
        }
        key = tuple(sorted(tags.items()))
        with self._lock:
            self._samples[name].append(sample)
            series = self._series[name].setdefault(
                key, {"tags": tags, "count": 0, "total": 0.0, "last": value}
            )
            series["count"] += 1
            series["total"] += value
            series["last"] = value
            self._last[name] = value

    def get_metrics(self) -> Dict[str, Any]:
        """count / total / last per metric name, over every sample recorded."""
        with self._lock:
            return {
                name: {
                    "count": sum(s["count"] for s in series.values()),
                    "total": sum(s["total"] for s in series.values()),
                    "last": self._last[name],
                }
                for name, series in self._series.items()
                if series
            }

    def get_samples(self, name: str) -> List[Dict[str, Any]]:
        """Most recent samples of a metric, at most max_samples."""
        with self._lock:
            return list(self._samples.get(name, ()))

    def count_where(self, name: str, **tags: str) -> float:
        """Sum a metric over the tag sets that match."""
        with self._lock:
            return sum(
                s["total"]
                for s in self._series.get(name, {}).values()
                if all(s["tags"].get(k) == v for k, v in tags.items())
            )

    def get_events(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()
            self._series.clear()
            self._last.clear()
            self._events.clear()

    # -- AuditLogger --------------------------------------------------------

    def log_stage_start(self, stage_name: str, metadata: Optional[Dict] = None) -> None:
        self.log_event("stage_start", {"stage_name": stage_name, **(metadata or {})}, "debug")

    def log_stage_end(
        self,
        stage_name: str,
        duration_seconds: float,
        metadata: Optional[Dict] = None,
    ) -> None:
        self.log_event(
            "stage_end",
            {"stage_name": stage_name, "duration_seconds": duration_seconds, **(metadata or {})},
            "debug",
        )

    def log_rejected(self, stage_name: str, reason: str) -> None:
        """Unsupported message types are routine, so a warning."""
        self.log_event("exchange_rejected", {"stage_name": stage_name, "reason": reason}, "warning")

    def log_recovered(
        self,
        stage_name: str,
        error_kind: str,
        message: str,
        context: Optional[Dict] = None,
    ) -> None:
        self.log_event(
            "exchange_recovered",
            {"stage_name": stage_name, "error_kind": error_kind, "message": message, **(context or {})},
            "error",
        )

    def log_fatal(
        self,
        stage_name: str,
        error_kind: str,
        message: str,
        context: Optional[Dict] = None,
    ) -> None:
        self.log_event(
            "exchange_fatal",
            {"stage_name": stage_name, "error_kind": error_kind, "message": message, **(context or {})},
            "critical",
        )

    def log_completed(self, response_code: Optional[int], message: str) -> None:
        self.log_event("exchange_completed", {"response_code": response_code, "message": message})

    # -- MetricsCollector ---------------------------------------------------

    def record_timing(
        self,
        name: str,
        duration_seconds: float,
        tags: Optional[Dict] = None,
    ) -> None:
        self.record_metric(name, duration_seconds, tags, metric_type="histogram")

    def record_count(
        self,
        name: str,
        value: int,
        tags: Optional[Dict] = None,
    ) -> None:
        self.record_metric(name, float(value), tags, metric_type="counter")
