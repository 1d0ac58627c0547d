"""
Audit Logger and Metrics Protocols.

The operator-facing sink for exchange lifecycle events. Every Recovered
and Fatal transition goes through here with enough context (stage,
exchange id, error kind) to diagnose it after the fact.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


class AuditLogger(Protocol):
    """Protocol for exchange audit logging."""

    def bind_exchange(self, exchange_id: str, route: str, source: str) -> None:
        """Attach exchange identity to subsequent log entries."""
        ...

    def log_stage_start(self, stage_name: str, metadata: Optional[Dict] = None) -> None:
        ...

    def log_stage_end(
        self,
        stage_name: str,
        duration_seconds: float,
        metadata: Optional[Dict] = None,
    ) -> None:
        ...

    def log_rejected(self, stage_name: str, reason: str) -> None:
        """Content-based rejection; a warning, not an error."""
        ...

    def log_recovered(
        self,
        stage_name: str,
        error_kind: str,
        message: str,
        context: Optional[Dict] = None,
    ) -> None:
        ...

    def log_fatal(
        self,
        stage_name: str,
        error_kind: str,
        message: str,
        context: Optional[Dict] = None,
    ) -> None:
        ...

    def log_completed(self, response_code: Optional[int], message: str) -> None:
        ...


class MetricsCollector(Protocol):
    """Protocol for metrics collectors."""

    def record_timing(
        self, name: str, duration_seconds: float, tags: Optional[Dict] = None
    ) -> None:
        ...

    def record_count(
        self, name: str, value: int, tags: Optional[Dict] = None
    ) -> None:
        ...

    def get_metrics(self) -> Dict[str, Any]:
        ...
