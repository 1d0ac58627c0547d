"""
Observability Package - Audit Log and Metrics.

    - ObservabilityManager: structlog-based audit sink with exchange ids,
      doubling as the in-memory metrics collector

Design Principles:
    - Structured JSON logging via structlog
    - Exchange id propagation for end-to-end tracing
"""

from hl7_bridge.observability.observability_manager import (
    ObservabilityManager,
    get_exchange_id,
)

__all__ = ["ObservabilityManager", "get_exchange_id"]
