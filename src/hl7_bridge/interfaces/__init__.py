"""
Interfaces Layer - Abstract Protocols for Dependencies.

Following the Dependency Inversion Principle, the pipeline depends on
these protocols, not on concrete stages, clients or log sinks.

Protocols:
    - PipelineStage: One step of a route
    - ResourceClient: Create call against the FHIR server
    - AuditLogger: Operator-facing log sink
    - MetricsCollector: Timing and counters

Design Principles:
    - Use typing.Protocol (not ABC) for Pythonic interfaces
    - Small, focused interfaces
"""

from hl7_bridge.interfaces.audit_logger import AuditLogger, MetricsCollector
from hl7_bridge.interfaces.resource_client import ResourceClient
from hl7_bridge.interfaces.stage import PipelineStage, StageKind

__all__ = [
    "AuditLogger",
    "MetricsCollector",
    "ResourceClient",
    "PipelineStage",
    "StageKind",
]
