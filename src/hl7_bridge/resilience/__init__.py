"""
Resilience Package - Exchange Failure Handling.

This package decides what happens when a stage raises:
    - ExceptionHandler: Recovered vs Fatal, per route exception table
    - ExceptionPolicy: Response and log line for one failure kind

Design Principles:
    - Recoverable kinds never escape the pipeline
    - Fatal kinds reach the ingress adapter as ExchangeFailed
    - A failing exchange never affects its siblings
"""

from hl7_bridge.resilience.exception_handler import (
    ExceptionHandler,
    ExceptionPolicy,
    default_exception_table,
)

__all__ = ["ExceptionHandler", "ExceptionPolicy", "default_exception_table"]
