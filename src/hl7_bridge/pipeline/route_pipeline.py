"""
Route Pipeline - Main Orchestrator.

The RoutePipeline runs one exchange through the stages of a route, in
order and synchronously, under the route's exception handler.

Exchange lifecycle:
    RUNNING -> COMPLETED  all stages ran, or the router halted it
    RUNNING -> RECOVERED  a handled failure kind was raised
    RUNNING -> FATAL      anything else; ExchangeFailed is raised
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from hl7_bridge.domain.entities import Exchange, ExchangeState, RawInput
from hl7_bridge.interfaces.audit_logger import AuditLogger, MetricsCollector
from hl7_bridge.interfaces.stage import PipelineStage
from hl7_bridge.pipeline.route_definition import RouteDefinition
from hl7_bridge.resilience.exception_handler import ExceptionHandler

logger = logging.getLogger(__name__)


class RoutePipeline:
    """Executes exchanges against one immutable route definition."""

    def __init__(
        self,
        route: RouteDefinition,
        audit_logger: AuditLogger,
        metrics_collector: MetricsCollector,
        exception_handler: Optional[ExceptionHandler] = None,
    ) -> None:
        """
        Initialize pipeline with all dependencies.

        Args:
            route: Stages and exception table
            audit_logger: For the operator-facing audit trail
            metrics_collector: For stage timings and outcome counters
            exception_handler: Defaults to one built from the route table
        """
        self.route = route
        self.audit_logger = audit_logger
        self.metrics_collector = metrics_collector
        self.exception_handler = exception_handler or ExceptionHandler(
            route.exception_table, audit_logger
        )

    @property
    def name(self) -> str:
        return self.route.name

    def process(self, raw: RawInput) -> Exchange:
        """
        Run one input through the route.

        Args:
            raw: Captured payload and its provenance

        Returns:
            The exchange in a COMPLETED or RECOVERED state

        Raises:
            ExchangeFailed: If the exchange ends FATAL
        """
        start_time = time.perf_counter()
        exchange = Exchange(raw=raw)
        self.audit_logger.bind_exchange(exchange.exchange_id, self.route.name, raw.source)

        try:
            for stage in self.route.stages:
                try:
                    self._execute_stage(stage, exchange)
                except Exception as e:
                    self.exception_handler.handle(exchange, stage.name, e)
                    break

                if exchange.halted:
                    self.audit_logger.log_rejected(stage.name, str(exchange.body))
                    break

            if exchange.state == ExchangeState.RUNNING:
                exchange.state = ExchangeState.COMPLETED
                self.audit_logger.log_completed(exchange.response_code, str(exchange.body))
        finally:
            self.metrics_collector.record_timing(
                "exchange_duration_seconds",
                time.perf_counter() - start_time,
                {"route": self.route.name},
            )
            self.metrics_collector.record_count(
                "exchanges_total",
                1,
                {"route": self.route.name, "state": exchange.state.value},
            )

        return exchange

    def _execute_stage(self, stage: PipelineStage, exchange: Exchange) -> None:
        """Execute a single stage with timing and audit entries."""
        stage_start = time.perf_counter()
        self.audit_logger.log_stage_start(stage.name, {"kind": stage.kind.value})

        stage.process(exchange)

        stage_duration = time.perf_counter() - stage_start
        self.audit_logger.log_stage_end(stage.name, stage_duration)
        self.metrics_collector.record_timing(
            "stage_duration_seconds",
            stage_duration,
            {"route": self.route.name, "stage": stage.name},
        )
