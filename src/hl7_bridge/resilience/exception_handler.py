"""
Exception Handler - Recovered vs Fatal Exchanges.

Provides:
    - ExceptionPolicy: what to do with one failure kind
    - ExceptionHandler: applies a route's exception table to a failure
    - default_exception_table: the policies every route starts from

Design Notes:
    - Lookup walks the exception's MRO, so the most specific kind wins
    - Handled kinds end the exchange RECOVERED and never propagate
    - Unhandled or unknown kinds end it FATAL and raise ExchangeFailed
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Type

from hl7_bridge.domain.entities import Exchange, ExchangeState
from hl7_bridge.domain.errors import (
    ConnectivityError,
    ExchangeFailed,
    ParseError,
    ResourceRejected,
)
from hl7_bridge.interfaces.audit_logger import AuditLogger

ExceptionTable = Mapping[Type[BaseException], "ExceptionPolicy"]


@dataclass(frozen=True)
class ExceptionPolicy:
    """How a route reacts to one exception kind."""

    handled: bool = True
    response_code: int = 500
    message: str = "ERROR: The message could not be processed."
    log_template: str = "Error in stage {stage} for {source}: {message}"

    def render_log(self, **context: object) -> str:
        return self.log_template.format(**context)


def default_exception_table() -> Dict[Type[BaseException], ExceptionPolicy]:
    """Policies shared by all routes."""
    return {
        ParseError: ExceptionPolicy(
            handled=True,
            response_code=400,
            message="ERROR: Unable to parse HL7 message.",
            log_template="Error unmarshalling {source} {message}",
        ),
        ConnectivityError: ExceptionPolicy(
            handled=True,
            response_code=502,
            message="ERROR: Unable to reach the FHIR server.",
            log_template=(
                "Error connecting to FHIR server with URL:{server_url}, "
                "please check the configuration file {message}"
            ),
        ),
        ResourceRejected: ExceptionPolicy(
            handled=False,
            response_code=500,
            message="ERROR: The FHIR server rejected the resource.",
            log_template="FHIR server rejected patient from {source}: {message}",
        ),
    }


class ExceptionHandler:
    """
    Applies a route's exception table to stage failures.

    One handler is shared by all exchanges of a route; it keeps no
    per-exchange state.
    """

    def __init__(
        self,
        table: ExceptionTable,
        audit_logger: AuditLogger,
    ) -> None:
        """
        Initialize exception handler.

        Args:
            table: Exception kind -> policy, treated as read-only
            audit_logger: Sink for Recovered and Fatal transitions
        """
        self.table = MappingProxyType(dict(table))
        self.audit_logger = audit_logger

    def resolve(
        self, error: BaseException
    ) -> Optional[Tuple[Type[BaseException], ExceptionPolicy]]:
        """Find the most specific registered kind for an exception."""
        for kind in type(error).__mro__:
            policy = self.table.get(kind)
            if policy is not None:
                return kind, policy
        return None

    def handle(self, exchange: Exchange, stage_name: str, error: Exception) -> None:
        """
        Terminate the exchange after a stage failure.

        Args:
            exchange: The failing exchange
            stage_name: Name of the stage that raised
            error: The raised exception

        Raises:
            ExchangeFailed: When the kind is unknown or not handled
        """
        exchange.failure = error
        exchange.failed_stage = stage_name
        error_kind = type(error).__name__
        context = {
            "stage": stage_name,
            "source": exchange.source,
            "message": str(error),
            "server_url": getattr(error, "server_url", None) or "",
            "exchange_id": exchange.exchange_id,
        }

        resolved = self.resolve(error)
        if resolved is not None and resolved[1].handled:
            _, policy = resolved
            exchange.state = ExchangeState.RECOVERED
            exchange.respond(policy.message, policy.response_code)
            self.audit_logger.log_recovered(
                stage_name,
                error_kind,
                policy.render_log(**context),
                context={"source": exchange.source},
            )
            return

        exchange.state = ExchangeState.FATAL
        if resolved is not None:
            message = resolved[1].render_log(**context)
        else:
            message = f"Unhandled {error_kind} in stage {stage_name}: {error}"
        self.audit_logger.log_fatal(
            stage_name,
            error_kind,
            message,
            context={"source": exchange.source},
        )
        raise ExchangeFailed(exchange, message) from error
