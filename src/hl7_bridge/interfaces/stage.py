"""
Pipeline Stage Protocol.

Every step of a route conforms to this interface. A stage reads and
replaces the exchange body, may write typed header fields, and may halt
the exchange. Stages hold only immutable configuration, so one instance
is shared by all concurrent exchanges of a route.

Design Notes:
    - `raises` declares the failure kinds a stage can produce; the route
      builder checks them against the exception table
    - Failures propagate as exceptions; the pipeline routes them to the
      exception handler
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol, Tuple, Type, runtime_checkable

if TYPE_CHECKING:
    from hl7_bridge.domain.entities import Exchange


class StageKind(str, Enum):
    """The fixed set of stage types a route is composed of."""

    NORMALIZE = "normalize"
    PARSE = "parse"
    CLASSIFY = "classify"
    ROUTE = "route"
    TRANSFORM = "transform"
    SUBMIT = "submit"
    INTERPRET = "interpret"


@runtime_checkable
class PipelineStage(Protocol):
    """Abstract interface for route stages."""

    @property
    def kind(self) -> StageKind:
        ...

    @property
    def name(self) -> str:
        """Unique name of this stage within its route."""
        ...

    @property
    def raises(self) -> Tuple[Type[BaseException], ...]:
        """Failure kinds this stage is expected to raise."""
        ...

    def process(self, exchange: "Exchange") -> None:
        """
        Advance the exchange by one step.

        Args:
            exchange: The exchange to mutate in place
        """
        ...
