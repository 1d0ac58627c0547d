"""
Route Definition - Ordered Stages Plus Exception Table.

A RouteDefinition is built once at start-up with RouteBuilder and never
mutated afterwards, so all exchanges of a route share it without locks.

Usage:
    builder = RouteBuilder("putregisterhl7-fhirserver")
    builder.add_stage(NormalizeStage())
    builder.add_stage(ParseStage())
    ...
    builder.with_default_exceptions()
    route = builder.build()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple, Type

from hl7_bridge.interfaces.resource_client import ResourceClient
from hl7_bridge.interfaces.stage import PipelineStage
from hl7_bridge.resilience.exception_handler import (
    ExceptionPolicy,
    default_exception_table,
)
from hl7_bridge.stages.classification import AcceptRule, ClassifyStage, RouteStage
from hl7_bridge.stages.ingest import NormalizeStage, ParseStage
from hl7_bridge.stages.submission import InterpretStage, SubmitStage
from hl7_bridge.stages.transform import TransformStage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteDefinition:
    """Immutable description of one route."""

    name: str
    stages: Tuple[PipelineStage, ...]
    exception_table: Mapping[Type[BaseException], ExceptionPolicy] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "stages": [
                {"name": stage.name, "kind": stage.kind.value} for stage in self.stages
            ],
            "exceptions": {
                kind.__name__: {
                    "handled": policy.handled,
                    "response_code": policy.response_code,
                }
                for kind, policy in self.exception_table.items()
            },
        }


class RouteBuilder:
    """
    Collects stages and exception policies, then validates them.

    The exception table is a single mapping keyed by kind; registering
    the same kind twice is an error rather than a layered handler.
    """

    def __init__(self, name: str) -> None:
        """
        Initialize empty builder.

        Args:
            name: Route identifier used in logs
        """
        self.name = name
        self._stages: List[PipelineStage] = []
        self._exceptions: Dict[Type[BaseException], ExceptionPolicy] = {}

    def add_stage(self, stage: PipelineStage) -> "RouteBuilder":
        """
        Append a stage.

        Raises:
            ValueError: If a stage with the same name is already present
        """
        if any(existing.name == stage.name for existing in self._stages):
            raise ValueError(
                f"Stage '{stage.name}' is already part of route '{self.name}'"
            )
        self._stages.append(stage)
        return self

    def on_exception(
        self, kind: Type[BaseException], policy: ExceptionPolicy
    ) -> "RouteBuilder":
        """
        Register the policy for one exception kind.

        Raises:
            ValueError: If the kind is already registered
        """
        if kind in self._exceptions:
            raise ValueError(
                f"Exception {kind.__name__} is already registered on route '{self.name}'"
            )
        self._exceptions[kind] = policy
        return self

    def with_default_exceptions(self) -> "RouteBuilder":
        """Register the standard parse/connectivity/rejection policies."""
        for kind, policy in default_exception_table().items():
            self.on_exception(kind, policy)
        return self

    def build(self) -> RouteDefinition:
        """
        Validate and freeze the route.

        Raises:
            ValueError: If the route has no stages, or a stage declares a
                failure kind no registered policy covers
        """
        if not self._stages:
            raise ValueError(f"Route '{self.name}' has no stages")

        uncovered = [
            f"{stage.name}:{kind.__name__}"
            for stage in self._stages
            for kind in stage.raises
            if not any(issubclass(kind, registered) for registered in self._exceptions)
        ]
        if uncovered:
            raise ValueError(
                f"Route '{self.name}' has no exception policy for {uncovered}"
            )

        route = RouteDefinition(
            name=self.name,
            stages=tuple(self._stages),
            exception_table=MappingProxyType(dict(self._exceptions)),
        )
        logger.info(f"Built route {self.name}: {' -> '.join(route.stage_names)}")
        return route


def standard_route(
    name: str,
    rule: AcceptRule,
    client: ResourceClient,
    charset: str = "utf-8",
) -> RouteDefinition:
    """
    The normalize -> parse -> classify -> route -> transform -> submit ->
    interpret route with the default exception table.

    Args:
        name: Route identifier
        rule: Message codes the route accepts
        client: FHIR resource client
        charset: Payload charset for byte input
    """
    return (
        RouteBuilder(name)
        .add_stage(NormalizeStage(charset))
        .add_stage(ParseStage())
        .add_stage(ClassifyStage())
        .add_stage(RouteStage(rule))
        .add_stage(TransformStage())
        .add_stage(SubmitStage(client))
        .add_stage(InterpretStage())
        .with_default_exceptions()
        .build()
    )
