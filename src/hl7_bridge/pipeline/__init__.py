"""
Pipeline Package - Route Definitions and Execution.

Components:
    - RouteDefinition / RouteBuilder: Immutable stage list plus exception
      table, validated once at start-up
    - RoutePipeline: Runs one exchange through a route

Design Principles:
    - All dependencies injected via constructor
    - Stateless across exchanges (state lives in the Exchange)
    - Stages run strictly in order, never overlapped within an exchange
"""

from hl7_bridge.pipeline.route_definition import (
    RouteBuilder,
    RouteDefinition,
    standard_route,
)
from hl7_bridge.pipeline.route_pipeline import RoutePipeline

__all__ = ["RouteBuilder", "RouteDefinition", "standard_route", "RoutePipeline"]
