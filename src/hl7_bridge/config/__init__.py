"""
Configuration Package - Models and Loaders.

    - Pydantic models for type-safe configuration
    - YAML loader with validation, profiles and environment overrides

Configuration Structure:
    - BridgeConfig: Root configuration object
    - FhirServerConfig: Server URL, FHIR version, call timeout
    - FileIngressConfig: Input directory and polling
    - HttpIngressConfig: Listen address
    - RoutesConfig: Accept rule per route
    - LoggingConfig: Level and rendering

Design Principles:
    - Type-safe via Pydantic
    - Validation on load (fail fast)
"""

from hl7_bridge.config.loader import ConfigLoader, load_config
from hl7_bridge.config.models import (
    BridgeConfig,
    FhirServerConfig,
    FileIngressConfig,
    HttpIngressConfig,
    LoggingConfig,
    RouteConfig,
    RoutesConfig,
)

__all__ = [
    "ConfigLoader",
    "load_config",
    "BridgeConfig",
    "FhirServerConfig",
    "FileIngressConfig",
    "HttpIngressConfig",
    "LoggingConfig",
    "RouteConfig",
    "RoutesConfig",
]
