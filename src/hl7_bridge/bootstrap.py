"""
Bootstrap - Wire Configuration Into Routes and Ingress.

Builds the two routes from one BridgeConfig, sharing a single resource
client and observability sink:

    putregisterhl7-fhirserver      HTTP ingress, PUT /hl7receiver
    observationfilehl7-fhirserver  file ingress, watched directory
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from hl7_bridge.adapters.fhir_client import FhirResourceClient
from hl7_bridge.config.models import BridgeConfig
from hl7_bridge.ingress.file_ingress import DirectoryPoller
from hl7_bridge.ingress.http_ingress import create_app
from hl7_bridge.interfaces.resource_client import ResourceClient
from hl7_bridge.observability.observability_manager import ObservabilityManager
from hl7_bridge.pipeline.route_definition import standard_route
from hl7_bridge.pipeline.route_pipeline import RoutePipeline
from hl7_bridge.stages.classification import AcceptRule

logger = logging.getLogger(__name__)

HTTP_ROUTE_NAME = "putregisterhl7-fhirserver"
FILE_ROUTE_NAME = "observationfilehl7-fhirserver"


@dataclass
class Bridge:
    """Configured routes plus the shared client and audit sink."""

    config: BridgeConfig
    client: ResourceClient
    observability: ObservabilityManager
    http_pipeline: RoutePipeline
    file_pipeline: RoutePipeline
    base_path: Path = Path(".")

    def create_app(self) -> FastAPI:
        return create_app(self.http_pipeline, server_url=self.client.server_url)

    def create_poller(self, input_directory: Optional[Path] = None) -> DirectoryPoller:
        """
        Directory poller for the file route.

        Args:
            input_directory: Overrides file_ingress.input_directory, which
                is otherwise resolved against base_path when relative
        """
        settings = self.config.file_ingress
        if input_directory is None:
            input_directory = Path(settings.input_directory)
            if not input_directory.is_absolute():
                input_directory = self.base_path / input_directory
        return DirectoryPoller(
            self.file_pipeline,
            input_directory,
            done_directory=settings.done_directory,
            error_directory=settings.error_directory,
            poll_interval_seconds=settings.poll_interval_seconds,
            max_workers=settings.max_workers,
        )

    def close(self) -> None:
        """Release the resource client's connections."""
        self.client.close()


def build_bridge(
    config: BridgeConfig,
    client: Optional[ResourceClient] = None,
    observability: Optional[ObservabilityManager] = None,
    base_path: Optional[Path] = None,
) -> Bridge:
    """
    Build both route pipelines from configuration.

    Args:
        config: Validated configuration
        client: Resource client; defaults to FhirResourceClient on
            config.fhir
        observability: Audit sink; defaults to one on config.logging
        base_path: Directory relative file_ingress paths resolve against

    Raises:
        ValueError: If a route cannot be built
    """
    if client is None:
        client = FhirResourceClient(
            config.fhir.server_url,
            fhir_version=config.fhir.fhir_version,
            timeout_seconds=config.fhir.timeout_seconds,
        )
    if observability is None:
        observability = ObservabilityManager(
            use_json=config.logging.json_output,
            log_level=logging.getLevelName(config.logging.level),
        )

    def pipeline(name: str, codes) -> RoutePipeline:
        route = standard_route(
            name, AcceptRule.from_codes(codes), client, charset=config.charset
        )
        return RoutePipeline(route, observability, observability)

    bridge = Bridge(
        config=config,
        client=client,
        observability=observability,
        http_pipeline=pipeline(HTTP_ROUTE_NAME, config.routes.http.accept),
        file_pipeline=pipeline(FILE_ROUTE_NAME, config.routes.file.accept),
        base_path=Path(base_path) if base_path else Path("."),
    )
    logger.info(f"Bridge ready, FHIR server {client.server_url}")
    return bridge
