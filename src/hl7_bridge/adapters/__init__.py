"""
Adapters Package - Infrastructure Implementations.

Concrete implementations of the ResourceClient protocol, following the
Hexagonal Architecture (Ports & Adapters) pattern.

Clients:
    - FhirResourceClient: FHIR REST create over httpx
    - InMemoryResourceClient: Fake server for development/testing

Design Principles:
    - Easily swappable via Dependency Injection
    - No routing logic in adapters
"""

from hl7_bridge.adapters.fhir_client import FHIR_VERSIONS, FhirResourceClient
from hl7_bridge.adapters.mock_client import InMemoryResourceClient

__all__ = ["FHIR_VERSIONS", "FhirResourceClient", "InMemoryResourceClient"]
