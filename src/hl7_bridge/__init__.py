"""
HL7 FHIR Bridge - HL7 v2 to FHIR Patient Ingestion.

Receives HL7 v2 messages over HTTP or from a watched directory, parses
and classifies them, maps accepted messages to a FHIR Patient and
creates it on a remote FHIR server. Every input becomes one exchange
with a single terminal outcome.

Architecture:
    - Hexagonal Architecture (Ports & Adapters)
    - Routes as immutable stage lists plus an exception table
    - Configuration-driven behavior via YAML

Main Components:
    - domain: Exchange, message model and failure kinds
    - parsing: Normalizer and segment parser
    - stages: The pipeline stages of a route
    - pipeline: Route builder and executor
    - resilience: Exception table and handler
    - adapters: FHIR HTTP client, in-memory client
    - ingress: HTTP receiver and directory poller
    - config: Configuration models and loaders

Example:
    >>> from hl7_bridge.bootstrap import build_bridge
    >>> bridge = build_bridge(load_config("config/default.yaml"))
    >>> exchange = bridge.file_pipeline.process(RawInput(payload=text, source="a.hl7"))
    >>> print(exchange.body)

"""

import logging

__version__ = "0.1.0"


def configure_logging(
    level: int = logging.INFO,
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
) -> None:
    """
    Configure standard logging for the bridge.

    The audit trail goes through structlog; this controls the plain
    module loggers (route building, client, ingress).

    Args:
        level: Logging level (default: INFO)
        format: Log message format

    Example:
        >>> import hl7_bridge
        >>> hl7_bridge.configure_logging(logging.DEBUG)
    """
    logging.basicConfig(
        level=level,
        format=format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("hl7_bridge").setLevel(level)
