"""
Domain Layer - Exchanges, Messages and Resources.

This package contains the data model that flows through a route.
Everything here is plain Python plus Pydantic for validation; no I/O.

Entities:
    - RawInput: Payload captured by an ingress adapter
    - Exchange: Per-message unit of work with typed header fields
    - ClassificationResult: Message type and trigger event
    - TargetResource: Patient record sent to the FHIR server
    - SubmissionOutcome: What the FHIR server answered

Value Objects:
    - StructuredMessage / Segment: Parsed HL7 v2 message
    - EncodingCharacters: Delimiters declared in the header

Errors:
    - BridgeError and its subclasses (errors module)
"""

from hl7_bridge.domain.entities import (
    AdministrativeSex,
    ClassificationResult,
    Exchange,
    ExchangeState,
    RawInput,
    SubmissionOutcome,
    TargetResource,
)
from hl7_bridge.domain.errors import (
    BridgeError,
    ConnectivityError,
    ExchangeFailed,
    HeaderMissing,
    ParseError,
    ResourceRejected,
    SegmentMissing,
)
from hl7_bridge.domain.value_objects import (
    EncodingCharacters,
    Segment,
    StructuredMessage,
)

__all__ = [
    "AdministrativeSex",
    "ClassificationResult",
    "Exchange",
    "ExchangeState",
    "RawInput",
    "SubmissionOutcome",
    "TargetResource",
    "BridgeError",
    "ConnectivityError",
    "ExchangeFailed",
    "HeaderMissing",
    "ParseError",
    "ResourceRejected",
    "SegmentMissing",
    "EncodingCharacters",
    "Segment",
    "StructuredMessage",
]
