"""
Domain Exceptions.

All failures raised by bridge components derive from BridgeError. The
route's exception table is keyed by these classes, so subclass relations
matter: HeaderMissing and SegmentMissing are recovered wherever ParseError is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from hl7_bridge.domain.entities import Exchange


class BridgeError(Exception):
    """Base class for all bridge errors."""
    pass


class ParseError(BridgeError):
    """Raised when an HL7 message cannot be decoded or unmarshalled."""
    pass


class HeaderMissing(ParseError):
    """Raised when the MSH header segment cannot be located."""
    pass


class SegmentMissing(ParseError):
    """Raised when a segment required by a transformation is absent."""

    def __init__(self, segment_name: str) -> None:
        super().__init__(f"Segment {segment_name} not found in message")
        self.segment_name = segment_name


class ConnectivityError(BridgeError):
    """Raised when the FHIR server cannot be reached or answers with 5xx."""

    def __init__(self, message: str, server_url: Optional[str] = None) -> None:
        super().__init__(message)
        self.server_url = server_url


class ResourceRejected(BridgeError):
    """Raised when the FHIR server refuses a resource (4xx)."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExchangeFailed(BridgeError):
    """
    Raised to the ingress adapter when an exchange ends Fatal.

    The original exception is chained as __cause__; the exchange carries
    the failing stage and its last known state.
    """

    def __init__(self, exchange: "Exchange", message: str) -> None:
        super().__init__(message)
        self.exchange = exchange
