"""
Core Domain Entities.

This module defines the units of work that flow through a route:
the captured input, the per-message Exchange, and the records the
stages produce along the way.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field

from hl7_bridge.domain.value_objects import StructuredMessage


class ExchangeState(str, Enum):
    """Lifecycle of one exchange."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    RECOVERED = "RECOVERED"
    FATAL = "FATAL"


class AdministrativeSex(str, Enum):
    """FHIR administrative gender values produced by the bridge."""

    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"

    @classmethod
    def from_hl7(cls, code: Optional[str]) -> "AdministrativeSex":
        """Map an HL7 PID-8 code, case-insensitively."""
        normalized = (code or "").strip().lower()
        if normalized == "m":
            return cls.MALE
        if normalized == "f":
            return cls.FEMALE
        return cls.UNKNOWN


class RawInput(BaseModel):
    """Payload as received by an ingress adapter."""

    payload: Union[bytes, str] = Field(..., description="Raw message bytes or text")
    source: str = Field(..., description="File name or request identity")
    received_at: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


class ClassificationResult(BaseModel):
    """Message type and trigger event read from MSH-9."""

    message_type: str
    trigger_event: str = ""

    model_config = {"frozen": True}

    @property
    def code(self) -> str:
        """Wire form, e.g. ADT^A04."""
        if not self.trigger_event:
            return self.message_type
        return f"{self.message_type}^{self.trigger_event}"


class TargetResource(BaseModel):
    """Patient record submitted to the FHIR server."""

    identifier: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    administrative_sex: AdministrativeSex = AdministrativeSex.UNKNOWN
    birth_date: Optional[date] = None

    model_config = {"frozen": True}

    def to_fhir(self) -> Dict[str, Any]:
        """Render as a FHIR Patient resource (JSON-ready dict)."""
        resource: Dict[str, Any] = {"resourceType": "Patient"}
        if self.identifier:
            resource["id"] = self.identifier
            resource["identifier"] = [{"value": self.identifier}]

        name: Dict[str, Any] = {}
        if self.family_name:
            name["family"] = self.family_name
        if self.given_name:
            name["given"] = [self.given_name]
        if name:
            resource["name"] = [name]

        resource["gender"] = self.administrative_sex.value
        if self.birth_date is not None:
            resource["birthDate"] = self.birth_date.isoformat()
        return resource


class SubmissionOutcome(BaseModel):
    """Result of a create call against the FHIR server."""

    created_id: Optional[str] = None
    status_code: Optional[int] = None
    location: Optional[str] = None
    version_id: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def is_confirmed(self) -> bool:
        return bool(self.created_id)


Body = Union[bytes, str, StructuredMessage, TargetResource, SubmissionOutcome]


@dataclass
class Exchange:
    """
    One message's unit of work.

    Owned by a single pipeline execution and never shared. `body` holds
    exactly one representation at a time; stages swap it with
    replace_body() as the message moves through the route.
    """

    raw: RawInput
    body: Optional[Body] = None
    exchange_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    classification: Optional[ClassificationResult] = None
    response_code: Optional[int] = None
    state: ExchangeState = ExchangeState.RUNNING
    failure: Optional[BaseException] = None
    failed_stage: Optional[str] = None
    halted: bool = False

    def __post_init__(self) -> None:
        if self.body is None:
            self.body = self.raw.payload

    @property
    def source(self) -> str:
        return self.raw.source

    @property
    def is_terminal(self) -> bool:
        return self.halted or self.state != ExchangeState.RUNNING

    def replace_body(self, body: Body) -> None:
        """Swap the active representation."""
        self.body = body

    def respond(self, body: str, response_code: int) -> None:
        """Set the user-facing message and response code."""
        self.body = body
        self.response_code = response_code

    def halt(self) -> None:
        """Stop further stages; the exchange still completes normally."""
        self.halted = True

    def body_as(self, expected: Union[type, Tuple[type, ...]]) -> Any:
        """Return the body, asserting its representation."""
        if not isinstance(self.body, expected):
            names = expected if isinstance(expected, tuple) else (expected,)
            raise TypeError(
                f"Exchange {self.exchange_id} body is {type(self.body).__name__}, "
                f"expected {' or '.join(t.__name__ for t in names)}"
            )
        return self.body
