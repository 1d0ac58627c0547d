"""
Transformer - PID Segment to FHIR Patient.

Field paths (HL7 v2.4 PID):
    - PID-2.1: patient ID (falls back to PID-3.1, identifier list)
    - PID-5.1: family name, PID-5.2: given name
    - PID-7.1: date/time of birth, YYYYMMDD[HHMM[SS[.S]]][+/-ZZZZ]
    - PID-8:   administrative sex

A birth date that cannot be read is logged and left unset; partial
patient records are accepted downstream.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Optional, Tuple, Type

from hl7_bridge.domain.entities import AdministrativeSex, Exchange, TargetResource
from hl7_bridge.domain.errors import SegmentMissing
from hl7_bridge.domain.value_objects import StructuredMessage
from hl7_bridge.interfaces.stage import StageKind

logger = logging.getLogger(__name__)

PATIENT_SEGMENT = "PID"

_HL7_TIMESTAMP = re.compile(r"^(\d{8})(?:\d{2,6}(?:\.\d{1,4})?)?(?:[+-]\d{4})?$")


def parse_birth_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an HL7 date of birth with a strict 8-digit date part.

    Returns:
        The date, or None when the value is empty or malformed
    """
    if not value:
        return None
    match = _HL7_TIMESTAMP.match(value.strip())
    if match is None:
        logger.warning(f"Birth date {value!r} is not in YYYYMMDD form, leaving it unset")
        return None
    try:
        return datetime.strptime(match.group(1), "%Y%m%d").date()
    except ValueError as e:
        logger.warning(f"Birth date {value!r} is not a valid date, leaving it unset: {e}")
        return None


def patient_from_message(message: StructuredMessage) -> TargetResource:
    """
    Build the patient resource from the PID segment.

    Raises:
        SegmentMissing: If the message has no PID segment
    """
    pid = message.segment(PATIENT_SEGMENT)
    if pid is None:
        raise SegmentMissing(PATIENT_SEGMENT)

    identifier = pid.component(2, 1) or pid.component(3, 1)
    return TargetResource(
        identifier=identifier or None,
        family_name=pid.component(5, 1) or None,
        given_name=pid.component(5, 2) or None,
        administrative_sex=AdministrativeSex.from_hl7(pid.component(8, 1)),
        birth_date=parse_birth_date(pid.component(7, 1)),
    )


class TransformStage:
    """Replace the parsed message with the patient resource."""

    kind = StageKind.TRANSFORM

    @property
    def name(self) -> str:
        return "transform"

    @property
    def raises(self) -> Tuple[Type[BaseException], ...]:
        return (SegmentMissing,)

    def process(self, exchange: Exchange) -> None:
        patient = patient_from_message(exchange.body_as(StructuredMessage))
        logger.debug(
            f"Extracted patient {patient.identifier}: "
            f"{patient.given_name} {patient.family_name}"
        )
        exchange.replace_body(patient)
