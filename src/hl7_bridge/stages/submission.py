"""
Submission and Outcome Interpretation.

SubmitStage is the only network-crossing stage of a route. InterpretStage
turns what the FHIR server said into the user-facing message and code.
"""

from __future__ import annotations

import json
import logging
from typing import Tuple, Type

from hl7_bridge.domain.entities import Exchange, SubmissionOutcome, TargetResource
from hl7_bridge.domain.errors import ConnectivityError, ResourceRejected
from hl7_bridge.interfaces.resource_client import ResourceClient
from hl7_bridge.interfaces.stage import StageKind

logger = logging.getLogger(__name__)

CREATED_RESPONSE_CODE = 200
INCOMPLETE_RESPONSE_CODE = 504
INCOMPLETE_MESSAGE = (
    "Patient created successfully, but the server response was incomplete."
)


def interpret_outcome(outcome: SubmissionOutcome) -> Tuple[str, int]:
    """
    Map a submission outcome to (message, response code).

    A missing id does not mean the create failed; the server may have
    stored the patient and returned an unreadable answer. Callers must
    treat 504 as unconfirmed.
    """
    if outcome.created_id:
        return (
            f"Created Patient with ID: {outcome.created_id} In the FHIR server.",
            CREATED_RESPONSE_CODE,
        )
    return INCOMPLETE_MESSAGE, INCOMPLETE_RESPONSE_CODE


class SubmitStage:
    """Create the patient on the FHIR server."""

    kind = StageKind.SUBMIT

    def __init__(self, client: ResourceClient) -> None:
        self.client = client

    @property
    def name(self) -> str:
        return "submit"

    @property
    def raises(self) -> Tuple[Type[BaseException], ...]:
        return (ConnectivityError, ResourceRejected)

    def process(self, exchange: Exchange) -> None:
        patient: TargetResource = exchange.body_as(TargetResource)
        logger.debug(f"Inserting Patient: {json.dumps(patient.to_fhir())}")
        exchange.replace_body(self.client.create(patient))


class InterpretStage:
    """Set the response from the submission outcome."""

    kind = StageKind.INTERPRET

    @property
    def name(self) -> str:
        return "interpret"

    @property
    def raises(self) -> Tuple[Type[BaseException], ...]:
        return ()

    def process(self, exchange: Exchange) -> None:
        message, code = interpret_outcome(exchange.body_as(SubmissionOutcome))
        exchange.respond(message, code)
