"""
Classification and Content-Based Routing.

Reads MSH-9 into a ClassificationResult and decides, with a configured
AcceptRule, whether the exchange proceeds to transformation or is
answered with a rejection.

MSH-9 layout:
    - component 1: message type (ADT, ORU, ...)
    - component 2: trigger event (A04, R01, ...)
    - component 3: message structure (ADT_A01), ignored here
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple, Type

from pydantic import BaseModel, Field

from hl7_bridge.domain.entities import ClassificationResult, Exchange
from hl7_bridge.domain.errors import HeaderMissing
from hl7_bridge.domain.value_objects import StructuredMessage
from hl7_bridge.interfaces.stage import StageKind

logger = logging.getLogger(__name__)

MESSAGE_TYPE_FIELD = 9

REJECTION_RESPONSE_CODE = 400


def classify_message(message: StructuredMessage) -> ClassificationResult:
    """
    Extract message type and trigger event from the header.

    Args:
        message: Parsed message

    Returns:
        ClassificationResult; trigger_event is empty when MSH-9 has
        no component separator

    Raises:
        HeaderMissing: If the message has no MSH segment
    """
    header = message.header
    if header is None:
        raise HeaderMissing("MSH segment not found, cannot classify message")

    return ClassificationResult(
        message_type=header.component(MESSAGE_TYPE_FIELD, 1),
        trigger_event=header.component(MESSAGE_TYPE_FIELD, 2),
    )


class AcceptRule(BaseModel):
    """Set of message type / trigger event pairs a route accepts."""

    accepted: Tuple[Tuple[str, str], ...] = Field(
        default=(("ADT", "A04"),), min_length=1
    )

    model_config = {"frozen": True}

    @classmethod
    def from_codes(cls, codes: Iterable[str]) -> "AcceptRule":
        """
        Build a rule from wire codes such as "ADT^A04".

        Raises:
            ValueError: If no codes are given
        """
        pairs = []
        for code in codes:
            message_type, _, trigger_event = code.partition("^")
            pairs.append((message_type.strip(), trigger_event.strip()))
        if not pairs:
            raise ValueError("An accept rule needs at least one message code")
        return cls(accepted=tuple(pairs))

    @property
    def codes(self) -> List[str]:
        return [f"{t}^{e}" if e else t for t, e in self.accepted]

    @property
    def rejection_message(self) -> str:
        return f"ERROR: Unexpected type message. Expected {' or '.join(self.codes)}."

    def accepts(self, result: ClassificationResult) -> bool:
        return (result.message_type, result.trigger_event) in self.accepted


class ClassifyStage:
    """Write the classification into the exchange header fields."""

    kind = StageKind.CLASSIFY

    @property
    def name(self) -> str:
        return "classify"

    @property
    def raises(self) -> Tuple[Type[BaseException], ...]:
        return (HeaderMissing,)

    def process(self, exchange: Exchange) -> None:
        exchange.classification = classify_message(exchange.body_as(StructuredMessage))
        logger.debug(f"Classified {exchange.exchange_id} as {exchange.classification.code}")


class RouteStage:
    """Proceed with accepted messages, answer the rest with a 400."""

    kind = StageKind.ROUTE

    def __init__(self, rule: AcceptRule) -> None:
        self.rule = rule

    @property
    def name(self) -> str:
        return "route"

    @property
    def raises(self) -> Tuple[Type[BaseException], ...]:
        return ()

    def process(self, exchange: Exchange) -> None:
        if exchange.classification is None:
            raise RuntimeError(
                f"Exchange {exchange.exchange_id} reached routing unclassified"
            )

        if self.rule.accepts(exchange.classification):
            logger.debug(f"Valid {exchange.classification.code} message. Processing...")
            return

        exchange.respond(self.rule.rejection_message, REJECTION_RESPONSE_CODE)
        exchange.halt()
