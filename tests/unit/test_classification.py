"""
Unit Tests for classification and content-based routing.

Test Aspects Covered:
    ✅ Business Logic: MSH-9 reading, accept rules
    ✅ Edge Cases: Missing trigger event, multi-code rules
    ✅ Error Handling: Missing header, unclassified exchange
"""

from __future__ import annotations

import pytest

from hl7_bridge.domain.entities import ClassificationResult, Exchange, RawInput
from hl7_bridge.domain.errors import HeaderMissing
from hl7_bridge.domain.value_objects import Segment, StructuredMessage
from hl7_bridge.parsing.segment_parser import SegmentParser
from hl7_bridge.stages.classification import (
    REJECTION_RESPONSE_CODE,
    AcceptRule,
    ClassifyStage,
    RouteStage,
    classify_message,
)


def _exchange_for(message: StructuredMessage) -> Exchange:
    exchange = Exchange(raw=RawInput(payload="", source="test"))
    exchange.replace_body(message)
    return exchange


class TestClassifyMessage:
    """Test cases for classify_message()."""

    def test_reads_type_and_trigger(self, adt_a04: str) -> None:
        """
        SCENARIO: ADT^A04^ADT_A01 in MSH-9
        EXPECTED: Type ADT, trigger A04; structure component ignored
        """
        # Act
        result = classify_message(SegmentParser().parse(adt_a04))

        # Assert
        assert result.message_type == "ADT"
        assert result.trigger_event == "A04"
        assert result.code == "ADT^A04"

    def test_missing_trigger_event(self) -> None:
        """
        SCENARIO: MSH-9 without component separator
        EXPECTED: Empty trigger event, code is just the type
        """
        # Arrange
        message = SegmentParser().parse("MSH|^~\\&|A|B|C|D|20200101||ACK|1|P|2.4")

        # Act
        result = classify_message(message)

        # Assert
        assert result.message_type == "ACK"
        assert result.trigger_event == ""
        assert result.code == "ACK"

    def test_no_header_raises(self) -> None:
        """
        SCENARIO: Message value without an MSH segment
        EXPECTED: HeaderMissing
        """
        # Arrange
        message = StructuredMessage(segments=(Segment(name="PID", fields=("1",)),))

        # Act & Assert
        with pytest.raises(HeaderMissing):
            classify_message(message)


class TestAcceptRule:
    """Test cases for AcceptRule."""

    def test_default_accepts_only_adt_a04(self) -> None:
        # Arrange
        rule = AcceptRule()

        # Assert
        assert rule.accepts(ClassificationResult(message_type="ADT", trigger_event="A04"))
        assert not rule.accepts(ClassificationResult(message_type="ADT", trigger_event="A01"))
        assert not rule.accepts(ClassificationResult(message_type="ORU", trigger_event="R01"))

    def test_default_rejection_message(self) -> None:
        assert (
            AcceptRule().rejection_message
            == "ERROR: Unexpected type message. Expected ADT^A04."
        )

    def test_from_codes_multiple(self) -> None:
        """
        SCENARIO: Rule built from two wire codes
        EXPECTED: Both accepted, message lists both
        """
        # Act
        rule = AcceptRule.from_codes(["ORU^R01", "ADT^A04"])

        # Assert
        assert rule.codes == ["ORU^R01", "ADT^A04"]
        assert rule.accepts(ClassificationResult(message_type="ORU", trigger_event="R01"))
        assert rule.rejection_message.endswith("Expected ORU^R01 or ADT^A04.")

    def test_from_codes_empty_raises(self) -> None:
        with pytest.raises(ValueError):
            AcceptRule.from_codes([])

    def test_rule_is_immutable(self) -> None:
        rule = AcceptRule()
        with pytest.raises(Exception):
            rule.accepted = (("ORU", "R01"),)


class TestRoutingStages:
    """Test cases for ClassifyStage and RouteStage."""

    def test_accepted_message_proceeds(self, adt_a04: str) -> None:
        """
        SCENARIO: ADT^A04 through classify and route
        EXPECTED: Not halted, no response set, body untouched
        """
        # Arrange
        message = SegmentParser().parse(adt_a04)
        exchange = _exchange_for(message)

        # Act
        ClassifyStage().process(exchange)
        RouteStage(AcceptRule()).process(exchange)

        # Assert
        assert exchange.classification.code == "ADT^A04"
        assert exchange.halted is False
        assert exchange.response_code is None
        assert exchange.body is message

    def test_unexpected_message_halts_with_400(self, adt_a01: str) -> None:
        """
        SCENARIO: ADT^A01 against the default rule
        EXPECTED: Halted, rejection message, response code 400
        """
        # Arrange
        exchange = _exchange_for(SegmentParser().parse(adt_a01))

        # Act
        ClassifyStage().process(exchange)
        RouteStage(AcceptRule()).process(exchange)

        # Assert
        assert exchange.halted is True
        assert exchange.response_code == REJECTION_RESPONSE_CODE == 400
        assert exchange.body == "ERROR: Unexpected type message. Expected ADT^A04."

    def test_route_without_classification_raises(self, adt_a04: str) -> None:
        exchange = _exchange_for(SegmentParser().parse(adt_a04))
        with pytest.raises(RuntimeError, match="unclassified"):
            RouteStage(AcceptRule()).process(exchange)
