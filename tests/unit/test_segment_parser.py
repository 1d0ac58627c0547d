"""
Unit Tests for SegmentParser and the message value objects.

Test Aspects Covered:
    ✅ Business Logic: Segment splitting, HL7 field numbering
    ✅ Edge Cases: Custom delimiters, MLLP framing, escape sequences
    ✅ Error Handling: Missing header, bad delimiters, bad segment names
"""

from __future__ import annotations

import pytest

from hl7_bridge.domain.errors import HeaderMissing, ParseError
from hl7_bridge.domain.value_objects import EncodingCharacters, Segment
from hl7_bridge.parsing.segment_parser import SegmentParser


@pytest.fixture
def parser() -> SegmentParser:
    return SegmentParser()


class TestSegmentParser:
    """Test cases for SegmentParser.parse()."""

    def test_parses_segments_in_order(self, parser: SegmentParser, adt_a04: str) -> None:
        """
        SCENARIO: Four-segment ADT message
        EXPECTED: Segments in wire order, MSH first
        """
        # Act
        message = parser.parse(adt_a04)

        # Assert
        assert message.segment_names() == ["MSH", "EVN", "PID", "PV1"]
        assert len(message) == 4
        assert message.header is not None

    def test_msh_field_numbering(self, parser: SegmentParser, adt_a04: str) -> None:
        """
        SCENARIO: Header fields addressed by HL7 number
        EXPECTED: MSH-1 is the separator, MSH-2 the encoding characters
        """
        # Act
        header = parser.parse(adt_a04).header

        # Assert
        assert header.field(1) == "|"
        assert header.field(2) == "^~\\&"
        assert header.field(3) == "REGADT"
        assert header.component(9, 1) == "ADT"
        assert header.component(9, 2) == "A04"
        assert header.component(9, 3) == "ADT_A01"

    def test_reads_custom_delimiters(self, parser: SegmentParser) -> None:
        """
        SCENARIO: Message declaring # as field and $ as component separator
        EXPECTED: Fields and components split on the declared characters
        """
        # Arrange
        text = "MSH#$~\\&#APP#FAC#####ADT$A04\rPID#1#77#####F"

        # Act
        message = parser.parse(text)

        # Assert
        assert message.encoding.field == "#"
        assert message.encoding.component == "$"
        assert message.header.component(9, 2) == "A04"
        assert message.segment("PID").field(2) == "77"

    def test_strips_mllp_framing_and_blank_lines(
        self, parser: SegmentParser, adt_a04: str
    ) -> None:
        """
        SCENARIO: Message wrapped in MLLP start/end bytes with blank lines
        EXPECTED: Same segments as the bare message
        """
        # Arrange
        framed = "\x0b" + adt_a04.replace("\rPID", "\r\rPID") + "\x1c\r"

        # Act
        message = parser.parse(framed)

        # Assert
        assert message.segment_names() == ["MSH", "EVN", "PID", "PV1"]

    def test_encode_round_trips_wire_form(
        self, parser: SegmentParser, adt_a04: str
    ) -> None:
        """
        SCENARIO: Parsed message rendered back
        EXPECTED: Identical to the input text
        """
        assert parser.parse(adt_a04).encode() == adt_a04

    def test_missing_header_raises(
        self, parser: SegmentParser, no_header_message: str
    ) -> None:
        """
        SCENARIO: First segment is EVN
        EXPECTED: HeaderMissing, which is a ParseError
        """
        with pytest.raises(HeaderMissing):
            parser.parse(no_header_message)

        assert issubclass(HeaderMissing, ParseError)

    def test_empty_text_raises_header_missing(self, parser: SegmentParser) -> None:
        with pytest.raises(HeaderMissing):
            parser.parse("\r\r")

    def test_alphanumeric_field_separator_raises(self, parser: SegmentParser) -> None:
        """
        SCENARIO: MSH-1 is a letter
        EXPECTED: ParseError
        """
        with pytest.raises(ParseError, match="field separator"):
            parser.parse("MSHX^~\\&XAPP")

    def test_missing_encoding_characters_raises(self, parser: SegmentParser) -> None:
        with pytest.raises(ParseError, match="MSH-2"):
            parser.parse("MSH||APP")

    def test_invalid_segment_name_raises(self, parser: SegmentParser) -> None:
        """
        SCENARIO: Free text line after the header
        EXPECTED: ParseError naming the bad segment
        """
        with pytest.raises(ParseError, match="Invalid segment name"):
            parser.parse("MSH|^~\\&|APP\rhello world")


class TestSegment:
    """Test cases for Segment accessors."""

    def test_absent_field_and_component_are_empty(self) -> None:
        # Arrange
        segment = Segment(name="PID", fields=("1", "", "A^B"))

        # Assert
        assert segment.field(0) == ""
        assert segment.field(2) == ""
        assert segment.field(10) == ""
        assert segment.component(3, 2) == "B"
        assert segment.component(3, 3) == ""
        assert segment.component(2, 1) == ""

    def test_component_of_repetition(self) -> None:
        """
        SCENARIO: Repeating identifier field
        EXPECTED: Each repetition addressable by index
        """
        # Arrange
        segment = Segment(name="PID", fields=("1", "", "A1^^^X~B2^^^Y"))

        # Assert
        assert segment.component(3, 1) == "A1"
        assert segment.component(3, 1, repetition=1) == "B2"
        assert segment.component(3, 4, repetition=1) == "Y"
        assert segment.component(3, 1, repetition=2) == ""

    def test_escape_sequences_resolved(self) -> None:
        """
        SCENARIO: Component containing \\F\\ and \\S\\ escapes
        EXPECTED: Escapes resolved to the delimiters
        """
        # Arrange
        segment = Segment(name="NTE", fields=("1", "", "A\\F\\B\\S\\C\\E\\D"))

        # Act
        value = segment.component(3, 1)

        # Assert
        assert value == "A|B^C\\D"

    def test_unescape_without_escape_character(self) -> None:
        encoding = EncodingCharacters()
        assert encoding.unescape("plain") == "plain"
