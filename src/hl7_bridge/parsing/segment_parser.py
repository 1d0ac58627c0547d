"""
Segment Parser - ER7 Grammar for HL7 v2.

Turns normalized text into a StructuredMessage. Only the envelope is
validated (header present, delimiters declared, well-formed segment
names); field contents are kept raw and resolved lazily by Segment.

Design Notes:
    - Delimiters come from MSH-1/MSH-2, never assumed
    - MLLP framing bytes are tolerated and stripped
    - Empty lines between segments are ignored
"""

from __future__ import annotations

import logging
import re
from typing import List

from hl7_bridge.domain.errors import HeaderMissing, ParseError
from hl7_bridge.domain.value_objects import (
    HEADER_SEGMENT,
    EncodingCharacters,
    Segment,
    StructuredMessage,
)
from hl7_bridge.parsing.normalizer import SEGMENT_TERMINATOR

logger = logging.getLogger(__name__)

# MLLP start block, end block
_FRAMING_CHARS = "\x0b\x1c"

_SEGMENT_NAME = re.compile(r"^[A-Z][A-Z0-9]{2}$")


class SegmentParser:
    """Parses pipe-delimited HL7 v2 messages."""

    def parse(self, text: str) -> StructuredMessage:
        """
        Parse a normalized message.

        Args:
            text: Message text with \\r segment terminators

        Returns:
            StructuredMessage with the header as first segment

        Raises:
            HeaderMissing: If the text does not start with an MSH segment
            ParseError: If delimiters or segment names are malformed
        """
        lines = self._split_segments(text)
        if not lines:
            raise HeaderMissing("Message is empty, no MSH segment found")
        if not lines[0].startswith(HEADER_SEGMENT):
            raise HeaderMissing(
                f"Message starts with '{lines[0][:3]}', expected {HEADER_SEGMENT}"
            )

        encoding = self._read_encoding(lines[0])
        segments = [self._parse_segment(line, encoding) for line in lines]

        logger.debug(
            f"Parsed message with {len(segments)} segments: "
            f"{[s.name for s in segments]}"
        )
        return StructuredMessage(segments=tuple(segments), encoding=encoding)

    def _split_segments(self, text: str) -> List[str]:
        """Split on segment terminators, dropping framing and blank lines."""
        stripped = text.strip(_FRAMING_CHARS + " \t" + SEGMENT_TERMINATOR)
        return [
            line.strip(_FRAMING_CHARS)
            for line in stripped.split(SEGMENT_TERMINATOR)
            if line.strip(_FRAMING_CHARS + " \t")
        ]

    def _read_encoding(self, header: str) -> EncodingCharacters:
        """Read MSH-1 (field separator) and MSH-2 (encoding characters)."""
        if len(header) < 4:
            raise ParseError("MSH segment too short to declare delimiters")

        field_sep = header[3]
        if field_sep.isalnum() or field_sep.isspace():
            raise ParseError(f"Invalid field separator {field_sep!r} in MSH-1")

        declared = header[4:].split(field_sep, 1)[0]
        if not declared:
            raise ParseError("MSH-2 encoding characters are missing")

        defaults = EncodingCharacters()
        chars = list(declared[:4])
        return EncodingCharacters(
            field=field_sep,
            component=chars[0] if len(chars) > 0 else defaults.component,
            repetition=chars[1] if len(chars) > 1 else defaults.repetition,
            escape=chars[2] if len(chars) > 2 else defaults.escape,
            subcomponent=chars[3] if len(chars) > 3 else defaults.subcomponent,
        )

    def _parse_segment(self, line: str, encoding: EncodingCharacters) -> Segment:
        """Parse a single segment line."""
        parts = line.split(encoding.field)
        name = parts[0]
        if not _SEGMENT_NAME.match(name):
            raise ParseError(f"Invalid segment name {name!r}")

        if name == HEADER_SEGMENT:
            fields = (encoding.field,) + tuple(parts[1:])
        else:
            fields = tuple(parts[1:])

        return Segment(name=name, fields=fields, encoding=encoding)
