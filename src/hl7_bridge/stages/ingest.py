"""
Ingest Stages - Normalize and Parse.

The first two steps of every route: raw payload to canonical text, then
canonical text to StructuredMessage.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple, Type

from hl7_bridge.domain.entities import Exchange
from hl7_bridge.domain.errors import ParseError
from hl7_bridge.interfaces.stage import StageKind
from hl7_bridge.parsing.normalizer import decode_payload, normalize
from hl7_bridge.parsing.segment_parser import SegmentParser

logger = logging.getLogger(__name__)


class NormalizeStage:
    """Decode the payload and canonicalize line breaks and entities."""

    kind = StageKind.NORMALIZE

    def __init__(self, charset: str = "utf-8") -> None:
        self.charset = charset

    @property
    def name(self) -> str:
        return "normalize"

    @property
    def raises(self) -> Tuple[Type[BaseException], ...]:
        return (ParseError,)

    def process(self, exchange: Exchange) -> None:
        text = decode_payload(exchange.body_as((bytes, str)), self.charset)
        exchange.replace_body(normalize(text))


class ParseStage:
    """Unmarshal normalized text into a StructuredMessage."""

    kind = StageKind.PARSE

    def __init__(self, parser: Optional[SegmentParser] = None) -> None:
        self.parser = parser or SegmentParser()

    @property
    def name(self) -> str:
        return "parse"

    @property
    def raises(self) -> Tuple[Type[BaseException], ...]:
        return (ParseError,)

    def process(self, exchange: Exchange) -> None:
        message = self.parser.parse(exchange.body_as(str))
        logger.debug(f"HL7 message after unmarshal: {message.segment_names()}")
        exchange.replace_body(message)
