"""
Parsing Package - From Raw Payload to StructuredMessage.

Components:
    - normalize / decode_payload: Canonicalize the raw text
    - SegmentParser: ER7 (pipe-delimited) HL7 v2 grammar
"""

from hl7_bridge.parsing.normalizer import decode_payload, normalize
from hl7_bridge.parsing.segment_parser import SegmentParser

__all__ = ["decode_payload", "normalize", "SegmentParser"]
