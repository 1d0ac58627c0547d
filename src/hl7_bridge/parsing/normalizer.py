"""
Normalizer - Canonical Text Before Parsing.

Messages arrive with platform line endings and, when pasted through web
forms, HTML-escaped delimiters. HL7 v2 separates segments with a single
carriage return, so both are folded away here.
"""

from __future__ import annotations

import html
import re
from typing import Union

from hl7_bridge.domain.errors import ParseError

SEGMENT_TERMINATOR = "\r"

_LINE_BREAK = re.compile(r"\r?\n")


def normalize(text: str) -> str:
    """
    Unify line breaks to \\r and decode HTML character entities.

    Both steps are repeated until the text stops changing, which makes
    the function idempotent even for double-escaped input. Malformed
    entities are left as they are.

    Args:
        text: Raw message text

    Returns:
        Normalized text
    """
    previous = None
    while text != previous:
        previous = text
        text = html.unescape(_LINE_BREAK.sub(SEGMENT_TERMINATOR, text))
    return text


def decode_payload(payload: Union[bytes, str], charset: str = "utf-8") -> str:
    """
    Decode a raw payload to text.

    Raises:
        ParseError: If the bytes are not valid in the given charset
    """
    if isinstance(payload, str):
        return payload
    try:
        return payload.decode(charset)
    except UnicodeDecodeError as e:
        raise ParseError(f"Payload is not valid {charset}: {e}") from e
