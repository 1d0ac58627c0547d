"""
Value Objects for Domain Layer.

The parsed form of an HL7 v2 message. Field numbering follows HL7:
field(1) is the first field after the segment name, and for MSH field(1)
is the field separator itself, so MSH-9 is field(9) on every segment.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

HEADER_SEGMENT = "MSH"


class EncodingCharacters(BaseModel):
    """Delimiters declared in MSH-1 and MSH-2."""

    field: str = "|"
    component: str = "^"
    repetition: str = "~"
    escape: str = "\\"
    subcomponent: str = "&"

    model_config = {"frozen": True}

    def unescape(self, value: str) -> str:
        """Resolve \\F\\ \\S\\ \\T\\ \\R\\ \\E\\ escape sequences."""
        if not self.escape or self.escape not in value:
            return value
        replacements = {
            "F": self.field,
            "S": self.component,
            "T": self.subcomponent,
            "R": self.repetition,
            "E": self.escape,
        }
        esc = re.escape(self.escape)
        pattern = re.compile(f"{esc}([FSTRE]){esc}")
        return pattern.sub(lambda m: replacements[m.group(1)], value)


class Segment(BaseModel):
    """A named, ordered group of raw field values."""

    name: str
    fields: Tuple[str, ...] = Field(default_factory=tuple)
    encoding: EncodingCharacters = Field(default_factory=EncodingCharacters)

    model_config = {"frozen": True}

    def field(self, number: int) -> str:
        """Raw value of field `number` (1-based), empty when absent."""
        if number < 1 or number > len(self.fields):
            return ""
        return self.fields[number - 1]

    def component(
        self,
        field_number: int,
        component_number: int = 1,
        repetition: int = 0,
    ) -> str:
        """Unescaped component value, empty when absent."""
        raw = self.field(field_number)
        if not raw:
            return ""
        repetitions = raw.split(self.encoding.repetition)
        if repetition >= len(repetitions):
            return ""
        components = repetitions[repetition].split(self.encoding.component)
        if component_number < 1 or component_number > len(components):
            return ""
        return self.encoding.unescape(components[component_number - 1])

    def encode(self) -> str:
        """Render back to wire form."""
        if self.name == HEADER_SEGMENT:
            # MSH-1 is the separator itself
            return (
                self.name
                + self.encoding.field
                + self.encoding.field.join(self.fields[1:])
            )
        return self.encoding.field.join((self.name,) + tuple(self.fields))


class StructuredMessage(BaseModel):
    """Ordered segments of one parsed message. Read-only after parse."""

    segments: Tuple[Segment, ...] = Field(default_factory=tuple)
    encoding: EncodingCharacters = Field(default_factory=EncodingCharacters)

    model_config = {"frozen": True}

    @property
    def header(self) -> Optional[Segment]:
        """The MSH segment, if the message starts with one."""
        if self.segments and self.segments[0].name == HEADER_SEGMENT:
            return self.segments[0]
        return None

    def segment(self, name: str) -> Optional[Segment]:
        """First segment with the given name."""
        for segment in self.segments:
            if segment.name == name:
                return segment
        return None

    def segment_names(self) -> List[str]:
        return [s.name for s in self.segments]

    def encode(self) -> str:
        return "\r".join(s.encode() for s in self.segments)

    def __len__(self) -> int:
        return len(self.segments)
