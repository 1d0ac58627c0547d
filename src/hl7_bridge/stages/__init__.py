"""
Stages Package - The Steps a Route Is Composed Of.

Each stage implements the PipelineStage protocol and is tagged with
its StageKind:

    - NormalizeStage, ParseStage: raw payload to StructuredMessage
    - ClassifyStage, RouteStage: MSH-9 and the content-based branch
    - TransformStage: PID segment to FHIR Patient
    - SubmitStage, InterpretStage: FHIR create call and its outcome

Design Principles:
    - Stages hold immutable configuration only
    - Pure helpers (classify_message, patient_from_message,
      interpret_outcome) are testable without an exchange
"""

from hl7_bridge.stages.classification import (
    AcceptRule,
    ClassifyStage,
    RouteStage,
    classify_message,
)
from hl7_bridge.stages.ingest import NormalizeStage, ParseStage
from hl7_bridge.stages.submission import (
    InterpretStage,
    SubmitStage,
    interpret_outcome,
)
from hl7_bridge.stages.transform import (
    TransformStage,
    parse_birth_date,
    patient_from_message,
)

__all__ = [
    "AcceptRule",
    "ClassifyStage",
    "RouteStage",
    "classify_message",
    "NormalizeStage",
    "ParseStage",
    "InterpretStage",
    "SubmitStage",
    "interpret_outcome",
    "TransformStage",
    "parse_birth_date",
    "patient_from_message",
]
