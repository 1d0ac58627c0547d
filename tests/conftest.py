"""
Pytest Configuration and Shared Fixtures.

This module contains fixtures available to all tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from hl7_bridge.adapters.mock_client import InMemoryResourceClient
from hl7_bridge.observability.observability_manager import ObservabilityManager
from hl7_bridge.pipeline.route_definition import standard_route
from hl7_bridge.pipeline.route_pipeline import RoutePipeline
from hl7_bridge.stages.classification import AcceptRule

ADT_A04 = "\r".join(
    [
        "MSH|^~\\&|REGADT|MCM|IFENG||199112311501||ADT^A04^ADT_A01|000001|P|2.4",
        "EVN|A04|199112311501||",
        "PID|1|12001^^^MCM|PID1234^5^M11||JONES^WILLIAM^A||19610615|M||C|"
        "1200 N ELM STREET^^GREENSBORO^NC^27401-1020|GL|(919)379-1212",
        "PV1|1|I|2000^2012^01||||004777^LEBAUER^SIDNEY^J.|||SUR||||ADM|A0",
    ]
)

ADT_A01 = ADT_A04.replace("ADT^A04^ADT_A01", "ADT^A01^ADT_A01").replace(
    "EVN|A04", "EVN|A01"
)

ORU_R01 = "\r".join(
    [
        "MSH|^~\\&|LAB|MCM|IFENG||202001011200||ORU^R01|000002|P|2.4",
        "PID|1|55001|||DOE^JANE||19800229|F",
        "OBR|1||LAB123|88304^GLUCOSE",
        "OBX|1|NM|GLU^Glucose||105|mg/dL",
    ]
)

NO_HEADER = "\r".join(
    [
        "EVN|A04|199112311501||",
        "PID|1|12001|||JONES^WILLIAM||19610615|M",
    ]
)


@pytest.fixture
def adt_a04() -> str:
    """Admit/register message the HTTP route accepts."""
    return ADT_A04


@pytest.fixture
def adt_a01() -> str:
    """Well-formed message with a trigger event the default rule rejects."""
    return ADT_A01


@pytest.fixture
def oru_r01() -> str:
    """Observation result message the file route accepts."""
    return ORU_R01


@pytest.fixture
def no_header_message() -> str:
    """Message without an MSH segment."""
    return NO_HEADER


@pytest.fixture
def sample_config_path() -> Path:
    """Path to sample configuration file."""
    return Path(__file__).parent / "fixtures" / "sample_config.yaml"


@pytest.fixture
def mock_client() -> InMemoryResourceClient:
    """In-memory FHIR server."""
    return InMemoryResourceClient()


@pytest.fixture
def observability() -> ObservabilityManager:
    """Audit sink with console rendering."""
    return ObservabilityManager(use_json=False)


@pytest.fixture
def register_pipeline(
    mock_client: InMemoryResourceClient,
    observability: ObservabilityManager,
) -> RoutePipeline:
    """HTTP route pipeline accepting ADT^A04 against the in-memory client."""
    route = standard_route("putregisterhl7-fhirserver", AcceptRule(), mock_client)
    return RoutePipeline(route, observability, observability)
