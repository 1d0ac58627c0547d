"""
Unit Tests for FhirResourceClient.

Test Aspects Covered:
    ✅ Business Logic: Request shape, id extraction from body and headers
    ✅ Edge Cases: Empty or non-JSON bodies
    ✅ Error Handling: 4xx, 5xx and transport errors
"""

from __future__ import annotations

import json
from datetime import date
from typing import List

import httpx
import pytest

from hl7_bridge.adapters.fhir_client import FhirResourceClient
from hl7_bridge.domain.entities import AdministrativeSex, TargetResource
from hl7_bridge.domain.errors import ConnectivityError, ResourceRejected

SERVER = "http://fhir.test/baseR4"


@pytest.fixture
def patient() -> TargetResource:
    return TargetResource(
        identifier="12001",
        given_name="WILLIAM",
        family_name="JONES",
        administrative_sex=AdministrativeSex.MALE,
        birth_date=date(1961, 6, 15),
    )


def _client(handler, **kwargs) -> FhirResourceClient:
    return FhirResourceClient(SERVER, transport=httpx.MockTransport(handler), **kwargs)


class TestCreate:
    """Test cases for FhirResourceClient.create()."""

    def test_posts_patient_json(self, patient: TargetResource) -> None:
        """
        SCENARIO: Create against an R4 server
        EXPECTED: POST {server}/Patient with FHIR JSON media type and body
        """
        # Arrange
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={"resourceType": "Patient", "id": "12001"})

        # Act
        _client(handler).create(patient)

        # Assert
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{SERVER}/Patient"
        assert request.headers["content-type"] == "application/fhir+json; fhirVersion=4.0"
        body = json.loads(request.content)
        assert body["resourceType"] == "Patient"
        assert body["birthDate"] == "1961-06-15"

    def test_media_type_follows_version(self) -> None:
        client = FhirResourceClient(SERVER, fhir_version="dstu3")
        assert client.media_type == "application/fhir+json; fhirVersion=3.0"

    def test_unknown_version_raises(self) -> None:
        with pytest.raises(ValueError, match="Unsupported FHIR version"):
            FhirResourceClient(SERVER, fhir_version="R9")

    def test_id_from_body(self, patient: TargetResource) -> None:
        """
        SCENARIO: 201 with representation
        EXPECTED: Outcome carries id and versionId
        """
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                201, json={"resourceType": "Patient", "id": "abc", "meta": {"versionId": "1"}}
            )

        # Act
        outcome = _client(handler).create(patient)

        # Assert
        assert outcome.created_id == "abc"
        assert outcome.version_id == "1"
        assert outcome.status_code == 201
        assert outcome.is_confirmed

    def test_id_from_location_header(self, patient: TargetResource) -> None:
        """
        SCENARIO: 201 with empty body and a Location header
        EXPECTED: Id and version parsed from the header
        """
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                201, headers={"Location": f"{SERVER}/Patient/777/_history/2"}
            )

        # Act
        outcome = _client(handler).create(patient)

        # Assert
        assert outcome.created_id == "777"
        assert outcome.version_id == "2"
        assert outcome.location.endswith("/Patient/777/_history/2")

    def test_no_id_is_not_an_error(self, patient: TargetResource) -> None:
        """
        SCENARIO: 200 with a non-JSON body and no Location
        EXPECTED: Outcome without id, no exception
        """
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>ok</html>")

        # Act
        outcome = _client(handler).create(patient)

        # Assert
        assert outcome.created_id is None
        assert not outcome.is_confirmed

    def test_server_error_is_connectivity_error(self, patient: TargetResource) -> None:
        """
        SCENARIO: 503 from the server
        EXPECTED: ConnectivityError carrying the server URL
        """
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        # Act & Assert
        with pytest.raises(ConnectivityError) as exc_info:
            _client(handler).create(patient)

        assert exc_info.value.server_url == SERVER

    def test_client_error_is_resource_rejected(self, patient: TargetResource) -> None:
        """
        SCENARIO: 422 with an OperationOutcome
        EXPECTED: ResourceRejected with status and diagnostics
        """
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                422,
                json={
                    "resourceType": "OperationOutcome",
                    "issue": [{"severity": "error", "diagnostics": "birthDate invalid"}],
                },
            )

        # Act & Assert
        with pytest.raises(ResourceRejected) as exc_info:
            _client(handler).create(patient)

        assert exc_info.value.status_code == 422
        assert "birthDate invalid" in str(exc_info.value)

    def test_transport_error_is_connectivity_error(self, patient: TargetResource) -> None:
        """
        SCENARIO: Connection refused
        EXPECTED: ConnectivityError chained to the httpx error
        """
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        # Act & Assert
        with pytest.raises(ConnectivityError) as exc_info:
            _client(handler).create(patient)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_timeout_is_connectivity_error(self, patient: TargetResource) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ConnectivityError):
            _client(handler, timeout_seconds=0.1).create(patient)


class CountingTransport(httpx.MockTransport):
    """MockTransport that records how often it is closed."""

    def __init__(self, handler) -> None:
        super().__init__(handler)
        self.closed = 0

    def close(self) -> None:
        self.closed += 1
        super().close()


class TestLifecycle:
    """One HTTP connection pool per client."""

    def test_creates_share_one_transport(self, patient: TargetResource) -> None:
        """
        SCENARIO: Several creates, then close()
        EXPECTED: Transport stays open across creates, closed once at the end
        """
        # Arrange
        transport = CountingTransport(
            lambda request: httpx.Response(201, json={"id": "12001"})
        )
        client = FhirResourceClient(SERVER, transport=transport)

        # Act
        outcomes = [client.create(patient) for _ in range(3)]
        closed_while_open = transport.closed
        client.close()

        # Assert
        assert [o.created_id for o in outcomes] == ["12001"] * 3
        assert closed_while_open == 0
        assert transport.closed == 1

    def test_context_manager_closes(self, patient: TargetResource) -> None:
        transport = CountingTransport(
            lambda request: httpx.Response(201, json={"id": "12001"})
        )

        with FhirResourceClient(SERVER, transport=transport) as client:
            client.create(patient)

        assert transport.closed == 1
        with pytest.raises(RuntimeError):
            client.create(patient)
