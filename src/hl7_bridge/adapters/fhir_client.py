"""
FHIR Resource Client.

Creates Patient resources on a FHIR REST server over httpx.

Error mapping:
    - network failures and timeouts -> ConnectivityError
    - 5xx answers                   -> ConnectivityError
    - 4xx answers                   -> ResourceRejected
    - 2xx with an unreadable body   -> outcome without created_id
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

import httpx

from hl7_bridge.domain.entities import SubmissionOutcome, TargetResource
from hl7_bridge.domain.errors import ConnectivityError, ResourceRejected

logger = logging.getLogger(__name__)

# FHIR release name -> fhirVersion MIME parameter
FHIR_VERSIONS = {
    "DSTU2": "1.0",
    "DSTU3": "3.0",
    "R4": "4.0",
    "R4B": "4.3",
    "R5": "5.0",
}

_LOCATION_ID = re.compile(r"/Patient/([^/?#]+)(?:/_history/([^/?#]+))?")


class FhirResourceClient:
    """
    httpx-backed client for the FHIR create interaction.

    A single httpx.Client pools connections for the adapter's lifetime;
    close() releases them.
    """

    resource_type = "Patient"

    def __init__(
        self,
        server_url: str,
        fhir_version: str = "R4",
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize client.

        Args:
            server_url: FHIR base URL, e.g. http://localhost:8080/fhir
            fhir_version: FHIR release name (DSTU2, DSTU3, R4, R4B, R5)
            timeout_seconds: Per-call timeout; expiry is a ConnectivityError
            transport: Optional httpx transport (tests use MockTransport)

        Raises:
            ValueError: If the FHIR version is unknown
        """
        if fhir_version.upper() not in FHIR_VERSIONS:
            raise ValueError(
                f"Unsupported FHIR version {fhir_version!r}, "
                f"expected one of {sorted(FHIR_VERSIONS)}"
            )
        self._server_url = server_url.rstrip("/")
        self.fhir_version = fhir_version.upper()
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._http = self._create_http_client()

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def media_type(self) -> str:
        return f"application/fhir+json; fhirVersion={FHIR_VERSIONS[self.fhir_version]}"

    def close(self) -> None:
        """Release pooled connections."""
        self._http.close()

    def __enter__(self) -> "FhirResourceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _create_http_client(self) -> httpx.Client:
        """Create a configured HTTP client"""
        return httpx.Client(
            timeout=self.timeout_seconds,
            transport=self._transport,
            headers={
                "Accept": self.media_type,
                "Content-Type": self.media_type,
                "Prefer": "return=representation",
            },
        )

    def create(self, resource: TargetResource) -> SubmissionOutcome:
        """
        POST the resource to {server_url}/Patient.

        Raises:
            ConnectivityError: On transport failure, timeout or 5xx
            ResourceRejected: On 4xx
        """
        url = f"{self._server_url}/{self.resource_type}"
        try:
            response = self._http.post(url, json=resource.to_fhir())
        except httpx.TransportError as e:
            raise ConnectivityError(
                f"{type(e).__name__}: {e}", server_url=self._server_url
            ) from e

        if response.status_code >= 500:
            raise ConnectivityError(
                f"HTTP {response.status_code} from {url}", server_url=self._server_url
            )
        if response.status_code >= 400:
            raise ResourceRejected(
                f"HTTP {response.status_code} from {url}: {self._diagnostics(response)}",
                status_code=response.status_code,
            )

        return self._outcome_from_response(response)

    def _outcome_from_response(self, response: httpx.Response) -> SubmissionOutcome:
        """Read created id and version from body, then from headers."""
        body = self._read_json(response)
        created_id = body.get("id") if isinstance(body.get("id"), str) else None
        version_id = (body.get("meta") or {}).get("versionId")

        location = response.headers.get("location") or response.headers.get(
            "content-location"
        )
        if location:
            match = _LOCATION_ID.search(location)
            if match:
                created_id = created_id or match.group(1)
                version_id = version_id or match.group(2)

        if not created_id:
            logger.warning(
                f"FHIR server answered {response.status_code} without a resource id"
            )

        return SubmissionOutcome(
            created_id=created_id,
            status_code=response.status_code,
            location=location,
            version_id=version_id,
            raw=body,
        )

    def _read_json(self, response: httpx.Response) -> Dict[str, Any]:
        """Decode a JSON object body, empty dict when unreadable."""
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            logger.warning(f"FHIR server returned a non-JSON body ({response.status_code})")
            return {}
        return body if isinstance(body, dict) else {}

    def _diagnostics(self, response: httpx.Response) -> str:
        """Extract OperationOutcome diagnostics, if any."""
        body = self._read_json(response)
        issues = body.get("issue") or []
        details = [i.get("diagnostics", "") for i in issues if isinstance(i, dict)]
        return "; ".join(d for d in details if d) or response.reason_phrase
