"""
Resource Client Protocol.

The only network-crossing dependency of a route. Implementations
serialize the resource, call the FHIR server and report what it said.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from hl7_bridge.domain.entities import SubmissionOutcome, TargetResource


@runtime_checkable
class ResourceClient(Protocol):
    """Creates resources on a FHIR server."""

    @property
    def server_url(self) -> str:
        ...

    def create(self, resource: "TargetResource") -> "SubmissionOutcome":
        """
        Create the resource remotely.

        Returns:
            SubmissionOutcome, with created_id None when the answer
            could not be read

        Raises:
            ConnectivityError: On network, timeout or 5xx failures
            ResourceRejected: When the server refuses the resource
        """
        ...

    def close(self) -> None:
        """Release network resources; no create() calls follow."""
        ...
