"""
In-Memory Resource Client.

Stores created patients in a dict instead of calling a FHIR server.
Used for development (dry runs) and throughout the test suite.
"""

from __future__ import annotations

import itertools
import threading
from typing import Callable, Dict, List, Optional

from hl7_bridge.domain.entities import SubmissionOutcome, TargetResource


class InMemoryResourceClient:
    """Thread-safe fake FHIR server."""

    def __init__(
        self,
        server_url: str = "memory://fhir",
        respond_with_id: bool = True,
        failure: Optional[Callable[[TargetResource], Optional[Exception]]] = None,
    ) -> None:
        """
        Initialize fake client.

        Args:
            server_url: Reported server URL
            respond_with_id: If False, outcomes carry no created id
            failure: Optional hook; an exception it returns is raised
                instead of storing the resource
        """
        self._server_url = server_url
        self.respond_with_id = respond_with_id
        self.failure = failure
        self._resources: Dict[str, TargetResource] = {}
        self._calls: List[TargetResource] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def calls(self) -> List[TargetResource]:
        """Every resource passed to create(), in call order."""
        with self._lock:
            return list(self._calls)

    @property
    def resources(self) -> Dict[str, TargetResource]:
        with self._lock:
            return dict(self._resources)

    def create(self, resource: TargetResource) -> SubmissionOutcome:
        with self._lock:
            self._calls.append(resource)

        if self.failure is not None:
            error = self.failure(resource)
            if error is not None:
                raise error

        with self._lock:
            created_id = resource.identifier or str(next(self._ids))
            self._resources[created_id] = resource

        if not self.respond_with_id:
            return SubmissionOutcome(status_code=201)
        return SubmissionOutcome(
            created_id=created_id,
            status_code=201,
            version_id="1",
            raw=resource.to_fhir(),
        )

    def close(self) -> None:
        pass
