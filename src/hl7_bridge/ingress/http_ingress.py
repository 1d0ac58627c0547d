"""
HTTP Ingress - PUT /hl7receiver.

Accepts a raw HL7 v2 message as text/plain and answers with JSON whose
HTTP status is the exchange's response code. Each request produces
exactly one exchange; the pipeline runs in the worker thread pool so
the event loop is never blocked by the FHIR call.

Endpoints:
  PUT /hl7receiver   - run the message through the register route
  GET /health        - liveness and configured FHIR server
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from hl7_bridge import __version__
from hl7_bridge.domain.entities import Exchange, ExchangeState, RawInput
from hl7_bridge.domain.errors import ExchangeFailed
from hl7_bridge.pipeline.route_pipeline import RoutePipeline

logger = logging.getLogger(__name__)

RECEIVER_PATH = "/hl7receiver"
ACCEPTED_CONTENT_TYPE = "text/plain"
FATAL_MESSAGE = "ERROR: The message could not be processed."


def _response_payload(exchange: Exchange, message: str) -> Dict[str, Any]:
    return {
        "exchange_id": exchange.exchange_id,
        "state": exchange.state.value,
        "message": message,
    }


def _request_identity(request: Request) -> str:
    """Identify the request for logs: X-Request-ID, else the client address."""
    request_id = request.headers.get("x-request-id")
    if request_id:
        return request_id
    host = request.client.host if request.client else "unknown"
    return f"PUT {RECEIVER_PATH} from {host}"


def create_app(pipeline: RoutePipeline, server_url: str = "") -> FastAPI:
    """
    Build the FastAPI application around a route pipeline.

    Args:
        pipeline: Pipeline for the register route
        server_url: FHIR server URL reported by /health
    """
    app = FastAPI(
        title="HL7 FHIR Bridge",
        description="Receives HL7 v2 messages and registers patients on a FHIR server",
        version=__version__,
    )
    app.state.pipeline = pipeline

    @app.put(RECEIVER_PATH)
    async def receive_hl7(request: Request) -> JSONResponse:
        content_type = request.headers.get("content-type", "").split(";")[0].strip()
        if content_type != ACCEPTED_CONTENT_TYPE:
            return JSONResponse(
                status_code=415,
                content={"message": f"ERROR: Expected {ACCEPTED_CONTENT_TYPE} body."},
            )

        raw = RawInput(payload=await request.body(), source=_request_identity(request))
        try:
            exchange = await run_in_threadpool(pipeline.process, raw)
        except ExchangeFailed as e:
            logger.error(
                f"Exchange {e.exchange.exchange_id} from {raw.source} failed "
                f"in stage {e.exchange.failed_stage}: {e}"
            )
            return JSONResponse(
                status_code=500,
                content=_response_payload(e.exchange, FATAL_MESSAGE),
            )

        status_code = exchange.response_code or 200
        if exchange.state == ExchangeState.RECOVERED:
            logger.warning(
                f"Exchange {exchange.exchange_id} recovered in stage "
                f"{exchange.failed_stage}, answering {status_code}"
            )
        return JSONResponse(
            status_code=status_code,
            content=_response_payload(exchange, str(exchange.body)),
        )

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "route": pipeline.name, "fhir_server": server_url}

    return app
