"""
Configuration Models - Pydantic Models for Type-Safe Config.

All configuration is validated at load time using Pydantic.
"""

from __future__ import annotations

import codecs
from typing import List

from pydantic import BaseModel, Field, field_validator

from hl7_bridge.adapters.fhir_client import FHIR_VERSIONS


class FhirServerConfig(BaseModel):
    """Remote FHIR server."""

    server_url: str = Field(default="http://localhost:8080/fhir")
    fhir_version: str = Field(default="R4")
    timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("fhir_version")
    @classmethod
    def _known_version(cls, value: str) -> str:
        if value.upper() not in FHIR_VERSIONS:
            raise ValueError(f"Unsupported FHIR version {value!r}")
        return value.upper()

    @field_validator("server_url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("server_url must be an http(s) URL")
        return value.rstrip("/")


class FileIngressConfig(BaseModel):
    """Directory polling ingress."""

    enabled: bool = True
    input_directory: str = Field(default="input")
    done_directory: str = Field(default=".done")
    error_directory: str = Field(default=".error")
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    max_workers: int = Field(default=4, ge=1, le=64)


class HttpIngressConfig(BaseModel):
    """HTTP PUT ingress."""

    enabled: bool = True
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)


class RouteConfig(BaseModel):
    """Per-route accept rule."""

    accept: List[str] = Field(default_factory=lambda: ["ADT^A04"], min_length=1)

    @field_validator("accept")
    @classmethod
    def _wire_codes(cls, value: List[str]) -> List[str]:
        for code in value:
            if not code.split("^", 1)[0].strip():
                raise ValueError(f"Invalid message code {code!r}")
        return value


class RoutesConfig(BaseModel):
    """The two routes, by ingress."""

    http: RouteConfig = Field(default_factory=RouteConfig)
    file: RouteConfig = Field(
        default_factory=lambda: RouteConfig(accept=["ORU^R01", "ADT^A04"])
    )


class LoggingConfig(BaseModel):
    """Log sink settings."""

    level: str = Field(default="INFO")
    json_output: bool = Field(default=True, alias="json")

    model_config = {"populate_by_name": True}

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if value.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level {value!r}")
        return value.upper()


class BridgeConfig(BaseModel):
    """Root configuration object."""

    version: str = "1.0"
    charset: str = Field(default="utf-8")
    fhir: FhirServerConfig = Field(default_factory=FhirServerConfig)
    file_ingress: FileIngressConfig = Field(default_factory=FileIngressConfig)
    http_ingress: HttpIngressConfig = Field(default_factory=HttpIngressConfig)
    routes: RoutesConfig = Field(default_factory=RoutesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"populate_by_name": True}

    @field_validator("charset")
    @classmethod
    def _known_charset(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"Unknown charset {value!r}") from e
        return value
