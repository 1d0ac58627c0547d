"""
Ingress - Entry Points That Turn Inputs Into Exchanges.

Each ingress owns exactly one route pipeline:
    - http_ingress: PUT /hl7receiver (FastAPI)
    - file_ingress: directory poller
"""

from hl7_bridge.ingress.file_ingress import DirectoryPoller
from hl7_bridge.ingress.http_ingress import create_app

__all__ = [
    "DirectoryPoller",
    "create_app",
]
