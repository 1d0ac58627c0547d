"""
Integration Tests - Whole Routes and Ingress Adapters.

These tests run complete routes against the InMemoryResourceClient
to avoid a live FHIR server.

Test Files:
    - test_route_pipeline.py: End-to-end exchange outcomes
    - test_http_ingress.py: PUT /hl7receiver status mapping
    - test_file_ingress.py: Directory poller file handling
"""
