"""
Test Suite for the HL7 FHIR Bridge.

Test organization:
    - unit/: Unit tests for individual components
    - integration/: Route, HTTP and file ingress tests
    - fixtures/: Shared test configuration

Running Tests:
    pytest tests/                           # All tests
    pytest tests/unit/                      # Unit tests only
    pytest tests/integration/               # Integration tests only
"""
