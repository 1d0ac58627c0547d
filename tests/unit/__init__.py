"""
Unit Tests - Testing Individual Components in Isolation.

Each component is tested in isolation with mocked dependencies.
Unit tests should be fast, deterministic, and focused.

Test Files:
    - test_normalizer.py: Line breaks, entities, idempotence
    - test_segment_parser.py: ER7 grammar and delimiters
    - test_classification.py: MSH-9 classification and accept rules
    - test_transform.py: PID to Patient mapping
    - test_fhir_client.py: httpx client against MockTransport
    - test_config_loader.py: Configuration loading/validation
"""
