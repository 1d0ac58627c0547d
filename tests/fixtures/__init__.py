"""
Test Fixtures - Shared Test Configuration.

This package contains reusable test fixtures:
    - sample_config.yaml: Sample configuration for testing

Sample HL7 messages live in tests/conftest.py.
"""
