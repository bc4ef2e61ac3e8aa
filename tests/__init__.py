"""
Test Suite

Contains unit tests for the option chain backend.

Structure:
- tests/unit/: Tests for individual components (symbol codec, normalizer,
  aggregation, series, CSV, Delta client, service, API routes)

Network access is never required; the Delta client is mocked.
Uses pytest with pytest-asyncio for testing async functionality.
"""
