"""
Test Suite for the VoltDB Prometheus Agent.

Test organization:
    - unit/: Unit tests for individual components
    - integration/: Scrape flow tests through the HTTP front end
    - fixtures/: Shared test fixtures and sample data

Running Tests:
    pytest tests/                           # All tests
    pytest tests/unit/                      # Unit tests only
    pytest tests/integration/               # Integration tests only
    pytest --cov=src/voltdb_prometheus      # With coverage
"""
