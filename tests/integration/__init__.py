"""
Integration Tests - End-to-End Scrape Tests.

These tests verify that all components work together correctly.
Integration tests use the MockStatsClient to avoid an external
database while exercising the full scrape flow over HTTP.

Test Files:
    - test_scrape_endpoint.py: Full scrape workflow
    - test_failure_recovery.py: Outages, reconnects and stale values
"""
