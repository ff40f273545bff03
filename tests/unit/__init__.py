"""
Unit Tests - Testing Individual Components in Isolation.

Each component is tested in isolation with the mock client or mocked
dependencies. Unit tests should be fast, deterministic, and focused.

Test Files:
    - test_gauge_registry.py: Gauge registration and exposition
    - test_mappers.py: Column decoding and unit scaling
    - test_gather_coordinator.py: Gather cycle outcomes
    - test_scrape_gate.py: Scrape serialization and throttling
    - test_config_loader.py: Configuration loading/validation
"""
