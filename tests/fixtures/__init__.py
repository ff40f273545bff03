"""
Test Fixtures - Shared Test Data and Configurations.

This package contains reusable test fixtures:
    - sample_config.yaml: Sample agent configuration for testing

Usage:
    Load via the ``sample_config_path`` pytest fixture.
"""
