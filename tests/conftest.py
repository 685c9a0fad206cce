# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Shared pytest fixtures and configuration for cascade delete tests.

This module provides common test fixtures, mock objects, and configuration
that can be used across all test modules.
"""

import pytest

from dataverse_cascade.core.config import DataverseConfig


@pytest.fixture
def dummy_auth():
    """Mock authentication object for testing."""

    class DummyAuth:
        def _acquire_token(self, scope):
            class Token:
                access_token = "test_token_12345"

            return Token()

    return DummyAuth()


@pytest.fixture
def test_config():
    """Test configuration with safe defaults."""
    return DataverseConfig(http_retries=1, http_backoff=0.1, http_timeout=5)


@pytest.fixture
def sample_base_url():
    """Standard test base URL."""
    return "https://org.example.com"


@pytest.fixture
def record_ids():
    """Three account GUIDs used across cascade scenarios."""
    return [
        "5afef53e-96d8-4527-bbbc-ee86fff4183a",
        "30aba5c1-3852-461e-b0d8-15bd95ac72ca",
        "0a33b533-0b8c-4a7b-a57a-80c3b1fcb9ce",
    ]
