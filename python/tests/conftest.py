"""
Shared pytest fixtures for thred-sdk tests.

This module provides common fixtures used across all test files,
including sample API payloads and a mock-transport client factory.
"""

import httpx
import pytest

from thred_sdk.client import ThredClient


@pytest.fixture
def api_key():
    """Test API key."""
    return "sk_test_abc123"


@pytest.fixture
def sample_metadata():
    """Metadata object as sent by the API."""
    return {
        "brandUsed": {"id": "brand_1", "name": "Acme Tasks", "domain": "acme.example"},
        "link": "https://acme.example/?ref=thred",
        "code": "trk_42",
        "similarityScore": 0.87,
        "triggerPhrases": ["task manager", "todo"],
        "matchedTriggers": ["task manager"],
    }


@pytest.fixture
def sample_answer(sample_metadata):
    """Non-streaming answer body."""
    return {
        "response": "Try Acme Tasks for organizing your work.",
        "metadata": sample_metadata,
    }


@pytest.fixture
def recorder():
    """List collecting every request a mock transport receives."""
    return []


@pytest.fixture
def make_client(api_key, recorder):
    """
    Build a ThredClient backed by httpx.MockTransport.

    The handler receives each httpx.Request (also appended to recorder)
    and returns an httpx.Response (or a coroutine resolving to one).
    """
    def _make(handler, **kwargs):
        def _record(request):
            recorder.append(request)
            return handler(request)

        return ThredClient(
            api_key=api_key,
            transport=httpx.MockTransport(_record),
            **kwargs,
        )

    return _make
