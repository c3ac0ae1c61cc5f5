"""Shared fixtures for webhook tests."""

import pytest
from fastapi.testclient import TestClient

from hookrelay.core.settings import WebhookSettings
from hookrelay.main import create_app
from hookrelay.webhooks.manager import WebhookManager, reset_manager
from hookrelay.webhooks.pipeline import DispatchPipeline
from hookrelay.webhooks.registry import WebhookRegistry


@pytest.fixture
def settings():
    """Default settings, independent of the process environment."""
    return WebhookSettings()


@pytest.fixture
def registry():
    return WebhookRegistry()


@pytest.fixture
def pipeline(registry, settings):
    return DispatchPipeline(registry, settings)


@pytest.fixture
def manager(registry, settings):
    manager = WebhookManager(settings=settings, registry=registry)
    yield manager
    reset_manager()


@pytest.fixture
def client(manager):
    """Test client for an app serving the ``manager`` fixture."""
    with TestClient(create_app(manager)) as client:
        yield client
