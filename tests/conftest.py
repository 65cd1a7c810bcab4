"""Shared fixtures: every test gets its own settings, registry and broker."""
import pytest

from sse_relay.server.delivery_broker import DeliveryBroker
from sse_relay.server.rendering import MessageRenderer
from sse_relay.server.session_registry import SessionRegistry
from sse_relay.shared.config import Settings


def make_settings(**overrides) -> Settings:
    values = {
        "SSE_KEEPALIVE_INTERVAL_S": 5.0,
        "SEND_TIMEOUT_S": 0.05,
        "SESSION_SECRET": "test-secret",
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def broker(registry: SessionRegistry, settings: Settings) -> DeliveryBroker:
    return DeliveryBroker(registry, renderer=MessageRenderer(), settings=settings)
