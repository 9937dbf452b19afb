"""Pytest hooks and fixtures."""

import pytest

from rpcrouter.config.schema import RouterConfig
from rpcrouter.router import Router


def pytest_configure(config):
    """Register custom markers (also in pyproject.toml)."""
    config.addinivalue_line(
        "markers",
        "slow: exercises timing-dependent batch concurrency",
    )


@pytest.fixture
def make_router():
    """Build a router from handler mapping and optional config overrides."""

    def _make(handlers=None, **overrides):
        router = Router(RouterConfig(**overrides))
        for method, handler in (handlers or {}).items():
            router.register(method, handler)
        return router

    return _make
