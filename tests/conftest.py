import os
from pathlib import Path
from typing import Any, Generator

import pytest

from affine_mcp.bridge.config import AffineSettings
from affine_mcp.bridge.tools import AffineTools
from affine_mcp.configuration import Config, ConfigStore, MockConfigProvider, reset_config_provider
from affine_mcp.utility import configure_logging
from tests.fakes import FakeAffineProxy

# pylint: disable=unused-argument, redefined-outer-name

TESTS_FOLDER: Path = Path(__file__).parent


def pytest_sessionstart(session) -> None:
    """Hook to run before any tests are executed."""
    os.environ["CONFIG_FILE"] = str(TESTS_FOLDER / "config.yml")
    os.environ["ENV_FILE"] = str(TESTS_FOLDER / ".env")
    configure_logging({"level": "DEBUG"})


@pytest.fixture(autouse=True)
def setup_reset_config() -> Generator[None, Any, None]:
    """Reset Config Store and provider before each test"""
    ConfigStore.reset_instance()
    reset_config_provider()
    yield
    ConfigStore.reset_instance()
    reset_config_provider()
    configure_logging({"level": "DEBUG"})


@pytest.fixture
def test_config() -> Config:
    """Provide test configuration"""
    return Config(
        data={
            "affine": {
                "api_url": "https://affine.test/",
                "access_token": "test-token",
                "workspace_id": "ws-default",
                "timeout": "5",
            },
            "server": {"name": "affine-mcp-test", "verify_on_startup": "true"},
        }
    )


@pytest.fixture
def test_provider(test_config: Config) -> MockConfigProvider:
    """Provide test configuration provider"""
    return MockConfigProvider(test_config)


@pytest.fixture
def settings() -> AffineSettings:
    """Settings without a default workspace"""
    return AffineSettings(api_url="https://affine.test", access_token="test-token")


@pytest.fixture
def fake_proxy() -> FakeAffineProxy:
    return FakeAffineProxy()


@pytest.fixture
def tools(fake_proxy: FakeAffineProxy, settings: AffineSettings) -> AffineTools:
    return AffineTools(fake_proxy, settings)
