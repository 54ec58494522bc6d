import os
from pathlib import Path

import pytest
import yaml

from affine_mcp.bridge.config import DEFAULT_API_URL, AffineSettings, ServerOptions
from affine_mcp.configuration import (
    Config,
    ConfigFactory,
    ConfigStore,
    ConfigValue,
    build_server_options,
    build_settings,
    setup_config_store,
)
from affine_mcp.errors import ConfigurationError
from tests.config_fixtures import config_context
from tests.decorators import with_test_config

# pylint: disable=unused-argument

TESTS_FOLDER: Path = Path(__file__).parent


class TestConfigFactory:

    def test_load_from_yaml_string(self):
        cfg: Config = ConfigFactory().load(source="affine:\n  api_url: https://x.test\n  timeout: 3\n")

        assert cfg.get("affine:api_url") == "https://x.test"
        assert cfg.get("affine:timeout") == 3
        assert cfg.filename is None

    def test_load_from_file_expands_env_and_dotenv(self, monkeypatch):
        monkeypatch.delenv("AFFINE_TEST_WORKSPACE", raising=False)
        monkeypatch.delenv("AFFINE_TEST_TOKEN", raising=False)

        cfg: Config = ConfigFactory().load(source=str(TESTS_FOLDER / "config.yml"), env_filename=str(TESTS_FOLDER / ".env"))

        assert cfg.get("affine:api_url") == "https://affine.test/"
        assert cfg.get("affine:access_token") == "test-token"
        assert cfg.get("affine:workspace_id") == "ws-from-dotenv"
        assert cfg.filename == str(TESTS_FOLDER / "config.yml")

        # load_dotenv leaves the variable behind for the rest of the process
        os.environ.pop("AFFINE_TEST_WORKSPACE", None)

    def test_prefixed_environment_overrides_file_values(self, monkeypatch):
        monkeypatch.setenv("AFFINE_MCP_AFFINE__TIMEOUT", "12")
        monkeypatch.setenv("AFFINE_MCP_AFFINE__ACCESS_TOKEN", "from-env")

        cfg: Config = ConfigFactory().load(source={"affine": {"timeout": 5, "access_token": "from-file"}}, env_prefix="AFFINE_MCP")

        assert cfg.get("affine:timeout") == "12"
        assert cfg.get("affine:access_token") == "from-env"

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            ConfigFactory().load(source=str(TESTS_FOLDER / "no-such-config.yml"))

    def test_non_mapping_yaml_raises(self):
        with pytest.raises(TypeError):
            ConfigFactory().load(source="- just\n- a list\n")

    def test_custom_tags_are_rejected(self):
        with pytest.raises(yaml.YAMLError):
            ConfigFactory().load(source="a: !join [x, y]\n")


class TestConfig:

    def test_get_default_and_mandatory(self):
        cfg = Config(data={"server": {"name": "n"}})

        assert cfg.get("server:name") == "n"
        assert cfg.get("server:missing", default="d") == "d"
        with pytest.raises(ValueError, match="Missing mandatory key"):
            cfg.get("server:missing", mandatory=True)

    def test_update(self):
        cfg = Config(data={})
        cfg.update({"runtime:config_file": "x.yml"})
        cfg.update({"runtime:started": True})

        assert cfg.get("runtime:config_file") == "x.yml"
        assert cfg.get("runtime:started") is True

    def test_uninitialized_raises(self):
        with pytest.raises(ValueError):
            Config().get("anything")


class TestConfigStore:

    def test_singleton(self):
        store: ConfigStore = ConfigStore.get_instance()

        assert ConfigStore.get_instance() is store
        with pytest.raises(RuntimeError):
            ConfigStore()

    def test_unconfigured_context_raises(self):
        with pytest.raises(ValueError):
            ConfigStore.get_instance().config()

    def test_setup_config_store_is_idempotent(self):
        cfg: Config = setup_config_store(str(TESTS_FOLDER / "config.yml"), str(TESTS_FOLDER / ".env"))

        assert ConfigStore.get_instance().is_configured()
        assert cfg.get("runtime:config_file") == str(TESTS_FOLDER / "config.yml")
        assert setup_config_store("ignored.yml") is cfg

    def test_setup_config_store_uses_config_file_variable(self):
        # CONFIG_FILE is set by the session hook
        cfg: Config = setup_config_store()

        assert cfg.get("server:name") == "affine-mcp-test"


class TestConfigValue:

    @with_test_config
    def test_resolve(self, test_provider):
        assert ConfigValue("affine:api_url").resolve() == "https://affine.test/"
        assert ConfigValue("affine:timeout", after=float).value == 5.0
        assert ConfigValue("affine:missing", default="d").resolve() == "d"

    @with_test_config
    def test_mandatory_missing_raises(self, test_provider):
        with pytest.raises(ValueError, match="mandatory"):
            ConfigValue("affine:missing", mandatory=True).resolve()


class TestBuildSettings:

    @with_test_config
    def test_build_settings(self, test_provider):
        settings: AffineSettings = build_settings()

        assert settings.api_url == "https://affine.test"
        assert settings.access_token.get_secret_value() == "test-token"
        assert settings.workspace_id == "ws-default"
        assert settings.timeout == 5.0

    def test_missing_token_is_a_configuration_error(self):
        with config_context({"affine": {"api_url": "https://affine.test", "access_token": ""}}):
            with pytest.raises(ConfigurationError, match="AFFINE_ACCESS_TOKEN"):
                build_settings()

    def test_invalid_timeout_is_a_configuration_error(self):
        with config_context({"affine": {"access_token": "t", "timeout": "0"}}):
            with pytest.raises(ConfigurationError):
                build_settings()
        with config_context({"affine": {"access_token": "t", "timeout": "soon"}}):
            with pytest.raises(ConfigurationError):
                build_settings()

    def test_defaults_apply(self):
        with config_context({"affine": {"access_token": "t", "workspace_id": "  "}}):
            settings: AffineSettings = build_settings()

        assert settings.api_url == DEFAULT_API_URL
        assert settings.workspace_id is None
        assert settings.timeout == 30.0

    def test_packaged_config(self, monkeypatch):
        monkeypatch.delenv("CONFIG_FILE")
        monkeypatch.setenv("AFFINE_ACCESS_TOKEN", "packaged-token")
        for name in ("AFFINE_API_URL", "AFFINE_WORKSPACE_ID", "AFFINE_TIMEOUT", "AFFINE_VERIFY_ON_STARTUP"):
            monkeypatch.delenv(name, raising=False)

        setup_config_store(env_filename=str(TESTS_FOLDER / "missing.env"))
        settings: AffineSettings = build_settings()

        assert settings.api_url == DEFAULT_API_URL
        assert settings.access_token.get_secret_value() == "packaged-token"
        assert settings.workspace_id is None
        assert settings.timeout == 30.0
        assert build_server_options().verify_on_startup is False

    def test_settings_are_immutable(self):
        settings = AffineSettings(access_token="t")
        with pytest.raises(ValueError):
            settings.api_url = "https://elsewhere"  # type: ignore[misc]


class TestServerOptions:

    @with_test_config
    def test_build_server_options(self, test_provider):
        options: ServerOptions = build_server_options()

        assert options.name == "affine-mcp-test"
        assert options.verify_on_startup is True

    def test_defaults(self):
        with config_context({}):
            options: ServerOptions = build_server_options()

        assert options == ServerOptions()
