import os

from loguru import logger
from pydantic import ValidationError

from affine_mcp.bridge.config import AffineSettings, ServerOptions
from affine_mcp.errors import ConfigurationError
from affine_mcp.utility import configure_logging, resource_path

from .config import Config
from .inject import ConfigStore, ConfigValue

ENV_PREFIX: str = "AFFINE_MCP"


def setup_config_store(filename: str | None = None, env_filename: str | None = None) -> Config:
    """Load configuration into the Config Store (once) and configure logging"""

    config_file: str = filename or os.getenv("CONFIG_FILE") or resource_path("config.yml")
    env_file: str = env_filename or os.getenv("ENV_FILE", ".env")
    store: ConfigStore = ConfigStore.get_instance()

    if store.is_configured():
        return store.config()

    cfg: Config = store.configure_context(source=config_file, env_filename=env_file, env_prefix=ENV_PREFIX)

    cfg.update({"runtime:config_file": config_file})

    configure_logging(cfg.get("logging") or {})

    logger.info(f"Config Store initialized from {config_file}")

    return cfg


def build_settings() -> AffineSettings:
    """Create the immutable upstream settings from the active configuration"""

    access_token: str | None = ConfigValue("affine:access_token").resolve()
    if not access_token:
        raise ConfigurationError("AFFINE_ACCESS_TOKEN environment variable (affine.access_token) is required")

    try:
        return AffineSettings(
            api_url=ConfigValue("affine:api_url").resolve() or "",
            access_token=access_token,
            workspace_id=ConfigValue("affine:workspace_id").resolve(),
            timeout=ConfigValue("affine:timeout", default=30.0, after=float).resolve(),
            user_agent=ConfigValue("affine:user_agent", default="affine-mcp-server/1.0").resolve(),
        )
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid AFFiNE settings: {e}") from e


def build_server_options() -> ServerOptions:
    verify: str | bool = ConfigValue("server:verify_on_startup", default=False).resolve()
    return ServerOptions(
        name=ConfigValue("server:name", default="affine-mcp-server").resolve(),
        verify_on_startup=str(verify).lower() in ("1", "true", "yes", "on"),
    )
