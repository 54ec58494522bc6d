from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from affine_mcp.utility import dget, dotexists, dotset, env2dict, replace_env_vars


class Config:
    """Nested configuration values addressed by `section:key` paths"""

    def __init__(self, *, data: dict[str, Any] | None = None, context: str = "default", filename: str | None = None):
        self.data: dict[str, Any] | None = data
        self.context: str = context
        self.filename: str | None = filename

    def get(self, *keys: str, default: Any = None, mandatory: bool = False) -> Any:
        """First value found among `keys`, else `default`"""
        if self.data is None:
            raise ValueError("Configuration not initialized")
        if mandatory and not self.exists(*keys):
            raise ValueError(f"Missing mandatory key: {'/'.join(keys)}")
        value: Any = dget(self.data, *keys)
        return default if value is None else value

    def update(self, values: dict[str, Any]) -> None:
        if self.data is None:
            self.data = {}
        for key, value in values.items():
            dotset(self.data, key, value)

    def exists(self, *keys: str) -> bool:
        return self.data is not None and dotexists(self.data, *keys)


class ConfigFactory:
    """
    Builds a Config from a YAML file, a YAML string or a dict.

    Layering, lowest first: the source, then `${VAR}` / `${VAR:-default}`
    placeholders resolved against the environment (after the optional dotenv
    file is loaded), then `<env_prefix>_SECTION__KEY` environment overrides.
    """

    def load(
        self,
        *,
        source: str | dict[str, Any] | Config | None = None,
        context: str | None = None,
        env_filename: str | None = None,
        env_prefix: str | None = None,
    ) -> Config:

        if env_filename:
            load_dotenv(dotenv_path=env_filename)

        if isinstance(source, Config):
            return source

        filename: str | None = source if self.is_config_path(source) else None

        data: Any = source or {}
        if isinstance(source, str):
            data = yaml.safe_load(Path(source).read_text(encoding="utf-8") if filename else source)

        if not isinstance(data, dict):
            raise TypeError(f"expected a mapping, found '{type(data).__name__}'")

        data = env2dict(env_prefix, replace_env_vars(data))

        return Config(data=data, context=context or "default", filename=filename)

    @staticmethod
    def is_config_path(source: Any) -> bool:
        """True for `.yml`/`.yaml` paths; raises if such a path does not exist."""
        if not isinstance(source, str) or not source.endswith((".yml", ".yaml")):
            return False
        if not Path(source).exists():
            raise FileNotFoundError(f"Configuration file not found: {source}")
        return True
