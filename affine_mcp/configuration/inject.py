from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Generic, Self, TypeVar

from .config import Config, ConfigFactory

T = TypeVar("T")

# pylint: disable=global-statement


class ConfigProvider(ABC):
    """Abstract configuration provider for dependency injection"""

    @abstractmethod
    def get_config(self, context: str | None = None) -> Config:
        """Get configuration for the given context"""

    @abstractmethod
    def is_configured(self, context: str | None = None) -> bool:
        """Check if configuration exists for the given context"""


class SingletonConfigProvider(ConfigProvider):
    """Production config provider using Config Store singleton"""

    def get_config(self, context: str | None = None) -> Config:
        return ConfigStore.get_instance().config(context)

    def is_configured(self, context: str | None = None) -> bool:
        return ConfigStore.get_instance().is_configured(context)


class MockConfigProvider(ConfigProvider):
    """Test config provider with controllable configuration"""

    def __init__(self, config: Config, context: str = "default"):
        self._config = config
        self._context = context

    def get_config(self, context: str | None = None) -> Config:
        return self._config

    def is_configured(self, context: str | None = None) -> bool:
        return self._config is not None


# Global provider instance - can be swapped for testing
_current_provider: ConfigProvider = SingletonConfigProvider()
_provider_lock = threading.Lock()


def get_config_provider() -> ConfigProvider:
    """Get the current configuration provider"""
    return _current_provider


def set_config_provider(provider: ConfigProvider) -> ConfigProvider:
    """Set the current configuration provider (useful for testing)"""
    global _current_provider
    with _provider_lock:
        old_provider = _current_provider
        _current_provider = provider
        return old_provider


def reset_config_provider() -> None:
    """Reset to the default singleton provider"""
    global _current_provider
    with _provider_lock:
        _current_provider = SingletonConfigProvider()


@dataclass
class ConfigValue(Generic[T]):
    """A value that is resolved from the active configuration when asked for"""

    key: str
    default: T | None = None
    description: str | None = None
    after: Callable[[Any], T] | None = None
    mandatory: bool = False

    @property
    def value(self) -> T:
        return self.resolve()

    def resolve(self, context: str | None = None) -> T:
        config: Config = get_config_provider().get_config(context)
        if self.mandatory and self.default is None and not config.exists(*self.key.split(",")):
            raise ValueError(f"ConfigValue {self.key} is mandatory but missing from config")

        value = config.get(*self.key.split(","), default=self.default)
        if value is not None and self.after:
            return self.after(value)
        return value


class ConfigStore:
    """Keeps one Config per named context; the process normally only uses 'default'"""

    _instance: "ConfigStore" = None
    _lock = threading.Lock()

    def __init__(self):
        if ConfigStore._instance is not None:
            raise RuntimeError("ConfigStore is a singleton. Use get_instance()")
        self.store: dict[str, Config | None] = {"default": None}
        self.context: str = "default"

    @classmethod
    def get_instance(cls) -> Self:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton - useful for testing"""
        with cls._lock:
            cls._instance = None
            reset_config_provider()

    def is_configured(self, context: str | None = None) -> bool:
        return isinstance(self.store.get(context or self.context), Config)

    def config(self, context: str | None = None) -> Config:
        if not self.is_configured(context):
            raise ValueError(f"Config context {context or self.context} not properly initialized")
        return self.store[context or self.context]

    def configure_context(
        self,
        *,
        context: str = "default",
        source: Config | str | dict | None = None,
        env_filename: str | None = None,
        env_prefix: str | None = None,
        switch_to_context: bool = True,
    ) -> Config:
        if not self.store.get(context) and source is None:
            raise ValueError(f"Config context {context} undefined, cannot initialize")

        if source is None:
            return self.store[context]

        cfg: Config = ConfigFactory().load(
            source=source,
            context=context,
            env_filename=env_filename,
            env_prefix=env_prefix,
        )

        return self._set_config(context=context, cfg=cfg, switch_to_context=switch_to_context)

    def _set_config(
        self,
        *,
        context: str = "default",
        cfg: Config | None = None,
        switch_to_context: bool = True,
    ) -> Config:
        if not isinstance(cfg, Config):
            raise ValueError(f"Expected Config, found {type(cfg)}")
        self.store[context] = cfg
        if switch_to_context:
            self.context = context
        return cfg
