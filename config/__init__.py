"""Configuration classes and loaders."""

from __future__ import annotations

from config.base import Config, DevelopmentConfig, ProductionConfig, TestingConfig
from config.monitoring import (
    DevelopmentMonitoringConfig,
    MonitoringConfig,
    ProductionMonitoringConfig,
    TestingMonitoringConfig,
)

_CONFIG_CLASSES = {
    "development": (DevelopmentConfig, DevelopmentMonitoringConfig),
    "testing": (TestingConfig, TestingMonitoringConfig),
    "production": (ProductionConfig, ProductionMonitoringConfig),
}


def _from_object(target: dict, obj) -> None:
    for key in dir(obj):
        if key.isupper():
            target[key] = getattr(obj, key)


def load_config(env_name: str | None = None) -> dict:
    """
    Flatten the config classes for ``env_name`` into a plain dict.

    Unknown environment names fall back to development.
    """

    config_cls, monitoring_cls = _CONFIG_CLASSES.get(env_name or Config.ENV_NAME, _CONFIG_CLASSES["development"])
    config: dict = {}
    _from_object(config, config_cls)
    _from_object(config, monitoring_cls)
    return config


__all__ = [
    "Config",
    "DevelopmentConfig",
    "DevelopmentMonitoringConfig",
    "MonitoringConfig",
    "ProductionConfig",
    "ProductionMonitoringConfig",
    "TestingConfig",
    "TestingMonitoringConfig",
    "load_config",
]
