"""
Config Module - Black Box Interface

Purpose: Process configuration sourced from the environment
Interface: EnvConfigProvider.get_api_config(), get_auth_config(), get_store_config()
Hidden: Environment variable names, defaults, parsing
"""

from .provider import (
    APIConfig,
    AuthConfig,
    ConfigProvider,
    EnvConfigProvider,
    REQUIRED_ENV_KEYS,
    StoreConfig,
)

__all__ = [
    "APIConfig",
    "AuthConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "REQUIRED_ENV_KEYS",
    "StoreConfig",
]
