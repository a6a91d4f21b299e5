"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Protocol


# Configuration Contract: required keys and what they mean.
# Absence of any of these is fatal at startup.
REQUIRED_ENV_KEYS = {
    "LISTENING_PORT": "Port the HTTPS server listens on",
    "NAMESPACE": "Kubernetes namespace holding the policy ConfigMap",
    "CONFIGMAP_NAME": "Name of the policy ConfigMap",
    "USERNAME": "Operator username accepted by the token endpoint",
    "PASSWORD": "Operator password accepted by the token endpoint",
    "TOKEN_SIGNING_KEY": "Symmetric key used to sign and verify bearer tokens",
}


@dataclass(frozen=True)
class APIConfig:
    """HTTP server configuration."""
    port: int
    host: str
    tls_cert_file: str
    tls_key_file: str
    log_level: str


@dataclass(frozen=True)
class AuthConfig:
    """Authentication configuration."""
    username: str
    password: str
    signing_key: str
    issuer: str
    audience: str
    token_ttl_seconds: int
    cache_ttl_seconds: int
    cache_max_entries: int


@dataclass(frozen=True)
class StoreConfig:
    """Policy store (ConfigMap) configuration."""
    namespace: str
    configmap_name: str
    data_key: str
    timeout_seconds: float
    kubeconfig_mode: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration."""
        ...

    def get_store_config(self) -> StoreConfig:
        """Get policy store configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize and validate the environment.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            ValueError: If any required key is missing or a number is malformed
        """
        self._env: Mapping[str, str] = os.environ if environ is None else environ
        self._validate_required_keys()

    def _validate_required_keys(self) -> None:
        missing = [key for key in REQUIRED_ENV_KEYS if not self._env.get(key)]
        if missing:
            raise ValueError(
                f"init failed: required environment variables not set: {', '.join(missing)}"
            )

    def _get_int(self, key: str, default: int) -> int:
        raw = self._env.get(key)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {raw!r}") from None

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=self._get_int("LISTENING_PORT", 0),
            host=self._env.get("LISTENING_HOST", "0.0.0.0"),
            tls_cert_file=self._env.get("TLS_CERT_FILE", "/etc/ssl/certs/server.crt"),
            tls_key_file=self._env.get("TLS_KEY_FILE", "/etc/ssl/private/server.key"),
            log_level=self._env.get("LOG_LEVEL", "INFO").upper(),
        )

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration from environment variables."""
        return AuthConfig(
            username=self._env["USERNAME"],
            password=self._env["PASSWORD"],
            signing_key=self._env["TOKEN_SIGNING_KEY"],
            issuer=self._env.get("TOKEN_ISSUER", "auth-app"),
            audience=self._env.get("TOKEN_AUDIENCE", "any"),
            token_ttl_seconds=self._get_int("TOKEN_TTL_SECONDS", 300),
            cache_ttl_seconds=self._get_int("AUTH_CACHE_TTL_SECONDS", 600),
            cache_max_entries=self._get_int("AUTH_CACHE_MAX_ENTRIES", 1024),
        )

    def get_store_config(self) -> StoreConfig:
        """Get policy store configuration from environment variables."""
        return StoreConfig(
            namespace=self._env["NAMESPACE"],
            configmap_name=self._env["CONFIGMAP_NAME"],
            data_key=self._env.get("POLICY_DATA_KEY", "policy"),
            timeout_seconds=float(self._get_int("STORE_TIMEOUT_SECONDS", 10)),
            kubeconfig_mode=self._env.get("KUBECONFIG_MODE", "auto").lower(),
        )

    @staticmethod
    def get_config_schema() -> Dict[str, str]:
        """Return the required keys and their descriptions."""
        return REQUIRED_ENV_KEYS.copy()
