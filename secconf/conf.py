"""
Crypt Configuration — Environment-driven defaults for the CLI.

Reads settings from environment variables:
    CRYPT_BACKEND = consul | etcd
    CRYPT_ENDPOINT = <host:port or url>
    CRYPT_KEYRING = <path to armored public keyring>
    CRYPT_SECRET_KEYRING = <path to armored secret keyring>
    CRYPT_PASSPHRASE = <passphrase for headless unlock>
    CRYPT_PASSPHRASE_ATTEMPTS = <integer>
    CRYPT_NODE_ROOT = <prefix for stored keys>

Security Note:
    Never log the passphrase. Only log backend names and paths.
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

logger = logging.getLogger("secconf.conf")

SUPPORTED_BACKENDS = ("consul", "etcd")

DEFAULT_ENDPOINTS = {
    "consul": "127.0.0.1:8500",
    "etcd": "http://127.0.0.1:4001",
}

DEFAULT_NODE_ROOT = "secure/storage"


def expand_path(value: str) -> str:
    """Expand ``$VAR``/``${VAR}`` references and a leading ``~`` in a path."""
    return os.path.expanduser(os.path.expandvars(value))


def default_endpoint(backend: str) -> str:
    """Return the well-known local endpoint for a backend.

    Raises:
        ValueError: If the backend is not supported.
    """
    try:
        return DEFAULT_ENDPOINTS[backend]
    except KeyError:
        raise ValueError(f"invalid backend {backend}") from None


class CryptConfig(BaseModel):
    """Validated crypt configuration."""

    backend: str = Field(default="consul")
    endpoint: str = Field(default="")
    keyring: str = Field(default="${HOME}/.gnupg/pubring.gpg")
    secret_keyring: str = Field(default="${HOME}/.gnupg/secring.gpg")
    passphrase: Optional[SecretStr] = None
    passphrase_attempts: int = Field(default=3, ge=1, le=10)
    node_root: str = Field(default=DEFAULT_NODE_ROOT)

    model_config = {"validate_default": True}

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate backend is supported."""
        v = v.strip().lower()
        if v not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"Unsupported backend: {v} (expected one of {', '.join(SUPPORTED_BACKENDS)})"
            )
        return v

    @field_validator("keyring", "secret_keyring")
    @classmethod
    def expand_keyring_path(cls, v: str) -> str:
        """Expand environment references in keyring paths."""
        return expand_path(v) if v else v

    @field_validator("node_root")
    @classmethod
    def strip_node_root(cls, v: str) -> str:
        return v.strip("/")

    def node_key(self, key: str) -> str:
        """Prefix a user-supplied key with the storage root."""
        key = key.lstrip("/")
        if not self.node_root:
            return key
        return f"{self.node_root}/{key}"

    @classmethod
    def from_env(cls) -> "CryptConfig":
        """Create CryptConfig by loading values from environment.

        Returns:
            Populated CryptConfig instance.
        """
        values = {}
        for field, name in (
            ("backend", "CRYPT_BACKEND"),
            ("endpoint", "CRYPT_ENDPOINT"),
            ("keyring", "CRYPT_KEYRING"),
            ("secret_keyring", "CRYPT_SECRET_KEYRING"),
            ("passphrase", "CRYPT_PASSPHRASE"),
            ("passphrase_attempts", "CRYPT_PASSPHRASE_ATTEMPTS"),
            ("node_root", "CRYPT_NODE_ROOT"),
        ):
            raw = os.environ.get(name)
            if raw is not None:
                values[field] = raw
        config = cls(**values)
        logger.debug(
            "Loaded config: backend=%s keyring=%s secret_keyring=%s",
            config.backend, config.keyring, config.secret_keyring,
        )
        return config
