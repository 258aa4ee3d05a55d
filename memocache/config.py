"""
Cache adapter configuration.
"""

import json
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


def _freeze(value: Any) -> Any:
    """Read-only copy of nested mappings and sequences."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    """Plain dict/list copy of a frozen structure."""
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


class CacheConfig(BaseSettings):
    """Adapter configuration. Immutable once built, nested values included.

    Two configs with the same field values (transport options included)
    share one pooled transport client.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMOCACHE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # RedisTransport connects to the first address only
    servers: Tuple[str, ...]
    default_key_ttl: int = Field(default=60 * 60 * 24, ge=0)  # seconds
    # bump to invalidate every key written by older releases
    generation: int = Field(default=1, ge=0)
    read_timeout: int = Field(default=100, gt=0)  # milliseconds
    transport_options: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("servers")
    @classmethod
    def _require_servers(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        servers = tuple(server.strip() for server in value if server and server.strip())
        if not servers:
            raise ValueError("at least one cache server address is required")
        return servers

    @field_validator("transport_options")
    @classmethod
    def _freeze_transport_options(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return _freeze(value)

    def to_dict(self) -> Dict[str, Any]:
        """Mutable copy of every field."""
        return {
            "servers": list(self.servers),
            "default_key_ttl": self.default_key_ttl,
            "generation": self.generation,
            "read_timeout": self.read_timeout,
            "transport_options": _thaw(self.transport_options),
        }

    def fingerprint(self) -> str:
        """Canonical serialization used as the connection pool key."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), default=str)


def get_config(**overrides: Any) -> CacheConfig:
    """Build a CacheConfig from the environment plus explicit overrides."""
    try:
        return CacheConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid cache configuration",
            details={"errors": e.errors()},
        ) from e
