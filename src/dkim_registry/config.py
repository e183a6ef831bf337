"""Settings loaded from the environment (and .env via python-dotenv in the CLI)."""

import os
import re
from typing import Optional

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from .exceptions import ConfigurationError

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
_PRIVATE_KEY_PATTERN = re.compile(r"^(?:0x)?[0-9a-fA-F]{64}$")

# env var -> RegistrySettings field
REGISTRY_ENV_VARS = {
    "RPC_URL": "rpc_url",
    "DKIM_REGISTRY": "contract_address",
    "PRIVATE_KEY": "private_key",
}


class ScanSettings(BaseModel):
    dns_timeout: float = Field(default=5.0, gt=0, le=60)
    max_workers: int = Field(default=32, ge=1, le=256)
    rate_limit: float = Field(default=50.0, gt=0)
    nameservers: list[str] = Field(default_factory=list)

    @field_validator("nameservers", mode="before")
    @classmethod
    def split_nameservers(cls, v):
        if isinstance(v, str):
            return [ns.strip() for ns in v.split(",") if ns.strip()]
        return v

    @classmethod
    def from_env(cls, **overrides) -> "ScanSettings":
        env = {
            "dns_timeout": os.environ.get("DKIM_DNS_TIMEOUT"),
            "max_workers": os.environ.get("DKIM_SCAN_WORKERS"),
            "rate_limit": os.environ.get("DKIM_DNS_RATE"),
            "nameservers": os.environ.get("DKIM_NAMESERVERS"),
        }
        values = {k: v for k, v in env.items() if v}
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid scan settings: {_describe(e)}") from e


class RegistrySettings(BaseModel):
    rpc_url: str
    contract_address: str
    private_key: SecretStr
    confirmation_timeout: float = Field(default=120.0, gt=0)

    @field_validator("rpc_url")
    @classmethod
    def rpc_url_is_http(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) JSON-RPC URL")
        return v

    @field_validator("contract_address")
    @classmethod
    def address_is_hex(cls, v: str) -> str:
        v = v.strip()
        if not _ADDRESS_PATTERN.match(v):
            raise ValueError("must be a 0x-prefixed 20-byte hex address")
        return v

    @field_validator("private_key")
    @classmethod
    def private_key_is_hex(cls, v: SecretStr) -> SecretStr:
        if not _PRIVATE_KEY_PATTERN.match(v.get_secret_value().strip()):
            raise ValueError("must be a 32-byte hex private key")
        return v

    @classmethod
    def from_env(cls, confirmation_timeout: Optional[float] = None) -> "RegistrySettings":
        """Fail fast, naming every missing variable at once."""
        missing = [name for name in REGISTRY_ENV_VARS if not os.environ.get(name, "").strip()]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

        values = {field: os.environ[name].strip() for name, field in REGISTRY_ENV_VARS.items()}
        timeout = confirmation_timeout or os.environ.get("DKIM_TX_TIMEOUT")
        if timeout:
            values["confirmation_timeout"] = timeout
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid registry settings: {_describe(e)}") from e


def _describe(error: ValidationError) -> str:
    # Never echo input values: one of them is a private key
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in error.errors()
    )
