import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from errors import ConfigurationError
from utils import normalize_private_key

# Env var per chain id: ETHEREUM_RPC_URL, BASE_SEPOLIA_RPC_URL, ...
RPC_URL_ENV_SUFFIX = "_RPC_URL"


def rpc_env_var(chain_id: str) -> str:
    return chain_id.upper().replace("-", "_") + RPC_URL_ENV_SUFFIX


class Settings(BaseModel):
    rpc_urls: dict[str, str] = {}
    rpc_request_timeout: float = Field(15.0, gt=0)
    chain_timeout: float = Field(15.0, gt=0)
    aggregation_timeout: float = Field(60.0, gt=0)
    retry_attempts: int = Field(3, ge=1)
    retry_base_delay: float = Field(0.5, ge=0)
    balance_cache_ttl: float = Field(300.0, gt=0)
    analysis_cache_ttl: float = Field(600.0, gt=0)
    evm_private_key: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("rpc_urls")
    @classmethod
    def _check_urls(cls, urls: dict[str, str]) -> dict[str, str]:
        for chain, url in urls.items():
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"RPC URL for '{chain}' must be http(s): {url!r}")
        return urls

    @field_validator("evm_private_key")
    @classmethod
    def _normalize_key(cls, key: Optional[str]) -> Optional[str]:
        if key is None:
            return None
        normalized = normalize_private_key(key)
        if not normalized:
            raise ValueError("EVM_PRIVATE_KEY must be 32 bytes of hex (64 chars, optional 0x)")
        return normalized

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, level: str) -> str:
        level = level.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown LOG_LEVEL {level!r}")
        return level


_ENV_FIELDS = {
    "RPC_REQUEST_TIMEOUT": "rpc_request_timeout",
    "CHAIN_TIMEOUT": "chain_timeout",
    "AGGREGATION_TIMEOUT": "aggregation_timeout",
    "RETRY_ATTEMPTS": "retry_attempts",
    "RETRY_BASE_DELAY": "retry_base_delay",
    "BALANCE_CACHE_TTL": "balance_cache_ttl",
    "ANALYSIS_CACHE_TTL": "analysis_cache_ttl",
    "EVM_PRIVATE_KEY": "evm_private_key",
    "LOG_LEVEL": "log_level",
}


def load_settings(
    env: Optional[Mapping[str, str]] = None, chain_ids: Optional[list[str]] = None
) -> Settings:
    """Build Settings from environment variables. Raises ConfigurationError on bad values."""
    if env is None:
        env = os.environ
    if chain_ids is None:
        from chains import SUPPORTED_CHAINS

        chain_ids = list(SUPPORTED_CHAINS)

    values: dict = {}
    for var, field in _ENV_FIELDS.items():
        raw = env.get(var)
        if raw is not None and raw.strip() != "":
            values[field] = raw.strip()

    rpc_urls = {}
    for chain_id in chain_ids:
        url = (env.get(rpc_env_var(chain_id)) or "").strip()
        if url:
            rpc_urls[chain_id] = url
    values["rpc_urls"] = rpc_urls

    try:
        return Settings(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e
