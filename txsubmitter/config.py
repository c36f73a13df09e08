"""
Configuration for txsubmitter.

``NetworkConfig`` reads the bundled ``networks.json``; ``DemoSettings``
collects the demo's settings from environment variables.
"""
import importlib.resources
import json
import logging
import os
from datetime import timedelta
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigError
from .node import DEFAULT_RPC_URL, validate_rpc_url

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT_PATH = "out/HelloWorld.sol/HelloWorld.json"


class NetworkConfig:
    """Known networks, loaded once from the package's networks.json."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        if cls._networks_cache is None:
            source = importlib.resources.files("txsubmitter").joinpath("networks.json")
            with source.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
        return cls._networks_cache

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        networks = cls.load_networks()
        if name not in networks:
            raise ValueError(f"Unknown network '{name}'. Available: {', '.join(sorted(networks))}")
        return networks[name]

    @classmethod
    def get_rpc_url(cls, name: str, override: Optional[str] = None) -> str:
        """
        RPC URL for a network.

        Precedence: ``override``, then ``<NAME>_RPC_URL`` from the environment,
        then the bundled default.
        """
        if override:
            return override
        env_var = f"{name.upper().replace('-', '_')}_RPC_URL"
        from_env = os.environ.get(env_var)
        if from_env:
            return from_env
        return cls.get_network(name)["rpc"]

    @classmethod
    def get_chain_id(cls, name: str) -> int:
        return int(cls.get_network(name)["chainId"])


class DemoSettings(BaseModel):
    """Settings for the deploy-and-call demo"""
    model_config = ConfigDict(frozen=True)

    rpc_url: str = DEFAULT_RPC_URL
    private_key: str = Field(..., repr=False)
    artifact_path: str = DEFAULT_ARTIFACT_PATH
    tx_timeout: timedelta = timedelta(seconds=60)
    poll_interval: float = Field(1.0, gt=0)
    expected_chain_id: Optional[int] = None

    @field_validator("rpc_url")
    @classmethod
    def _validate_rpc_url(cls, value: str) -> str:
        return validate_rpc_url(value)

    @field_validator("tx_timeout")
    @classmethod
    def _positive_timeout(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("tx_timeout must be positive")
        return value

    @field_validator("private_key")
    @classmethod
    def _strip_key(cls, value: str) -> str:
        value = value.strip()
        if value.startswith("0x"):
            value = value[2:]
        if not value:
            raise ValueError("private key is empty")
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "DemoSettings":
        """
        Build settings from environment variables.

        Reads RPC_URL, PRIVATE_KEY (required), ARTIFACT_PATH,
        TX_TIMEOUT_SECONDS, POLL_INTERVAL_SECONDS and EXPECTED_CHAIN_ID.
        Keyword overrides that are not None win over the environment.

        Raises:
            ConfigError: If PRIVATE_KEY is unset or a value is invalid
        """
        env = os.environ if environ is None else environ

        private_key = (env.get("PRIVATE_KEY") or "").strip()
        if not private_key and not overrides.get("private_key"):
            raise ConfigError("PRIVATE_KEY is not set")

        values: Dict[str, Any] = {"private_key": private_key}
        if env.get("RPC_URL", "").strip():
            values["rpc_url"] = env["RPC_URL"].strip()
        if env.get("ARTIFACT_PATH", "").strip():
            values["artifact_path"] = env["ARTIFACT_PATH"].strip()
        if env.get("TX_TIMEOUT_SECONDS", "").strip():
            values["tx_timeout"] = timedelta(seconds=_number(env, "TX_TIMEOUT_SECONDS"))
        if env.get("POLL_INTERVAL_SECONDS", "").strip():
            values["poll_interval"] = _number(env, "POLL_INTERVAL_SECONDS")
        if env.get("EXPECTED_CHAIN_ID", "").strip():
            values["expected_chain_id"] = int(_number(env, "EXPECTED_CHAIN_ID"))

        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def _number(env: Mapping[str, str], name: str) -> float:
    try:
        return float(env[name])
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {env[name]!r}") from e
