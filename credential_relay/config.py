"""
Network and runtime configuration for the credential relay.
"""
import importlib.resources
import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError
from .keys import KeyProvider, KeystoreKeyProvider, PrivateKeyProvider

logger = logging.getLogger(__name__)

ENV_PREFIX = "RELAY_"


class NetworkConfig:
    """
    Access to the networks bundled in networks.json.

    The file is read once and memoised on the class.
    """
    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load all network definitions

        Returns:
            Mapping of network name to its settings
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("credential_relay").joinpath("networks.json")
            cls._networks_cache = json.loads(resource.read_text(encoding="utf-8"))
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get one network definition

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network: {network}. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_rpc_url(cls, network: str, override: Optional[str] = None) -> str:
        """
        RPC URL for a network.

        An explicit override wins, then the <NETWORK>_RPC_URL environment
        variable, then the bundled default.
        """
        if override:
            return override
        env_var = f"{network.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            return env_url
        return cls.get_network(network)["rpc"]

    @classmethod
    def get_chain_id(cls, network: str) -> int:
        return int(cls.get_network(network)["chainId"])

    @classmethod
    def get_credential_contract(cls, network: str) -> str:
        return cls.get_network(network)["credentialContract"]


@dataclass
class RelayConfig:
    """Runtime settings of a relay process."""
    network: str = "sepolia"
    rpc_url: Optional[str] = None
    credential_contract: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = 8080
    keystore: Optional[str] = None
    passphrase: Optional[str] = None
    passphrase_file: Optional[str] = None
    private_key: Optional[str] = None
    cache_size: int = 100
    mint_gas_limit: int = 100_000
    transfer_gas_limit: int = 21_000
    workers: int = 10
    rpc_timeout: int = 30

    def __repr__(self) -> str:
        # Secrets are never part of the representation
        shown = []
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in ("passphrase", "private_key") and value is not None:
                value = "[REDACTED]"
            shown.append(f"{f.name}={value!r}")
        return f"RelayConfig({', '.join(shown)})"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """
        Read settings from RELAY_* environment variables

        Args:
            environ: Environment mapping (defaults to os.environ)

        Raises:
            ConfigurationError: If a numeric setting is not an integer
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            if f.type in (int, "int"):
                try:
                    values[f.name] = int(raw)
                except ValueError:
                    raise ConfigurationError(f"{ENV_PREFIX}{f.name.upper()} must be an integer, got {raw!r}")
            else:
                values[f.name] = raw
        return cls(**values)

    def resolved_rpc_url(self) -> str:
        return NetworkConfig.get_rpc_url(self.network, override=self.rpc_url)

    def resolved_chain_id(self) -> int:
        return NetworkConfig.get_chain_id(self.network)

    def resolved_credential_contract(self) -> str:
        return self.credential_contract or NetworkConfig.get_credential_contract(self.network)

    def key_provider(self) -> KeyProvider:
        """
        Key provider for the configured key material.

        A raw private key takes precedence over a keystore file.

        Raises:
            ConfigurationError: If no usable key material is configured
        """
        if self.private_key:
            logger.warning("Using a raw private key from the environment; prefer an encrypted keystore")
            return PrivateKeyProvider(self.private_key)

        if not self.keystore:
            raise ConfigurationError(
                f"No signing key configured. Set {ENV_PREFIX}KEYSTORE or {ENV_PREFIX}PRIVATE_KEY"
            )

        passphrase = self.passphrase
        if passphrase is None and self.passphrase_file:
            try:
                passphrase = Path(self.passphrase_file).read_text(encoding="utf-8").rstrip("\r\n")
            except OSError as e:
                raise ConfigurationError(f"Failed to read passphrase file: {e}") from e
        if passphrase is None:
            raise ConfigurationError(
                f"Keystore requires {ENV_PREFIX}PASSPHRASE or {ENV_PREFIX}PASSPHRASE_FILE"
            )
        return KeystoreKeyProvider(self.keystore, passphrase)
