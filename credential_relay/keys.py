"""
Signing key providers.

The relay resolves its signing key exactly once at startup. The key is held
in memory for the lifetime of the process and is never logged.
"""
import json
import logging
from pathlib import Path
from typing import Optional, Protocol, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class KeyProvider(Protocol):
    """Protocol for signing key sources"""

    def signing_key(self) -> LocalAccount:
        """Return the account used to sign relay transactions"""
        ...


class KeystoreKeyProvider:
    """
    Loads a key from an encrypted V3 keystore file (geth/clef format).
    """

    def __init__(self, keystore_path: Union[str, Path], passphrase: str):
        self.keystore_path = Path(keystore_path)
        self._passphrase = passphrase
        self._account: Optional[LocalAccount] = None

    def __repr__(self) -> str:
        return f"KeystoreKeyProvider(keystore_path={str(self.keystore_path)!r})"

    def signing_key(self) -> LocalAccount:
        """
        Decrypt the keystore on first use and return the account.

        Raises:
            ConfigurationError: If the file cannot be read or decrypted
        """
        if self._account is not None:
            return self._account

        try:
            keyfile = json.loads(self.keystore_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(f"Failed to read key file {self.keystore_path}: {e}") from e
        except ValueError as e:
            raise ConfigurationError(f"Key file {self.keystore_path} is not valid JSON: {e}") from e

        try:
            private_key = Account.decrypt(keyfile, self._passphrase)
        except Exception as e:
            raise ConfigurationError(f"Failed to decrypt key: {e}") from e

        self._account = Account.from_key(private_key)
        logger.info(f"Loaded signing key for {self._account.address} from {self.keystore_path}")
        return self._account


class PrivateKeyProvider:
    """
    Wraps a raw hex private key, for development networks and tests.
    """

    def __init__(self, private_key: str):
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key
        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except Exception as e:
            raise ConfigurationError("Malformed private key") from e

    def __repr__(self) -> str:
        return f"PrivateKeyProvider(address={self._account.address!r})"

    def signing_key(self) -> LocalAccount:
        return self._account
