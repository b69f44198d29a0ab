"""
Ethereum signer for data items.

The signer holds the write credential. It is built once per process, on
first use, and never mutated afterwards; read-only tools never touch it,
so they keep working when no key is configured.
"""

import logging
import threading

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys

from irys_mcp.errors import CredentialMissingError, SigningError
from irys_mcp.ledger.bundle import SIGNATURE_TYPE_ETHEREUM
from irys_mcp.schema import Settings

logger = logging.getLogger(__name__)


class EthereumSigner:
    """
    Signs deep hashes with an Ethereum key (EIP-191 personal message).

    Attributes:
        address: Checksummed address of the key
        owner: 65-byte uncompressed public key (0x04 prefix)
    """

    signature_type = SIGNATURE_TYPE_ETHEREUM

    def __init__(self, private_key: str):
        """
        Raises:
            SigningError: If the key is not a valid secp256k1 private key
        """
        try:
            self._account = Account.from_key(private_key)
        except Exception as e:
            # The key itself is never included in the error
            raise SigningError(underlying_error=f"invalid private key ({type(e).__name__})") from None

        public_key = keys.PrivateKey(bytes(self._account.key)).public_key.to_bytes()
        self._owner = b"\x04" + public_key

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def owner(self) -> bytes:
        return self._owner

    def sign(self, message: bytes) -> bytes:
        """Sign message bytes; returns 65 bytes r || s || v."""
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return bytes(signed.signature)


_signer: EthereumSigner | None = None
_signer_lock = threading.Lock()


def get_signer(settings: Settings) -> EthereumSigner:
    """
    Return the process-wide signer, building it on first call.

    Concurrent first calls build exactly one signer.

    Raises:
        CredentialMissingError: If no private key is configured
        SigningError: If the configured key is invalid
    """
    global _signer
    if _signer is not None:
        return _signer

    with _signer_lock:
        if _signer is None:
            if settings.private_key is None or not settings.private_key.get_secret_value():
                raise CredentialMissingError()
            _signer = EthereumSigner(settings.private_key.get_secret_value())
            logger.info("Initialized upload signer for %s", _signer.address)
    return _signer


def reset_signer() -> None:
    """Drop the process-wide signer. Intended for tests."""
    global _signer
    with _signer_lock:
        _signer = None
