"""
Ethereum message signing for authentication and orders.

Uses eth-account for the secp256k1 signature. Messages are signed with the
personal-message prefix, so the exchange recovers the signer the same way
for login nonces and order hashes.
"""

import logging

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

logger = logging.getLogger(__name__)


class OrderSigner:
    """
    Signs with one private key (account or delegate).

    Thread-safe: holds only the key.
    """

    def __init__(self, private_key: str):
        """
        Args:
            private_key: 0x-prefixed hex private key
        """
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        """Checksummed address of the key."""
        return self._account.address

    def sign_hash(self, digest: bytes) -> str:
        """Sign a 32-byte hash (as message bytes). Returns 0x-prefixed hex."""
        signed = self._account.sign_message(encode_defunct(primitive=bytes(digest)))
        return Web3.to_hex(signed.signature)

    def sign_text(self, text: str) -> str:
        """Sign a UTF-8 text message. Returns 0x-prefixed hex."""
        signed = self._account.sign_message(encode_defunct(text=text))
        return Web3.to_hex(signed.signature)
