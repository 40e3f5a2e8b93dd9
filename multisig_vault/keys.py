"""
Owner identity utilities
"""

import hashlib
from typing import Tuple

from ecdsa import SigningKey, SECP256k1


class OwnerKey:
    """secp256k1 key pair whose compressed public key names a vault owner"""

    def __init__(self, private_key: bytes = None):
        if private_key:
            self.private_key = SigningKey.from_string(private_key, curve=SECP256k1)
        else:
            self.private_key = SigningKey.generate(curve=SECP256k1)

        self.public_key = self.private_key.get_verifying_key()

    def get_public_key_hex(self) -> str:
        """Get compressed public key in hex format"""
        return self.public_key.to_string("compressed").hex()

    def get_private_key_hex(self) -> str:
        return self.private_key.to_string().hex()

    def fingerprint(self) -> str:
        """Short identifier for display"""
        return OwnerKey.short_id(self.get_public_key_hex())

    @staticmethod
    def short_id(pubkey_hex: str) -> str:
        return hashlib.sha256(bytes.fromhex(pubkey_hex)).hexdigest()[:8]

    @staticmethod
    def generate_key_pair() -> Tuple[str, str]:
        """Generate new key pair and return (private_key_hex, public_key_hex)"""
        key = OwnerKey()
        return key.get_private_key_hex(), key.get_public_key_hex()
