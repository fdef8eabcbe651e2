"""
Encryption at rest for free-text reading fields (notes).
Uses AES-256-GCM with a random nonce per value.
"""
import os
import base64
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12


class FieldEncryptor:
    """Encrypts and decrypts text fields with the configured key."""

    def __init__(self, key_b64: str = None):
        key_b64 = key_b64 or os.getenv('PHI_ENCRYPTION_KEY')
        if not key_b64:
            raise ValueError("PHI_ENCRYPTION_KEY environment variable not set")
        key = base64.b64decode(key_b64)
        if len(key) != 32:
            raise ValueError("PHI_ENCRYPTION_KEY must be 32 bytes (256 bits)")
        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        """Return base64 of nonce + ciphertext. Empty values pass through."""
        if not plaintext:
            return plaintext
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode('utf-8'), None)
        return base64.b64encode(nonce + ciphertext).decode('utf-8')

    def decrypt(self, encrypted_b64: str) -> str:
        if not encrypted_b64:
            return encrypted_b64
        data = base64.b64decode(encrypted_b64)
        plaintext = self._aesgcm.decrypt(data[:NONCE_SIZE], data[NONCE_SIZE:], None)
        return plaintext.decode('utf-8')


_encryptor = None


def get_encryptor() -> FieldEncryptor:
    global _encryptor
    if _encryptor is None:
        _encryptor = FieldEncryptor()
    return _encryptor


def encrypt_phi(value: str) -> str:
    return get_encryptor().encrypt(value)


def decrypt_phi(value: str) -> str:
    return get_encryptor().decrypt(value)
