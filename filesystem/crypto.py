"""Optional AES-256-CBC piece encryption with PKCS7 padding."""

from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from filesystem.exceptions import EncryptionConfigError

KEY_SIZE_BYTES = 32
IV_SIZE_BYTES = 16
BLOCK_SIZE_BITS = 128


class _PaddedEncryptor:
    """Streaming encryptor: pads the plaintext stream and encrypts continuously."""

    def __init__(self, cipher: Cipher):
        self._padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        self._encryptor = cipher.encryptor()

    def update(self, data: bytes) -> bytes:
        return self._encryptor.update(self._padder.update(data))

    def finalize(self) -> bytes:
        return self._encryptor.update(self._padder.finalize()) + self._encryptor.finalize()


class _PaddedDecryptor:
    """Streaming decryptor: decrypts continuously and strips the padding at the end."""

    def __init__(self, cipher: Cipher):
        self._decryptor = cipher.decryptor()
        self._unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()

    def update(self, data: bytes) -> bytes:
        return self._unpadder.update(self._decryptor.update(data))

    def finalize(self) -> bytes:
        return self._unpadder.update(self._decryptor.finalize()) + self._unpadder.finalize()


class StreamCipher:
    """
    Key and IV pair producing fresh streaming transforms.

    Each write stream and read stream gets its own encryptor or decryptor, so
    piece boundaries never need to line up with cipher blocks.
    """

    def __init__(self, key: bytes, iv: bytes):
        if len(key) != KEY_SIZE_BYTES:
            raise EncryptionConfigError(f"Encryption key must be {KEY_SIZE_BYTES} bytes, got {len(key)}")
        if len(iv) != IV_SIZE_BYTES:
            raise EncryptionConfigError(f"Encryption IV must be {IV_SIZE_BYTES} bytes, got {len(iv)}")
        self._key = key
        self._iv = iv

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(self._iv))

    def encryptor(self) -> _PaddedEncryptor:
        return _PaddedEncryptor(self._cipher())

    def decryptor(self) -> _PaddedDecryptor:
        return _PaddedDecryptor(self._cipher())


def cipher_from_config(key_hex: Optional[str], iv_hex: Optional[str]) -> Optional[StreamCipher]:
    """
    Build a StreamCipher from hex-encoded key material.

    Args:
        key_hex: 64 hex characters, or None/empty to disable encryption
        iv_hex: 32 hex characters, or None/empty to disable encryption

    Returns:
        StreamCipher, or None when neither value is set

    Raises:
        EncryptionConfigError: If only one value is set or either is malformed
    """
    if not key_hex and not iv_hex:
        return None

    if not key_hex or not iv_hex:
        raise EncryptionConfigError("Encryption requires both a key and an IV")

    try:
        key = bytes.fromhex(key_hex)
        iv = bytes.fromhex(iv_hex)
    except ValueError as e:
        raise EncryptionConfigError(f"Encryption key and IV must be hex encoded: {e}") from e

    return StreamCipher(key, iv)
