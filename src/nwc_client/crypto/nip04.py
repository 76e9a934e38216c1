"""NIP-04 symmetric encryption of event content.

Content is AES-256-CBC with PKCS7 padding under the ECDH shared secret and is
rendered as ``<base64 ciphertext>?iv=<base64 iv>``.
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..domain.errors import DecryptionFailureError

IV_SEPARATOR = "?iv="
IV_LENGTH = 16


def encrypt(plaintext: str, shared_secret: bytes) -> str:
    """Encrypt a text payload for the peer sharing ``shared_secret``."""
    iv = os.urandom(IV_LENGTH)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(shared_secret), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return (
        base64.b64encode(ciphertext).decode("utf-8")
        + IV_SEPARATOR
        + base64.b64encode(iv).decode("utf-8")
    )


def decrypt(content: str, shared_secret: bytes) -> str:
    """Decrypt NIP-04 content. Raises DecryptionFailureError on any malformed input."""
    ciphertext_b64, sep, iv_b64 = content.partition(IV_SEPARATOR)
    if not sep:
        raise DecryptionFailureError("Encrypted content has no iv")
    try:
        ciphertext = base64.b64decode(ciphertext_b64, validate=True)
        iv = base64.b64decode(iv_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionFailureError(f"Encrypted content is not base64: {e}") from e
    if len(iv) != IV_LENGTH or not ciphertext or len(ciphertext) % IV_LENGTH:
        raise DecryptionFailureError("Encrypted content has an invalid length")

    decryptor = Cipher(algorithms.AES(shared_secret), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
    except ValueError as e:
        # Wrong key or corrupted bytes: bad padding or non-UTF-8 plaintext
        raise DecryptionFailureError("Content cannot be decrypted with this key") from e
