"""Password-based AES-256-GCM encryption for backup artifacts.

Artifact layout, Base64 encoded: salt (16 bytes) || nonce (12 bytes) ||
ciphertext with the 16-byte GCM tag appended.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from domain.errors import DecryptionFailedError

ITERATIONS = 100_000
KEY_LEN = 32
SALT_LEN = 16
IV_LEN = 12
TAG_LEN = 16


def derive_key(password: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LEN,
        salt=salt,
        iterations=ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))


def encrypt_data(data: str, password: str) -> str:
    salt = os.urandom(SALT_LEN)
    iv = os.urandom(IV_LEN)
    key = derive_key(password, salt)
    encrypted = AESGCM(key).encrypt(iv, data.encode("utf-8"), None)
    return base64.b64encode(salt + iv + encrypted).decode("ascii")


def decrypt_data(encoded: str, password: str) -> str:
    """Reverse ``encrypt_data``.

    Any failure raises DecryptionFailedError with the same message, so the
    caller cannot tell a wrong password from a damaged artifact.
    """
    try:
        combined = base64.b64decode(encoded.strip(), validate=True)
        if len(combined) < SALT_LEN + IV_LEN + TAG_LEN:
            raise ValueError("artifact too short")
        salt = combined[:SALT_LEN]
        iv = combined[SALT_LEN : SALT_LEN + IV_LEN]
        payload = combined[SALT_LEN + IV_LEN :]
        key = derive_key(password, salt)
        return AESGCM(key).decrypt(iv, payload, None).decode("utf-8")
    except (InvalidTag, ValueError, TypeError, AttributeError, binascii.Error):
        raise DecryptionFailedError() from None
