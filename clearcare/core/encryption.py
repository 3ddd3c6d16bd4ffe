"""
At-rest encryption for PHI fields (AES-256-GCM).

Ciphertext format: ``enc:`` + base64(iv || tag || ciphertext). The key is
derived from ENCRYPTION_KEY with scrypt. When no key is configured the
helper is a passthrough, and values without the ``enc:`` prefix are treated
as legacy plaintext and returned unchanged on decrypt.

Usage in services:
    from clearcare.core.encryption import encryption

    instruction.content = encryption.encrypt(request.content)
    text = encryption.decrypt(instruction.content)
"""

import base64
import binascii
import json
import os
from typing import Any, Iterable, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from clearcare.config import settings
from clearcare.core.logging import logger


PREFIX = "enc:"
KEY_LENGTH = 32
IV_LENGTH = 16
TAG_LENGTH = 16
MIN_SECRET_LENGTH = 32
KDF_SALT = b"clearcare-salt"
ENCRYPTED_JSON_KEY = "_encrypted"


class EncryptionConfigError(RuntimeError):
    """Raised when production starts without a usable ENCRYPTION_KEY."""


class EncryptionService:
    """Encrypt/decrypt strings and JSON detail blobs."""

    def __init__(self, secret: Optional[str] = None, production: bool = False):
        if production and (not secret or len(secret) < MIN_SECRET_LENGTH):
            raise EncryptionConfigError(
                "ENCRYPTION_KEY must be set in production (at least 32 chars)"
            )
        self.enabled = bool(secret and len(secret) >= MIN_SECRET_LENGTH)
        self._aesgcm = AESGCM(self._derive_key(secret)) if self.enabled else None

    @staticmethod
    def _derive_key(secret: str) -> bytes:
        kdf = Scrypt(salt=KDF_SALT, length=KEY_LENGTH, n=2 ** 14, r=8, p=1)
        return kdf.derive(secret.encode("utf-8"))

    def encrypt(self, plain_text: Optional[str]) -> str:
        """Encrypt a string. Empty input gives an empty string."""
        if plain_text is None or plain_text == "":
            return ""
        if not self.enabled:
            return plain_text
        iv = os.urandom(IV_LENGTH)
        # AESGCM appends the tag to the ciphertext
        sealed = self._aesgcm.encrypt(iv, plain_text.encode("utf-8"), None)
        encrypted, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return PREFIX + base64.b64encode(iv + tag + encrypted).decode("ascii")

    def decrypt(self, cipher_text: Optional[str]) -> str:
        """Decrypt a string; anything that does not decrypt is returned as-is."""
        if cipher_text is None or cipher_text == "":
            return ""
        if not self.enabled or not cipher_text.startswith(PREFIX):
            return cipher_text
        try:
            combined = base64.b64decode(cipher_text[len(PREFIX):], validate=True)
        except (binascii.Error, ValueError):
            return cipher_text
        if len(combined) < IV_LENGTH + TAG_LENGTH:
            return cipher_text
        iv = combined[:IV_LENGTH]
        tag = combined[IV_LENGTH:IV_LENGTH + TAG_LENGTH]
        encrypted = combined[IV_LENGTH + TAG_LENGTH:]
        try:
            return self._aesgcm.decrypt(iv, encrypted + tag, None).decode("utf-8")
        except InvalidTag:
            logger.warning("Failed to decrypt value; returning stored text")
            return cipher_text

    def encrypt_json(self, value: Any) -> Optional[dict]:
        """Encrypt a JSON-serialisable value as ``{"_encrypted": ...}``."""
        if value is None:
            return None
        return {ENCRYPTED_JSON_KEY: self.encrypt(json.dumps(value))}

    def decrypt_json(self, value: Any) -> Any:
        """Decrypt a stored JSON blob; plain (legacy) blobs pass through."""
        if value is None:
            return None
        if isinstance(value, dict) and isinstance(value.get(ENCRYPTED_JSON_KEY), str):
            decrypted = self.decrypt(value[ENCRYPTED_JSON_KEY])
            if not decrypted:
                return None
            try:
                return json.loads(decrypted)
            except ValueError:
                return None
        return value

    def encrypt_fields(self, plain: dict, keys: Iterable[str]) -> dict:
        """Return the given keys encrypted, skipping keys that are absent or None."""
        return {
            key: self.encrypt(plain[key])
            for key in keys
            if key in plain and plain[key] is not None
        }

    def decrypt_fields(self, stored: dict, keys: Iterable[str]) -> dict:
        """Return a copy of ``stored`` with the given keys decrypted."""
        out = dict(stored)
        for key in keys:
            if key in out and out[key] is not None:
                out[key] = self.decrypt(out[key])
        return out


encryption = EncryptionService(settings.ENCRYPTION_KEY, production=settings.is_production)
