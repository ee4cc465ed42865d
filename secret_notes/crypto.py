"""
Symmetric encryption of note payloads.

Notes are encrypted with AES-256-GCM. The 256-bit key is derived once from the
configured passphrase (SHA-256 of its UTF-8 bytes); every call to
:meth:`NoteCipher.encrypt` draws a fresh 12-byte nonce and embeds it in the
output, so a ciphertext is a single self-contained ASCII string:

    base64( nonce (12 bytes) || ciphertext || GCM tag (16 bytes) )
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM


NONCE_SIZE: int = 12
TAG_SIZE: int = 16


class DecryptionError(ValueError):
    """The text was not produced by this cipher under this key."""


def derive_key(passphrase: str) -> bytes:
    """Return the 32-byte AES key for *passphrase*."""
    return hashlib.sha256(passphrase.encode("utf-8")).digest()


class NoteCipher:
    """
    Encrypts and decrypts note text with one fixed key.

    Instances hold no mutable state and may be shared between concurrent
    requests.
    """

    __slots__ = ("_aesgcm",)

    def __init__(self, passphrase: str) -> None:
        if not passphrase:
            raise ValueError("encryption key must not be empty")
        self._aesgcm = AESGCM(derive_key(passphrase))

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """
        Recover the plaintext of *ciphertext*.

        Raises :class:`DecryptionError` when the text is not base64, is too
        short, fails authentication (other key, tampering) or does not decode
        as UTF-8.
        """
        try:
            raw = base64.b64decode(ciphertext.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise DecryptionError("ciphertext is not valid base64") from exc

        if len(raw) < NONCE_SIZE + TAG_SIZE:
            raise DecryptionError("ciphertext is truncated")

        nonce, sealed = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
        try:
            plaintext = self._aesgcm.decrypt(nonce, sealed, None)
        except InvalidTag as exc:
            raise DecryptionError("ciphertext failed authentication") from exc

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionError("plaintext is not UTF-8") from exc
