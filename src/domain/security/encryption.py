"""
Field-level encryption for signup PII.

AES-256-GCM with a fresh 12-byte nonce per call. The stored blob is
base64(nonce || tag || ciphertext) so one column holds everything needed to
authenticate and decrypt.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from src.domain.errors import DecryptionFailure

NONCE_SIZE = 12
TAG_SIZE = 16


def _load_key(key_hex: str) -> bytes:
    try:
        key = bytes.fromhex(key_hex)
    except (TypeError, ValueError) as exc:
        raise ValueError("Encryption key must be hex encoded") from exc
    if len(key) != 32:
        raise ValueError("Encryption key must be 32 bytes (64 hex chars)")
    return key


def encrypt(key_hex: str, plaintext: str) -> str:
    aesgcm = AESGCM(_load_key(key_hex))
    nonce = os.urandom(NONCE_SIZE)
    sealed = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return base64.b64encode(nonce + tag + ciphertext).decode("ascii")


def decrypt(key_hex: str, blob: str) -> str:
    """
    Decrypt a blob produced by encrypt().

    Raises:
        DecryptionFailure: malformed blob, wrong key or tampered data
    """
    key = _load_key(key_hex)
    try:
        data = base64.b64decode(blob, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise DecryptionFailure("Encrypted payload is not valid base64") from exc

    if len(data) < NONCE_SIZE + TAG_SIZE:
        raise DecryptionFailure("Encrypted payload is truncated")

    nonce = data[:NONCE_SIZE]
    tag = data[NONCE_SIZE:NONCE_SIZE + TAG_SIZE]
    ciphertext = data[NONCE_SIZE + TAG_SIZE:]

    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as exc:
        raise DecryptionFailure("Encrypted payload failed authentication") from exc

    return plaintext.decode("utf-8")
