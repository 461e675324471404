"""Sealing and opening vote-authorization tokens.

A token is ``urlsafe_b64(nonce || AES-GCM(ciphertext + tag))`` with the
padding stripped, so it can ride in a query string. The AES key is derived
from the shared secret with HKDF; GCM authenticates the ciphertext, so any
altered character fails at decode time.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from pydantic import ValidationError

from expo_poll.core.errors import MalformedTokenError, SchemaMismatchError
from expo_poll.schemas.payload import VoteAuthorizationPayload

logger = logging.getLogger(__name__)

NONCE_BYTES = 12
TAG_BYTES = 16
_KEY_INFO = b"expo-poll vote-authorization payload v1"
_URLSAFE_TOKEN = re.compile(r"[A-Za-z0-9_-]*")


def _encode_b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _decode_b64(data: str) -> bytes:
    if not _URLSAFE_TOKEN.fullmatch(data):
        raise MalformedTokenError()
    padding = "=" * (-len(data) % 4)
    try:
        return base64.b64decode((data + padding).encode("ascii"), altchars=b"-_", validate=True)
    except binascii.Error as err:
        raise MalformedTokenError() from err


def derive_payload_key(secret: str) -> bytes:
    """Derive the 256-bit AES key for payload encryption from the shared secret."""
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=_KEY_INFO)
    return hkdf.derive(secret.encode())


def canonical_json(payload: VoteAuthorizationPayload) -> bytes:
    """Serialize a payload as compact JSON with sorted wire field names."""
    return json.dumps(payload.to_wire(), sort_keys=True, separators=(",", ":")).encode()


class PayloadCodec:
    """Encrypt and transport-encode vote-authorization payloads."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("The shared secret must not be empty")
        self._aead = AESGCM(derive_payload_key(secret))

    def encode(self, payload: VoteAuthorizationPayload) -> str:
        """Seal ``payload`` into a URL-safe, unpadded token."""
        nonce = os.urandom(NONCE_BYTES)
        sealed = self._aead.encrypt(nonce, canonical_json(payload), None)
        return _encode_b64(nonce + sealed)

    def decode(self, token: str) -> VoteAuthorizationPayload:
        """Open a token produced by :meth:`encode`.

        Raises:
            MalformedTokenError: If the token is not valid base64, is too
                short, or fails authentication (wrong secret or tampering).
            SchemaMismatchError: If the decrypted content is not a JSON object
                carrying the expected fields.
        """
        raw = _decode_b64(token.strip())
        if len(raw) < NONCE_BYTES + TAG_BYTES:
            raise MalformedTokenError()

        nonce, sealed = raw[:NONCE_BYTES], raw[NONCE_BYTES:]
        try:
            plaintext = self._aead.decrypt(nonce, sealed, None)
        except InvalidTag as err:
            raise MalformedTokenError() from err

        try:
            return VoteAuthorizationPayload.model_validate_json(plaintext)
        except ValidationError as err:
            logger.debug("Decrypted payload failed validation: %s", err)
            raise SchemaMismatchError() from err


def build_vote_link(token: str, base_url: str) -> str:
    """Return the voting page URL that carries ``token``."""
    return f"{base_url.rstrip('/')}/vote?data={token}"
