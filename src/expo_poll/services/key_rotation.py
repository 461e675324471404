"""Time-bucketed rotating keys shared by the display and voting sides."""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable

from cryptography.hazmat.primitives import hashes, hmac

Clock = Callable[[], float]


class KeyRotator:
    """Derive a signing key that changes atomically at every bucket boundary.

    Both sides hold the same secret out of band; a code minted in bucket ``b``
    is reproducible by any process that knows the secret and ``b``.
    """

    def __init__(
        self,
        secret: str,
        bucket_width_seconds: int = 10,
        clock: Clock = time.time,
    ) -> None:
        if not secret:
            raise ValueError("The shared secret must not be empty")
        if bucket_width_seconds <= 0:
            raise ValueError("Bucket width must be a positive number of seconds")
        self._secret = secret.encode()
        self.bucket_width_seconds = bucket_width_seconds
        self._clock = clock

    def current_bucket(self) -> int:
        """Return ``floor(now / bucket_width)`` for the configured clock."""
        return int(self._clock() // self.bucket_width_seconds)

    def seconds_until_rotation(self) -> float:
        """Return the seconds left before the current bucket ends."""
        now = self._clock()
        next_boundary = (int(now // self.bucket_width_seconds) + 1) * self.bucket_width_seconds
        return next_boundary - now

    def key_for(self, bucket: int) -> bytes:
        """Return HMAC-SHA256 of the bucket's decimal string under the shared secret."""
        h = hmac.HMAC(self._secret, hashes.SHA256())
        h.update(str(bucket).encode())
        return h.finalize()

    def key_hex_for(self, bucket: int) -> str:
        """Return the bucket key in the lowercase hex form carried by tokens."""
        return self.key_for(bucket).hex()

    def matches(self, bucket: int, candidate_hex: str) -> bool:
        """Return True if ``candidate_hex`` is the key for ``bucket``.

        Comparison is constant time; malformed hex is simply a mismatch.
        """
        try:
            candidate = bytes.fromhex(candidate_hex)
        except ValueError:
            return False
        return secrets.compare_digest(candidate, self.key_for(bucket))
