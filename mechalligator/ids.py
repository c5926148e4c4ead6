"""Lexicographically sortable unique identifiers (ULIDs)."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MAX_MILLIS = (1 << 48) - 1
_LENGTH = 26


def new_ulid(when: datetime | None = None) -> str:
    """Return a 26-character ULID for ``when`` (default: now).

    The first ten characters encode the time in milliseconds, the rest are
    random. Raise ValueError for times before 1970.
    """
    if when is None:
        when = datetime.now(timezone.utc)
    aware = when if when.tzinfo is not None else when.astimezone()
    millis = (aware - _EPOCH) // timedelta(milliseconds=1)
    if millis < 0 or millis > _MAX_MILLIS:
        raise ValueError(f"time {when!r} cannot be encoded in a ULID")

    value = (millis << 80) | int.from_bytes(secrets.token_bytes(10), "big")
    return "".join(
        _ALPHABET[(value >> (5 * shift)) & 31] for shift in reversed(range(_LENGTH))
    )