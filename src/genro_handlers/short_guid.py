# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""URL-friendly short forms of GUIDs and unsigned 64-bit ids.

A short GUID is the URL-safe base64 encoding of the 16 GUID bytes with the
padding dropped: always 22 characters. The byte order is the mixed-endian
layout used by .NET and COM (``uuid.UUID.bytes_le``), so short GUIDs minted
by other stacks decode to the same value.

A short id is the URL-safe base64 encoding of a big-endian ``uint64`` with
the padding dropped: always 11 characters.

Example::

    >>> import uuid
    >>> g = uuid.UUID("6f0d8c2a-1a2b-4c5d-8e9f-0a1b2c3d4e5f")
    >>> short_to_guid(guid_to_short(g)) == g
    True
    >>> uint64_to_short(0)
    'AAAAAAAAAAA'
"""

from __future__ import annotations

import base64
import binascii
import uuid

__all__ = [
    "guid_to_short",
    "short_to_guid",
    "short_to_uint64",
    "uint64_to_short",
]

_UINT64_MAX = 2**64 - 1


def guid_to_short(guid: uuid.UUID) -> str:
    return base64.urlsafe_b64encode(guid.bytes_le).decode("ascii")[:22]


def short_to_guid(short_guid: str) -> uuid.UUID:
    """Decode a 22-character short GUID.

    Raises:
        ValueError: If the text is not a valid short GUID.
    """
    if len(short_guid) != 22:
        raise ValueError(f"Short GUID must be 22 characters, got {len(short_guid)}")
    try:
        raw = base64.urlsafe_b64decode(short_guid + "==")
    except binascii.Error as err:
        raise ValueError(f"Invalid short GUID {short_guid!r}") from err
    return uuid.UUID(bytes_le=raw)


def uint64_to_short(value: int) -> str:
    if not 0 <= value <= _UINT64_MAX:
        raise ValueError(f"{value} is outside the uint64 range")
    return base64.urlsafe_b64encode(value.to_bytes(8, "big")).decode("ascii")[:11]


def short_to_uint64(short_id: str) -> int:
    """Decode an 11-character short id.

    Raises:
        ValueError: If the text is not a valid short id.
    """
    if len(short_id) != 11:
        raise ValueError(f"Short id must be 11 characters, got {len(short_id)}")
    try:
        raw = base64.urlsafe_b64decode(short_id + "=")
    except binascii.Error as err:
        raise ValueError(f"Invalid short id {short_id!r}") from err
    return int.from_bytes(raw, "big")
