"""Room code generation.

Codes are short enough to read out loud and type on a phone. The alphabet
drops I, O, 0 and 1 so that no two characters look alike.
"""

from __future__ import annotations

import random
import secrets
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Container

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 4
# 32**4 codes; hitting this many collisions in a row means the registry is full.
MAX_CODE_ATTEMPTS = 10_000

_system_rng = secrets.SystemRandom()


class RoomCodeExhaustedError(Exception):
    """Raised when no free room code could be found."""


def generate_room_code(existing_codes: Container[str], rng: random.Random | None = None) -> str:
    """Return a random code that is not in existing_codes."""
    source = rng if rng is not None else _system_rng
    for _ in range(MAX_CODE_ATTEMPTS):
        code = "".join(source.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
        if code not in existing_codes:
            return code
    raise RoomCodeExhaustedError(f"no free room code after {MAX_CODE_ATTEMPTS} attempts")


def normalize_room_code(raw: str) -> str:
    return raw.strip().upper()


def is_valid_room_code(code: str) -> bool:
    return len(code) == ROOM_CODE_LENGTH and all(c in ROOM_CODE_ALPHABET for c in code)
