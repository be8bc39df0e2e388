from __future__ import annotations

import base64
import secrets
from typing import Final, Optional, Union

from protocol import Choice, Hash, normalize_hash

# Reveal values the game contract stores for each choice once a player has
# opened their commitment.
ROCK_HASH: Final[Hash] = "0x10977e4d68108d418408bc9310b60fc6d0a750c63ccef42cfb0ead23ab73d102"
PAPER_HASH: Final[Hash] = "0xea923ca2cdda6b54f4fb2bf6a063e5a59a6369ca4c4ae2c4ce02a147b3036a21"
SCISSORS_HASH: Final[Hash] = "0x389a2d4e358d901bfdf22245f32b4b0a401cc16a4b92155a2ee5da98273dad9a"

CANONICAL_HASHES: Final[dict[Choice, Hash]] = {
    "rock": ROCK_HASH,
    "paper": PAPER_HASH,
    "scissors": SCISSORS_HASH,
}

CHOICE_EMOJI: Final[dict[Choice, str]] = {
    "rock": "✊",
    "paper": "🖐",
    "scissors": "✌",
}


def resolve_choice(reveal_value: Union[Hash, bytes, None]) -> Optional[Choice]:
    """Map a stored reveal value back to the choice it stands for.

    Anything that is not one of the three canonical values, including the
    all-zero "not revealed yet" sentinel, resolves to ``None``.
    """
    value = normalize_hash(reveal_value)
    for choice, canonical in CANONICAL_HASHES.items():
        if secrets.compare_digest(value.encode("utf-8"), canonical.encode("ascii")):
            return choice
    return None


def generate_password(num_bytes: int = 8) -> str:
    # 8 random bytes encode to 11 base64url characters, under the 15 char limit.
    raw = secrets.token_bytes(num_bytes)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
