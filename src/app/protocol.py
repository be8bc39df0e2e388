from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Literal, Optional, Union

Choice = Literal["rock", "paper", "scissors"]
Address = str
Hash = str

EMPTY_HASH: Hash = "0x" + "00" * 32
ZERO_ADDRESS: Address = "0x" + "00" * 20


class InvalidRecord(ValueError):
    """Raised when a game record contradicts the ledger's own encoding."""


class Phase(enum.IntEnum):
    # Values match the ledger's gameState encoding.
    JOIN = 0
    COMMIT = 1
    REVEAL = 2
    RESULT = 3


class GameResult(enum.IntEnum):
    NONE = -1
    PLAYER1_WIN = 0
    PLAYER2_WIN = 1
    DRAW = 2


class UiPhase(enum.IntEnum):
    NO_GAME = -1
    JOIN = 0
    COMMIT = 1
    REVEAL = 2
    RESULT = 3


class Outcome(enum.Enum):
    UNKNOWN = "unknown"
    WON = "won"
    LOST = "lost"
    DRAW = "draw"


def is_valid_choice(value: object) -> bool:
    return value in ("rock", "paper", "scissors")


def coerce_phase(value: Union[Phase, int, None]) -> Phase:
    if value is None or isinstance(value, bool):
        raise InvalidRecord(f"phase must be one of {[p.value for p in Phase]}, got {value!r}")
    try:
        return Phase(value)
    except ValueError:
        raise InvalidRecord(f"phase must be one of {[p.value for p in Phase]}, got {value!r}") from None


def coerce_result(value: Union[GameResult, int, None]) -> GameResult:
    if value is None:
        return GameResult.NONE
    if isinstance(value, bool):
        raise InvalidRecord(f"unknown game result {value!r}")
    try:
        return GameResult(value)
    except ValueError:
        raise InvalidRecord(f"unknown game result {value!r}") from None


def normalize_hash(value: Union[Hash, bytes, None]) -> Hash:
    """Return ``value`` as a lowercase ``0x``-prefixed hex string.

    ``None`` and empty values map to :data:`EMPTY_HASH`.
    """
    if value is None:
        return EMPTY_HASH
    if isinstance(value, (bytes, bytearray)):
        if not value:
            return EMPTY_HASH
        return "0x" + bytes(value).hex()
    text = value.strip().lower()
    if not text or text == "0x":
        return EMPTY_HASH
    return text if text.startswith("0x") else "0x" + text


def same_address(a: Optional[Address], b: Optional[Address]) -> bool:
    # Checksummed and lowercase spellings of one address are the same account.
    if a is None or b is None:
        return False
    return a.lower() == b.lower()


@dataclass(frozen=True)
class GameRecord:
    """Snapshot of a game as read from the ledger. Never mutated locally."""

    initialized: bool
    phase: Optional[Phase] = None
    player1: Address = ZERO_ADDRESS
    player2: Address = ZERO_ADDRESS
    commit1: Hash = EMPTY_HASH
    commit2: Hash = EMPTY_HASH
    reveal1: Hash = EMPTY_HASH
    reveal2: Hash = EMPTY_HASH
    reveal_deadline: int = 0
    result: GameResult = GameResult.NONE

    @classmethod
    def uninitialized(cls) -> "GameRecord":
        return cls(initialized=False)


@dataclass(frozen=True)
class GameView:
    ui_phase: UiPhase
    viewer_is_player1: bool = False
    viewer_has_committed: bool = False
    opponent_has_committed: bool = False
    viewer_has_revealed: bool = False
    opponent_has_revealed: bool = False
    seconds_remaining: Optional[int] = None
    outcome_for_viewer: Outcome = Outcome.UNKNOWN
