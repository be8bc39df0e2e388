"""Which actions the viewer may take, and local checks on their input.

Nothing here talks to the ledger. The ledger still has the final say on
every write; these checks only keep obviously doomed transactions from
being sent.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import FrozenSet, Optional

from protocol import GameView, UiPhase, is_valid_choice

# Enforced where the password is typed in, not re-checked by the validators.
PASSWORD_MAX_LENGTH = 15


class Action(enum.Enum):
    JOIN = "join"
    CREATE = "create"
    COMMIT = "commit"
    REVEAL = "reveal"
    CLAIM_DEFAULT_WIN = "claim_default_win"
    LEAVE = "leave"


class ValidationCode(enum.Enum):
    NO_CHOICE_SELECTED = "no_choice_selected"
    EMPTY_PASSWORD = "empty_password"


@dataclass(frozen=True)
class ValidationError:
    code: ValidationCode
    message: str
    description: str


class ActionNotPermitted(Exception):
    def __init__(self, action: Action, view: GameView) -> None:
        super().__init__(f"{action.value} is not allowed during {view.ui_phase.name}")
        self.action = action
        self.view = view


def permitted_actions(view: GameView) -> FrozenSet[Action]:
    phase = view.ui_phase
    if phase is UiPhase.NO_GAME:
        return frozenset({Action.JOIN, Action.CREATE})
    if phase is UiPhase.JOIN:
        return frozenset()
    if phase is UiPhase.COMMIT:
        return frozenset() if view.viewer_has_committed else frozenset({Action.COMMIT})
    if phase is UiPhase.REVEAL:
        if not view.viewer_has_revealed:
            return frozenset({Action.REVEAL})
        if view.seconds_remaining == 0:
            return frozenset({Action.CLAIM_DEFAULT_WIN})
        return frozenset()
    if phase is UiPhase.RESULT:
        return frozenset({Action.LEAVE})
    raise ValueError(f"unhandled phase {phase!r}")


def require_permitted(view: GameView, action: Action) -> None:
    if action not in permitted_actions(view):
        raise ActionNotPermitted(action, view)


def validate_commit(choice: Optional[str], password: str) -> Optional[ValidationError]:
    """Check a commit before it is sent.

    ``password`` is assumed to be at most :data:`PASSWORD_MAX_LENGTH`
    characters already. Returns ``None`` when the commit may proceed.
    """
    if not choice or not is_valid_choice(choice):
        return ValidationError(
            code=ValidationCode.NO_CHOICE_SELECTED,
            message="No choice selected",
            description="Please choose rock, paper or scissors",
        )
    if not password:
        return ValidationError(
            code=ValidationCode.EMPTY_PASSWORD,
            message="No password set",
            description="Please set a password for your commit",
        )
    return None


def validate_reveal(password: str) -> Optional[ValidationError]:
    if not password:
        return ValidationError(
            code=ValidationCode.EMPTY_PASSWORD,
            message="No password provided",
            description="Please enter the password used for your commit",
        )
    return None
