"""Derive what the viewer sees from a ledger snapshot.

Everything here is a pure function of ``(record, viewer, now)``. The ledger
decides the phase and the result; this module only projects them onto the
viewer's side of the table.
"""

from __future__ import annotations

from protocol import (
    EMPTY_HASH,
    Address,
    GameRecord,
    GameResult,
    GameView,
    Hash,
    InvalidRecord,
    Outcome,
    Phase,
    UiPhase,
    coerce_phase,
    coerce_result,
    normalize_hash,
    same_address,
)


def derive(record: GameRecord, viewer: Address, now: int) -> GameView:
    """Build the :class:`GameView` for ``viewer`` at unix time ``now``.

    ``now`` may be wall-clock or block time; the caller picks.
    A viewer who is neither player is shown player 2's side of the game.

    Raises :class:`InvalidRecord` if the record breaks the ledger encoding.
    """
    if not record.initialized:
        return GameView(ui_phase=UiPhase.NO_GAME)

    phase = coerce_phase(record.phase)
    result = coerce_result(record.result)
    if result is not GameResult.NONE and phase is not Phase.RESULT:
        raise InvalidRecord(f"result {result.name} recorded during {phase.name} phase")

    viewer_is_player1 = same_address(viewer, record.player1)
    if viewer_is_player1:
        own_commit, other_commit = record.commit1, record.commit2
        own_reveal, other_reveal = record.reveal1, record.reveal2
    else:
        own_commit, other_commit = record.commit2, record.commit1
        own_reveal, other_reveal = record.reveal2, record.reveal1

    seconds_remaining = None
    if phase is Phase.REVEAL:
        seconds_remaining = max(0, int(record.reveal_deadline) - int(now))

    outcome = Outcome.UNKNOWN
    if phase is Phase.RESULT:
        outcome = _outcome_for(result, viewer_is_player1)

    return GameView(
        ui_phase=UiPhase(phase.value),
        viewer_is_player1=viewer_is_player1,
        viewer_has_committed=_is_set(own_commit),
        opponent_has_committed=_is_set(other_commit),
        viewer_has_revealed=_is_set(own_reveal),
        opponent_has_revealed=_is_set(other_reveal),
        seconds_remaining=seconds_remaining,
        outcome_for_viewer=outcome,
    )


def status_message(view: GameView) -> str:
    if view.ui_phase is UiPhase.NO_GAME:
        return "No active game"
    if view.ui_phase is UiPhase.JOIN:
        return "Waiting for Player 2 to join"
    if view.ui_phase is UiPhase.COMMIT:
        if view.viewer_has_committed:
            return "Waiting for other player to commit"
        return "Waiting for you to commit"
    if view.ui_phase is UiPhase.REVEAL:
        if view.viewer_has_revealed:
            return "Waiting for other player to reveal"
        return "Committed. Waiting for you to reveal"
    if view.ui_phase is UiPhase.RESULT:
        if view.outcome_for_viewer is Outcome.DRAW:
            return "It's a draw!"
        if view.outcome_for_viewer is Outcome.WON:
            return "You won!"
        return "You lost!"
    raise ValueError(f"unhandled phase {view.ui_phase!r}")


def _outcome_for(result: GameResult, viewer_is_player1: bool) -> Outcome:
    if result is GameResult.DRAW:
        return Outcome.DRAW
    if viewer_is_player1 and result is GameResult.PLAYER1_WIN:
        return Outcome.WON
    if not viewer_is_player1 and result is GameResult.PLAYER2_WIN:
        return Outcome.WON
    # NONE in the Result phase also lands here.
    return Outcome.LOST


def _is_set(value: Hash) -> bool:
    return normalize_hash(value) != EMPTY_HASH
