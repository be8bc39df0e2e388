from __future__ import annotations

from dataclasses import replace

import pytest

from game_state import derive, status_message  # type: ignore[import-not-found]
from protocol import (  # type: ignore[import-not-found]
    EMPTY_HASH,
    GameRecord,
    GameResult,
    GameView,
    InvalidRecord,
    Outcome,
    Phase,
    UiPhase,
)

P1 = "0x1111111111111111111111111111111111111111"
P2 = "0x2222222222222222222222222222222222222222"
SPECTATOR = "0x3333333333333333333333333333333333333333"
SET = "0x" + "ab" * 32


def _record(**overrides) -> GameRecord:
    base = GameRecord(initialized=True, phase=Phase.COMMIT, player1=P1, player2=P2)
    return replace(base, **overrides)


def test_uninitialized_is_no_game() -> None:
    view = derive(GameRecord.uninitialized(), P1, 1000)
    assert view == GameView(ui_phase=UiPhase.NO_GAME)
    assert view.outcome_for_viewer is Outcome.UNKNOWN
    assert view.seconds_remaining is None
    assert not view.viewer_is_player1


def test_uninitialized_ignores_leftover_fields() -> None:
    record = GameRecord(initialized=False, phase=None, commit1=SET, result=GameResult.DRAW)
    assert derive(record, P1, 0).ui_phase is UiPhase.NO_GAME


def test_phase_mirrors_ledger() -> None:
    for phase in (Phase.JOIN, Phase.COMMIT, Phase.REVEAL):
        assert derive(_record(phase=phase), P1, 0).ui_phase.value == phase.value


def test_phase_accepts_raw_ints() -> None:
    assert derive(_record(phase=2), P1, 0).ui_phase is UiPhase.REVEAL


def test_viewer_committed_as_player1() -> None:
    view = derive(_record(commit1=SET, commit2=EMPTY_HASH), P1, 0)
    assert view.viewer_is_player1
    assert view.viewer_has_committed
    assert not view.opponent_has_committed


def test_viewer_committed_as_player2() -> None:
    view = derive(_record(commit1=SET, commit2=EMPTY_HASH), P2, 0)
    assert not view.viewer_is_player1
    assert not view.viewer_has_committed
    assert view.opponent_has_committed


def test_viewer_matched_case_insensitively() -> None:
    checksummed = "0xAbCdEf0000000000000000000000000000000001"
    record = _record(player1=checksummed.lower())
    assert derive(record, checksummed, 0).viewer_is_player1


def test_reveal_flags_follow_viewer_side() -> None:
    record = _record(phase=Phase.REVEAL, commit1=SET, commit2=SET, reveal2=SET, reveal_deadline=50)
    as_p1 = derive(record, P1, 0)
    as_p2 = derive(record, P2, 0)
    assert not as_p1.viewer_has_revealed and as_p1.opponent_has_revealed
    assert as_p2.viewer_has_revealed and not as_p2.opponent_has_revealed


def test_bytes_sentinel_counts_as_unset() -> None:
    view = derive(_record(commit1=b"\x00" * 32), P1, 0)
    assert not view.viewer_has_committed


def test_seconds_remaining_counts_down() -> None:
    view = derive(_record(phase=Phase.REVEAL, reveal_deadline=1300), P1, 1000)
    assert view.seconds_remaining == 300


def test_seconds_remaining_zero_at_deadline() -> None:
    view = derive(_record(phase=Phase.REVEAL, reveal_deadline=1000), P1, 1000)
    assert view.seconds_remaining == 0


def test_seconds_remaining_never_negative() -> None:
    view = derive(_record(phase=Phase.REVEAL, reveal_deadline=1000), P1, 5000)
    assert view.seconds_remaining == 0


def test_seconds_remaining_only_in_reveal() -> None:
    assert derive(_record(phase=Phase.COMMIT, reveal_deadline=1000), P1, 10).seconds_remaining is None
    result = _record(phase=Phase.RESULT, reveal_deadline=1000, result=GameResult.DRAW)
    assert derive(result, P1, 10).seconds_remaining is None


@pytest.mark.parametrize("viewer", [P1, P2])
def test_draw_regardless_of_side(viewer: str) -> None:
    view = derive(_record(phase=Phase.RESULT, result=GameResult.DRAW), viewer, 0)
    assert view.outcome_for_viewer is Outcome.DRAW


@pytest.mark.parametrize(
    ("viewer", "result", "expected"),
    [
        (P1, GameResult.PLAYER1_WIN, Outcome.WON),
        (P1, GameResult.PLAYER2_WIN, Outcome.LOST),
        (P2, GameResult.PLAYER2_WIN, Outcome.WON),
        (P2, GameResult.PLAYER1_WIN, Outcome.LOST),
    ],
)
def test_outcome_for_viewer(viewer: str, result: GameResult, expected: Outcome) -> None:
    view = derive(_record(phase=Phase.RESULT, result=result), viewer, 0)
    assert view.outcome_for_viewer is expected


def test_outcome_unknown_before_result() -> None:
    assert derive(_record(phase=Phase.REVEAL), P1, 0).outcome_for_viewer is Outcome.UNKNOWN


def test_spectator_sees_player2_side() -> None:
    # Anyone who is not player 1 gets player 2's flags and win condition.
    record = _record(phase=Phase.RESULT, result=GameResult.PLAYER2_WIN, commit2=SET)
    view = derive(record, SPECTATOR, 0)
    assert not view.viewer_is_player1
    assert view.viewer_has_committed
    assert view.outcome_for_viewer is Outcome.WON


def test_invalid_phase_raises() -> None:
    with pytest.raises(InvalidRecord):
        derive(_record(phase=9), P1, 0)
    with pytest.raises(InvalidRecord):
        derive(_record(phase=None), P1, 0)


def test_result_outside_result_phase_raises() -> None:
    with pytest.raises(InvalidRecord):
        derive(_record(phase=Phase.REVEAL, result=GameResult.PLAYER1_WIN), P1, 0)


def test_derive_is_repeatable() -> None:
    record = _record(phase=Phase.REVEAL, commit1=SET, commit2=SET, reveal1=SET, reveal_deadline=1200)
    assert derive(record, P1, 1100) == derive(record, P1, 1100)


def test_status_messages() -> None:
    assert status_message(GameView(ui_phase=UiPhase.NO_GAME)) == "No active game"
    assert status_message(GameView(ui_phase=UiPhase.JOIN)) == "Waiting for Player 2 to join"
    assert status_message(GameView(ui_phase=UiPhase.COMMIT)) == "Waiting for you to commit"
    assert status_message(GameView(ui_phase=UiPhase.COMMIT, viewer_has_committed=True)) == "Waiting for other player to commit"
    assert status_message(GameView(ui_phase=UiPhase.REVEAL)) == "Committed. Waiting for you to reveal"
    assert status_message(GameView(ui_phase=UiPhase.REVEAL, viewer_has_revealed=True)) == "Waiting for other player to reveal"
    assert status_message(GameView(ui_phase=UiPhase.RESULT, outcome_for_viewer=Outcome.DRAW)) == "It's a draw!"
    assert status_message(GameView(ui_phase=UiPhase.RESULT, outcome_for_viewer=Outcome.WON)) == "You won!"
    assert status_message(GameView(ui_phase=UiPhase.RESULT, outcome_for_viewer=Outcome.LOST)) == "You lost!"
