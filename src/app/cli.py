from __future__ import annotations

import argparse
import logging
import os
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import humanize
from dotenv import load_dotenv

from actions import (
    PASSWORD_MAX_LENGTH,
    Action,
    ActionNotPermitted,
    ValidationError,
    permitted_actions,
    require_permitted,
    validate_commit,
    validate_reveal,
)
from commit_reveal import CHOICE_EMOJI, generate_password, resolve_choice
from game_state import derive, status_message
from protocol import GameRecord, GameView, InvalidRecord, UiPhase
from rps_client import MissingAccount, RpsContractClient


@dataclass(frozen=True)
class ClientConfig:
    rpc_url: str
    contract: str
    private_key: Optional[str] = None
    viewer: Optional[str] = None


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="rps")
    parser.add_argument("--rpc-url", default=None, help="JSON-RPC endpoint (env: RPS_RPC_URL)")
    parser.add_argument("--contract", default=None, help="Game contract address (env: RPS_CONTRACT)")
    parser.add_argument("--viewer", default=None, help="Address to view as without a key (env: RPS_VIEWER)")
    parser.add_argument("--clock", choices=("local", "block"), default="local", help="Time source for the reveal deadline")
    parser.add_argument("--env-file", default=".env")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("status", help="Show the active game")

    create = sub.add_parser("create", help="Create a game against another player")
    create.add_argument("opponent", help="Other player's address")

    join = sub.add_parser("join", help="Join a game created for you")
    join.add_argument("game", help="Game address")

    commit = sub.add_parser("commit", help="Commit to a choice")
    commit.add_argument("choice", choices=("rock", "paper", "scissors"))
    commit.add_argument("--password", type=_password, default=None, help="Generated if omitted")

    reveal = sub.add_parser("reveal", help="Reveal your committed choice")
    reveal.add_argument("--password", type=_password, required=True)

    sub.add_parser("claim", help="Claim the win after the opponent missed the reveal deadline")
    sub.add_parser("leave", help="Leave a finished game")

    watch = sub.add_parser("watch", help="Poll the active game until it has a result")
    watch.add_argument("--interval", type=float, default=5.0)
    watch.add_argument("--timeout", type=float, default=None)

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    load_dotenv(args.env_file)

    config = _load_config(args)
    client = _make_client(config)
    viewer = client.address or config.viewer
    if not viewer:
        raise SystemExit("set RPS_PRIVATE_KEY or pass --viewer")

    if args.cmd == "status":
        record, view = _current_view(client, viewer, args.clock)
        print(_format_status(record, view))
        return 0

    if args.cmd == "watch":
        return _watch(client, viewer, args.clock, interval=args.interval, timeout=args.timeout)

    _, view = _current_view(client, viewer, args.clock)

    try:
        if args.cmd == "create":
            require_permitted(view, Action.CREATE)
            tx_hash = client.create_game(args.opponent)
        elif args.cmd == "join":
            require_permitted(view, Action.JOIN)
            tx_hash = client.join_game(args.game)
        elif args.cmd == "commit":
            require_permitted(view, Action.COMMIT)
            password = args.password
            if password is None:
                password = generate_password()
                print(f"Password: {password}  (keep it, you need it to reveal)")
            _check(validate_commit(args.choice, password))
            tx_hash = client.commit(args.choice, password)
        elif args.cmd == "reveal":
            require_permitted(view, Action.REVEAL)
            _check(validate_reveal(args.password))
            tx_hash = client.reveal(args.password)
        elif args.cmd == "claim":
            require_permitted(view, Action.CLAIM_DEFAULT_WIN)
            tx_hash = client.claim_default_win()
        elif args.cmd == "leave":
            require_permitted(view, Action.LEAVE)
            tx_hash = client.leave_game()
        else:
            raise SystemExit("unhandled command")
    except ActionNotPermitted as exc:
        raise SystemExit(f"Not now: {exc} ({status_message(view)})")
    except MissingAccount as exc:
        raise SystemExit(str(exc))

    print(f"Transaction sent: {tx_hash}")
    return 0


def _load_config(args: argparse.Namespace) -> ClientConfig:
    rpc_url = args.rpc_url or os.getenv("RPS_RPC_URL")
    contract = args.contract or os.getenv("RPS_CONTRACT")
    if not rpc_url:
        raise SystemExit("--rpc-url or RPS_RPC_URL is required")
    if not contract:
        raise SystemExit("--contract or RPS_CONTRACT is required")
    return ClientConfig(
        rpc_url=rpc_url,
        contract=contract,
        private_key=os.getenv("RPS_PRIVATE_KEY") or None,
        viewer=args.viewer or os.getenv("RPS_VIEWER") or None,
    )


def _make_client(config: ClientConfig) -> RpsContractClient:
    return RpsContractClient.connect(config.rpc_url, config.contract, private_key=config.private_key)


def _current_view(client: RpsContractClient, viewer: str, clock: str) -> tuple[GameRecord, GameView]:
    now = client.block_timestamp() if clock == "block" else int(time.time())
    try:
        record = client.active_record(viewer)
        return record, derive(record, viewer, now)
    except InvalidRecord as exc:
        raise SystemExit(f"Unreadable game data: {exc}")


def _watch(client: RpsContractClient, viewer: str, clock: str, *, interval: float, timeout: float | None) -> int:
    deadline = time.time() + timeout if timeout is not None else None
    last = None
    while True:
        record, view = _current_view(client, viewer, clock)
        text = _format_status(record, view)
        if text != last:
            print(text)
            print()
            last = text
        if view.ui_phase in (UiPhase.RESULT, UiPhase.NO_GAME):
            return 0
        if deadline is not None and time.time() >= deadline:
            raise TimeoutError("Timed out waiting for the game to finish")
        time.sleep(interval)


def _format_status(record: GameRecord, view: GameView) -> str:
    lines = [f"Phase:    {view.ui_phase.name}"]
    if view.ui_phase is not UiPhase.NO_GAME:
        lines.append(f"Player 1: {record.player1}{'  (you)' if view.viewer_is_player1 else ''}")
        lines.append(f"Player 2: {record.player2}{'' if view.viewer_is_player1 else '  (you)'}")
    lines.append(f"Status:   {status_message(view)}")

    if view.ui_phase is UiPhase.REVEAL and view.viewer_has_revealed and view.seconds_remaining is not None:
        lines.append(f"Time left: {_humanize_seconds(view.seconds_remaining)}")
        lines.append("If the other player fails to reveal in time, you can claim the win by default")

    if view.ui_phase is UiPhase.RESULT:
        first = "You" if view.viewer_is_player1 else "Player 1"
        second = "Player 2" if view.viewer_is_player1 else "You"
        lines.append(f"{first} chose: {_format_choice(record.reveal1)}")
        lines.append(f"{second} chose: {_format_choice(record.reveal2)}")

    actions = sorted(a.value for a in permitted_actions(view))
    lines.append(f"Actions:  {', '.join(actions) if actions else '(none, waiting)'}")
    return "\n".join(lines)


def _format_choice(reveal_value: str) -> str:
    choice = resolve_choice(reveal_value)
    if choice is None:
        return "-"
    return f"{CHOICE_EMOJI[choice]} {choice}"


def _humanize_seconds(seconds: int) -> str:
    return humanize.precisedelta(timedelta(seconds=max(0, seconds)))


def _password(value: str) -> str:
    if len(value) > PASSWORD_MAX_LENGTH:
        raise argparse.ArgumentTypeError(f"password must be at most {PASSWORD_MAX_LENGTH} characters")
    return value


def _check(error: ValidationError | None) -> None:
    if error is not None:
        raise SystemExit(f"{error.message}: {error.description}")


if __name__ == "__main__":
    raise SystemExit(main())
