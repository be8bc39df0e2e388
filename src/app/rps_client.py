"""Thin adapter over the RockPaperScissors game contract.

Reads come back as :class:`GameRecord` snapshots. Writes are signed locally
and broadcast; the returned transaction hash is handed back as-is and not
tracked any further.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from protocol import (
    ZERO_ADDRESS,
    Address,
    GameRecord,
    GameResult,
    Phase,
    coerce_phase,
    coerce_result,
    normalize_hash,
    same_address,
)


def _fn(name: str, inputs: list[tuple[str, str]], outputs: Sequence[tuple[str, str]] = (), view: bool = False) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
        "stateMutability": "view" if view else "nonpayable",
    }


GAME_DATA_FIELDS: tuple[str, ...] = (
    "initialized",
    "gameState",
    "player1",
    "player2",
    "commit1",
    "commit2",
    "reveal1",
    "reveal2",
    "revealDeadline",
    "gameResult",
)

GAME_ABI: list[dict[str, Any]] = [
    _fn("activeGame", [("player", "address")], [("game", "address")], view=True),
    _fn(
        "getActiveGameData",
        [("player", "address")],
        [
            ("initialized", "bool"),
            ("gameState", "uint8"),
            ("player1", "address"),
            ("player2", "address"),
            ("commit1", "bytes32"),
            ("commit2", "bytes32"),
            ("reveal1", "bytes32"),
            ("reveal2", "bytes32"),
            ("revealDeadline", "uint256"),
            ("gameResult", "uint8"),
        ],
        view=True,
    ),
    _fn("createGame", [("otherPlayer", "address")]),
    _fn("joinGame", [("gameAddress", "address")]),
    _fn("commit", [("choice", "string"), ("salt", "string")]),
    _fn("reveal", [("salt", "string")]),
    _fn("determineDefaultWinner", []),
    _fn("leaveGame", []),
]


class MissingAccount(RuntimeError):
    """Raised when a write is attempted by a read-only client."""


def decode_game_data(raw: Any) -> GameRecord:
    """Turn a ``getActiveGameData`` return value into a :class:`GameRecord`.

    Accepts the flat output list, a single struct tuple wrapping it, or a
    mapping keyed by the contract's field names.
    """
    if isinstance(raw, Mapping):
        values = {name: raw.get(name) for name in GAME_DATA_FIELDS}
    else:
        items = list(raw)
        if len(items) == 1 and isinstance(items[0], Sequence) and not isinstance(items[0], (str, bytes)):
            items = list(items[0])
        if len(items) != len(GAME_DATA_FIELDS):
            raise ValueError(f"expected {len(GAME_DATA_FIELDS)} game fields, got {len(items)}")
        values = dict(zip(GAME_DATA_FIELDS, items))

    if not values["initialized"]:
        return GameRecord.uninitialized()

    phase = coerce_phase(values["gameState"])
    # The stored result is only meaningful once the game is over.
    result = coerce_result(values["gameResult"]) if phase is Phase.RESULT else GameResult.NONE

    return GameRecord(
        initialized=True,
        phase=phase,
        player1=values["player1"] or ZERO_ADDRESS,
        player2=values["player2"] or ZERO_ADDRESS,
        commit1=normalize_hash(values["commit1"]),
        commit2=normalize_hash(values["commit2"]),
        reveal1=normalize_hash(values["reveal1"]),
        reveal2=normalize_hash(values["reveal2"]),
        reveal_deadline=int(values["revealDeadline"] or 0),
        result=result,
    )


class RpsContractClient:
    def __init__(self, web3: Any, contract: Any, account: Any = None) -> None:
        self._web3 = web3
        self._contract = contract
        self._account = account

    @classmethod
    def connect(cls, rpc_url: str, contract_address: str, private_key: Optional[str] = None) -> "RpsContractClient":
        from web3 import Web3, HTTPProvider
        from eth_account import Account

        w3 = Web3(HTTPProvider(rpc_url))
        contract = w3.eth.contract(address=Web3.to_checksum_address(contract_address), abi=GAME_ABI)
        account = Account.from_key(private_key) if private_key else None
        logging.info(f"Connected to {rpc_url}, game contract {contract_address}")
        return cls(w3, contract, account)

    @property
    def address(self) -> Optional[Address]:
        return self._account.address if self._account is not None else None

    # --- Reads ---
    def active_game(self, viewer: Address) -> Address:
        game = self._contract.functions.activeGame(self._checksum(viewer)).call()
        return game or ZERO_ADDRESS

    def active_record(self, viewer: Address) -> GameRecord:
        game = self.active_game(viewer)
        if same_address(game, ZERO_ADDRESS):
            logging.debug(f"No active game for {viewer}")
            return GameRecord.uninitialized()
        raw = self._contract.functions.getActiveGameData(self._checksum(viewer)).call()
        record = decode_game_data(raw)
        logging.debug(f"Active game {game} for {viewer}: {record}")
        return record

    def block_timestamp(self) -> int:
        return int(self._web3.eth.get_block("latest")["timestamp"])

    # --- Writes ---
    def create_game(self, opponent: Address) -> str:
        return self._send("createGame", self._checksum(opponent))

    def join_game(self, game_address: Address) -> str:
        return self._send("joinGame", self._checksum(game_address))

    def commit(self, choice: str, password: str) -> str:
        return self._send("commit", choice, password)

    def reveal(self, password: str) -> str:
        return self._send("reveal", password)

    def claim_default_win(self) -> str:
        return self._send("determineDefaultWinner")

    def leave_game(self) -> str:
        return self._send("leaveGame")

    def _send(self, fn_name: str, *args: Any) -> str:
        if self._account is None:
            raise MissingAccount(f"{fn_name} needs a private key to sign with")

        sender = self._account.address
        tx = getattr(self._contract.functions, fn_name)(*args).build_transaction(
            {
                "from": sender,
                "nonce": self._web3.eth.get_transaction_count(sender),
                "chainId": self._web3.eth.chain_id,
            }
        )
        signed = self._account.sign_transaction(tx)
        tx_hash = self._web3.eth.send_raw_transaction(signed.raw_transaction)
        tx_hex = _hex(tx_hash)
        logging.info(f"Sent {fn_name} from {sender}: {tx_hex}")
        return tx_hex

    def _checksum(self, address: Address) -> Address:
        return self._web3.to_checksum_address(address)


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value)
    return text if text.startswith("0x") else "0x" + text
