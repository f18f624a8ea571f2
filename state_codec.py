"""
state_codec.py

Turns a Position into the opaque token carried in frame URLs and back.
Token = unpadded url-safe base64 of compact JSON:

    {"b": "O---X----", "p": "X", "g": false, "d": "medium"}

Tokens in the older long form ({"board": [...], "currentPlayer": ...,
"isGameOver": ..., "difficulty": ...}, standard base64) still decode.
Only this module knows what is inside a token.
"""

from __future__ import annotations
import base64
import binascii
import json
import logging
from typing import Optional

from game_logic import (
    DEFAULT_DIFFICULTY, DIFFICULTIES, HUMAN_MARK, MACHINE_MARK, MARKS,
    Position, is_board_full, new_position, winner,
)

logger = logging.getLogger(__name__)

MAX_TOKEN_LENGTH = 512
EMPTY_CELL = "-"


class DecodeError(ValueError):
    """Token could not be turned back into a Position."""


def encode(position: Position) -> str:
    payload = {
        "b": "".join(c or EMPTY_CELL for c in position.cells),
        "p": position.turn,
        "g": position.terminal,
        "d": position.difficulty,
    }
    raw = json.dumps(payload, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def _unpack(token: str) -> dict:
    # both alphabets are accepted so long-form tokens keep working
    text = token.replace("-", "+").replace("_", "/").rstrip("=")
    text += "=" * (-len(text) % 4)
    try:
        raw = base64.b64decode(text.encode("ascii"), validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise DecodeError(f"token is not base64 encoded JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise DecodeError("token payload is not an object")
    return data


def _cells(data: dict) -> list:
    if "b" in data:
        board = data["b"]
        if not isinstance(board, str) or len(board) != 9:
            raise DecodeError("board must hold 9 cells")
        board = [None if c == EMPTY_CELL else c for c in board]
    else:
        board = data.get("board")
        if not isinstance(board, list) or len(board) != 9:
            raise DecodeError("board must hold 9 cells")
    if any(c is not None and c not in MARKS for c in board):
        raise DecodeError("board holds an unknown mark")
    return list(board)


def _check_reachable(position: Position) -> None:
    """O moves first, so O has as many marks as X or one more; a won game stops."""
    o_count = position.cells.count(HUMAN_MARK)
    x_count = position.cells.count(MACHINE_MARK)
    if o_count - x_count not in (0, 1):
        raise DecodeError(f"impossible mark counts O={o_count} X={x_count}")
    lines_for = winner(position)
    if lines_for == HUMAN_MARK and o_count != x_count + 1:
        raise DecodeError("O has a line but X moved after it")
    if lines_for == MACHINE_MARK and o_count != x_count:
        raise DecodeError("X has a line but O moved after it")
    if lines_for is not None:
        # a line for the other mark too is impossible
        rest = position.copy()
        for cell, mark in enumerate(rest.cells):
            if mark == lines_for:
                rest.cells[cell] = None
        if winner(rest) is not None:
            raise DecodeError("both marks hold a line")


def decode(token: str) -> Position:
    if not isinstance(token, str) or not token:
        raise DecodeError("empty token")
    if len(token) > MAX_TOKEN_LENGTH:
        raise DecodeError(f"token longer than {MAX_TOKEN_LENGTH} characters")

    data = _unpack(token)
    cells = _cells(data)

    turn = data.get("p", data.get("currentPlayer", HUMAN_MARK))
    if turn not in MARKS:
        raise DecodeError(f"unknown currentPlayer {turn!r}")

    difficulty = data.get("d", data.get("difficulty", DEFAULT_DIFFICULTY))
    if difficulty not in DIFFICULTIES:
        raise DecodeError(f"unknown difficulty {difficulty!r}")

    position = Position(cells, turn, False, difficulty)
    _check_reachable(position)

    finished = winner(position) is not None or is_board_full(position)
    terminal = data.get("g", data.get("isGameOver"))
    if terminal is None:
        terminal = finished
    elif not isinstance(terminal, bool):
        raise DecodeError("isGameOver must be a boolean")
    elif terminal != finished:
        raise DecodeError("isGameOver does not match the board")
    position.terminal = terminal
    return position


def decode_or_new(token: Optional[str], difficulty: str = DEFAULT_DIFFICULTY) -> Position:
    """Decode token, starting a fresh game when it is missing or broken."""
    if not token:
        return new_position(difficulty)
    try:
        return decode(token)
    except DecodeError as exc:
        logger.warning("Discarding unreadable state token: %s", exc)
        return new_position(difficulty)
