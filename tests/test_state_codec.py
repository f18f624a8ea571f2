import base64
import json
import random

import pytest

from game_logic import Position, apply_move, available_moves, new_position
from state_codec import MAX_TOKEN_LENGTH, DecodeError, decode, decode_or_new, encode


def _token(payload):
    return base64.b64encode(json.dumps(payload).encode()).decode()


def test_round_trip_through_a_game():
    p = new_position("hard")
    for index, mark in [(4, "O"), (0, "X"), (8, "O"), (2, "X"), (1, "O"), (7, "X")]:
        p = apply_move(p, index, mark)
        assert decode(encode(p)) == p


def test_round_trip_keeps_terminal_flag():
    p = apply_move(Position(["O", "O", None, "X", "X", None, None, None, None]), 2, "O")
    assert p.terminal
    assert decode(encode(p)).terminal


def test_encoding_is_deterministic_and_transport_safe():
    p = apply_move(new_position(), 4, "O")
    token = encode(p)
    assert token == encode(p.copy())
    assert token.isascii()
    assert ":" not in token and "|" not in token
    assert all(ch.isprintable() for ch in token)
    assert len(token) <= MAX_TOKEN_LENGTH


def test_token_without_difficulty_uses_default():
    token = _token({"board": [None] * 4 + ["O"] + [None] * 4,
                    "currentPlayer": "X", "isGameOver": False})
    p = decode(token)
    assert p.difficulty == "medium"
    assert p.cells[4] == "O"
    assert p.turn == "X"


def test_missing_game_over_flag_is_recomputed():
    token = _token({"board": ["O", "O", "O", "X", "X", None, None, None, None]})
    assert decode(token).terminal
    token = _token({"board": ["X", None, None, "O", None, None, None, None, None]})
    assert not decode(token).terminal


@pytest.mark.parametrize("token", [
    "",
    "not base64!!",
    base64.b64encode(b"\xff\xfe").decode(),
    base64.b64encode(b"not json").decode(),
    _token([1, 2, 3]),
    _token({"board": [None] * 8}),
    _token({"board": ["Z"] + [None] * 8}),
    _token({"board": [None] * 9, "currentPlayer": "Q"}),
    _token({"board": [None] * 9, "difficulty": "nightmare"}),
    _token({"board": [None] * 9, "isGameOver": "yes"}),
    "A" * (MAX_TOKEN_LENGTH + 4),
])
def test_bad_tokens_raise_decode_error(token):
    with pytest.raises(DecodeError):
        decode(token)


def test_decode_or_new_recovers(caplog):
    p = decode_or_new("garbage", "easy")
    assert p == new_position("easy")
    assert "Discarding unreadable state token" in caplog.text
    assert decode_or_new(None) == new_position()


def test_decode_or_new_keeps_good_token():
    p = apply_move(new_position(), 0, "O")
    assert decode_or_new(encode(p)) == p


@pytest.mark.parametrize("seed", range(40))
def test_round_trip_over_random_games(seed):
    rng = random.Random(seed)
    p = new_position(rng.choice(["easy", "medium", "hard"]))
    assert decode(encode(p)) == p
    while not p.terminal:
        p = apply_move(p, rng.choice(available_moves(p)), p.turn)
        assert decode(encode(p)) == p


def test_full_board_token_is_short():
    p = Position(["X", "O", "X", "X", "O", "O", "O", "X", "O"], terminal=True)
    assert len(encode(p)) <= 64


def test_long_form_tokens_still_decode():
    token = _token({"board": ["O", None, None, None, "X", None, None, None, None],
                    "currentPlayer": "O", "isGameOver": False, "difficulty": "hard"})
    assert decode(token) == Position(["O", None, None, None, "X", None, None, None, None],
                                     "O", False, "hard")


@pytest.mark.parametrize("board,flag", [
    (["X", "X", "X", "O", "O", None, None, None, "O"], False),
    (["O", "O", "O", "X", "X", None, None, None, None], False),
    (["X", "O", "X", "X", "O", "O", "O", "X", "O"], False),
    (["O", None, None, None, "X", None, None, None, None], True),
])
def test_game_over_flag_must_match_board(board, flag):
    with pytest.raises(DecodeError):
        decode(_token({"board": board, "isGameOver": flag}))


@pytest.mark.parametrize("board", [
    ["X", None, None, None, None, None, None, None, None],
    ["O", "O", None, None, None, None, None, None, None],
    ["X", "X", "X", "O", "O", None, None, None, None],
    ["O", "O", "O", "X", "X", "X", None, None, None],
    ["O", "O", "O", "X", "X", None, "X", None, None],
])
def test_unreachable_boards_are_rejected(board):
    with pytest.raises(DecodeError):
        decode(_token({"board": board}))
