#!/usr/bin/env python3
"""
game_logic.py

Tic-Tac-Toe engine for the frame service.

Contents:
- Position: the full game state that is round-tripped through the state token.
- Rules: pure functions to validate, apply and evaluate moves.
- OpponentPolicy: the computer's heuristic move selection (beatable on purpose).
- play_turn: one request worth of play (human move, then computer reply).

Run this file to play against the computer on the command line.
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

HUMAN_MARK = "O"
MACHINE_MARK = "X"
MARKS = (HUMAN_MARK, MACHINE_MARK)

DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY = "medium"

CENTER = 4
COORDINATES = ["A1", "A2", "A3", "B1", "B2", "B3", "C1", "C2", "C3"]

WIN_LINES = [
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
]

OUTCOME_WIN = "win"
OUTCOME_LOSS = "loss"
OUTCOME_TIE = "tie"


# -------------------------
# Errors
# -------------------------
class MoveError(ValueError):
    """A requested move cannot be applied to the position."""


class CellTakenError(MoveError):
    def __init__(self, index: int):
        super().__init__(f"cell {index} ({COORDINATES[index]}) is already taken")
        self.index = index


class GameOverError(MoveError):
    def __init__(self):
        super().__init__("game is already over")


class PolicyError(RuntimeError):
    """The opponent policy was invoked on a position it cannot play."""


class NoMovesAvailableError(PolicyError):
    def __init__(self):
        super().__init__("no empty cell left for the opponent to play")


# -------------------------
# Position: game state
# -------------------------
def other_mark(mark: str) -> str:
    return MACHINE_MARK if mark == HUMAN_MARK else HUMAN_MARK


def coordinate(index: int) -> str:
    """Human readable label for a cell index, row-major ("A1".."C3")."""
    _check_index(index)
    return COORDINATES[index]


@dataclass
class Position:
    cells: List[Optional[str]] = field(default_factory=lambda: [None] * 9)
    turn: str = HUMAN_MARK
    terminal: bool = False
    difficulty: str = DEFAULT_DIFFICULTY

    def copy(self) -> "Position":
        return Position(self.cells[:], self.turn, self.terminal, self.difficulty)

    def mark_count(self) -> int:
        return sum(1 for c in self.cells if c is not None)

    def __str__(self) -> str:
        def cell(i):
            v = self.cells[i]
            return v if v is not None else str(i + 1)
        rows = [
            f" {cell(0)} | {cell(1)} | {cell(2)} ",
            "---+---+---",
            f" {cell(3)} | {cell(4)} | {cell(5)} ",
            "---+---+---",
            f" {cell(6)} | {cell(7)} | {cell(8)} ",
        ]
        return "\n".join(rows)


def new_position(difficulty: str = DEFAULT_DIFFICULTY) -> Position:
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")
    return Position(difficulty=difficulty)


# -------------------------
# Rules
# -------------------------
def _check_index(index: int) -> None:
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < 9:
        raise IndexError(f"cell index must be in 0..8, got {index!r}")


def is_occupied(position: Position, index: int) -> bool:
    _check_index(index)
    return position.cells[index] is not None


def available_moves(position: Position) -> List[int]:
    return [i for i, v in enumerate(position.cells) if v is None]


def is_board_full(position: Position) -> bool:
    return None not in position.cells


def winner(position: Position) -> Optional[str]:
    """Return the mark completing a line, or None."""
    cells = position.cells
    for a, b, c in WIN_LINES:
        if cells[a] is not None and cells[a] == cells[b] == cells[c]:
            return cells[a]
    return None


def check_win(position: Position) -> bool:
    return winner(position) is not None


def is_draw(position: Position) -> bool:
    return is_board_full(position) and not check_win(position)


def apply_move(position: Position, index: int, mark: str) -> Position:
    """
    Place mark at index and return the resulting position.

    The input position is left untouched. The result is terminal when the
    move completes a line or fills the board. A board that already holds a
    line or is full refuses moves whatever its terminal flag says.
    """
    if mark not in MARKS:
        raise ValueError(f"mark must be one of {MARKS}, got {mark!r}")
    if position.terminal or check_win(position) or is_board_full(position):
        raise GameOverError()
    if is_occupied(position, index):
        raise CellTakenError(index)

    result = position.copy()
    result.cells[index] = mark
    result.turn = other_mark(mark)
    if check_win(result) or is_board_full(result):
        result.terminal = True
    return result


# -------------------------
# Opponent policy
# -------------------------
class OpponentPolicy:
    """
    Heuristic computer opponent.

    Checks run in a fixed order and the first one that applies picks the move:
    random mistake, random opening reply, immediate win, immediate block,
    center (taken with probability center_rate), random empty cell.

    rng only needs random() and choice(); tests pass a scripted source.
    """

    def __init__(self, mistake_rate: float = 0.2, center_rate: float = 0.7,
                 rng: Optional[random.Random] = None):
        for name, value in (("mistake_rate", mistake_rate), ("center_rate", center_rate)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1")
        self.mistake_rate = mistake_rate
        self.center_rate = center_rate
        self.rng = rng if rng is not None else random.Random()

    def select_move(self, position: Position, mark: str) -> int:
        moves = available_moves(position)
        if not moves:
            raise NoMovesAvailableError()

        # difficulty is stored on the position but does not change the rates
        if self.rng.random() < self.mistake_rate:
            return self.rng.choice(moves)

        if position.mark_count() == 1:
            return self.rng.choice(moves)

        move = self._completing_move(position, mark, moves)
        if move is not None:
            return move

        move = self._completing_move(position, other_mark(mark), moves)
        if move is not None:
            return move

        if CENTER in moves and self.rng.random() < self.center_rate:
            return CENTER

        return self.rng.choice(moves)

    @staticmethod
    def _completing_move(position: Position, mark: str, moves: List[int]) -> Optional[int]:
        """First empty cell (ascending) where mark would complete a line."""
        for m in moves:
            trial = position.copy()
            trial.cells[m] = mark
            if check_win(trial):
                return m
        return None


# -------------------------
# One interaction
# -------------------------
@dataclass
class TurnResult:
    position: Position
    human_move: int
    machine_move: Optional[int] = None
    outcome: Optional[str] = None  # 'win'/'loss'/'tie' from the human's side, None while running


def play_turn(position: Position, index: int, policy: OpponentPolicy) -> TurnResult:
    """
    Apply the human move at index and, if the game goes on, the computer reply.

    Raises CellTakenError/GameOverError without touching the position.
    """
    after_human = apply_move(position, index, HUMAN_MARK)
    if winner(after_human) == HUMAN_MARK:
        return TurnResult(after_human, index, outcome=OUTCOME_WIN)
    if is_draw(after_human):
        return TurnResult(after_human, index, outcome=OUTCOME_TIE)

    reply = policy.select_move(after_human, MACHINE_MARK)
    after_machine = apply_move(after_human, reply, MACHINE_MARK)
    if winner(after_machine) == MACHINE_MARK:
        return TurnResult(after_machine, index, reply, OUTCOME_LOSS)
    if is_draw(after_machine):
        return TurnResult(after_machine, index, reply, OUTCOME_TIE)
    return TurnResult(after_machine, index, reply)


def describe_turn(result: TurnResult, username: str = "Player") -> str:
    """Status line shown under the board after a turn."""
    if result.outcome == OUTCOME_WIN:
        return f"{username} wins! Game over."
    if result.machine_move is None:
        return "Game over! It's a Tie."
    message = f"{username} moved at {COORDINATES[result.human_move]}."
    message += f" Computer moved at {COORDINATES[result.machine_move]}."
    if result.outcome == OUTCOME_LOSS:
        return message + " Computer wins! Game over."
    if result.outcome == OUTCOME_TIE:
        return message + " It's a draw. Game over."
    return message + f" Your turn, {username}."


# -------------------------
# Simple CLI demo / usage
# -------------------------
def human_vs_computer_cli(read: Callable[[str], str] = input,
                          policy: Optional[OpponentPolicy] = None) -> Position:
    from state_codec import encode

    print("Tic-Tac-Toe CLI - You are O (enter 1-9).")
    policy = policy or OpponentPolicy()
    position = new_position()

    while not position.terminal:
        print(position)
        raw = read("Your move (1-9): ").strip()
        try:
            idx = int(raw) - 1
            result = play_turn(position, idx, policy)
        except (ValueError, IndexError) as exc:
            print(f"Invalid move: {exc}")
            continue
        position = result.position
        print(describe_turn(result, "You"))
        print(f"token: {encode(position)}")

    print(position)
    return position


if __name__ == "__main__":
    print("Running CLI demo. Press Ctrl+C to quit.")
    try:
        human_vs_computer_cli()
    except KeyboardInterrupt:
        print("\nExiting demo.")
