"""Top-level solve interface.

Expose `solve_puzzle(puzzle)` that accepts a `Puzzle`, a puzzle record
dictionary (see `src.gridpuzzle.loader.record_to_puzzle`) or canonical puzzle
text, runs it through the external engine and returns the `Solution`.
"""

from typing import Any, Optional

from src.gridpuzzle.codec import decode_puzzle
from src.gridpuzzle.engine import Engine, SubprocessEngine
from src.gridpuzzle.errors import SolveError
from src.gridpuzzle.loader import record_to_puzzle
from src.gridpuzzle.model import Puzzle
from src.gridpuzzle.session import Session, SessionState
from src.gridpuzzle.solution import Solution


def as_puzzle(puzzle: Any) -> Puzzle:
    if isinstance(puzzle, Puzzle):
        return puzzle
    if isinstance(puzzle, dict):
        return record_to_puzzle(puzzle)
    if isinstance(puzzle, str):
        return decode_puzzle(puzzle)
    raise TypeError("solve_puzzle expects a Puzzle, a puzzle dictionary or puzzle text")


def solve_puzzle(puzzle: Any, engine: Optional[Engine] = None) -> Solution:
    """
    Solve a puzzle with `engine` (a `SubprocessEngine` configured from the
    environment when omitted). Raises `SolveError` when the solve fails and
    `ValidationError` when the puzzle is not ready to be solved.
    """
    session = Session()
    session.edit(as_puzzle(puzzle))
    state = session.solve(engine or SubprocessEngine())
    if state is not SessionState.SOLVED:
        raise SolveError(session.error or "Solve failed")
    return session.solution


__all__ = ["as_puzzle", "solve_puzzle"]
