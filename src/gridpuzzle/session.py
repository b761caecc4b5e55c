"""Per-user session: the current puzzle, its solution and the scrub position.

States move NO_PUZZLE -> EDITING -> SOLVING -> SOLVED | FAILED. A failed solve
keeps its message and accepts further edits or a resubmission. Each submit
hands out a ticket; results delivered with an older ticket are dropped, which
is how a response that arrives after the user moved on gets ignored.
"""

import logging
from enum import Enum
from typing import Optional

from .codec import parse_response
from .engine import Engine, EngineResponse
from .errors import EngineError, ProtocolError, SessionError, SolveError
from .model import Puzzle
from .persistence import from_fragment, to_fragment
from .solution import Solution

logger = logging.getLogger(__name__)

PROTOCOL_FAILURE = "The solver returned an unexpected response."


class SessionState(Enum):
    NO_PUZZLE = "no_puzzle"
    EDITING = "editing"
    SOLVING = "solving"
    SOLVED = "solved"
    FAILED = "failed"


class Session:
    def __init__(self) -> None:
        self.state = SessionState.NO_PUZZLE
        self.puzzle: Optional[Puzzle] = None
        self.solution: Optional[Solution] = None
        self.error: Optional[str] = None
        self._position = 0
        self._ticket = 0

    @classmethod
    def from_fragment(cls, fragment: str) -> "Session":
        """Restore a bookmarked session; malformed fragments give an empty puzzle."""
        session = cls()
        puzzle, solution = from_fragment(fragment)
        session.edit(puzzle)
        if solution is not None:
            session._solved(solution)
        return session

    def to_fragment(self) -> str:
        if self.puzzle is None:
            raise SessionError("No puzzle to bookmark")
        return to_fragment(self.puzzle, self.solution)

    # -- transitions ---------------------------------------------------------

    def edit(self, puzzle: Puzzle) -> None:
        """Replace the puzzle. Any solve in flight is abandoned."""
        self._ticket += 1
        self.puzzle = puzzle
        self.solution = None
        self._position = 0
        if self.state is not SessionState.FAILED:
            self.error = None
        self.state = SessionState.EDITING

    def begin_solve(self) -> int:
        if self.state is SessionState.SOLVING:
            raise SessionError("A solve is already in progress")
        if self.state not in (SessionState.EDITING, SessionState.FAILED) or self.puzzle is None:
            raise SessionError(f"Cannot submit from state {self.state.value}")
        # Validation errors propagate and leave the session in its current state.
        self.puzzle.validate()
        self._ticket += 1
        self.error = None
        self.state = SessionState.SOLVING
        return self._ticket

    def finish_solve(self, ticket: int, response: EngineResponse) -> bool:
        """Apply an engine response. Returns False when the ticket is stale."""
        if not self._accepts(ticket):
            return False
        try:
            solution = parse_response(response)
        except SolveError as e:
            self._failed(str(e))
        except ProtocolError as e:
            logger.error("Engine protocol violation: %s", e)
            self._failed(PROTOCOL_FAILURE)
        except Exception:
            # A response that breaks the parser must not leave the session SOLVING.
            logger.exception("Could not read engine response")
            self._failed(PROTOCOL_FAILURE)
        else:
            self._solved(solution)
        return True

    def fail_solve(self, ticket: int, message: str) -> bool:
        if not self._accepts(ticket):
            return False
        self._failed(message)
        return True

    def solve(self, engine: Engine) -> SessionState:
        """Blocking submit: encode, call the engine once and apply its answer."""
        ticket = self.begin_solve()
        text = self.puzzle.to_canonical_text()
        try:
            response = engine(text)
        except EngineError as e:
            logger.warning("Engine call failed: %s", e)
            self.fail_solve(ticket, str(e))
            return self.state
        except Exception as e:
            logger.exception("Engine call raised")
            self.fail_solve(ticket, f"Solver failed: {e}")
            return self.state
        self.finish_solve(ticket, response)
        return self.state

    # -- scrubbing -----------------------------------------------------------

    @property
    def position(self) -> int:
        return self._position

    @position.setter
    def position(self, k: int) -> None:
        if self.state is not SessionState.SOLVED:
            raise SessionError("Only a solved session has a step position")
        total = len(self.solution.steps)
        low = 1 if total else 0
        if not low <= k <= total:
            raise SessionError(f"Step position must be within {low}..{total}")
        self._position = k

    # -- internals -----------------------------------------------------------

    def _accepts(self, ticket: int) -> bool:
        if ticket != self._ticket or self.state is not SessionState.SOLVING:
            logger.debug("Dropping stale solve result (ticket %s, current %s)", ticket, self._ticket)
            return False
        return True

    def _solved(self, solution: Solution) -> None:
        self.solution = solution
        self.error = None
        self._position = len(solution.steps)
        self.state = SessionState.SOLVED

    def _failed(self, message: str) -> None:
        self.solution = None
        self.error = message
        self.state = SessionState.FAILED


__all__ = ["Session", "SessionState", "PROTOCOL_FAILURE"]
