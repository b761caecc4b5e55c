"""Exception taxonomy shared by the puzzle model, codec, engine and session."""

from typing import Optional


class GridPuzzleError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(GridPuzzleError, ValueError):
    """A puzzle edit or a whole puzzle failed validation.

    `field` names the offending input (e.g. "labels[3]", "clues[0].params")
    so a form can attach the message next to it.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class PuzzleFormatError(ValidationError):
    """Canonical puzzle text could not be parsed."""


class UnknownClueKind(GridPuzzleError, LookupError):
    """A clue kind name that is not in the catalogue."""


class ProtocolError(GridPuzzleError):
    """The engine answered with a body that is neither a solution nor an error."""


class SolveError(GridPuzzleError):
    """The engine reported that the puzzle is malformed or unsolvable."""


class EngineError(GridPuzzleError):
    """The engine could not be invoked or exited abnormally."""


class PersistenceError(GridPuzzleError):
    """A bookmark fragment could not be decoded."""


class SessionError(GridPuzzleError):
    """An operation is not allowed in the session's current state."""
