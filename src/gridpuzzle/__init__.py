"""Logic grid puzzle model, canonical text codec and solution step replay."""

from .catalogue import KINDS, ClueKind, ParamType, lookup
from .codec import decode_categories, decode_puzzle, encode_puzzle, parse_response
from .model import Clue, Puzzle
from .session import Session, SessionState
from .solution import Relation, Solution, SolutionStep

__all__ = [
    "KINDS",
    "ClueKind",
    "ParamType",
    "lookup",
    "Clue",
    "Puzzle",
    "encode_puzzle",
    "decode_categories",
    "decode_puzzle",
    "parse_response",
    "Relation",
    "Solution",
    "SolutionStep",
    "Session",
    "SessionState",
]
