"""Bookmarkable state: a puzzle (and optional solution) as a URL fragment.

The fragment is percent-encoded JSON of
`{categories, labels, numLabels, clues}`, with clue parameters stored as raw
indices/numbers. A `solution` key holding `{solution, steps}` is added when a
solution is attached.
"""

import json
import logging
import re
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote, unquote

from .codec import parse_response
from .errors import GridPuzzleError, PersistenceError
from .model import Clue, Puzzle
from .solution import Solution

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"^\s*-?[0-9]+\s*$")


def puzzle_to_dict(puzzle: Puzzle) -> Dict[str, Any]:
    return {
        "categories": list(puzzle.categories),
        "labels": list(puzzle.labels),
        "numLabels": puzzle.num_labels,
        "clues": [
            {"name": clue.name, "kind": clue.kind, "params": list(clue.params)}
            for clue in puzzle.clues
        ],
    }


def puzzle_from_dict(data: Any) -> Puzzle:
    """Build a puzzle from the fragment-shaped mapping and validate its clues."""
    if not isinstance(data, dict):
        raise PersistenceError("Puzzle state must be an object")
    try:
        categories = data["categories"]
        labels = data["labels"]
        num_labels = data["numLabels"]
        raw_clues = data.get("clues", [])
        # Form selects hand back strings, so indices are coerced here.
        clues = [
            Clue(
                name=str(raw["name"]),
                kind=str(raw["kind"]),
                params=tuple(_as_int(p) for p in raw["params"]),
            )
            for raw in raw_clues
        ]
        num_labels = _as_int(num_labels)
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise PersistenceError(f"Malformed puzzle state: {e}") from e
    if not isinstance(categories, list) or not isinstance(labels, list):
        raise PersistenceError("categories and labels must be lists")
    if not all(isinstance(name, str) for name in categories + labels):
        raise PersistenceError("category and label names must be strings")

    puzzle = Puzzle(
        categories=tuple(categories),
        labels=tuple(labels),
        num_labels=num_labels,
    )
    for i, clue in enumerate(clues):
        puzzle = puzzle.add_or_replace_clue(i, clue.kind, clue.params, name=clue.name)
    return puzzle


def _as_int(value: Any) -> int:
    """Accept ints, digit strings and whole floats; anything else is a ValueError."""
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INTEGER.match(value):
        return int(value)
    raise ValueError(f"expected an integer, got {value!r}")


def to_fragment(puzzle: Puzzle, solution: Optional[Solution] = None) -> str:
    state = puzzle_to_dict(puzzle)
    if solution is not None:
        state["solution"] = solution.to_dict()
    return quote(json.dumps(state, separators=(",", ":"), ensure_ascii=False), safe="")


def load_fragment(fragment: str) -> Tuple[Puzzle, Optional[Solution]]:
    """Strict decode; raises `PersistenceError` on any malformed content."""
    raw = fragment[1:] if fragment.startswith("#") else fragment
    try:
        state = json.loads(unquote(raw, errors="strict"))
    except (ValueError, RecursionError) as e:
        raise PersistenceError(f"Fragment is not valid JSON: {e}") from e

    try:
        puzzle = puzzle_from_dict(state)
        solution = None
        if state.get("solution") is not None:
            solution = parse_response(state["solution"])
    except PersistenceError:
        raise
    except GridPuzzleError as e:
        raise PersistenceError(f"Fragment holds an invalid puzzle: {e}") from e
    return puzzle, solution


def from_fragment(fragment: str) -> Tuple[Puzzle, Optional[Solution]]:
    """Decode a fragment, falling back to an empty puzzle when it is malformed."""
    if not fragment or fragment == "#":
        return Puzzle.empty(), None
    try:
        return load_fragment(fragment)
    except PersistenceError as e:
        logger.debug("Ignoring malformed fragment: %s", e)
        return Puzzle.empty(), None


__all__ = [
    "puzzle_to_dict",
    "puzzle_from_dict",
    "to_fragment",
    "load_fragment",
    "from_fragment",
]
