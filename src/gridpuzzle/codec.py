"""Canonical text protocol for puzzles, and shape checks for engine responses.

Text layout consumed by the solving engine:

    [Categories]
    <category>
    <label>
    ...
    <blank line>
    ...
    [Clues]
    <clue name>,<kind>,<param>,...

Names are printed verbatim; the protocol has no escaping, so the model rejects
commas, line breaks, surrounding whitespace and the two section markers in
names before anything gets here. Reading trims each field.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Mapping, Tuple, Union

from .catalogue import ParamType, kind_for_token, lookup
from .errors import PuzzleFormatError, ProtocolError, SolveError, UnknownClueKind, ValidationError
from .model import SECTION_HEADERS, Puzzle
from .solution import Solution, SolutionStep

CATEGORIES_HEADER, CLUES_HEADER = SECTION_HEADERS

_NUMBER = re.compile(r"^(0|[1-9][0-9]*)$")


def encode_puzzle(puzzle: Puzzle) -> str:
    puzzle.validate()
    lines: List[str] = [CATEGORIES_HEADER]
    for c, category in enumerate(puzzle.categories):
        lines.append(category)
        lines.extend(puzzle.labels_in(c))
        lines.append("")

    lines.append(CLUES_HEADER)
    for clue in puzzle.clues:
        kind = lookup(clue.kind)
        fields = [clue.name, kind.token]
        for ptype, value in zip(kind.params, clue.params):
            if ptype is ParamType.LABEL:
                fields.append(puzzle.labels[value])
            elif ptype is ParamType.CATEGORY:
                fields.append(puzzle.categories[value])
            else:
                fields.append(str(int(value)))
        lines.append(",".join(fields))

    return "\n".join(lines) + "\n"


def _split_sections(text: str) -> Tuple[List[Tuple[str, List[str]]], List[Tuple[int, str]]]:
    """Return the category blocks and the numbered clue lines."""
    lines = text.strip().splitlines()
    pos = 0
    while pos < len(lines) and lines[pos].strip() != CATEGORIES_HEADER:
        pos += 1
    if pos == len(lines):
        raise PuzzleFormatError(f"Missing {CATEGORIES_HEADER} marker", "text")
    pos += 1

    blocks: List[Tuple[str, List[str]]] = []
    while True:
        if pos >= len(lines):
            raise PuzzleFormatError(f"Missing {CLUES_HEADER} marker", "text")
        name = lines[pos].strip()
        pos += 1
        if name == CLUES_HEADER:
            break
        labels: List[str] = []
        while True:
            if pos >= len(lines):
                raise PuzzleFormatError(f"Missing {CLUES_HEADER} marker", "text")
            line = lines[pos]
            pos += 1
            if not line.strip():
                break
            labels.append(line.strip())
        blocks.append((name, labels))

    clue_lines = [(n + 1, line) for n, line in enumerate(lines) if n >= pos and line.strip()]
    return blocks, clue_lines


def decode_categories(text: str) -> Tuple[List[str], List[str], int]:
    """Recover `(categories, labels, num_labels)` from canonical text."""
    blocks, _ = _split_sections(text)
    if not blocks:
        raise PuzzleFormatError("No categories found", "text")
    num_labels = len(blocks[0][1])
    categories: List[str] = []
    labels: List[str] = []
    for name, block_labels in blocks:
        if len(block_labels) != num_labels:
            raise PuzzleFormatError(
                f'Invalid number of labels in category "{name}", '
                f"expected {num_labels} but found {len(block_labels)}",
                "text",
            )
        categories.append(name)
        labels.extend(block_labels)
    return categories, labels, num_labels


def decode_puzzle(text: str) -> Puzzle:
    """Parse canonical text back into a `Puzzle`, resolving names to indices."""
    categories, labels, num_labels = decode_categories(text)
    _, clue_lines = _split_sections(text)

    try:
        puzzle = Puzzle.empty(num_labels)
        for c, name in enumerate(categories):
            puzzle = puzzle.add_category(name)
            for p, label in enumerate(labels[c * num_labels : (c + 1) * num_labels]):
                puzzle = puzzle.set_label(c, p, label)
    except PuzzleFormatError:
        raise
    except ValidationError as e:
        raise PuzzleFormatError(str(e), e.field) from e

    for line_number, line in clue_lines:
        name, _, rest = line.partition(",")
        token, _, rest = rest.partition(",")
        fields = rest.split(",") if rest else []
        try:
            kind = kind_for_token(token.strip(), len(fields))
            params = [_decode_param(puzzle, ptype, raw) for ptype, raw in zip(kind.params, fields)]
            puzzle = puzzle.add_or_replace_clue(
                len(puzzle.clues), kind.name, params, name=name.strip()
            )
        except (UnknownClueKind, ValidationError) as e:
            raise PuzzleFormatError(f"in line {line_number}: {e}", "text") from e

    return puzzle


def _decode_param(puzzle: Puzzle, ptype: ParamType, raw: str) -> int:
    if ptype is ParamType.LABEL:
        return puzzle.label_by_name(raw.strip())
    if ptype is ParamType.CATEGORY:
        return puzzle.category_by_name(raw.strip())
    if not _NUMBER.match(raw.strip()):
        raise PuzzleFormatError(f"Invalid integer: {raw!r}", "text")
    return int(raw)


def parse_response(body: Union[str, bytes, Mapping[str, Any]]) -> Solution:
    """
    Turn an engine response into a `Solution`.

    `{"error": ...}` raises `SolveError` with the engine's message;
    `{"solution": [...], "steps": [...]}` returns a `Solution`; any other
    shape raises `ProtocolError`.
    """
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except (ValueError, RecursionError) as e:
            raise ProtocolError(f"Engine response is not valid JSON: {e}") from e
    if not isinstance(body, Mapping):
        raise ProtocolError(f"Engine response must be an object, got {type(body).__name__}")

    has_error = "error" in body
    has_solution = "solution" in body or "steps" in body
    if has_error and has_solution:
        raise ProtocolError("Engine response carries both an error and a solution")
    if has_error:
        if not isinstance(body["error"], str):
            raise ProtocolError("Engine error message must be a string")
        raise SolveError(body["error"])
    if "solution" not in body or "steps" not in body:
        raise ProtocolError("Engine response has neither an error nor a complete solution")

    return Solution(rows=_parse_rows(body["solution"]), steps=_parse_steps(body["steps"]))


def _parse_rows(raw: Any) -> List[dict]:
    if not isinstance(raw, list):
        raise ProtocolError("'solution' must be a list of rows")
    rows = []
    for i, row in enumerate(raw):
        if not isinstance(row, Mapping):
            raise ProtocolError(f"solution[{i}] must be an object")
        for key, value in row.items():
            # Unsettled cells come back as null.
            if not isinstance(key, str) or not (value is None or isinstance(value, str)):
                raise ProtocolError(f"solution[{i}] must map category names to label names")
        rows.append(dict(row))
    return rows


def _parse_steps(raw: Any) -> List[SolutionStep]:
    if not isinstance(raw, list):
        raise ProtocolError("'steps' must be a list")
    steps = []
    for i, step in enumerate(raw):
        if not isinstance(step, Mapping):
            raise ProtocolError(f"steps[{i}] must be an object")
        label1, label2, yes = step.get("label1"), step.get("label2"), step.get("yes")
        description = step.get("description")
        if not isinstance(label1, str) or not isinstance(label2, str):
            raise ProtocolError(f"steps[{i}] needs string 'label1' and 'label2'")
        if not isinstance(yes, bool):
            raise ProtocolError(f"steps[{i}] needs a boolean 'yes'")
        if description is not None and not isinstance(description, str):
            raise ProtocolError(f"steps[{i}].description must be a string")
        steps.append(SolutionStep(label1=label1, label2=label2, yes=yes, description=description))
    return steps


__all__ = [
    "CATEGORIES_HEADER",
    "CLUES_HEADER",
    "encode_puzzle",
    "decode_categories",
    "decode_puzzle",
    "parse_response",
]
