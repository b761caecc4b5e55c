"""Solved grid plus the engine's deduction trace, with prefix replay."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional

if TYPE_CHECKING:
    from .model import Puzzle

MISSING = "___"

PairTable = Dict[FrozenSet[str], bool]


class Relation(Enum):
    RELATED = "related"
    EXCLUDED = "excluded"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SolutionStep:
    """One deduction: whether `label1` and `label2` belong to the same entity."""

    label1: str
    label2: str
    yes: bool
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        if self.description is None:
            out.pop("description")
        return out


@dataclass
class Solution:
    rows: List[Dict[str, Optional[str]]] = field(default_factory=list)
    steps: List[SolutionStep] = field(default_factory=list)

    def _check_prefix(self, k: int) -> None:
        if not 0 <= k <= len(self.steps):
            raise IndexError(f"Step prefix {k} outside 0..{len(self.steps)}")

    def replay(self, k: int) -> PairTable:
        """
        Fold the first `k` steps into a {label1, label2} -> yes table.
        Pairs are unordered, so a later step about the same two labels
        overwrites an earlier one whichever way round it names them.
        Rebuilt from scratch on every call since `k` moves both ways while
        scrubbing.
        """
        self._check_prefix(k)
        table: PairTable = {}
        for step in self.steps[:k]:
            table[frozenset((step.label1, step.label2))] = step.yes
        return table

    def relation(self, k: int, label_a: str, label_b: str) -> Relation:
        if label_a == label_b:
            raise ValueError("relation() needs two distinct labels")
        return _lookup(self.replay(k), label_a, label_b)

    def grid(self, k: int, puzzle: "Puzzle") -> List[List[Relation]]:
        """Label-by-label matrix at prefix `k`, indexed by global label index."""
        table = self.replay(k)
        size = len(puzzle.labels)
        cells: List[List[Relation]] = []
        for i in range(size):
            row = []
            for j in range(size):
                if puzzle.category_of(i) == puzzle.category_of(j):
                    row.append(Relation.RELATED if i == j else Relation.EXCLUDED)
                else:
                    row.append(_lookup(table, puzzle.labels[i], puzzle.labels[j]))
            cells.append(row)
        return cells

    def steps_upto(self, k: int) -> List[SolutionStep]:
        self._check_prefix(k)
        return self.steps[:k]

    def table(self, puzzle: "Puzzle") -> Dict[str, List[Any]]:
        """Header/rows view of the solved grid in category order."""
        header = list(puzzle.categories)
        rows = [
            [row.get(category) or MISSING for category in header]
            for row in self.rows
        ]
        return {"header": header, "rows": rows}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "solution": [dict(row) for row in self.rows],
            "steps": [step.to_dict() for step in self.steps],
        }


def _lookup(table: PairTable, a: str, b: str) -> Relation:
    yes = table.get(frozenset((a, b)))
    if yes is None:
        return Relation.UNKNOWN
    return Relation.RELATED if yes else Relation.EXCLUDED


__all__ = ["Relation", "SolutionStep", "Solution", "MISSING"]
