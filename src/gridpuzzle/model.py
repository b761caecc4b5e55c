"""Puzzle data structures: categories, labels and typed clues.

A `Puzzle` is an immutable value. Every edit method validates its input and
returns a new `Puzzle`, so a value handed to the codec or the engine can never
change underneath it.
"""

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Tuple

from .catalogue import ClueKind, ParamType, lookup
from .errors import ValidationError

MIN_LABELS = 2
_FORBIDDEN = (",", "\n", "\r")
# Section markers of the canonical text; a name equal to one would start a new section.
SECTION_HEADERS = ("[Categories]", "[Clues]")


@dataclass(frozen=True)
class Clue:
    name: str
    kind: str
    params: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", tuple(self.params))

    @property
    def clue_kind(self) -> ClueKind:
        return lookup(self.kind)


def _check_name(value: object, what: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{what} name must not be empty", field)
    for ch in _FORBIDDEN:
        if ch in value:
            shown = "a comma" if ch == "," else "a line break"
            raise ValidationError(f"{what} name {value!r} must not contain {shown}", field)
    if value != value.strip():
        raise ValidationError(
            f"{what} name {value!r} must not start or end with whitespace", field
        )
    if value in SECTION_HEADERS:
        raise ValidationError(f"{what} name {value!r} is reserved", field)
    return value


@dataclass(frozen=True)
class Puzzle:
    """
    Categories in order, the flat label sequence, the shared label count and
    the clue list. Label `i` belongs to category `i // num_labels` at position
    `i % num_labels`. Unset labels are empty strings until named.
    """

    categories: Tuple[str, ...] = ()
    labels: Tuple[str, ...] = ()
    num_labels: int = MIN_LABELS
    clues: Tuple[Clue, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "categories", tuple(self.categories))
        object.__setattr__(self, "labels", tuple(self.labels))
        object.__setattr__(self, "clues", tuple(self.clues))
        if isinstance(self.num_labels, bool) or not isinstance(self.num_labels, int):
            raise ValidationError("numLabels must be an integer", "numLabels")
        if self.num_labels < MIN_LABELS:
            raise ValidationError(
                f"Each category needs at least {MIN_LABELS} labels", "numLabels"
            )
        expected = len(self.categories) * self.num_labels
        if len(self.labels) != expected:
            raise ValidationError(
                f"Expected {expected} labels for {len(self.categories)} categories, "
                f"found {len(self.labels)}",
                "labels",
            )

    @classmethod
    def empty(cls, num_labels: int = MIN_LABELS) -> "Puzzle":
        return cls(num_labels=num_labels)

    # -- shape ---------------------------------------------------------------

    @property
    def num_categories(self) -> int:
        return len(self.categories)

    def label_index(self, category_index: int, position: int) -> int:
        self._check_category_index(category_index, "categories")
        if not 0 <= position < self.num_labels:
            raise ValidationError(f"Label position {position} is out of range", "labels")
        return category_index * self.num_labels + position

    def category_of(self, label_index: int) -> int:
        return label_index // self.num_labels

    def labels_in(self, category_index: int) -> Tuple[str, ...]:
        start = category_index * self.num_labels
        return self.labels[start : start + self.num_labels]

    def label_by_name(self, name: str) -> int:
        try:
            return self.labels.index(name)
        except ValueError:
            raise ValidationError(f"Label not found: {name}", "labels") from None

    def category_by_name(self, name: str) -> int:
        try:
            return self.categories.index(name)
        except ValueError:
            raise ValidationError(f"Category not found: {name}", "categories") from None

    # -- edits ---------------------------------------------------------------

    def with_num_labels(self, num_labels: int) -> "Puzzle":
        if num_labels == self.num_labels:
            return self
        if self.categories:
            raise ValidationError(
                "The number of labels cannot change once categories exist", "numLabels"
            )
        return replace(self, num_labels=num_labels)

    def add_category(self, name: str) -> "Puzzle":
        field = f"categories[{len(self.categories)}]"
        _check_name(name, "Category", field)
        if name in self.categories:
            raise ValidationError(f"Duplicate category name: {name}", field)
        return replace(
            self,
            categories=self.categories + (name,),
            labels=self.labels + ("",) * self.num_labels,
        )

    def set_category_name(self, index: int, name: str) -> "Puzzle":
        field = f"categories[{index}]"
        self._check_category_index(index, field)
        _check_name(name, "Category", field)
        if any(n == name for i, n in enumerate(self.categories) if i != index):
            raise ValidationError(f"Duplicate category name: {name}", field)
        categories = list(self.categories)
        categories[index] = name
        return replace(self, categories=tuple(categories))

    def set_label(self, category_index: int, position: int, name: str) -> "Puzzle":
        index = self.label_index(category_index, position)
        field = f"labels[{index}]"
        _check_name(name, "Label", field)
        if any(n == name for i, n in enumerate(self.labels) if i != index):
            raise ValidationError(f"Duplicate label name: {name}", field)
        labels = list(self.labels)
        labels[index] = name
        return replace(self, labels=tuple(labels))

    def add_or_replace_clue(
        self,
        index: int,
        kind: str,
        params: Sequence[int],
        name: Optional[str] = None,
    ) -> "Puzzle":
        if not 0 <= index <= len(self.clues):
            raise ValidationError(f"Clue index {index} is out of range", "clues")
        clue = Clue(name=str(index + 1) if name is None else name, kind=kind, params=tuple(params))
        self._check_clue(clue, f"clues[{index}]")
        clues = list(self.clues)
        if index == len(clues):
            clues.append(clue)
        else:
            clues[index] = clue
        return replace(self, clues=tuple(clues))

    def remove_clue(self, index: int) -> "Puzzle":
        if not 0 <= index < len(self.clues):
            raise ValidationError(f"Clue index {index} is out of range", "clues")
        return replace(self, clues=self.clues[:index] + self.clues[index + 1 :])

    # -- validation ----------------------------------------------------------

    def validate(self) -> "Puzzle":
        """Check everything the codec relies on; returns self so calls can chain."""
        if not self.categories:
            raise ValidationError("A puzzle needs at least one category", "categories")
        for i, name in enumerate(self.categories):
            _check_name(name, "Category", f"categories[{i}]")
        _check_unique(self.categories, "category", "categories")

        for i, name in enumerate(self.labels):
            category = self.categories[self.category_of(i)]
            if not isinstance(name, str) or not name.strip():
                raise ValidationError(
                    f"Category {category!r} has an unnamed label at position "
                    f"{i % self.num_labels + 1}",
                    f"labels[{i}]",
                )
            _check_name(name, "Label", f"labels[{i}]")
        _check_unique(self.labels, "label", "labels")

        if not self.clues:
            raise ValidationError("A puzzle needs at least one clue", "clues")
        for i, clue in enumerate(self.clues):
            self._check_clue(clue, f"clues[{i}]")
        return self

    def to_canonical_text(self) -> str:
        """Validate, then serialize with the codec."""
        from .codec import encode_puzzle

        return encode_puzzle(self)

    def _check_category_index(self, index: int, field: str) -> None:
        if not 0 <= index < len(self.categories):
            raise ValidationError(f"Category index {index} is out of range", field)

    def _check_clue(self, clue: Clue, field: str) -> None:
        kind = lookup(clue.kind)
        _check_name(clue.name, "Clue", f"{field}.name")
        if len(clue.params) != kind.arity:
            raise ValidationError(
                f"Clue kind {kind.name!r} takes {kind.arity} parameters, got {len(clue.params)}",
                f"{field}.params",
            )
        for slot, (ptype, value) in enumerate(zip(kind.params, clue.params)):
            slot_field = f"{field}.params[{slot}]"
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"Parameter {slot + 1} must be an integer", slot_field)
            if ptype is ParamType.LABEL and not 0 <= value < len(self.labels):
                raise ValidationError(f"Label index {value} is out of range", slot_field)
            if ptype is ParamType.CATEGORY and not 0 <= value < len(self.categories):
                raise ValidationError(f"Category index {value} is out of range", slot_field)
            if ptype is ParamType.NUMBER and value < kind.min_number:
                raise ValidationError(
                    f"Clue kind {kind.name!r} needs a number of at least {kind.min_number}",
                    slot_field,
                )


def _check_unique(names: Iterable[str], what: str, field: str) -> None:
    seen: List[str] = []
    for i, name in enumerate(names):
        if name in seen:
            raise ValidationError(f"Duplicate {what} name: {name}", f"{field}[{i}]")
        seen.append(name)


__all__ = ["Clue", "Puzzle", "MIN_LABELS"]
