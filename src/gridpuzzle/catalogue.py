"""Closed catalogue of clue kinds and the parameter shape of each."""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from .errors import UnknownClueKind


class ParamType(Enum):
    LABEL = "label"
    CATEGORY = "category"
    NUMBER = "number"


@dataclass(frozen=True)
class ClueKind:
    """
    A clue shape: its catalogue key, the ordered parameter types, and the word
    the text protocol uses for it. Kinds may share a `token`; the engine tells
    them apart by the number of parameters on the clue line.
    """

    name: str
    params: Tuple[ParamType, ...]
    token: str = ""
    min_number: int = 0

    def __post_init__(self) -> None:
        if not self.token:
            object.__setattr__(self, "token", self.name)

    @property
    def arity(self) -> int:
        return len(self.params)

    def describe(self) -> str:
        """Prompt template, e.g. "afterexactly(label, category, label, number)"."""
        return f"{self.name}({', '.join(p.value for p in self.params)})"


_L, _C, _N = ParamType.LABEL, ParamType.CATEGORY, ParamType.NUMBER

_KINDS: Dict[str, ClueKind] = {
    kind.name: kind
    for kind in (
        ClueKind("yes", (_L, _L)),
        ClueKind("no", (_L, _L)),
        ClueKind("after", (_L, _C, _L)),
        # "0 spots after" would just be `no`.
        ClueKind("afterexactly", (_L, _C, _L, _N), token="after", min_number=1),
        ClueKind("or", (_L, _L, _L)),
        ClueKind("xor", (_L, _L, _L)),
        ClueKind("twobytwo", (_L, _L, _L, _L)),
    )
}

KINDS: Mapping[str, ClueKind] = MappingProxyType(_KINDS)


def lookup(name: str) -> ClueKind:
    try:
        return KINDS[name]
    except KeyError:
        raise UnknownClueKind(f"Unknown clue kind: {name!r}") from None


def kind_for_token(token: str, arity: int) -> ClueKind:
    """Resolve a clue line's kind word and parameter count back to a catalogue entry."""
    for kind in KINDS.values():
        if kind.token == token and kind.arity == arity:
            return kind
    raise UnknownClueKind(f"No clue kind {token!r} takes {arity} parameter(s)")


__all__ = ["ParamType", "ClueKind", "KINDS", "lookup", "kind_for_token"]
