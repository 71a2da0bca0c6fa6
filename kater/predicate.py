"""Predicates on events and sets of predicates that compose."""

from __future__ import annotations

import bisect
import itertools
from dataclasses import dataclass, field, replace
from enum import IntEnum
from functools import total_ordering
from typing import Any, ClassVar, Iterable, Iterator, Optional, Union


@dataclass
class PredicateInfo:
    """Descriptive information attached to a predicate."""

    name: str = ""
    genmc: str = ""
    dbg: Optional[Any] = None


class BuiltinPredicate(IntEnum):
    """Identifiers of the builtin predicates."""

    # Access modes
    NA = 0
    RLX = 1
    ACQ = 2
    REL = 3
    SC = 4
    # Memory accesses
    W = 5
    R = 6
    # Exclusivity flags
    EXCL = 7
    NEXCL = 8
    # Fences
    F = 9
    # Thread events
    TC = 10
    TJ = 11
    TB = 12
    TE = 13
    TK = 14
    # Allocation
    ALLOC = 15
    FREE = 16
    HPRET = 17
    PROT = 18
    HPPROT = 19
    NOTHPPROT = 20
    # Locking
    LK = 21
    UL = 22
    PLK = 23
    NPLK = 24
    # Method calls
    MB = 25
    ME = 26
    # Others
    HEAP = 27
    REC = 28
    D = 29
    DEP = 30
    LOC = 31


@dataclass(frozen=True, order=True)
class Predicate:
    """A predicate identified by an integer; negative ids are user predicates.

    Ordering compares the id first and the complement flag second.
    """

    id: int
    comp: bool = False

    _dispenser: ClassVar[Iterator[int]] = itertools.count(-1, -1)

    @classmethod
    def create_builtin(cls, builtin: BuiltinPredicate) -> "Predicate":
        """Return the builtin predicate BUILTIN."""
        return cls(int(BuiltinPredicate(builtin)))

    @classmethod
    def create_user(cls) -> "Predicate":
        """Return a fresh user predicate."""
        return cls(next(cls._dispenser))

    def is_builtin(self) -> bool:
        """Whether this predicate is a builtin one."""
        return self.id >= 0

    def complemented(self) -> "Predicate":
        """Return this predicate with its complement flag flipped."""
        return replace(self, comp=not self.comp)

    def __str__(self) -> str:
        return f"{self.id}{'-1' if self.comp else ''}"


@total_ordering
class PredicateSet:
    """An ordered set of predicates whose intersection is meant to be non-empty."""

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, preds: Union[Predicate, Iterable[Predicate]] = ()) -> None:
        self._preds: list[Predicate] = []
        if isinstance(preds, Predicate):
            preds = (preds,)
        for p in preds:
            self._insert_one(p)

    def _insert_one(self, p: Predicate) -> bool:
        if not isinstance(p, Predicate):
            raise TypeError(f"expected a Predicate, got {type(p).__name__}")
        i = bisect.bisect_left(self._preds, p)
        if i < len(self._preds) and self._preds[i] == p:
            return False
        self._preds.insert(i, p)
        return True

    def insert(self, item: Union[Predicate, "PredicateSet"]) -> bool:
        """Insert a predicate or all of a set's predicates; return whether anything was added."""
        if isinstance(item, PredicateSet):
            added = False
            for p in item:
                added |= self._insert_one(p)
            return added
        return self._insert_one(item)

    def contains(self, item: Union[Predicate, "PredicateSet"]) -> bool:
        """Whether this set holds the predicate, or is a superset of the given set."""
        if isinstance(item, PredicateSet):
            return all(p in self for p in item)
        return item in self

    def minus(self, item: Union[Predicate, "PredicateSet"]) -> None:
        """Remove a predicate, or every predicate of the given set."""
        for p in list(item) if isinstance(item, PredicateSet) else (item,):
            i = bisect.bisect_left(self._preds, p)
            if i < len(self._preds) and self._preds[i] == p:
                del self._preds[i]

    def copy(self) -> "PredicateSet":
        return PredicateSet(self._preds)

    def __iter__(self) -> Iterator[Predicate]:
        return iter(tuple(self._preds))

    def __len__(self) -> int:
        return len(self._preds)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, Predicate):
            return False
        i = bisect.bisect_left(self._preds, item)
        return i < len(self._preds) and self._preds[i] == item

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PredicateSet):
            return NotImplemented
        return self._preds == other._preds

    def __lt__(self, other: "PredicateSet") -> bool:
        if not isinstance(other, PredicateSet):
            return NotImplemented
        return self._preds < other._preds

    def __str__(self) -> str:
        return "[" + "&".join(str(p) for p in self._preds) + "]"

    def __repr__(self) -> str:
        return f"PredicateSet({self._preds!r})"