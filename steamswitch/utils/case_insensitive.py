"""
Case-insensitive string set.

Steam account names are case-insensitive ("Alice" and "ALICE" log into the
same account), so ownership sets keyed by account name must collapse them.
"""
from collections.abc import MutableSet
from typing import Dict, Iterable, Iterator, Optional


def _fold(value: str) -> str:
    return value.casefold()


class CaseInsensitiveSet(MutableSet):
    """Set of strings compared by their case-folded form.

    The first spelling added is kept and iterated; iteration follows
    insertion order.
    """

    def __init__(self, values: Optional[Iterable[str]] = None):
        self._items: Dict[str, str] = {}
        for value in values or ():
            self.add(value)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, str):
            return False
        return _fold(value) in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def add(self, value: str) -> None:
        self._items.setdefault(_fold(value), value)

    def discard(self, value: str) -> None:
        if isinstance(value, str):
            self._items.pop(_fold(value), None)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._items.values())!r})"
