"""Ordering of link lists."""

from functools import cmp_to_key
from typing import Any, Callable, NamedTuple

from pyuca import Collator

from twohop.domain.links import SortOrder
from twohop.domain.vault import FileStat


class SortEntry(NamedTuple):
    """An item paired with the name and stat it is ordered by."""

    name: str
    stat: FileStat
    item: Any


Comparator = Callable[[SortEntry, SortEntry], int]

collator = Collator()


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def compare_names(a: str, b: str) -> int:
    """Unicode collation order, falling back to code points for equal keys."""
    key_a, key_b = collator.sort_key(a), collator.sort_key(b)
    if key_a != key_b:
        return -1 if key_a < key_b else 1
    return (a > b) - (a < b)


def _by_name(a: SortEntry, b: SortEntry) -> int:
    return compare_names(a.name, b.name)


def _by_mtime(a: SortEntry, b: SortEntry) -> int:
    return _sign(a.stat.mtime - b.stat.mtime)


def _by_ctime(a: SortEntry, b: SortEntry) -> int:
    return _sign(a.stat.ctime - b.stat.ctime)


def _descending(comparator: Comparator) -> Comparator:
    return lambda a, b: -comparator(a, b)


COMPARATORS: dict[SortOrder, Comparator] = {
    SortOrder.FILENAME_ASC: _by_name,
    SortOrder.FILENAME_DESC: _descending(_by_name),
    SortOrder.MODIFIED_DESC: _descending(_by_mtime),
    SortOrder.MODIFIED_ASC: _by_mtime,
    SortOrder.CREATED_DESC: _descending(_by_ctime),
    SortOrder.CREATED_ASC: _by_ctime,
}


def compare(a: SortEntry, b: SortEntry, order: SortOrder) -> int:
    """Compare two entries, returning -1, 0 or 1."""
    return COMPARATORS[SortOrder(order)](a, b)


def sort_entries(entries: list[SortEntry], order: SortOrder) -> list:
    """Stable sort of entries, returning the bare items."""
    comparator = COMPARATORS[SortOrder(order)]
    return [entry.item for entry in sorted(entries, key=cmp_to_key(comparator))]
