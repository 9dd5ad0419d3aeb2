"""
Aggregation helpers for the statistics endpoints.

Categories only appear once observed; missing numbers count as 0.
"""
from typing import Any, Callable, Dict, Iterable, Sequence, Union

Key = Union[str, Callable[[Any], Any]]


def _getter(key: Key) -> Callable[[Any], Any]:
    if callable(key):
        return key
    return lambda record: getattr(record, key)


def count_by(records: Iterable[Any], key: Key) -> Dict[str, int]:
    get = _getter(key)
    counts: Dict[str, int] = {}
    for record in records:
        label = get(record)
        if label is None:
            continue
        counts[label] = counts.get(label, 0) + 1
    return counts


def count_many(records: Iterable[Any], key: Key) -> Dict[str, int]:
    """Like count_by for list-valued fields: every element is counted once per record."""
    get = _getter(key)
    counts: Dict[str, int] = {}
    for record in records:
        for label in get(record) or []:
            counts[label] = counts.get(label, 0) + 1
    return counts


def sum_by(records: Iterable[Any], key: Key) -> float:
    get = _getter(key)
    return float(sum(get(record) or 0 for record in records))


def status_counts(records: Sequence[Any], statuses: Sequence[str], key: Key = "status") -> Dict[str, int]:
    """Fixed-shape counts, e.g. "In Progress" -> {"in_progress": n}; unlisted statuses are ignored."""
    observed = count_by(records, key)
    return {s.lower().replace(" ", "_"): observed.get(s, 0) for s in statuses}
