"""Canonical ordering of cluster labels.

Cluster indices everywhere in the pipeline (tie-breaks, colour assignment,
lineage enumeration) are positions in this order. All-digit labels, as
produced by graph clustering ("0", "1", ..., "12"), sort numerically and come
first; any other label sorts lexically after them.
"""

from typing import Iterable

__all__ = ["label_sort_key", "sort_labels"]


def label_sort_key(label: str) -> tuple:
    """Sort key placing numeric labels first, in numeric order."""
    if label.isascii() and label.isdigit():
        return (0, int(label), label)
    return (1, 0, label)


def sort_labels(labels: Iterable[str]) -> list[str]:
    """Return the distinct labels in canonical order.

    Examples
    --------
    >>> sort_labels(["10", "2", "b", "0", "a", "2"])
    ['0', '2', '10', 'a', 'b']
    """
    return sorted(set(labels), key=label_sort_key)
