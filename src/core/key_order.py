"""Primary-key ordering helpers.

Integer-like keys sort numerically ahead of other keys, which sort
lexically, so ``9`` precedes ``10`` in reports and stored tables.
"""

from __future__ import annotations

from typing import Iterable


def key_sort_value(key: str) -> tuple[int, int, str]:
    """Return a sort value for one primary-key string."""
    stripped = key.strip()
    try:
        return (0, int(stripped), stripped)
    except ValueError:
        return (1, 0, key)


def sorted_keys(keys: Iterable[str]) -> list[str]:
    """Return keys in natural ascending order."""
    return sorted(keys, key=key_sort_value)
