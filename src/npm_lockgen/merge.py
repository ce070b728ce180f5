"""Merge a freshly computed lockfile into the previous one."""

from __future__ import annotations

from typing import Any


def transform_into(previous: Any, computed: Any) -> Any:
    """Return ``computed``, reusing ``previous`` to keep its key order.

    Keys of ``previous`` that survive stay where they were, keys missing from
    ``computed`` are deleted and new keys are appended. Lists and scalars are
    replaced wholesale. ``previous`` is mutated in place when both sides are
    dicts.
    """
    if not (isinstance(previous, dict) and isinstance(computed, dict)):
        return computed

    for key in list(previous):
        if key in computed:
            previous[key] = transform_into(previous[key], computed[key])
        else:
            del previous[key]

    for key, value in computed.items():
        if key not in previous:
            previous[key] = value

    return previous
