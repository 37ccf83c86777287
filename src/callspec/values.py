"""Tagged request values and tree evaluation.

Request data in a suite is a tree of mappings and lists whose leaves are
either plain data or values that can only be computed when the call runs
(a variable saved by an earlier call, a file, an environment variable).
Leaves of the second kind are wrapped in :class:`Deferred`; resolution walks
the tree and invokes every producer, giving plain data of the same shape.

:class:`Literal` marks a leaf that must be taken verbatim even if it looks
like a reference expression, e.g. ``Literal("$var.token")`` in a Python
data module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class Literal:
    """A leaf value used as-is."""

    value: Any


@dataclass(frozen=True)
class Deferred:
    """A leaf whose value is produced by a zero-argument callable at resolution time."""

    producer: Callable[[], Any]


def evaluate_data(obj: Any) -> Any:
    """Return a copy of *obj* with every tagged leaf replaced by its value.

    Mappings, lists and tuples are rebuilt with the same keys and order at
    any nesting depth; :class:`Deferred` leaves are invoked,
    :class:`Literal` leaves are unwrapped, and any other leaf is returned
    unchanged.

    Example::

        >>> evaluate_data({"a": Deferred(lambda: 1 + 3), "b": {"c": Literal(5)}})
        {'a': 4, 'b': {'c': 5}}
    """
    if isinstance(obj, Deferred):
        return obj.producer()
    if isinstance(obj, Literal):
        return obj.value
    if isinstance(obj, dict):
        return {key: evaluate_data(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [evaluate_data(item) for item in obj]
    if isinstance(obj, tuple):
        return tuple(evaluate_data(item) for item in obj)
    return obj
