"""
Update helpers: ``Base.util`` sentinels and the ``updates`` → MongoDB update
document compiler.

Plain values in an ``updates`` mapping are set on the item.  Values built
with :class:`Util` map to the matching update operator instead:

    Util.increment(n)   → ``$inc``
    Util.append(v)      → ``$push`` with ``$each``
    Util.prepend(v)     → ``$push`` with ``$each`` and ``$position: 0``
    Util.trim()         → ``$unset``
"""

from typing import Any, Dict, List, Mapping


class _Trim:
    def __repr__(self) -> str:
        return "Util.trim()"


class _Increment:
    def __init__(self, value: Any = 1):
        self.value = value

    def __repr__(self) -> str:
        return f"Util.increment({self.value!r})"


class _Append:
    def __init__(self, value: Any):
        self.value = value if isinstance(value, (list, tuple)) else [value]

    def __repr__(self) -> str:
        return f"Util.append({self.value!r})"


class _Prepend(_Append):
    def __repr__(self) -> str:
        return f"Util.prepend({self.value!r})"


class Util:
    """Factory for update sentinels, exposed as ``Base.util``."""

    Trim = _Trim
    Increment = _Increment
    Append = _Append
    Prepend = _Prepend

    @staticmethod
    def trim() -> _Trim:
        return _Trim()

    @staticmethod
    def increment(value: Any = 1) -> _Increment:
        return _Increment(value)

    @staticmethod
    def append(value: Any) -> _Append:
        return _Append(value)

    @staticmethod
    def prepend(value: Any) -> _Prepend:
        return _Prepend(value)


def compile_update(updates: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Translate an ``updates`` mapping into a MongoDB update document.

    Raises ``ValueError`` for an empty mapping or an attempt to change
    ``key``, and ``TypeError`` when ``updates`` is not a mapping.
    """
    if not isinstance(updates, Mapping):
        raise TypeError(f"updates must be a mapping, got {type(updates).__name__}")
    if not updates:
        raise ValueError("updates must not be empty")
    if "key" in updates:
        raise ValueError("the 'key' field cannot be updated")

    set_fields: Dict[str, Any] = {}
    inc_fields: Dict[str, Any] = {}
    push_fields: Dict[str, Any] = {}
    unset_fields: Dict[str, str] = {}

    for field, value in updates.items():
        if isinstance(value, _Trim):
            unset_fields[field] = ""
        elif isinstance(value, _Increment):
            inc_fields[field] = value.value
        elif isinstance(value, _Prepend):
            push_fields[field] = {"$each": list(value.value), "$position": 0}
        elif isinstance(value, _Append):
            push_fields[field] = {"$each": list(value.value)}
        else:
            set_fields[field] = value

    operations: List[tuple] = [
        ("$set", set_fields),
        ("$inc", inc_fields),
        ("$push", push_fields),
        ("$unset", unset_fields),
    ]
    return {op: fields for op, fields in operations if fields}
