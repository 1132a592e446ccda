"""
Deta-style query to MongoDB filter compiler.

A query is a flat mapping whose keys are either a bare field name (equality)
or ``field?op`` where ``op`` selects a comparison:

  - ``ne``                     → ``$ne``
  - ``lt`` / ``lte`` / ``gt`` / ``gte`` → range operators
  - ``pfx``                    → anchored regex on the *escaped* value
  - ``r``                      → raw regex, the value is used as the pattern
  - ``contains``               → un-anchored regex on the *escaped* value
  - ``not_contains``           → negated un-anchored regex (escaped)

The operator is the text after the **last** ``?`` of the key.  When that text
is not a known operator the whole key is taken as a literal field name, so
``"what?"`` and ``"a?b"`` are plain equality fields and ``"a?b?gt"`` compares
field ``a?b``.

A list of query mappings compiles to the ``$or`` of each mapping's filter.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

Query = Mapping[str, Any]
QueryInput = Union[None, Query, Sequence[Query]]

SUFFIX_SEPARATOR = "?"

OPERATORS = frozenset({
    "ne",
    "lt",
    "lte",
    "gt",
    "gte",
    "pfx",
    "r",
    "contains",
    "not_contains",
})

_COMPARISON_OPERATORS = {
    "ne": "$ne",
    "lt": "$lt",
    "lte": "$lte",
    "gt": "$gt",
    "gte": "$gte",
}


# ---------------------- KEY PARSING ----------------------

def split_query_key(key: str) -> Tuple[str, Optional[str]]:
    """Split ``field?op`` into ``(field, op)``.

    Returns ``(key, None)`` when the key carries no recognized operator.
    """
    if not isinstance(key, str):
        raise TypeError(f"query keys must be strings, got {type(key).__name__}")

    field, sep, suffix = key.rpartition(SUFFIX_SEPARATOR)
    if sep and suffix in OPERATORS:
        return field, suffix
    return key, None


# ---------------------- OPERATOR EXPRESSIONS ----------------------

def build_condition(operator: Optional[str], value: Any) -> Any:
    """Return the filter value for a single ``field?operator`` condition.

    Literal text is escaped for ``pfx``, ``contains`` and ``not_contains`` so
    user input can never inject pattern syntax.  ``r`` is the explicit opt-in
    for a caller-supplied regular expression.
    """
    if operator is None:
        return value

    if operator in _COMPARISON_OPERATORS:
        return {_COMPARISON_OPERATORS[operator]: value}

    if operator == "pfx":
        return {"$regex": "^" + re.escape(str(value))}

    if operator == "r":
        return {"$regex": value}

    if operator == "contains":
        return {"$regex": re.escape(str(value))}

    if operator == "not_contains":
        return {"$not": re.compile(re.escape(str(value)))}

    raise ValueError(f"unknown query operator: {operator!r}")


def _is_operator_document(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and bool(value)
        and all(isinstance(k, str) and k.startswith("$") for k in value)
    )


def _merge_field_conditions(field: str, conditions: List[Any]) -> List[Dict[str, Any]]:
    """Combine every condition on one field.

    Operator documents with disjoint operators merge into a single document
    (``{"$gte": 18, "$lt": 65}``).  Anything else stays as separate clauses
    for the caller to ``$and`` together.
    """
    if len(conditions) == 1:
        return [{field: conditions[0]}]

    if all(_is_operator_document(c) for c in conditions):
        merged: Dict[str, Any] = {}
        for condition in conditions:
            if merged.keys() & condition.keys():
                break
            merged.update(condition)
        else:
            return [{field: merged}]

    return [{field: c} for c in conditions]


# ---------------------- FILTER BUILDING ----------------------

def build_filter(query: Optional[Query]) -> Dict[str, Any]:
    """Compile one flat query mapping into a MongoDB filter document."""
    if query is None:
        return {}
    if not isinstance(query, Mapping):
        raise TypeError(f"query must be a mapping, got {type(query).__name__}")
    if not query:
        return {}

    # field -> conditions, in first-seen order
    grouped: Dict[str, List[Any]] = {}
    for key, value in query.items():
        field, operator = split_query_key(key)
        grouped.setdefault(field, []).append(build_condition(operator, value))

    clauses: List[Dict[str, Any]] = []
    needs_and = False
    for field, conditions in grouped.items():
        field_clauses = _merge_field_conditions(field, conditions)
        if len(field_clauses) > 1:
            needs_and = True
        clauses.extend(field_clauses)

    if not needs_and:
        mongo_filter: Dict[str, Any] = {}
        for clause in clauses:
            mongo_filter.update(clause)
        return mongo_filter

    return {"$and": clauses}


def compile_query(query: QueryInput = None) -> Dict[str, Any]:
    """Compile a query mapping, or a list of them, into a MongoDB filter.

    - ``None`` / ``{}`` / ``[]``  → ``{}`` (every document)
    - a mapping                   → its filter
    - a list of mappings          → ``$or`` of their filters
    """
    if query is None:
        return {}

    if isinstance(query, Mapping):
        return build_filter(query)

    if isinstance(query, (list, tuple)):
        filters = [build_filter(q) for q in query]
        if not filters:
            return {}
        if len(filters) == 1:
            return filters[0]
        return {"$or": filters}

    raise TypeError(
        f"query must be a mapping or a list of mappings, got {type(query).__name__}"
    )
