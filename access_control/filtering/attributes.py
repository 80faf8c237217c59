"""
Attribute filtering: project an object down to the fields a policy allows.
"""

import dataclasses
from typing import Any, Dict, Iterable, Mapping, Sequence

from pydantic import BaseModel

WILDCARD = "*"
NEGATION_PREFIX = "!"


def is_attribute_allowed(name: Any, attributes: Sequence[str]) -> bool:
    """
    Decide whether a single field is visible under ``attributes``.

    A field is included by ``*`` or its bare name and removed by ``!name``.
    Exclusion wins wherever it appears in the list.
    """
    included = False
    for rule in attributes:
        if rule == WILDCARD or rule == name:
            included = True
    if included and f"{NEGATION_PREFIX}{name}" in attributes:
        return False
    return included


def filter_attributes(obj: Any, attributes: Sequence[str]) -> Dict[str, Any]:
    """
    Return a new dict holding only the allowed fields of ``obj``.

    ``obj`` may be a mapping, a pydantic model, a dataclass instance or any
    object with a ``__dict__``. Fields not present on ``obj`` are never
    added, and ``obj`` itself is left untouched.
    """
    rules = list(attributes)
    return {
        name: value
        for name, value in _iter_fields(obj)
        if is_attribute_allowed(name, rules)
    }


def _iter_fields(obj: Any) -> Iterable[tuple]:
    if obj is None:
        return []
    if isinstance(obj, Mapping):
        return list(obj.items())
    if isinstance(obj, BaseModel):
        return [(name, getattr(obj, name)) for name in type(obj).model_fields]
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return [(field.name, getattr(obj, field.name)) for field in dataclasses.fields(obj)]
    if hasattr(obj, "__dict__"):
        return list(vars(obj).items())
    return []
