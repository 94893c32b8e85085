"""
Field access on records.

Field names may be dotted paths addressing nested objects, as log shippers
commonly nest request metadata ("request.api"). A literal top-level key that
contains dots wins over path traversal.
"""

from typing import Any, Dict, MutableMapping

_MISSING = object()


def get_field(record: Dict[str, Any], path: str) -> Any:
    """Return the value at path, or None when any segment is missing."""
    if path in record:
        return record[path]
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, MutableMapping):
            return None
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return None
    return current


def set_field(record: Dict[str, Any], path: str, value: Any) -> None:
    """
    Write value at path, creating intermediate objects as needed.

    Only ever adds keys: a non-object value sitting where an intermediate object
    is needed is left alone and the field is written at the top level instead.
    """
    if path in record or "." not in path:
        record[path] = value
        return
    parts = path.split(".")
    current: Any = record
    for part in parts[:-1]:
        child = current.get(part)
        if child is None:
            child = {}
            current[part] = child
        elif not isinstance(child, MutableMapping):
            record[path] = value
            return
        current = child
    current[parts[-1]] = value
