from __future__ import annotations  # Dotted-path helpers over the nested assessment record

from typing import Any, Collection, Dict, Mapping

_MISSING = object()


def get_field(record: Mapping[str, Any], path: str, default: Any = None) -> Any:  # Resolve a dotted path or return default
    cursor: Any = record
    for part in path.split("."):
        if not isinstance(cursor, Mapping) or part not in cursor:
            return default
        cursor = cursor[part]
    return cursor


def has_field(record: Mapping[str, Any], path: str) -> bool:  # Path resolves to a non-empty value
    value = get_field(record, path, _MISSING)
    if value is _MISSING or value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


def deep_merge(
    base: Mapping[str, Any],
    update: Mapping[str, Any],
    *,
    append_paths: Collection[str] = (),
    _prefix: str = "",
) -> Dict[str, Any]:
    """Merge ``update`` into a copy of ``base``.

    Nested mappings merge key by key; lists and scalars replace the previous
    value, except lists at ``append_paths`` which are extended without
    duplicates.
    """

    merged: Dict[str, Any] = dict(base)
    for key, value in update.items():
        path = f"{_prefix}{key}"
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value, append_paths=append_paths, _prefix=f"{path}.")
        elif path in append_paths and isinstance(current, list) and isinstance(value, list):
            merged[key] = current + [item for item in value if item not in current]
        else:
            merged[key] = value
    return merged


__all__ = ["deep_merge", "get_field", "has_field"]
