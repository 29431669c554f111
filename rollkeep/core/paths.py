"""
Dotted-path access into nested record data.

Paths look like ``void_points.current`` or ``bonuses.skill.kenjutsu.roll``.
Reads never raise on missing segments; writes create intermediate dicts.
"""

from typing import Any, Dict


def get_by_path(data: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Read a nested value by dotted path.

    Examples:
        >>> get_by_path({'spell_slots': {'fire': 2}}, 'spell_slots.fire')
        2
        >>> get_by_path({}, 'spell_slots.fire', 0)
        0
    """
    if not isinstance(data, dict) or not path:
        return default

    current: Any = data
    for key in path.split('.'):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
        if current is None:
            return default
    return current


def set_by_path(data: Dict[str, Any], path: str, value: Any) -> None:
    """
    Write a nested value by dotted path, creating missing parents.

    Raises:
        ValueError: If path is empty
    """
    if not path:
        raise ValueError("Path cannot be empty")

    parts = path.split('.')
    last = parts.pop()

    current = data
    for key in parts:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[last] = value


def get_int(data: Dict[str, Any], path: str) -> int:
    """
    Read an integer by dotted path, treating missing or malformed values as 0.

    Record values may arrive as strings from forms or imports.
    """
    value = get_by_path(data, path, 0)
    if isinstance(value, bool):
        return int(value)
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
