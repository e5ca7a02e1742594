"""Normalization helpers for incoming record fields.

Records arrive as loosely-typed mappings. These helpers resolve defaults
once, at the parsing boundary, so the analytics formulas never have to
guard against missing or malformed values.
"""

import logging
from enum import Enum
from typing import Any, Iterable, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: Any) -> Optional[E]:
    """Resolve ``value`` to a member of ``enum_cls``.
    
    Matches member values first, then member names case-insensitively.
    Unknown values resolve to None so they fall out of every category
    bucket.
    """
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    text = str(value).strip()
    for member in enum_cls:
        if member.value.lower() == text.lower() or member.name.lower() == text.lower():
            return member
    logger.debug(f"Ignoring unknown {enum_cls.__name__} value: {value!r}")
    return None


def as_number(value: Any, minimum: Optional[float] = 0.0,
              maximum: Optional[float] = None) -> float:
    """Coerce ``value`` to a float, defaulting to 0 and clamping to bounds."""
    if value is None or value == "" or isinstance(value, bool):
        number = 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.debug(f"Treating non-numeric value {value!r} as 0")
            number = 0.0
    if number != number:  # NaN
        number = 0.0
    if minimum is not None and number < minimum:
        number = minimum
    if maximum is not None and number > maximum:
        number = maximum
    return number


def as_bool(value: Any, default: bool = False) -> bool:
    """Coerce flags that may arrive as strings (``"false"``, ``"0"``, ``"no"``)."""
    if value is None or value == "":
        return default
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1", "yes", "y", "on"):
            return True
        if text in ("false", "0", "no", "n", "off"):
            return False
        logger.debug(f"Treating unrecognized flag {value!r} as {default}")
        return default
    return bool(value)


def as_int(value: Any) -> int:
    """Coerce ``value`` to a non-negative int."""
    return int(as_number(value))


def as_id(value: Any) -> Optional[str]:
    """Normalize a record reference to its string id.
    
    References may be bare ids or embedded documents carrying ``id``,
    ``_id`` or ``user``.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        for key in ("id", "_id", "user", "user_id"):
            if key in value and value[key] is not None:
                return as_id(value[key])
        return None
    return str(value)


def as_id_list(values: Optional[Iterable[Any]]) -> List[str]:
    """Normalize a sequence of references, dropping empty entries."""
    ids = []
    for value in values or []:
        ref = as_id(value)
        if ref is not None:
            ids.append(ref)
    return ids


def as_str_list(values: Optional[Iterable[Any]]) -> List[str]:
    """Normalize a sequence of tags, stripping blanks."""
    if isinstance(values, str):
        values = values.split(",")
    return [str(v).strip() for v in values or [] if str(v).strip()]


def first_present(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first key present in ``data`` (snake_case or camelCase)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default
