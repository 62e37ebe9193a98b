"""Decoding of stored per-part arrays (points earned, disabled flags).

Stored corrections may hold these arrays as JSON text, as real lists, or not at
all. Everything here degrades to a safe value instead of raising.
"""
import json
import logging
import math
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


def _decode(raw: Any, field_name: str) -> Optional[list]:
    """Return *raw* as a list, or None when it cannot be read as one."""
    if isinstance(raw, list):
        return raw
    if isinstance(raw, tuple):
        return list(raw)
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError as e:
            logger.warning("Could not decode %s %r: %s", field_name, raw, e)
            return None
        if isinstance(decoded, list):
            return decoded
        logger.warning("Decoded %s is not an array: %r", field_name, decoded)
        return None
    logger.warning("Unexpected %s type %s", field_name, type(raw).__name__)
    return None


def parse_points_earned(raw: Any) -> list:
    if raw is None:
        return []
    decoded = _decode(raw, "points_earned")
    return decoded if decoded is not None else []


def parse_disabled_parts(raw: Any) -> Optional[list]:
    if raw is None:
        return None
    return _decode(raw, "disabled_parts")


def to_number(value: Any) -> float:
    """Coerce a single part value to a float, falling back to 0.0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def canonical_points(raw: Any) -> List[float]:
    return [to_number(v) for v in parse_points_earned(raw)]


def canonical_disabled(raw: Any) -> Optional[List[bool]]:
    flags = parse_disabled_parts(raw)
    if flags is None:
        return None
    return [v in (True, 1) for v in flags]


def is_disabled(disabled_parts: Optional[list], index: int) -> bool:
    if not disabled_parts or index >= len(disabled_parts):
        return False
    return disabled_parts[index] in (True, 1)


def sync_to_parts(values: Optional[list], part_count: int, fill: Any = 0.0) -> list:
    """Pad with *fill* or truncate so *values* has exactly *part_count* entries."""
    synced = list(values or [])
    if len(synced) < part_count:
        synced.extend([fill] * (part_count - len(synced)))
    return synced[:part_count]


def encode_part_array(values: Optional[list]) -> Optional[str]:
    if values is None:
        return None
    return json.dumps(values)
