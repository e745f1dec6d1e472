"""Canonical serialization and content-addressed identifiers.

canonical_bytes(obj) -> Result[bytes, str]: deterministic JSON bytes.
derive_id(prefix, *parts) -> str: deterministic identifier from parts.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from rightsledger.core.result import Err, Ok
from rightsledger.core.types import Period, UtcDatetime


def _to_serializable(obj: object) -> Any:  # noqa: PLR0911
    """Recursively convert a domain object to a JSON-compatible Python value."""
    if obj is None:
        return None
    # bool before int (bool is subclass of int)
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, int):
        # amounts can exceed 2**53; strings keep them exact for any consumer
        return str(obj)
    if isinstance(obj, str):
        return obj
    if isinstance(obj, Decimal):
        if obj == 0:
            return "0"
        return str(obj.normalize())
    if isinstance(obj, UtcDatetime):
        return obj.value.isoformat()
    if isinstance(obj, datetime):
        if obj.tzinfo is None:
            msg = "Cannot serialize naive datetime, use UtcDatetime"
            raise TypeError(msg)
        return obj.astimezone(UTC).isoformat()
    if isinstance(obj, Period):
        return str(obj)
    if isinstance(obj, (tuple, list)):
        return [_to_serializable(x) for x in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): _to_serializable(v) for k, v in sorted(obj.items())}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        field_names = sorted(f.name for f in dataclasses.fields(obj))
        result: dict[str, Any] = {"_type": type(obj).__name__}
        for name in field_names:
            result[name] = _to_serializable(getattr(obj, name))
        return result
    msg = f"Cannot serialize {type(obj).__name__}"
    raise TypeError(msg)


def canonical_bytes(obj: object) -> Ok[bytes] | Err[str]:
    """Convert any domain value to canonical JSON bytes. Never raises."""
    try:
        serializable = _to_serializable(obj)
    except TypeError as e:
        return Err(f"Unsupported type in canonical serialization: {e}")
    return Ok(
        json.dumps(serializable, sort_keys=True, separators=(",", ":")).encode("utf-8")
    )


def derive_id(prefix: str, *parts: str) -> str:
    """Deterministic identifier: prefix + first 40 hex chars of SHA-256(parts)."""
    digest = hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()
    return f"{prefix}{digest[:40]}"
