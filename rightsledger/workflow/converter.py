"""Custom Temporal DataConverter for rightsledger frozen-dataclass types.

Handles serialization of Enum, datetime and nested frozen dataclasses
(ClaimPayout, PushFailure inside DistributionRoundResult) by adding
__type__ tags during encoding.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
from datetime import datetime
from enum import Enum
from typing import Any, get_type_hints

from temporalio.converter import (
    CompositePayloadConverter,
    DataConverter,
    DefaultPayloadConverter,
    JSONPlainPayloadConverter,
    JSONTypeConverter,
)

# ---------------------------------------------------------------------------
# Recursive serializer (replaces dataclasses.asdict)
# ---------------------------------------------------------------------------


def _to_json(obj: Any) -> Any:
    """Recursively convert rightsledger objects to JSON-compatible values.

    Adds ``__type__`` tags to dataclass instances so nested records can be
    rebuilt on the other side.
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        d: dict[str, Any] = {
            "__type__": f"{type(obj).__module__}.{type(obj).__qualname__}",
        }
        for field in dataclasses.fields(obj):
            d[field.name] = _to_json(getattr(obj, field.name))
        return d
    if isinstance(obj, (tuple, list)):
        return [_to_json(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): _to_json(v) for k, v in obj.items()}
    return str(obj)


class LedgerJSONEncoder(json.JSONEncoder):
    """JSON encoder using _to_json for full rightsledger type support."""

    def default(self, o: Any) -> Any:
        result = _to_json(o)
        if result is not o:
            return result
        return super().default(o)


# ---------------------------------------------------------------------------
# Recursive deserializer
# ---------------------------------------------------------------------------

# Security: only resolve classes from these modules.
_ALLOWED_MODULES: frozenset[str] = frozenset({
    "rightsledger.core.types",
    "rightsledger.instrument.types",
    "rightsledger.workflow.types",
})

_CLASS_CACHE: dict[str, type] = {}


def _resolve_class(fqn: str) -> type | None:
    """Resolve a fully qualified class name to a type.

    Only classes from ``_ALLOWED_MODULES`` are resolved, so a crafted payload
    cannot instantiate arbitrary classes.
    """
    if fqn in _CLASS_CACHE:
        return _CLASS_CACHE[fqn]
    parts = fqn.rsplit(".", 1)
    if len(parts) != 2:
        return None
    module_name, class_name = parts
    if module_name not in _ALLOWED_MODULES:
        return None
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    cls = getattr(module, class_name, None)
    if isinstance(cls, type):
        _CLASS_CACHE[fqn] = cls
        return cls
    return None


def _from_json(hint: Any, value: Any) -> Any:
    """Recursively convert JSON values back to rightsledger types."""
    if value is None:
        return None

    # Tagged dataclass
    if isinstance(value, dict) and "__type__" in value:
        cls = _resolve_class(value["__type__"])
        if cls is not None and dataclasses.is_dataclass(cls):
            hints = get_type_hints(cls)
            kwargs: dict[str, Any] = {}
            for field in dataclasses.fields(cls):
                if field.name in value:
                    field_hint = hints.get(field.name, Any)
                    kwargs[field.name] = _from_json(field_hint, value[field.name])
            return cls(**kwargs)

    if hint is datetime and isinstance(value, str):
        return datetime.fromisoformat(value)

    # Enum
    if isinstance(hint, type) and issubclass(hint, Enum) and not isinstance(value, Enum):
        return hint(value)

    # tuple from list
    if isinstance(value, list):
        return tuple(_from_json(Any, x) for x in value)

    return value


class LedgerJSONTypeConverter(JSONTypeConverter):
    """Deserialize tagged JSON values back to rightsledger types."""

    def to_typed_value(self, hint: type, value: Any) -> Any:
        if isinstance(value, dict) and "__type__" in value:
            return _from_json(hint, value)
        # Python 3.12 type aliases are TypeAliasType instances Temporal can't resolve
        if hasattr(hint, "__value__"):
            return _from_json(hint.__value__, value)
        return JSONTypeConverter.Unhandled


# ---------------------------------------------------------------------------
# Wire up
# ---------------------------------------------------------------------------


class LedgerPayloadConverter(CompositePayloadConverter):
    """Payload converter with rightsledger-aware JSON handling."""

    def __init__(self) -> None:
        json_converter = JSONPlainPayloadConverter(
            encoder=LedgerJSONEncoder,
            custom_type_converters=[LedgerJSONTypeConverter()],
        )
        super().__init__(
            *(
                c
                for c in DefaultPayloadConverter.default_encoding_payload_converters
                if not isinstance(c, JSONPlainPayloadConverter)
            ),
            json_converter,
        )


LEDGER_DATA_CONVERTER = DataConverter(
    payload_converter_class=LedgerPayloadConverter,
)
