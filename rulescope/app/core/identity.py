"""Content-derived identifiers and symbolic type names.

Graph identifiers are built from a SHA-256 digest over a canonical JSON
form of the value, so the same rule, condition or fact always maps to the
same id, in every process.
"""
import dataclasses
import hashlib
import json
from enum import Enum
from typing import Any

from pydantic import BaseModel

HASH_LENGTH = 16


def type_name(cls: type) -> str:
    """Qualified name of a class, without the module for builtins."""
    module = getattr(cls, "__module__", None)
    qualname = getattr(cls, "__qualname__", getattr(cls, "__name__", repr(cls)))
    if not module or module == "builtins":
        return qualname
    return f"{module}.{qualname}"


def symbolize(value: Any) -> Any:
    """Recursively replace class objects with their qualified names."""
    if isinstance(value, type):
        return type_name(value)
    if isinstance(value, dict):
        return {k: symbolize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [symbolize(v) for v in value]
    if isinstance(value, tuple):
        return tuple(symbolize(v) for v in value)
    return value


def canonical(value: Any) -> Any:
    """Convert a value into a JSON-compatible structure with a stable layout."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return canonical(value.value)
    if isinstance(value, type):
        return type_name(value)
    if isinstance(value, BaseModel):
        return canonical(value.model_dump(by_alias=True))
    if dataclasses.is_dataclass(value):
        return {f.name: canonical(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [canonical(v) for v in value]
    if isinstance(value, (set, frozenset)):
        items = [canonical(v) for v in value]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True))
    return repr(value)


def content_hash(value: Any) -> str:
    """Truncated SHA-256 of the canonical serialization of a value."""
    canonical_json = json.dumps(canonical(value), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()[:HASH_LENGTH]
