"""Argument validation against a tool's parameter schema.

The schema is a floor, not a ceiling: required fields must be present and
non-null, declared property types must match, and unknown extra fields
are accepted.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

JSON_TYPES = ("string", "integer", "number", "boolean", "null", "object", "array")


class ValidationResult(BaseModel):
    """Outcome of validating tool arguments.

    Attributes:
        valid: Whether the arguments satisfy the schema
        violations: ``missing_required`` (list of fields) and/or
            ``type_mismatch`` (field -> "expected X got Y")
    """

    valid: bool = True
    violations: dict[str, Any] = Field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.valid


def json_type_of(value: Any) -> str:
    """Name of the JSON type a Python value maps to."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _matches(expected: str, actual: str) -> bool:
    if expected == actual:
        return True
    # Every integer is also a number
    return expected == "number" and actual == "integer"


def validate(args: Mapping[str, Any] | None, schema: Mapping[str, Any] | None) -> ValidationResult:
    """Validate ``args`` against a JSON-Schema-like ``schema``.

    Args:
        args: Arguments supplied for the tool call
        schema: ``{"required": [...], "properties": {field: {"type": ...}}}``

    Returns:
        ValidationResult; violations is empty when valid
    """
    if not schema:
        return ValidationResult()

    args = args or {}
    violations: dict[str, Any] = {}

    missing = [
        field for field in schema.get("required", [])
        if args.get(field) is None
    ]
    if missing:
        violations["missing_required"] = missing

    mismatches: dict[str, str] = {}
    for field, spec in (schema.get("properties") or {}).items():
        if field not in args or field in missing:
            continue
        declared = spec.get("type") if isinstance(spec, Mapping) else None
        if declared is None:
            continue

        expected = declared if isinstance(declared, list) else [declared]
        expected = [t for t in expected if t in JSON_TYPES]
        if not expected:
            continue

        actual = json_type_of(args[field])
        if not any(_matches(t, actual) for t in expected):
            mismatches[field] = f"expected {' or '.join(expected)} got {actual}"

    if mismatches:
        violations["type_mismatch"] = mismatches

    return ValidationResult(valid=not violations, violations=violations)
