"""
Field presence and type checking for raw JSON documents.

Validation never stops at the first problem: every rule is checked and
every violation is reported, so one call returns the full list.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class FieldType:
    """A named type predicate. `name` is used in error messages."""

    name: str
    check: Callable[[Any], bool]


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


STRING = FieldType("a string", lambda v: isinstance(v, str))
NON_EMPTY_STRING = FieldType("a non-empty string", _is_non_empty_str)
NUMBER = FieldType("a number", _is_number)
STRING_OR_NUMBER = FieldType(
    "a string or number", lambda v: isinstance(v, str) or _is_number(v)
)
OBJECT = FieldType("an object", lambda v: isinstance(v, dict))
ARRAY = FieldType("an array", lambda v: isinstance(v, list))


@dataclass(frozen=True)
class FieldRule:
    type: FieldType
    required: bool = True
    # Element type for ARRAY fields; each element is checked when set.
    items: Optional[FieldType] = None


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


Rules = Dict[str, FieldRule]


def validate(data: Any, rules: Rules, prefix: str = "") -> ValidationResult:
    """
    Check `data` against `rules` (field name -> FieldRule).

    Missing optional fields are fine; optional fields present with the wrong
    type are errors. `prefix` is prepended to field names in messages, for
    nested records such as "Homeworks[2].".
    """
    if not isinstance(data, dict):
        label = prefix.rstrip(".") or "Data"
        return ValidationResult(False, [f"{label} must be an object"])

    errors: List[str] = []
    for name, rule in rules.items():
        qualified = f"{prefix}{name}"
        if name not in data or data[name] is None:
            if rule.required:
                errors.append(f"Missing required field: {qualified}")
            continue

        value = data[name]
        if not rule.type.check(value):
            errors.append(f"Field '{qualified}' must be {rule.type.name}")
            continue

        if rule.items is not None and isinstance(value, list):
            for i, item in enumerate(value):
                if not rule.items.check(item):
                    errors.append(f"Field '{qualified}[{i}]' must be {rule.items.name}")

    return ValidationResult(not errors, errors)
