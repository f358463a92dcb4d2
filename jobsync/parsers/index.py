"""
Job index parser (index.json at the root of a tracked source).

Version 1 shape:
    {"version": 1 | "1", "description": str, "name"?: str,
     "author"?: str, "last"?: str, ...passthrough}
"""

from typing import Any, Dict

from ..errors import ValidationError
from ..models import JobIndexDocument
from ..schema import STRING, STRING_OR_NUMBER, FieldRule, validate
from .common import VersionedParser

DOCUMENT = "job index"


def _version_key(value: Any) -> str:
    # Accept 1, 1.0 and "1" alike; the normalized form is a string.
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(DOCUMENT, ["Field 'version' must be a string or number"])
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


INDEX_PARSER = VersionedParser(DOCUMENT, "version", _version_key)


V1_RULES = {
    "version": FieldRule(STRING_OR_NUMBER),
    "description": FieldRule(STRING),
    "name": FieldRule(STRING, required=False),
    "author": FieldRule(STRING, required=False),
    "last": FieldRule(STRING, required=False),
}


@INDEX_PARSER.register("1")
def parse_index_v1(data: Dict[str, Any]) -> JobIndexDocument:
    result = validate(data, V1_RULES)
    errors = list(result.errors)

    # name falls back to description when absent
    name = data.get("name")
    description = data.get("description")
    if not name:
        if isinstance(description, str) and description.strip():
            name = description
        elif isinstance(name, str) or name is None:
            errors.append("Missing 'name' field and no suitable fallback available")

    if errors:
        raise ValidationError(DOCUMENT, errors)

    extra = {k: v for k, v in data.items() if k not in V1_RULES}
    return JobIndexDocument(
        version=_version_key(data["version"]),
        description=description,
        name=name,
        author=data.get("author"),
        last=data.get("last"),
        extra=extra,
    )


def parse_job_index(data: Any) -> JobIndexDocument:
    """Validate and normalize a raw job index document."""
    return INDEX_PARSER.parse(data)
