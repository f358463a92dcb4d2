"""
Job detail parser (homework export bundles).

Version 0 shape:
    {"Version": 0, "Description": str, "ExportDate": str,
     "Homeworks": [{"Content": str, "Subject": str, "DueTime": str, "Tags"?: [str]}]}

Homework Content is sanitized to plain text before it is returned.
"""

from typing import Any, Dict, List

from ..errors import ValidationError
from ..models import Homework, JobDetailDocument
from ..sanitizer import sanitize_content
from ..schema import ARRAY, NUMBER, STRING, FieldRule, validate
from .common import VersionedParser

DOCUMENT = "job detail"


def _version_key(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(DOCUMENT, ["Field 'Version' must be a number"])
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


DETAIL_PARSER = VersionedParser(DOCUMENT, "Version", _version_key)


V0_RULES = {
    "Version": FieldRule(NUMBER),
    "Description": FieldRule(STRING),
    "ExportDate": FieldRule(STRING),
    "Homeworks": FieldRule(ARRAY),
}

HOMEWORK_V0_RULES = {
    "Content": FieldRule(STRING),
    "Subject": FieldRule(STRING),
    "DueTime": FieldRule(STRING),
    "Tags": FieldRule(ARRAY, required=False, items=STRING),
}


@DETAIL_PARSER.register(0)
def parse_detail_v0(data: Dict[str, Any]) -> JobDetailDocument:
    errors: List[str] = list(validate(data, V0_RULES).errors)

    homeworks = data.get("Homeworks")
    if isinstance(homeworks, list):
        for i, item in enumerate(homeworks):
            errors.extend(validate(item, HOMEWORK_V0_RULES, prefix=f"Homeworks[{i}].").errors)

    if errors:
        raise ValidationError(DOCUMENT, errors)

    return JobDetailDocument(
        version=_version_key(data["Version"]),
        description=data["Description"],
        export_date=data["ExportDate"],
        homeworks=[
            Homework(
                content=sanitize_content(item["Content"]),
                subject=item["Subject"],
                due_time=item["DueTime"],
                tags=list(item["Tags"]) if item.get("Tags") is not None else None,
            )
            for item in homeworks
        ],
    )


def parse_job_detail(data: Any) -> JobDetailDocument:
    """Validate and normalize a raw job detail document."""
    return DETAIL_PARSER.parse(data)
