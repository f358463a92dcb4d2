"""
Normalized in-memory shapes for job index and job detail documents.

Known fields are typed attributes. Job index documents keep every field they
do not recognize in `extra`, so passthrough data survives a round trip.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class JobIndexDocument:
    version: str
    description: str
    name: str
    author: Optional[str] = None
    last: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out["name"] = self.name
        out["description"] = self.description
        if self.author is not None:
            out["author"] = self.author
        if self.last is not None:
            out["last"] = self.last
        out["version"] = self.version
        return out


@dataclass
class Homework:
    content: str
    subject: str
    due_time: str
    tags: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "Content": self.content,
            "Subject": self.subject,
            "DueTime": self.due_time,
        }
        if self.tags is not None:
            out["Tags"] = list(self.tags)
        return out


@dataclass
class JobDetailDocument:
    version: int
    description: str
    export_date: str
    homeworks: List[Homework] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Version": self.version,
            "Description": self.description,
            "ExportDate": self.export_date,
            "Homeworks": [h.to_dict() for h in self.homeworks],
        }


# A parsed index, or the stored JSON value as-is when it no longer parses
EntryData = Union[JobIndexDocument, Dict[str, Any], List[Any], str, int, float, bool]


@dataclass
class RegistryEntry:
    """A tracked source url and its last parsed document (or raw payload)."""

    url: str
    data: EntryData = field(default_factory=dict)

    @property
    def is_parsed(self) -> bool:
        return isinstance(self.data, JobIndexDocument)

    def to_dict(self) -> Dict[str, Any]:
        data = self.data.to_dict() if isinstance(self.data, JobIndexDocument) else self.data
        return {"url": self.url, "data": data}
