from .common import VersionedParser
from .detail import DETAIL_PARSER, parse_job_detail
from .index import INDEX_PARSER, parse_job_index

__all__ = [
    "VersionedParser",
    "DETAIL_PARSER",
    "INDEX_PARSER",
    "parse_job_detail",
    "parse_job_index",
]
