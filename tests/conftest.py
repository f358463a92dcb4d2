"""
Pytest configuration and shared fixtures.
"""

import base64
import json
from typing import Any, Callable, Dict, Tuple, Union

import httpx
import pytest

from jobsync.logger import StructuredLogger, get_logger, reset_logger

# Quiet global logger before any jobsync module grabs it at import time
reset_logger()
get_logger(enable_file=False, enable_console=False)


Route = Union[Tuple[int, Any], Callable[[httpx.Request], Any]]


def json_body(data: Any) -> bytes:
    return json.dumps(data, ensure_ascii=False).encode("utf-8")


def github_contents(data: Any) -> Dict[str, Any]:
    """Contents-API style payload: base64 of UTF-8 JSON, wrapped at 60 chars like GitHub does."""
    raw = json.dumps(data, ensure_ascii=False).encode("utf-8")
    encoded = base64.encodebytes(raw).decode("ascii")
    return {"name": "index.json", "encoding": "base64", "content": encoded}


def make_client(routes: Dict[str, Route]) -> httpx.AsyncClient:
    """
    AsyncClient backed by httpx.MockTransport.

    Routes map a full URL to (status, body) or to a handler taking the request.
    Bodies may be bytes, str, or JSON-serializable objects. Unknown URLs get 404.
    """
    async def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, content=b"Not Found")
        if callable(route):
            result = route(request)
            if hasattr(result, "__await__"):
                result = await result
            return result
        status, body = route
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        if isinstance(body, str):
            return httpx.Response(status, content=body.encode("utf-8"))
        return httpx.Response(status, content=json_body(body))

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    return StructuredLogger(name="jobsync.test", enable_file=False, enable_console=False)


@pytest.fixture
def valid_index() -> Dict[str, Any]:
    """Valid job index document (version 1)."""
    return {
        "version": 1,
        "name": "高一(3)班作业",
        "description": "高一(3)班每日作业",
        "author": "teacher-li",
        "last": "2024-03-01T08:00:00",
        "homepage": "https://example.com/class3",
    }


@pytest.fixture
def flow_document_content() -> str:
    return (
        '<FlowDocument PagePadding="5,0,5,0" AllowDrop="True" '
        'xmlns="http://schemas.microsoft.com/winfx/2006/xaml/presentation">'
        '<Paragraph><Run xml:lang="zh-cn">完成练习册第12页</Run></Paragraph>'
        "</FlowDocument>"
    )


@pytest.fixture
def valid_detail(flow_document_content) -> Dict[str, Any]:
    """Valid job detail export (version 0)."""
    return {
        "Version": 0,
        "Description": "三月第一周",
        "ExportDate": "2024-03-01 20:15:00",
        "Homeworks": [
            {
                "Content": flow_document_content,
                "Subject": "数学",
                "DueTime": "2024-03-02",
                "Tags": ["练习册", "必做"],
            },
            {
                "Content": "背诵课文第三段",
                "Subject": "语文",
                "DueTime": "2024-03-03",
            },
        ],
    }
