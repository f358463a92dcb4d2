"""GitHub URL helpers: repository URL parsing and contents-API to raw URL conversion."""

from typing import Optional, Tuple
from urllib.parse import parse_qs, quote, urlparse

from .errors import SourceURLError

GITHUB_WEB_HOSTS = {"github.com", "www.github.com"}
GITHUB_API_HOST = "api.github.com"
GITHUB_API_ROOT = "https://api.github.com"
RAW_CONTENT_ROOT = "https://raw.githubusercontent.com"
INDEX_FILE = "index.json"
DEFAULT_REF = "main"


def _path_parts(path: str) -> list[str]:
    return [x for x in path.split("/") if x]


def is_github_repo_url(url: str) -> bool:
    """True when the URL points at the GitHub web UI (github.com)."""
    p = urlparse(url)
    return p.scheme in ("http", "https") and p.netloc.lower() in GITHUB_WEB_HOSTS


def parse_repo_url(url: str) -> Tuple[str, str, Optional[str]]:
    """
    Split a GitHub repository URL into (owner, repo, ref).

    `ref` comes from an optional ?ref= query parameter and is None when absent.
    Raises SourceURLError when the path has no owner/repo.
    """
    p = urlparse(url)
    parts = _path_parts(p.path)
    if len(parts) < 2:
        raise SourceURLError(f"Invalid GitHub repository URL: {url}")
    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    ref = parse_qs(p.query).get("ref", [None])[0] or None
    return owner, repo, ref


def build_contents_api_url(owner: str, repo: str, ref: Optional[str] = None, path: str = INDEX_FILE) -> str:
    api_url = f"{GITHUB_API_ROOT}/repos/{owner}/{repo}/contents/{path}"
    if ref:
        api_url += f"?ref={quote(ref, safe='')}"
    return api_url


def convert_api_url_to_raw_url(api_url: str) -> Optional[str]:
    """
    Convert a contents-API URL into its raw.githubusercontent.com equivalent.

    https://api.github.com/repos/{owner}/{repo}/contents/{path}?ref={ref}
        -> https://raw.githubusercontent.com/{owner}/{repo}/{ref or "main"}/{path}

    Returns None when the URL is not a contents-API URL.
    """
    try:
        p = urlparse(api_url)
    except ValueError:
        return None
    if p.hostname != GITHUB_API_HOST:
        return None

    parts = _path_parts(p.path)
    if len(parts) < 4 or parts[0] != "repos":
        return None

    owner, repo = parts[1], parts[2]
    ref = parse_qs(p.query).get("ref", [DEFAULT_REF])[0] or DEFAULT_REF
    file_path = "/".join(parts[4:])
    return f"{RAW_CONTENT_ROOT}/{owner}/{repo}/{ref}/{file_path}"
