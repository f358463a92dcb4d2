import argparse
import asyncio
import json
from pathlib import Path

from .env import Settings, load_env

from . import __version__
from .errors import JobSyncError, ValidationError
from .fetcher import RemoteFetcher
from .github import convert_api_url_to_raw_url
from .logger import get_logger, reset_logger
from .models import JobIndexDocument
from .parsers import parse_job_detail, parse_job_index
from .registry import JobRegistry
from .storage import KeyValueStore, open_store


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if getattr(args, "store", None):
        settings.store_path = Path(args.store)
    if getattr(args, "db", None):
        settings.db_path = Path(args.db)
    return settings


def _fetcher(settings: Settings) -> RemoteFetcher:
    return RemoteFetcher(timeout=settings.timeout, max_retries=settings.max_retries)


def _open_registry(store: KeyValueStore, fetcher: RemoteFetcher = None) -> JobRegistry:
    registry = JobRegistry(store, fetcher=fetcher)
    registry.load_from_storage()
    return registry


def _print_entry(entry) -> None:
    print(f"URL: {entry.url}")
    if isinstance(entry.data, JobIndexDocument):
        doc = entry.data
        print(f"  Name: {doc.name}")
        print(f"  Description: {doc.description}")
        print(f"  Author: {doc.author or '-'}")
        print(f"  Last: {doc.last or '-'}")
        print(f"  Version: {doc.version}")
    else:
        print("  (unparsed data)")
    print()


def cmd_add(args: argparse.Namespace) -> None:
    settings = _settings(args)

    async def run():
        with open_store(settings) as store:
            async with _fetcher(settings) as fetcher:
                registry = _open_registry(store, fetcher)
                return await registry.track(args.url, settings.github_token)

    try:
        entry = asyncio.run(run())
    except JobSyncError as e:
        raise SystemExit(str(e))
    print(f"Added: {entry.url}")
    print(f"Name: {entry.data.name}")


def cmd_remove(args: argparse.Namespace) -> None:
    settings = _settings(args)
    try:
        with open_store(settings) as store:
            registry = _open_registry(store)
            if registry.get(args.url) is None:
                print(f"Not tracked: {args.url}")
                return
            registry.remove(args.url)
    except JobSyncError as e:
        raise SystemExit(str(e))
    print(f"Removed: {args.url}")


def cmd_list(args: argparse.Namespace) -> None:
    settings = _settings(args)
    try:
        with open_store(settings) as store:
            registry = _open_registry(store)
    except JobSyncError as e:
        raise SystemExit(str(e))
    if not registry.has_entries:
        print("No sources tracked.")
        return
    print(f"Found {registry.count} sources:\n")
    for entry in registry.entries:
        _print_entry(entry)


def cmd_refresh(args: argparse.Namespace) -> None:
    settings = _settings(args)
    logger = get_logger()

    async def run():
        with open_store(settings) as store:
            async with _fetcher(settings) as fetcher:
                registry = JobRegistry(store, fetcher=fetcher)
                return await registry.refresh(settings.github_token)

    try:
        entries = asyncio.run(run())
    except JobSyncError as e:
        raise SystemExit(str(e))
    logger.log_metrics_summary()
    print(f"Refreshed {len(entries)} sources.")
    for entry in entries:
        _print_entry(entry)


def cmd_validate(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    try:
        with input_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SystemExit(f"Input is not valid JSON: {e}")

    parse = parse_job_index if args.kind == "index" else parse_job_detail
    try:
        parse(data)
    except ValidationError as e:
        print("Invalid:")
        for err in e.errors:
            print(f" - {err}")
        raise SystemExit(2)
    except JobSyncError as e:
        print("Invalid:")
        print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def cmd_detail(args: argparse.Namespace) -> None:
    settings = Settings.from_env()

    async def run():
        async with _fetcher(settings) as fetcher:
            return await fetcher.fetch_detail(args.url, settings.github_token)

    try:
        detail = asyncio.run(run())
    except JobSyncError as e:
        raise SystemExit(str(e))
    print(f"Description: {detail.description}")
    print(f"Exported: {detail.export_date}")
    print(f"Homeworks: {len(detail.homeworks)}\n")
    for hw in detail.homeworks:
        tags = f" [{', '.join(hw.tags)}]" if hw.tags else ""
        print(f"{hw.subject} (due {hw.due_time}){tags}")
        print(f"  {hw.content}")


def cmd_raw_url(args: argparse.Namespace) -> None:
    raw = convert_api_url_to_raw_url(args.url)
    if raw is None:
        raise SystemExit(f"Not a GitHub contents API URL: {args.url}")
    print(raw)


def main():
    # Load .env if present (GITHUB_TOKEN, JOBSYNC_STORE, etc.)
    load_env()
    settings = Settings.from_env()
    reset_logger()
    get_logger(level=settings.log_level, log_dir=settings.log_dir)

    parser = argparse.ArgumentParser(prog="jobsync", description="Track and sync homework job sources")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")

    def store_args(p):
        p.add_argument("--store", help="Path to JSON store (default: $JOBSYNC_STORE or data/jobs.json)")
        p.add_argument("--db", help="Path to SQLite store; overrides --store when given")

    add = subparsers.add_parser("add", help="Fetch a source's index.json and start tracking it")
    add.add_argument("--url", required=True, help="GitHub repository URL or direct index JSON URL")
    store_args(add)
    add.set_defaults(func=cmd_add)

    rem = subparsers.add_parser("remove", help="Stop tracking a source")
    rem.add_argument("--url", required=True, help="Tracked source URL")
    store_args(rem)
    rem.set_defaults(func=cmd_remove)

    lst = subparsers.add_parser("list", help="List tracked sources")
    store_args(lst)
    lst.set_defaults(func=cmd_list)

    ref = subparsers.add_parser("refresh", help="Re-fetch every tracked source concurrently")
    store_args(ref)
    ref.set_defaults(func=cmd_refresh)

    val = subparsers.add_parser("validate", help="Validate a local job index or job detail JSON file")
    val.add_argument("--input", required=True, help="Path to JSON file")
    val.add_argument("--kind", choices=["index", "detail"], default="index", help="Document kind (default: index)")
    val.set_defaults(func=cmd_validate)

    det = subparsers.add_parser("detail", help="Fetch a job detail export and print its homeworks")
    det.add_argument("--url", required=True, help="Direct URL or GitHub contents API URL")
    det.set_defaults(func=cmd_detail)

    raw = subparsers.add_parser("raw-url", help="Convert a GitHub contents API URL to a raw URL")
    raw.add_argument("--url", required=True, help="https://api.github.com/repos/{owner}/{repo}/contents/{path}")
    raw.set_defaults(func=cmd_raw_url)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
