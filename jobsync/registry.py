"""
Registry of tracked job sources.

Owns the ordered list of RegistryEntry, persists it under a single key after
every mutation, and refreshes every entry concurrently with per-entry failure
isolation: a source that fails to fetch keeps its previous data.

A load that could not read the stored list leaves the registry empty in memory
and blocks writes, so the unreadable copy on disk is never replaced by [].
"""

import asyncio
from typing import Any, List, Optional

from .errors import JobSyncError, RefreshInProgressError, StorageError
from .fetcher import RemoteFetcher
from .logger import StructuredLogger, get_logger
from .models import EntryData, RegistryEntry
from .parsers import parse_job_index
from .storage import KeyValueStore

STORAGE_KEY = "jobList"


def _restore_data(raw: Any) -> EntryData:
    # Stored payloads are re-parsed; anything that no longer parses is kept raw.
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        return raw
    try:
        return parse_job_index(raw)
    except JobSyncError:
        return raw


def entry_from_dict(raw: Any) -> Optional[RegistryEntry]:
    if not isinstance(raw, dict) or not isinstance(raw.get("url"), str):
        return None
    return RegistryEntry(url=raw["url"], data=_restore_data(raw.get("data")))


class JobRegistry:
    """
    Tracked sources plus refresh state.

    Args:
        store: Persistence backend, chosen by the caller
        fetcher: RemoteFetcher used by refresh() and track()
        logger: StructuredLogger (defaults to the global one)
    """

    def __init__(
        self,
        store: KeyValueStore,
        fetcher: Optional[RemoteFetcher] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.store = store
        self.logger = logger or get_logger()
        self.fetcher = fetcher or RemoteFetcher(logger=self.logger)
        self.entries: List[RegistryEntry] = []
        self.loading = False
        self.error: Optional[str] = None
        self.load_failed = False

    @property
    def count(self) -> int:
        return len(self.entries)

    @property
    def has_entries(self) -> bool:
        return bool(self.entries)

    def get(self, url: str) -> Optional[RegistryEntry]:
        for entry in self.entries:
            if entry.url == url:
                return entry
        return None

    def load_from_storage(self) -> List[RegistryEntry]:
        """
        Replace the in-memory list with the persisted one.

        Read failures and a stored value that is not a list yield an empty
        list and set `load_failed` until the next successful load.
        """
        try:
            stored = self.store.get(STORAGE_KEY)
        except StorageError as e:
            self.logger.warning("Failed to read job list from storage", error=str(e))
            return self._degrade()

        if stored is None:
            stored = []
        if not isinstance(stored, list):
            self.logger.warning("Stored job list is not a list; ignoring it", type=type(stored).__name__)
            return self._degrade()

        entries = []
        for raw in stored:
            entry = entry_from_dict(raw)
            if entry is None:
                self.logger.warning("Skipping malformed stored entry", entry=raw)
                continue
            entries.append(entry)
        self.entries = entries
        self.load_failed = False
        return self.entries

    def _degrade(self) -> List[RegistryEntry]:
        self.entries = []
        self.load_failed = True
        return self.entries

    def save_to_storage(self) -> None:
        """
        Persist the current list.

        Raises:
            StorageError: if the write fails, or if the last load could not
                read the stored list (it would be overwritten)
        """
        if self.load_failed:
            message = "Stored job list could not be read; refusing to overwrite it"
            self.logger.error(message, key=STORAGE_KEY)
            raise StorageError(message)
        try:
            self.store.set(STORAGE_KEY, [e.to_dict() for e in self.entries])
        except StorageError as e:
            self.logger.error("Failed to save jobs to storage", error=str(e))
            raise

    def add(self, entry: RegistryEntry) -> None:
        """Insert or replace (in place) the entry with the same url, then persist."""
        for i, existing in enumerate(self.entries):
            if existing.url == entry.url:
                self.entries[i] = entry
                break
        else:
            self.entries.append(entry)
        self.save_to_storage()

    def remove(self, url: str) -> None:
        self.entries = [e for e in self.entries if e.url != url]
        self.save_to_storage()

    async def track(self, url: str, credential: Optional[str] = None) -> RegistryEntry:
        """Fetch the index for `url` and add it. Fetch errors propagate and nothing is stored."""
        document = await self.fetcher.fetch_index(url, credential)
        entry = RegistryEntry(url=url, data=document)
        self.add(entry)
        self.logger.info("Tracking source", url=url, name=document.name)
        return entry

    async def refresh(self, credential: Optional[str] = None) -> List[RegistryEntry]:
        """
        Reload the persisted list and re-fetch every entry concurrently.

        Per-entry fetch failures are logged and that entry keeps its previous
        data. Results are applied in entry order, skipping entries that were
        replaced while their fetch was in flight. Failures of the refresh
        itself (e.g. persistence) are recorded in `error` and re-raised.

        Raises:
            RefreshInProgressError: if another refresh is still running
            StorageError: if the stored list could not be read or written
        """
        if self.loading:
            raise RefreshInProgressError("A refresh is already in progress")

        self.loading = True
        self.error = None
        try:
            self.load_from_storage()
            if self.load_failed:
                raise StorageError("Failed to load jobs: stored job list could not be read")

            snapshot = list(self.entries)
            results = await asyncio.gather(
                *(self.fetcher.fetch_index(e.url, credential) for e in snapshot),
                return_exceptions=True,
            )

            # Keyed by the entry object fetched, so a replacement added mid-refresh is left alone
            updates = {}
            failed = 0
            for entry, result in zip(snapshot, results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    failed += 1
                    self.logger.error(f"Failed to fetch job data for {entry.url}", error=str(result))
                    continue
                updates[id(entry)] = (entry, result)

            applied = 0
            refreshed = []
            for e in self.entries:
                fetched = updates.get(id(e))
                if fetched is not None and fetched[0] is e:
                    refreshed.append(RegistryEntry(url=e.url, data=fetched[1]))
                    applied += 1
                else:
                    refreshed.append(e)
            self.entries = refreshed
            self.save_to_storage()
            self.logger.info(
                "Refresh complete", total=len(snapshot), updated=applied, failed=failed
            )
            return self.entries
        except Exception as e:
            self.error = str(e) or "Failed to load jobs"
            raise
        finally:
            self.loading = False
