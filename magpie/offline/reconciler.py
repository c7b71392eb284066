# magpie/offline/reconciler.py
import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Awaitable, Callable, List, Optional, Set, Union

from magpie.errors import CatalogError
from magpie.offline.client import RemoteCatalogClient
from magpie.offline.store import LAST_SYNC_KEY, ChangeAction, ChangeEntry, LocalStore

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[List[ChangeEntry]], Union[bool, Awaitable[bool]]]


@dataclass
class SyncFailure:
    change: ChangeEntry
    error: CatalogError

    @property
    def status_code(self) -> int:
        return self.error.status_code


@dataclass
class SyncReport:
    """Outcome of one reconciliation pass."""
    pulled: int = 0
    applied: List[ChangeEntry] = field(default_factory=list)
    failed: List[SyncFailure] = field(default_factory=list)
    skipped: List[ChangeEntry] = field(default_factory=list)
    cancelled: bool = False
    purged: int = 0

    @property
    def ok(self) -> bool:
        return not self.cancelled and not self.failed and not self.skipped


class SyncReconciler:
    """Replays the local change log against the remote catalog.

    Changes go out one at a time in creation order. A rejected change stays
    queued and holds back any later change to the same record until the next
    pass. A network failure aborts the pass by propagating NetworkError;
    changes confirmed before it stay marked synced.
    """

    def __init__(self, store: LocalStore, remote: RemoteCatalogClient):
        self.store = store
        self.remote = remote
        self._lock = asyncio.Lock()

    async def sync(self, confirm: Optional[ConfirmCallback] = None) -> SyncReport:
        async with self._lock:
            changes = self.store.list_unsynced()
            if not changes:
                logger.info("No pending changes, refreshing from remote")
                return await self._refresh()

            if confirm is not None:
                answer = confirm(changes)
                if inspect.isawaitable(answer):
                    answer = await answer
                if not answer:
                    logger.info("Sync cancelled with %d pending changes", len(changes))
                    return SyncReport(cancelled=True)

            report = await self._push(changes)
            report.purged = self.store.purge_synced()
            self.store.set_metadata(LAST_SYNC_KEY, datetime.now(UTC).isoformat())
            logger.info(
                "Sync finished: %d applied, %d failed, %d skipped",
                len(report.applied), len(report.failed), len(report.skipped),
            )
            return report

    async def refresh(self) -> SyncReport:
        """Pull every visible record from the remote catalog."""
        async with self._lock:
            return await self._refresh()

    async def _refresh(self) -> SyncReport:
        records = await self.remote.fetch_all_records()
        for record in records:
            self.store.upsert_record(record)
        self.store.set_metadata(LAST_SYNC_KEY, datetime.now(UTC).isoformat())
        logger.info("Pulled %d records", len(records))
        return SyncReport(pulled=len(records))

    async def _push(self, changes: List[ChangeEntry]) -> SyncReport:
        report = SyncReport()
        blocked: Set[str] = set()
        last_change_for = {change.isbn: change.id for change in changes}

        for change in changes:
            if change.isbn in blocked:
                logger.info("Skipping %s for %s after earlier failure", change.action.value, change.isbn)
                report.skipped.append(change)
                continue

            try:
                canonical = await self.remote.apply_change(change)
            except CatalogError as e:
                logger.warning(
                    "Remote rejected %s for %s (%d): %s",
                    change.action.value, change.isbn, e.status_code, e.message,
                )
                blocked.add(change.isbn)
                report.failed.append(SyncFailure(change=change, error=e))
                continue

            self.store.mark_synced(change.id)
            report.applied.append(change)
            self._apply_canonical(change, canonical, last_change_for[change.isbn] == change.id)

        return report

    def _apply_canonical(self, change: ChangeEntry, canonical: Optional[Any], is_last: bool) -> None:
        # Later queued edits to the same record must not be overwritten locally
        if not is_last:
            return
        if change.action == ChangeAction.DELETE:
            self.store.remove_record(change.isbn)
        elif canonical is not None:
            self.store.upsert_record(canonical)
