"""
Sync Engine.

Reconciles the local store with the remote store: drain the outbound
queue oldest-first (push), overwrite local collections with the remote
copy (pull), then purge synced queue entries. One engine owns one
SyncState; concurrent triggers are dropped, not queued.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.config import get_logger
from src.core.entities.inventory import Category, DeviceUser, InventoryItem, StockMovement, utcnow
from src.core.entities.sync import (
    OutboundQueueEntry,
    QueueSummary,
    SyncAction,
    SyncReport,
    SyncState,
    SyncTable,
)
from src.core.exceptions import (
    ForeignKeyViolationError,
    QueueEntryNotFoundError,
    RemoteStoreError,
    RemoteUnavailableError,
    ValidationError,
)
from src.core.interfaces.local_store import ILocalStore
from src.core.interfaces.remote_store import IRemoteStore

logger = get_logger(__name__)


class SyncEngine:
    """
    Push/pull reconciler between the local and remote stores.

    Push failures leave the entry unsynced and bump its attempt counter;
    an entry is poisoned after ``max_attempts`` failures (0 disables the
    cap) or at once when the remote rejects it permanently. Poisoned
    entries are skipped by later passes until requeued.
    """

    def __init__(
        self,
        local_store: ILocalStore,
        remote_store: IRemoteStore,
        state: SyncState | None = None,
        max_attempts: int = 25,
        device_user_fk_column: str = "device_user_id",
    ) -> None:
        self._local = local_store
        self._remote = remote_store
        self._state = state or SyncState()
        self.max_attempts = max_attempts
        self.device_user_fk_column = device_user_fk_column
        self._tasks: set[asyncio.Task] = set()
        self._background: list[asyncio.Task] = []

    # Connectivity

    @property
    def state(self) -> SyncState:
        """Snapshot of the engine's flags."""
        return self._state.model_copy()

    @property
    def is_online(self) -> bool:
        return self._state.online

    def set_online(self, online: bool) -> None:
        """
        Apply a connectivity signal.

        An offline-to-online transition schedules a sync.
        """
        was_online = self._state.online
        self._state.online = online
        if was_online == online:
            return

        logger.info("connectivity_changed", online=online)
        if online:
            self.request_sync()

    # Triggers

    def request_sync(self) -> asyncio.Task | None:
        """Schedule a sync without waiting for it. No-op when one cannot start."""
        if not self._state.online or self._state.in_progress:
            return None
        task = asyncio.create_task(self._run_guarded())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for scheduled syncs to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_guarded(self) -> SyncReport | None:
        # Background entry point: failures are already logged and kept on state
        try:
            return await self.trigger_sync()
        except Exception:
            return None

    async def trigger_sync(self) -> SyncReport | None:
        """
        Run one push, pull and purge pass.

        Returns:
            The pass report, or None when offline or a pass is already running.

        Raises:
            StorageError: The local store failed; the pass is abandoned.
        """
        if not self._state.online:
            logger.debug("sync_skipped", reason="offline")
            return None
        if self._state.in_progress:
            logger.debug("sync_skipped", reason="in_progress")
            return None

        self._state.in_progress = True
        report = SyncReport()
        logger.info("sync_started")
        try:
            remote_reachable = await self._push(report)
            if remote_reachable:
                await self._pull(report)
            report.purged = await self._local.clear_synced_entries()
        except Exception as e:
            self._state.last_error = str(e)
            logger.error("sync_failed", error=str(e), exc_info=True)
            raise
        finally:
            self._state.in_progress = False

        report.finished_at = utcnow()
        self._state.last_sync_at = report.finished_at
        self._state.last_error = None if remote_reachable else "remote unavailable"
        logger.info(
            "sync_completed",
            pushed=report.pushed,
            failed=report.failed,
            skipped=report.skipped,
            poisoned=report.poisoned,
            pulled=report.pulled,
            purged=report.purged,
        )
        return report

    # Push phase

    async def _push(self, report: SyncReport) -> bool:
        """Drain unsynced entries. Returns False if the remote went unreachable."""
        entries = await self._local.get_unsynced_entries()
        if entries:
            logger.info("push_started", pending=len(entries))

        for entry in entries:
            try:
                payload = self._decode_payload(entry)
            except ValueError as e:
                logger.error("queue_entry_unparseable", entry_id=entry.id, error=str(e))
                report.skipped += 1
                await self._record_failure(entry, f"unparseable payload: {e}", False, report)
                continue

            try:
                await self._dispatch(entry, payload)
            except RemoteUnavailableError as e:
                # Not the entry's fault; keep its attempt count and stop pushing
                logger.warning("push_interrupted", entry_id=entry.id, error=e.message)
                report.failed += 1
                return False
            except RemoteStoreError as e:
                logger.warning(
                    "queue_entry_push_failed",
                    entry_id=entry.id,
                    table=entry.table_name.value,
                    action=entry.action.value,
                    error=e.message,
                )
                report.failed += 1
                await self._record_failure(entry, e.message, e.is_permanent, report)
                continue
            except ValidationError as e:
                logger.error("queue_entry_unsupported", entry_id=entry.id, error=e.message)
                report.failed += 1
                await self._record_failure(entry, e.message, True, report)
                continue

            await self._local.mark_synced(entry.id)
            report.pushed += 1

        return True

    @staticmethod
    def _decode_payload(entry: OutboundQueueEntry) -> dict[str, Any]:
        data = entry.record_data
        if isinstance(data, str):
            logger.warning("queue_entry_double_encoded", entry_id=entry.id)
            data = json.loads(data)
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")
        return data

    async def _dispatch(self, entry: OutboundQueueEntry, payload: dict[str, Any]) -> None:
        table, action = entry.table_name, entry.action

        if table == SyncTable.STOCK_ADJUSTMENTS:
            if "item" not in payload or "movement" not in payload:
                raise ValidationError("record_data", "adjustment needs item and movement")
            await self.push_adjustment(payload["item"], payload["movement"])
        elif table == SyncTable.STOCK_MOVEMENTS and action == SyncAction.INSERT:
            await self.push_movement(payload)
        elif table == SyncTable.STOCK_MOVEMENTS:
            raise ValidationError("action", f"movements are append-only, got {action.value}")
        elif action == SyncAction.DELETE:
            if "id" not in payload:
                raise ValidationError("record_data", "delete needs an id")
            await self._remote.delete(table.value, payload["id"])
        else:
            await self._remote.upsert(table.value, payload)

    def _is_device_user_violation(self, error: ForeignKeyViolationError) -> bool:
        if error.column:
            return error.column == self.device_user_fk_column
        return self.device_user_fk_column in (error.constraint or error.message)

    async def push_movement(self, record: dict[str, Any]) -> dict[str, Any]:
        """
        Upsert a movement, dropping the device user reference if the remote
        does not know that user yet.

        Only one retry is made; any other foreign-key violation propagates.
        """
        try:
            return await self._remote.upsert(SyncTable.STOCK_MOVEMENTS.value, record)
        except ForeignKeyViolationError as e:
            if not self._is_device_user_violation(e) or record.get(self.device_user_fk_column) is None:
                raise
            logger.warning(
                "movement_device_user_dropped",
                movement_id=record.get("id"),
                device_user_id=record.get(self.device_user_fk_column),
            )
            stripped = {k: v for k, v in record.items() if k != self.device_user_fk_column}
            return await self._remote.upsert(SyncTable.STOCK_MOVEMENTS.value, stripped)

    async def push_adjustment(self, item: dict[str, Any], movement: dict[str, Any]) -> None:
        """
        Replay a quantity change: the movement first, then the item.

        The item is sent as it stands in the local store now, not as the
        queued snapshot, which a later adjustment may already have
        superseded on the remote. An item no longer held locally is not
        sent at all.
        """
        await self.push_movement(movement)
        current = await self._local.get_item(item["id"])
        if current is None:
            logger.info("adjustment_item_gone", item_id=item["id"], movement_id=movement.get("id"))
            return
        await self._remote.upsert(SyncTable.INVENTORY_ITEMS.value, current.model_dump(mode="json"))

    async def _record_failure(
        self,
        entry: OutboundQueueEntry,
        error: str,
        permanent: bool,
        report: SyncReport,
    ) -> None:
        attempts = entry.attempts + 1
        poisoned = permanent or (self.max_attempts > 0 and attempts >= self.max_attempts)
        await self._local.record_sync_failure(entry.id, error, poisoned=poisoned)
        if poisoned:
            report.poisoned += 1
            logger.error(
                "queue_entry_poisoned",
                entry_id=entry.id,
                table=entry.table_name.value,
                attempts=attempts,
                permanent=permanent,
                error=error,
            )

    # Pull phase

    async def _pull(self, report: SyncReport) -> None:
        """Overwrite each local collection with the remote copy, independently."""
        collections: list[tuple[SyncTable, type[BaseModel], Any]] = [
            (SyncTable.INVENTORY_ITEMS, InventoryItem, self._local.replace_items),
            (SyncTable.DEVICE_USERS, DeviceUser, self._local.replace_device_users),
            (SyncTable.STOCK_MOVEMENTS, StockMovement, self._local.replace_movements),
            (SyncTable.CATEGORIES, Category, self._local.replace_categories),
        ]
        for table, model, replace in collections:
            try:
                rows = await self._remote.fetch_all(table.value)
            except RemoteStoreError as e:
                logger.error("pull_failed", table=table.value, error=e.message)
                continue

            records = []
            for row in rows:
                try:
                    records.append(model.model_validate(row))
                except PydanticValidationError as e:
                    logger.warning(
                        "pull_row_rejected",
                        table=table.value,
                        row_id=row.get("id") if isinstance(row, dict) else None,
                        error=str(e),
                    )
            report.pulled[table.value] = await replace(records)

    # Queue administration

    async def queue_summary(self) -> QueueSummary:
        return await self._local.count_queue()

    async def list_queue(self, include_poisoned: bool = True) -> list[OutboundQueueEntry]:
        return await self._local.get_unsynced_entries(include_poisoned=include_poisoned)

    async def requeue_entry(self, entry_id: str) -> OutboundQueueEntry:
        """Clear an entry's poison flag and attempt count."""
        if not await self._local.requeue_entry(entry_id):
            raise QueueEntryNotFoundError(entry_id)
        logger.info("queue_entry_requeued", entry_id=entry_id)
        entry = await self._local.get_queue_entry(entry_id)
        if entry is None:
            raise QueueEntryNotFoundError(entry_id)
        return entry

    async def discard_entry(self, entry_id: str) -> None:
        """Drop an entry without replaying it."""
        if not await self._local.delete_queue_entry(entry_id):
            raise QueueEntryNotFoundError(entry_id)
        logger.warning("queue_entry_discarded", entry_id=entry_id)

    # Background loops

    def start(
        self,
        initial_delay_seconds: float = 1.0,
        interval_seconds: float = 0.0,
        probe_interval_seconds: float = 0.0,
    ) -> None:
        """Start the delayed first sync, periodic syncs and the connectivity probe."""
        self._background.append(
            asyncio.create_task(self._periodic(initial_delay_seconds, interval_seconds))
        )
        if probe_interval_seconds > 0:
            self._background.append(asyncio.create_task(self._probe(probe_interval_seconds)))
        logger.info(
            "sync_engine_started",
            initial_delay=initial_delay_seconds,
            interval=interval_seconds,
            probe_interval=probe_interval_seconds,
        )

    async def stop(self) -> None:
        """Cancel background loops and wait for in-flight syncs."""
        for task in self._background:
            task.cancel()
        await asyncio.gather(*self._background, return_exceptions=True)
        self._background.clear()
        await self.wait_idle()
        logger.info("sync_engine_stopped")

    async def _periodic(self, initial_delay: float, interval: float) -> None:
        await asyncio.sleep(initial_delay)
        await self._run_guarded()
        if interval <= 0:
            return
        while True:
            await asyncio.sleep(interval)
            await self._run_guarded()

    async def _probe(self, interval: float) -> None:
        while True:
            self.set_online(await self._remote.ping())
            await asyncio.sleep(interval)
