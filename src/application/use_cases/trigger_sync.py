"""Trigger Sync Use Case."""

from src.application.dto.responses import SyncReportResponse
from src.core.entities.sync import SyncReport
from src.core.services import SyncEngine


class TriggerSyncUseCase:
    """Run one sync pass on demand."""

    def __init__(self, sync_engine: SyncEngine | None = None):
        self._sync_engine = sync_engine

    async def _get_sync_engine(self) -> SyncEngine:
        if self._sync_engine is None:
            from src.application.services import get_sync_engine

            self._sync_engine = await get_sync_engine()
        return self._sync_engine

    async def execute(self) -> SyncReport | None:
        """Returns None when the engine is offline or already syncing."""
        engine = await self._get_sync_engine()
        return await engine.trigger_sync()

    def to_response(self, report: SyncReport | None) -> SyncReportResponse:
        if report is None:
            return SyncReportResponse(started=False)
        return SyncReportResponse(
            started=True,
            pushed=report.pushed,
            failed=report.failed,
            skipped=report.skipped,
            poisoned=report.poisoned,
            pulled=report.pulled,
            purged=report.purged,
            finished_at=report.finished_at,
        )
