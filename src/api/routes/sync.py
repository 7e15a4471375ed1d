"""Sync engine endpoints."""

from fastapi import APIRouter, Depends, Response, status

from src.api.dependencies import get_engine, get_trigger_sync_use_case, require_admin
from src.application.dto.requests import ConnectivityRequest
from src.application.dto.responses import (
    ErrorResponse,
    QueueEntryResponse,
    QueueSummaryResponse,
    SyncReportResponse,
    SyncStatusResponse,
)
from src.application.use_cases.trigger_sync import TriggerSyncUseCase
from src.core.services import SyncEngine

router = APIRouter(prefix="/api/sync", tags=["sync"])


async def _status(engine: SyncEngine) -> SyncStatusResponse:
    state = engine.state
    summary = await engine.queue_summary()
    return SyncStatusResponse(
        online=state.online,
        in_progress=state.in_progress,
        last_sync_at=state.last_sync_at,
        last_error=state.last_error,
        queue=QueueSummaryResponse.model_validate(summary),
    )


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(engine: SyncEngine = Depends(get_engine)) -> SyncStatusResponse:
    """Connectivity, last sync and queue counts."""
    return await _status(engine)


@router.post("/trigger", response_model=SyncReportResponse)
async def trigger_sync(
    use_case: TriggerSyncUseCase = Depends(get_trigger_sync_use_case),
) -> SyncReportResponse:
    """Run a sync pass now. Reports started=false when offline or busy."""
    report = await use_case.execute()
    return use_case.to_response(report)


@router.put("/connectivity", response_model=SyncStatusResponse)
async def set_connectivity(
    request: ConnectivityRequest,
    engine: SyncEngine = Depends(get_engine),
) -> SyncStatusResponse:
    """Host connectivity signal; going online schedules a sync."""
    engine.set_online(request.online)
    return await _status(engine)


@router.get("/queue", response_model=list[QueueEntryResponse])
async def list_queue(
    include_poisoned: bool = True,
    engine: SyncEngine = Depends(get_engine),
) -> list[QueueEntryResponse]:
    """Unsynced queue entries, oldest first."""
    entries = await engine.list_queue(include_poisoned=include_poisoned)
    return [QueueEntryResponse.model_validate(entry) for entry in entries]


@router.post(
    "/queue/{entry_id}/requeue",
    response_model=QueueEntryResponse,
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def requeue_entry(
    entry_id: str,
    engine: SyncEngine = Depends(get_engine),
) -> QueueEntryResponse:
    """Clear an entry's poison flag so the next sync retries it (admin only)."""
    entry = await engine.requeue_entry(entry_id)
    return QueueEntryResponse.model_validate(entry)


@router.delete(
    "/queue/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def discard_entry(
    entry_id: str,
    engine: SyncEngine = Depends(get_engine),
) -> Response:
    """Drop an entry without replaying it (admin only)."""
    await engine.discard_entry(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
