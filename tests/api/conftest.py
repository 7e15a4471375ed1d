"""Fixtures for API tests: real services over a migrated store and an in-memory remote."""

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import (
    get_adjust_stock_use_case,
    get_engine,
    get_inventory,
    get_process_webhook_use_case,
    get_token_service,
    get_trigger_sync_use_case,
    get_verify_admin_pin_use_case,
)
from src.api.main import app
from src.application.use_cases import (
    AdjustStockUseCase,
    ProcessStockWebhookUseCase,
    TriggerSyncUseCase,
    VerifyAdminPinUseCase,
)
from src.core.entities import SyncState
from src.core.services import (
    AdminTokenService,
    InventoryService,
    StockWebhookService,
    SyncEngine,
    compute_signature,
)

ADMIN_PIN = "2468"
WEBHOOK_SECRET = "whsec_api"
WEBHOOK_NOW = 1_700_000_000.0


@pytest.fixture
def api_engine(local_store, remote_store) -> SyncEngine:
    """Starts offline so writes stay queued until a test goes online."""
    return SyncEngine(local_store, remote_store, state=SyncState(online=False), max_attempts=3)


@pytest.fixture
def api_inventory(local_store, api_engine) -> InventoryService:
    return InventoryService(local_store, api_engine, auto_sync=False)


@pytest.fixture
def token_service() -> AdminTokenService:
    return AdminTokenService(ADMIN_PIN)


@pytest.fixture
def admin_headers(token_service) -> dict[str, str]:
    token = token_service.issue(ADMIN_PIN).token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def webhook_service(remote_store) -> StockWebhookService:
    return StockWebhookService(remote_store, WEBHOOK_SECRET, clock=lambda: WEBHOOK_NOW)


@pytest.fixture
def sign_webhook():
    """Build webhook headers for a body; ``skew_ms`` shifts the timestamp from now."""

    def _sign(body: bytes, skew_ms: int = 0, secret: str = WEBHOOK_SECRET) -> dict[str, str]:
        timestamp = str(int(WEBHOOK_NOW * 1000) + skew_ms)
        return {
            "Content-Type": "application/json",
            "x-webhook-signature": compute_signature(secret, timestamp, body),
            "x-webhook-timestamp": timestamp,
        }

    return _sign


@pytest.fixture
async def client(api_inventory, api_engine, token_service, webhook_service):
    overrides = {
        get_inventory: lambda: api_inventory,
        get_engine: lambda: api_engine,
        get_token_service: lambda: token_service,
        get_adjust_stock_use_case: lambda: AdjustStockUseCase(inventory_service=api_inventory),
        get_trigger_sync_use_case: lambda: TriggerSyncUseCase(sync_engine=api_engine),
        get_verify_admin_pin_use_case: lambda: VerifyAdminPinUseCase(token_service=token_service),
        get_process_webhook_use_case: lambda: ProcessStockWebhookUseCase(
            webhook_service=webhook_service
        ),
    }
    app.dependency_overrides.update(overrides)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await api_engine.wait_idle()
    for dependency in overrides:
        app.dependency_overrides.pop(dependency, None)
