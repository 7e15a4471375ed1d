"""Application use cases."""

from src.application.use_cases.adjust_stock import AdjustStockResult, AdjustStockUseCase
from src.application.use_cases.process_stock_webhook import ProcessStockWebhookUseCase
from src.application.use_cases.trigger_sync import TriggerSyncUseCase
from src.application.use_cases.verify_admin_pin import VerifyAdminPinUseCase

__all__ = [
    "AdjustStockUseCase",
    "AdjustStockResult",
    "ProcessStockWebhookUseCase",
    "TriggerSyncUseCase",
    "VerifyAdminPinUseCase",
]
