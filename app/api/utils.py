"""
Utility functions for API endpoints

Services are built per request around the configured document store. Tests
override get_store to run against an in-memory store.
"""
import urllib.parse
from typing import Optional, Tuple

from fastapi import Depends
from fastapi.responses import Response

from app.core.config import DATA_DIR
from app.core.errors import ValidationFailed
from app.database.storage import DocumentStore, JsonFileStore
from app.services.deliveries import DeliveryService
from app.services.export import XLSX_MEDIA_TYPE
from app.services.notifications import NotificationService
from app.services.patients import PatientRegistry
from app.services.quota_ledger import QuotaLedger
from app.services.utils import to_int

_store = JsonFileStore(DATA_DIR)


def get_store() -> DocumentStore:
    return _store


def get_ledger(store: DocumentStore = Depends(get_store)) -> QuotaLedger:
    return QuotaLedger(store)


def get_deliveries(store: DocumentStore = Depends(get_store)) -> DeliveryService:
    return DeliveryService(store)


def get_registry(
    store: DocumentStore = Depends(get_store),
    ledger: QuotaLedger = Depends(get_ledger),
    deliveries: DeliveryService = Depends(get_deliveries),
) -> PatientRegistry:
    return PatientRegistry(store, ledger, deliveries)


def get_notifications(store: DocumentStore = Depends(get_store)) -> NotificationService:
    return NotificationService(store)


def require_month_and_year(month: Optional[str], year: Optional[str]) -> Tuple[str, int]:
    """
    Check the month/year query pair used to key monthly reports
    """
    year_num = to_int(year)
    if not month or year_num is None:
        raise ValidationFailed(["ماه و سال الزامی است"])
    return month, year_num


def xlsx_response(content: bytes, filename: str) -> Response:
    """
    Spreadsheet download; the filename may contain Persian month names
    """
    ascii_name = filename.encode("ascii", "ignore").decode() or "export.xlsx"
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{urllib.parse.quote(filename)}"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": disposition},
    )
