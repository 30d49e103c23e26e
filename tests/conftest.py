"""
Shared fixtures: in-memory store, fixed clock, services and API client
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.api.utils import get_store
from app.core.drugs import METHADONE_SYRUP, METHADONE_TABLET_5
from app.database.storage import MemoryStore
from app.main import app
from app.services.deliveries import DeliveryService
from app.services.notifications import NotificationService
from app.services.patients import PatientRegistry
from app.services.quota_ledger import QuotaLedger


class FixedClock:
    """Callable clock that tests can move forward"""
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    # 13:00 in Tehran on 24 Mehr 1404
    return FixedClock(datetime(2025, 10, 16, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def ledger(store, clock):
    return QuotaLedger(store, clock=clock)


@pytest.fixture
def deliveries(store, clock):
    return DeliveryService(store, clock=clock)


@pytest.fixture
def registry(store, ledger, deliveries, clock):
    return PatientRegistry(store, ledger, deliveries, clock=clock)


@pytest.fixture
def notifications(store, clock):
    return NotificationService(store, clock=clock)


@pytest.fixture
def client(store):
    """Test client whose endpoints all share the in-memory store"""
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def patient_data():
    return {
        "fullName": "علی رضایی",
        "nationalCode": "0012345678",
        "birthDate": "1365/04/12",
        "visitDate": "1404/07/24",
        "recordNumber": "REC-100",
        "quota": 500,
        "drug": METHADONE_SYRUP,
    }


@pytest.fixture
def delivery_data():
    return {
        "recordNumber": "REC-100",
        "patientName": "علی رضایی",
        "nationalCode": "0012345678",
        "drugs": [METHADONE_TABLET_5],
        "drugQuantities": {METHADONE_TABLET_5: 20},
        "reason": "تحویل هفتگی دارو",
    }
