"""
Database module

Contains both data models (schemas) and the JSON document store.
"""

# Export schemas
from app.database.schemas import (
    PatientInput,
    Patient,
    PatientQuotaEdit,
    PatientQuotaChange,
    QuotaHistoryEntry,
    GlobalQuotaAdjustment,
    MonthlyTopUpInput,
    DeliveryInput,
    DeliveryUpdate,
    DrugDelivery,
    DrugUsage,
    MonthlyReport,
    NotificationInput,
    Notification,
)

# Export storage for convenience
from app.database.storage import (
    DocumentStore,
    JsonFileStore,
    MemoryStore,
    read_json,
    write_json,
    PATIENTS,
    QUOTA_HISTORY,
    GLOBAL_QUOTA,
    DRUG_DELIVERIES,
    MONTHLY_REPORTS,
    NOTIFICATIONS,
)

__all__ = [
    # Schemas
    "PatientInput",
    "Patient",
    "PatientQuotaEdit",
    "PatientQuotaChange",
    "QuotaHistoryEntry",
    "GlobalQuotaAdjustment",
    "MonthlyTopUpInput",
    "DeliveryInput",
    "DeliveryUpdate",
    "DrugDelivery",
    "DrugUsage",
    "MonthlyReport",
    "NotificationInput",
    "Notification",
    # Storage
    "DocumentStore",
    "JsonFileStore",
    "MemoryStore",
    "read_json",
    "write_json",
    "PATIENTS",
    "QUOTA_HISTORY",
    "GLOBAL_QUOTA",
    "DRUG_DELIVERIES",
    "MONTHLY_REPORTS",
    "NOTIFICATIONS",
]
