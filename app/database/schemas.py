"""
Data models

- Stored documents and API payloads use camelCase keys
- Input models are permissive (everything optional, strings or numbers) so the
  validators can report every problem at once in a single message
- Record models describe what is persisted
"""
from typing import Optional, Dict, List, Literal, Union
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel

# Form inputs arrive as numbers or numeric strings
IntLike = Union[int, str]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatientInput(CamelModel):
    """
    Patient registration / full update payload
    """
    full_name: Optional[str]     = Field(None, description="Patient full name")
    national_code: Optional[str] = Field(None, description="10-digit national code (unique)")
    birth_date: Optional[str]    = Field(None, description="Birth date as entered by staff")
    visit_date: Optional[str]    = Field(None, description="Visit date as entered by staff")
    record_number: Optional[str] = Field(None, description="Clinic record number (unique)")
    quota: Optional[IntLike]     = Field(None, description="Monthly quota requested for the patient")
    drug: Optional[str]          = Field(None, description="Prescribed drug, one of the configured drugs")


class Patient(CamelModel):
    """
    Canonical patient record (persisted to disk)
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")
    id: str                            = Field(...,  description="Patient unique identifier (auto-generated)")
    full_name: str                     = Field(...,  description="Patient full name")
    national_code: str                 = Field(...,  description="10-digit national code")
    birth_date: str                    = Field(...,  description="Birth date")
    visit_date: str                    = Field(...,  description="Visit date")
    record_number: str                 = Field(...,  description="Clinic record number")
    quota: int                         = Field(...,  description="Patient's current quota")
    drug: str                          = Field(...,  description="Prescribed drug")
    created_at: datetime               = Field(default_factory=datetime.now, description="Registration timestamp")
    updated_at: Optional[datetime]     = Field(None, description="Timestamp of the last update")


class PatientQuotaEdit(CamelModel):
    """
    Direct quota edit payload
    """
    quota: Optional[IntLike] = Field(None, description="New quota value")


class PatientQuotaChange(CamelModel):
    """
    Patient quota add/subtract payload
    """
    month: Optional[str]                            = Field(None, description="Month label the change belongs to")
    date: Optional[str]                             = Field(None, description="Date of the change as entered by staff")
    amount: Optional[IntLike]                       = Field(None, description="Amount to add or subtract")
    operation: Optional[str]                        = Field(None, description="'add' or 'subtract'")


class QuotaHistoryEntry(CamelModel):
    """
    Audit log entry for a patient quota change (newest first in storage)
    """
    patient_id: str                       = Field(..., description="Patient this change belongs to")
    patient_name: str                     = Field(..., description="Patient name at the time of the change")
    month: str                            = Field(..., description="Month label")
    date: str                             = Field(..., description="Date as entered by staff")
    amount: int                           = Field(..., description="Changed amount")
    operation: Literal["add", "subtract"] = Field(..., description="Direction of the change")
    created_at: datetime                  = Field(default_factory=datetime.now, description="Server timestamp")


class GlobalQuotaAdjustment(CamelModel):
    """
    Manual global quota adjustment payload
    """
    drug: Optional[str]             = Field(None, description="Drug to adjust")
    action: Optional[str]           = Field(None, description="'add', 'subtract' or 'set'")
    amount: Optional[IntLike]       = Field(None, description="Adjustment amount")
    description: Optional[str]      = Field(None, description="Free-text reason")


class MonthlyTopUpInput(CamelModel):
    """
    Monthly top-up payload
    """
    drug: Optional[str]             = Field(None, description="Drug receiving the top-up")
    month: Optional[str]            = Field(None, description="Month label of the allotment")
    amount: Optional[IntLike]       = Field(None, description="Amount added to the total quota")
    expiry_days: Optional[IntLike]  = Field(None, description="Days until the allotment expires (default 30)")


class DeliveryInput(CamelModel):
    """
    Drug delivery payload
    """
    record_number: Optional[str]                     = Field(None, description="Patient record number")
    patient_name: Optional[str]                      = Field(None, description="Patient name")
    national_code: Optional[str]                     = Field(None, description="Patient national code")
    drugs: Optional[List[str]]                       = Field(None, description="Delivered drugs")
    drug_quantities: Optional[Dict[str, IntLike]]    = Field(None, description="Quantity per delivered drug")
    reason: Optional[str]                            = Field(None, description="Reason for the delivery")


class DeliveryUpdate(CamelModel):
    """
    Delivery correction payload (patient identity is immutable)
    """
    drugs: Optional[List[str]]                       = Field(None, description="Delivered drugs")
    drug_quantities: Optional[Dict[str, IntLike]]    = Field(None, description="Quantity per delivered drug")
    reason: Optional[str]                            = Field(None, description="Reason for the delivery")


class DrugDelivery(CamelModel):
    """
    Persisted drug delivery
    """
    id: str                                     = Field(..., description="Delivery unique identifier (auto-generated)")
    record_number: str                          = Field(..., description="Patient record number")
    patient_name: str                           = Field(..., description="Patient name")
    national_code: str                          = Field(..., description="Patient national code")
    drugs: List[str]                            = Field(..., description="Delivered drugs")
    drug_quantities: Dict[str, int]             = Field(..., description="Quantity per delivered drug")
    reason: str                                 = Field(..., description="Reason for the delivery")
    delivery_date: datetime                     = Field(..., description="Server timestamp of the delivery")
    persian_date: str                           = Field(..., description="Persian calendar label of the delivery date")
    month: str                                  = Field(..., description="Persian month name (report key)")
    year: int                                   = Field(..., description="Gregorian year (report key)")
    gregorian_month: int                        = Field(..., description="Gregorian month number")
    gregorian_year: int                         = Field(..., description="Gregorian year")
    delivery_time: str                          = Field(..., description="Local time of the delivery")
    updated_at: Optional[datetime]              = Field(None, description="Timestamp of the last correction")


class DrugUsage(BaseModel):
    quantity: int              = Field(0, description="Total delivered quantity")
    type: Literal["cc", "unit"] = Field(..., description="Reporting unit")


class MonthlyReport(CamelModel):
    """
    Per-month usage report, derived from deliveries
    """
    month: str                        = Field(..., description="Persian month name")
    year: int                         = Field(..., description="Gregorian year")
    drugs: Dict[str, DrugUsage]       = Field(default_factory=dict, description="Usage per drug")
    total_used: int                   = Field(0, description="Sum of all drug quantities")
    remaining: int                    = Field(0, description="Reserved, always 0")
    exceeded: int                     = Field(0, description="Reserved, always 0")


class NotificationInput(BaseModel):
    title: Optional[str]   = Field(None, description="Notification title")
    message: Optional[str] = Field(None, description="Notification body")


class Notification(BaseModel):
    id: int                = Field(..., description="Notification id")
    title: str             = Field(..., description="Notification title")
    message: str           = Field(..., description="Notification body")
    date: datetime         = Field(default_factory=datetime.now, description="Creation timestamp")
    read: bool             = Field(False, description="Whether the notification was read")

