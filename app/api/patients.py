"""
Patient management endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.database.schemas import PatientInput, PatientQuotaChange, PatientQuotaEdit
from app.services.export import patients_workbook
from app.services.patients import PatientRegistry
from app.api.utils import get_registry, xlsx_response

router = APIRouter()


@router.post("/patients")
async def register_patient(patient: PatientInput, registry: PatientRegistry = Depends(get_registry)):
    """
    Register a patient

    Validates the form, rejects duplicate national codes / record numbers and
    reserves the requested quota from the drug's global quota.
    Returns the new patient id and what is left of the drug's global quota.
    """
    created, remaining = registry.register(patient.model_dump(by_alias=True))
    return {
        "success": True,
        "id": created["id"],
        "patient": created,
        "remainingQuota": remaining,
    }


@router.get("/patients")
async def list_patients(registry: PatientRegistry = Depends(get_registry)):
    return {"success": True, "patients": registry.list_patients()}


@router.get("/patients/export")
async def export_patients(registry: PatientRegistry = Depends(get_registry)):
    """
    Download all patients as a spreadsheet
    """
    return xlsx_response(patients_workbook(registry.list_patients()), "patients.xlsx")


@router.get("/patients/search")
async def search_patient(
    national_code: Optional[str] = Query(None, alias="nationalCode"),
    record_number: Optional[str] = Query(None, alias="recordNumber"),
    registry: PatientRegistry = Depends(get_registry),
):
    """
    Find a patient by national code or record number
    """
    patient = registry.search(national_code=national_code, record_number=record_number)
    return {"success": True, "patient": patient}


@router.get("/patients/{patient_id}")
async def get_patient(patient_id: str, registry: PatientRegistry = Depends(get_registry)):
    return {"success": True, "patient": registry.get_patient(patient_id)}


@router.put("/patients/{patient_id}")
async def update_patient(
    patient_id: str,
    patient: PatientInput,
    registry: PatientRegistry = Depends(get_registry),
):
    """
    Replace a patient's details

    Changing the drug or the quota moves quota between the patient and the
    global ledger.
    """
    updated = registry.update(patient_id, patient.model_dump(by_alias=True))
    return {"success": True, "patient": updated}


@router.patch("/patients/{patient_id}/quota")
async def edit_patient_quota(
    patient_id: str,
    edit: PatientQuotaEdit,
    registry: PatientRegistry = Depends(get_registry),
):
    """
    Set a patient's quota directly
    """
    updated = registry.set_quota(patient_id, edit.quota)
    return {"success": True, "patient": updated}


@router.delete("/patients/{patient_id}")
async def delete_patient(patient_id: str, registry: PatientRegistry = Depends(get_registry)):
    """
    Delete a patient with their deliveries and quota history

    Their remaining quota goes back to the global quota and every affected
    monthly report is rebuilt.
    """
    registry.delete_completely(patient_id)
    return {"success": True}


@router.get("/patients/{patient_id}/quota-history")
async def get_patient_quota_history(patient_id: str, registry: PatientRegistry = Depends(get_registry)):
    return {"success": True, "history": registry.quota_history(patient_id)}


@router.post("/patients/{patient_id}/quota")
async def change_patient_quota(
    patient_id: str,
    change: PatientQuotaChange,
    registry: PatientRegistry = Depends(get_registry),
):
    """
    Add to or subtract from a patient's quota

    Subtracted amounts are handed back to the global quota. Every change is
    written to the quota history.
    """
    patient = registry.adjust_patient_quota(
        patient_id,
        month=change.month,
        date=change.date,
        amount=change.amount,
        operation=change.operation,
    )
    return {"success": True, "patient": patient}
