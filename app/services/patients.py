"""
Patient registry

CRUD over patient records, kept in step with the global quota ledger:

- registering reserves the patient's quota for their drug
- changing drug or quota moves the difference between patient and ledger
- deleting a patient releases their current quota and purges their
  deliveries and quota history
"""
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.core.errors import Conflict, NotFound, ValidationFailed
from app.database.schemas import Patient, QuotaHistoryEntry
from app.database.storage import PATIENTS, QUOTA_HISTORY, DocumentStore
from app.services.deliveries import DeliveryService
from app.services.quota_ledger import QuotaLedger
from app.services.utils import to_document, to_int, utc_now
from app.services.validators import validate_patient

logger = logging.getLogger(__name__)

PATIENT_NOT_FOUND = "بیمار یافت نشد"
DUPLICATE_PATIENT = "بیمار با این کد ملی یا کد رهگیری قبلاً ثبت شده است"

PATIENT_FIELDS = ("fullName", "nationalCode", "birthDate", "visitDate", "recordNumber", "quota", "drug")


def _index_of(patients: List[Dict[str, Any]], patient_id: str) -> int:
    for index, patient in enumerate(patients):
        if patient.get("id") == patient_id:
            return index
    raise NotFound(PATIENT_NOT_FOUND)


def _normalized(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validated payload with text identifiers stripped, as they are stored and compared"""
    return {**data, "fullName": data["fullName"].strip(), "recordNumber": data["recordNumber"].strip()}


def _is_duplicate(patients: List[Dict[str, Any]], data: Dict[str, Any], exclude_id: Optional[str] = None) -> bool:
    return any(
        p.get("id") != exclude_id
        and (p.get("nationalCode") == data.get("nationalCode") or p.get("recordNumber") == data.get("recordNumber"))
        for p in patients
    )


class PatientRegistry:
    def __init__(
        self,
        store: DocumentStore,
        ledger: QuotaLedger,
        deliveries: DeliveryService,
        clock: Callable = utc_now,
    ):
        self.store = store
        self.ledger = ledger
        self.deliveries = deliveries
        self.clock = clock

    def list_patients(self) -> List[Dict[str, Any]]:
        return self.store.load(PATIENTS, [])

    def get_patient(self, patient_id: str) -> Dict[str, Any]:
        patients = self.store.load(PATIENTS, [])
        return patients[_index_of(patients, patient_id)]

    def search(self, national_code: Optional[str] = None, record_number: Optional[str] = None) -> Dict[str, Any]:
        """
        Find a patient by national code, or by record number when no code is given
        """
        if not national_code and not record_number:
            raise ValidationFailed(["کد ملی یا کد رهگیری الزامی است"])

        for patient in self.store.load(PATIENTS, []):
            if national_code:
                if patient.get("nationalCode") == national_code:
                    return patient
            elif patient.get("recordNumber") == record_number:
                return patient
        raise NotFound(PATIENT_NOT_FOUND)

    def register(self, data: Dict[str, Any]) -> Tuple[Dict[str, Any], int]:
        """
        Register a new patient

        Returns:
            (patient record, remaining global quota for the patient's drug)
        """
        validate_patient(data)
        data = _normalized(data)

        patients = self.store.load(PATIENTS, [])
        if _is_duplicate(patients, data):
            raise Conflict(DUPLICATE_PATIENT)

        quota = to_int(data["quota"])
        remaining = self.ledger.reserve(data["drug"], quota)

        patient = Patient(
            id=str(uuid.uuid4()),
            full_name=data["fullName"],
            national_code=data["nationalCode"],
            birth_date=data["birthDate"],
            visit_date=data["visitDate"],
            record_number=data["recordNumber"],
            quota=quota,
            drug=data["drug"],
            created_at=self.clock(),
        )
        document = to_document(patient)
        patients.append(document)
        self.store.save(PATIENTS, patients)

        logger.info(f"Registered patient {document['id']} ({document['drug']}, quota={quota})")
        return document, remaining

    def update(self, patient_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace a patient's details

        A drug change releases the old quota before reserving the new one; if
        the reservation fails the release is not undone. With the same drug only
        the quota difference is moved between patient and ledger.
        """
        validate_patient(data)
        data = _normalized(data)

        patients = self.store.load(PATIENTS, [])
        index = _index_of(patients, patient_id)
        existing = patients[index]

        identifiers_changed = (
            data["nationalCode"] != existing.get("nationalCode")
            or data["recordNumber"] != existing.get("recordNumber")
        )
        if identifiers_changed and _is_duplicate(patients, data, exclude_id=patient_id):
            raise Conflict(DUPLICATE_PATIENT)

        old_drug, old_quota = existing.get("drug"), to_int(existing.get("quota")) or 0
        new_drug, new_quota = data["drug"], to_int(data["quota"])

        if new_drug != old_drug:
            if old_quota > 0:
                self.ledger.release(old_drug, old_quota)
            self.ledger.reserve(new_drug, new_quota)
        elif new_quota > old_quota:
            self.ledger.reserve(new_drug, new_quota - old_quota)
        elif new_quota < old_quota:
            self.ledger.release(new_drug, old_quota - new_quota)

        updated = {
            **existing,
            "fullName": data["fullName"],
            "nationalCode": data["nationalCode"],
            "birthDate": data["birthDate"],
            "visitDate": data["visitDate"],
            "recordNumber": data["recordNumber"],
            "quota": new_quota,
            "drug": new_drug,
            "updatedAt": self.clock().isoformat(),
        }
        patients[index] = updated
        self.store.save(PATIENTS, patients)
        logger.info(f"Updated patient {patient_id}")
        return updated

    def set_quota(self, patient_id: str, quota: Any) -> Dict[str, Any]:
        """
        Direct quota edit, reconciled with the ledger like a full update
        """
        existing = self.get_patient(patient_id)
        data = {field: existing.get(field) for field in PATIENT_FIELDS}
        data["quota"] = quota
        return self.update(patient_id, data)

    def adjust_patient_quota(
        self,
        patient_id: str,
        month: Optional[str],
        date: Optional[str],
        amount: Any,
        operation: Optional[str],
    ) -> Dict[str, Any]:
        """
        Add to or subtract from a patient's quota and log it in the quota history

        Subtracting hands the amount back to the global quota; adding does not
        touch the global quota.
        """
        errors = []
        if not month or not date or not operation:
            errors.append("تمام فیلدها الزامی هستند")
        amount_num = to_int(amount)
        if amount_num is None or amount_num <= 0:
            errors.append("مقدار سهمیه باید عدد مثبت باشد")
        if operation and operation not in ("add", "subtract"):
            errors.append("عملیات نامعتبر")
        if errors:
            raise ValidationFailed(errors)

        patients = self.store.load(PATIENTS, [])
        index = _index_of(patients, patient_id)
        patient = patients[index]

        if operation == "subtract":
            self.ledger.release(patient["drug"], amount_num)
            patient["quota"] = (to_int(patient.get("quota")) or 0) - amount_num
        else:
            patient["quota"] = (to_int(patient.get("quota")) or 0) + amount_num
        self.store.save(PATIENTS, patients)

        entry = QuotaHistoryEntry(
            patient_id=patient_id,
            patient_name=patient.get("fullName", ""),
            month=month,
            date=date,
            amount=amount_num,
            operation=operation,
            created_at=self.clock(),
        )
        history = self.store.load(QUOTA_HISTORY, [])
        history.insert(0, to_document(entry, ("createdAt",)))
        self.store.save(QUOTA_HISTORY, history)

        logger.info(f"Patient {patient_id} quota {operation} {amount_num}, now {patient['quota']}")
        return patient

    def quota_history(self, patient_id: Optional[str] = None) -> List[Dict[str, Any]]:
        history = self.store.load(QUOTA_HISTORY, [])
        if patient_id is None:
            return history
        self.get_patient(patient_id)
        return [entry for entry in history if entry.get("patientId") == patient_id]

    def delete_completely(self, patient_id: str) -> Dict[str, Any]:
        """
        Remove a patient and everything recorded for them

        Deliveries are purged and each affected monthly report is rebuilt,
        quota history entries are dropped and the patient's remaining quota is
        returned to the ledger.
        """
        patients = self.store.load(PATIENTS, [])
        patient = patients.pop(_index_of(patients, patient_id))
        self.store.save(PATIENTS, patients)

        touched = self.deliveries.purge_for_patient(patient.get("recordNumber"), patient.get("nationalCode"))
        for month, year in sorted(touched):
            self.deliveries.recalc_monthly_report(month, year)

        history = self.store.load(QUOTA_HISTORY, [])
        remaining_history = [entry for entry in history if entry.get("patientId") != patient_id]
        if len(remaining_history) != len(history):
            self.store.save(QUOTA_HISTORY, remaining_history)

        quota = to_int(patient.get("quota")) or 0
        if quota > 0:
            self.ledger.release(patient.get("drug"), quota)

        logger.info(f"Deleted patient {patient_id} with {len(touched)} affected monthly reports")
        return patient
