"""
Drug deliveries and monthly usage reports

A monthly report is a pure function of the delivery log for a (month, year)
key. The stored report document is only a memo: deliveries update it
incrementally, and every read rebuilds it from the deliveries before
returning it.
"""
import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from app.core.drugs import DRUGS, VALID_DRUGS
from app.core.errors import NotFound
from app.database.schemas import DrugDelivery, DrugUsage, MonthlyReport
from app.database.storage import DRUG_DELIVERIES, MONTHLY_REPORTS, DocumentStore
from app.services.persian_calendar import stamp_delivery
from app.services.utils import to_document, to_int, utc_now
from app.services.validators import validate_delivery

logger = logging.getLogger(__name__)

ReportKey = Tuple[str, int]

DELIVERY_DATETIME_FIELDS = ("deliveryDate", "updatedAt")


def empty_report(month: str, year: int) -> Dict[str, Any]:
    report = MonthlyReport(
        month=month,
        year=year,
        drugs={drug: DrugUsage(type=DRUGS[drug].unit) for drug in VALID_DRUGS},
    )
    return to_document(report, ())


def _total_used(report: Dict[str, Any]) -> int:
    return sum(usage["quantity"] for usage in report["drugs"].values())


def _delivered_quantity(delivery: Dict[str, Any], drug: str) -> int:
    return to_int(delivery.get("drugQuantities", {}).get(drug)) or 0


def compute_monthly_report(deliveries: Iterable[Dict[str, Any]], month: str, year: int) -> Dict[str, Any]:
    """
    Build the usage report for one month from the delivery log

    Only configured drugs are counted; totalUsed is the sum over all drugs.
    """
    report = empty_report(month, year)
    for delivery in deliveries:
        if delivery.get("month") != month or delivery.get("year") != year:
            continue
        for drug in delivery.get("drugs", []):
            if drug in report["drugs"]:
                report["drugs"][drug]["quantity"] += _delivered_quantity(delivery, drug)
    report["totalUsed"] = _total_used(report)
    return report


def _find_report(reports: List[Dict[str, Any]], month: str, year: int) -> Optional[Dict[str, Any]]:
    for report in reports:
        if report.get("month") == month and report.get("year") == year:
            return report
    return None


def _find_delivery(deliveries: List[Dict[str, Any]], delivery_id: str) -> Optional[Dict[str, Any]]:
    for delivery in deliveries:
        if delivery.get("id") == delivery_id:
            return delivery
    return None


class DeliveryService:
    """
    Delivery log plus the memoized monthly reports derived from it
    """
    def __init__(self, store: DocumentStore, clock: Callable = utc_now):
        self.store = store
        self.clock = clock

    def list_deliveries(
        self,
        record_number: Optional[str] = None,
        national_code: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        deliveries = self.store.load(DRUG_DELIVERIES, [])
        if record_number:
            return [d for d in deliveries if d.get("recordNumber") == record_number]
        if national_code:
            return [d for d in deliveries if d.get("nationalCode") == national_code]
        return deliveries

    def get_delivery(self, delivery_id: str) -> Dict[str, Any]:
        delivery = _find_delivery(self.store.load(DRUG_DELIVERIES, []), delivery_id)
        if delivery is None:
            raise NotFound("تحویل دارو یافت نشد")
        return delivery

    def record_delivery(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate, stamp and store a delivery, then add it to its month's report
        """
        validate_delivery(data)

        stamp = stamp_delivery(self.clock())
        delivery = DrugDelivery(
            id=str(uuid.uuid4()),
            record_number=data["recordNumber"],
            patient_name=data["patientName"],
            national_code=data["nationalCode"],
            drugs=list(data["drugs"]),
            drug_quantities={drug: to_int(qty) for drug, qty in data["drugQuantities"].items()},
            reason=data["reason"].strip(),
            delivery_date=stamp.delivery_date,
            persian_date=stamp.persian_date,
            month=stamp.month,
            year=stamp.year,
            gregorian_month=stamp.gregorian_month,
            gregorian_year=stamp.gregorian_year,
            delivery_time=stamp.delivery_time,
        )
        document = to_document(delivery, DELIVERY_DATETIME_FIELDS)

        deliveries = self.store.load(DRUG_DELIVERIES, [])
        deliveries.append(document)
        self.store.save(DRUG_DELIVERIES, deliveries)

        self._apply_to_report(document, sign=1)
        logger.info(
            f"Delivery {document['id']} recorded for record {document['recordNumber']} "
            f"({document['month']} {document['year']})"
        )
        return document

    def update_delivery(
        self,
        delivery_id: str,
        drugs: Optional[List[str]],
        quantities: Optional[Dict[str, Any]],
        reason: Optional[str],
    ) -> Dict[str, Any]:
        """
        Correct the drugs, quantities and reason of a stored delivery

        The month's report is reconciled by removing the old quantities and
        adding the new ones.
        """
        validate_delivery(
            {"drugs": drugs, "drugQuantities": quantities, "reason": reason},
            require_patient=False,
        )

        deliveries = self.store.load(DRUG_DELIVERIES, [])
        existing = _find_delivery(deliveries, delivery_id)
        if existing is None:
            raise NotFound("تحویل دارو یافت نشد")

        previous = dict(existing)
        existing["drugs"] = list(drugs)
        existing["drugQuantities"] = {drug: to_int(qty) for drug, qty in quantities.items()}
        existing["reason"] = reason.strip()
        existing["updatedAt"] = self.clock().isoformat()
        self.store.save(DRUG_DELIVERIES, deliveries)

        self._apply_to_report(previous, sign=-1)
        self._apply_to_report(existing, sign=1)
        logger.info(f"Delivery {delivery_id} updated")
        return existing

    def _apply_to_report(self, delivery: Dict[str, Any], sign: int):
        """
        Add (sign=1) or remove (sign=-1) a delivery's quantities in its stored report
        """
        month, year = delivery["month"], delivery["year"]
        reports = self.store.load(MONTHLY_REPORTS, [])
        report = _find_report(reports, month, year)
        if report is None:
            report = empty_report(month, year)
            reports.append(report)

        for drug in delivery.get("drugs", []):
            if drug not in DRUGS:
                continue
            usage = report["drugs"].setdefault(drug, {"quantity": 0, "type": DRUGS[drug].unit})
            usage["quantity"] += sign * _delivered_quantity(delivery, drug)
        report["totalUsed"] = _total_used(report)

        self.store.save(MONTHLY_REPORTS, reports)

    def recalc_monthly_report(self, month: str, year: int) -> Dict[str, Any]:
        """
        Rebuild a month's report from the delivery log and store it
        """
        deliveries = self.store.load(DRUG_DELIVERIES, [])
        fresh = compute_monthly_report(deliveries, month, year)

        reports = self.store.load(MONTHLY_REPORTS, [])
        stored = _find_report(reports, month, year)
        if stored is None:
            reports.append(fresh)
        else:
            stored.update(fresh)
        self.store.save(MONTHLY_REPORTS, reports)
        return fresh

    def get_monthly_report(self, month: str, year: int) -> Dict[str, Any]:
        """
        Monthly report, always recomputed from deliveries
        """
        return self.recalc_monthly_report(month, year)

    def purge_for_patient(self, record_number: str, national_code: str) -> Set[ReportKey]:
        """
        Remove every delivery of a patient

        Returns:
            The (month, year) keys of the removed deliveries
        """
        deliveries = self.store.load(DRUG_DELIVERIES, [])
        kept, touched = [], set()
        for delivery in deliveries:
            if delivery.get("recordNumber") == record_number or delivery.get("nationalCode") == national_code:
                touched.add((delivery["month"], delivery["year"]))
            else:
                kept.append(delivery)

        if len(kept) != len(deliveries):
            self.store.save(DRUG_DELIVERIES, kept)
            logger.info(f"Removed {len(deliveries) - len(kept)} deliveries for record {record_number}")
        return touched
