"""
Payload validation

Both validators collect every violation before failing, so staff see all
problems with a form at once.
"""
import re
from typing import Any, Dict, List

from app.core.drugs import get_drug, is_valid_drug
from app.core.errors import ValidationFailed
from app.services.utils import to_int

NATIONAL_CODE_PATTERN = re.compile(r"[0-9]{10}")

MIN_NAME_LENGTH = 3
MIN_RECORD_NUMBER_LENGTH = 3
MIN_REASON_LENGTH = 5


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def validate_patient(data: Dict[str, Any]) -> None:
    """
    Validate a patient registration / update payload

    Raises:
        ValidationFailed: with one message per violated rule
    """
    errors: List[str] = []

    if len(_text(data.get("fullName"))) < MIN_NAME_LENGTH:
        errors.append("نام بیمار باید حداقل 3 حرف داشته باشد")

    national_code = data.get("nationalCode")
    if not isinstance(national_code, str) or not NATIONAL_CODE_PATTERN.fullmatch(national_code):
        errors.append("کد ملی باید 10 رقم باشد")

    if not data.get("birthDate") or not data.get("visitDate"):
        errors.append("تاریخ تولد و مراجعه الزامی است")

    if len(_text(data.get("recordNumber"))) < MIN_RECORD_NUMBER_LENGTH:
        errors.append("شماره پرونده الزامی است")

    quota = to_int(data.get("quota"))
    if quota is None or quota <= 0:
        errors.append("سهمیه باید عدد مثبت باشد")

    if not is_valid_drug(data.get("drug")):
        errors.append("داروی انتخاب شده معتبر نیست")

    if errors:
        raise ValidationFailed(errors)


def validate_delivery(data: Dict[str, Any], require_patient: bool = True) -> None:
    """
    Validate a drug delivery payload

    Corrections of an existing delivery pass require_patient=False, since the
    patient identity is taken from the stored delivery.

    Quantities are checked against the kind of each drug: liquids are given in
    cc (1-1000 per delivery), tablets by count (at least one).
    """
    errors: List[str] = []

    patient_fields = (data.get("recordNumber"), data.get("patientName"), data.get("nationalCode"))
    if require_patient and not all(patient_fields):
        errors.append("اطلاعات بیمار الزامی است")

    drugs = data.get("drugs") or []
    if not drugs:
        errors.append("حداقل یک دارو باید انتخاب شود")

    if len(_text(data.get("reason"))) < MIN_REASON_LENGTH:
        errors.append("دلیل تحویل باید حداقل 5 حرف داشته باشد")

    invalid_drugs = [drug for drug in drugs if not is_valid_drug(drug)]
    if invalid_drugs:
        errors.append(f"داروهای نامعتبر: {', '.join(str(d) for d in invalid_drugs)}")

    quantities = data.get("drugQuantities") or {}
    if not quantities or len(quantities) != len(drugs) or set(quantities) != set(drugs):
        errors.append("مقادیر داروها الزامی است")

    for name, raw_quantity in quantities.items():
        quantity = to_int(raw_quantity)
        drug = get_drug(name)
        if quantity is None:
            errors.append(f"مقدار نامعتبر برای {name}")
        elif drug is None:
            # Already reported as an invalid drug when it is in the list
            if name not in drugs:
                errors.append(f"داروهای نامعتبر: {name}")
        elif not drug.accepts_quantity(quantity):
            if drug.max_quantity is not None:
                errors.append(f"مقدار {name} باید بین {drug.min_quantity} تا {drug.max_quantity} {drug.unit} باشد")
            else:
                errors.append(f"مقدار {name} باید حداقل {drug.min_quantity} عدد باشد")

    if errors:
        raise ValidationFailed(errors)
