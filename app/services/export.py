"""
Spreadsheet exports

Each export is a single right-to-left sheet with a bold header row. Row
builders turn stored documents into rows of named fields; build_workbook
only knows about columns and rows.
"""
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Dict, Iterable, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from app.core.drugs import get_drug
from app.services.persian_calendar import persian_label
from app.services.utils import parse_timestamp

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class ExportColumn:
    header: str
    key: str
    width: int = 15


PATIENT_COLUMNS = [
    ExportColumn("نام و نام خانوادگی", "fullName", 30),
    ExportColumn("کد ملی", "nationalCode", 15),
    ExportColumn("تاریخ تولد", "birthDate", 15),
    ExportColumn("تاریخ مراجعه", "visitDate", 15),
    ExportColumn("شماره پرونده", "recordNumber", 20),
    ExportColumn("سهمیه", "quota", 10),
    ExportColumn("دارو", "drug", 20),
    ExportColumn("تاریخ ثبت", "createdAt", 25),
]

DELIVERY_COLUMNS = [
    ExportColumn("نام بیمار", "patientName", 30),
    ExportColumn("کد ملی", "nationalCode", 15),
    ExportColumn("شماره پرونده", "recordNumber", 20),
    ExportColumn("تاریخ تحویل", "persianDate", 25),
    ExportColumn("داروها", "drugs", 40),
    ExportColumn("مقادیر", "quantities", 40),
    ExportColumn("دلیل تحویل", "reason", 40),
]

REPORT_COLUMNS = [
    ExportColumn("دارو", "drug", 30),
    ExportColumn("مقدار مصرف شده", "quantity", 20),
    ExportColumn("واحد", "type", 15),
]


def build_workbook(sheet_title: str, columns: List[ExportColumn], rows: Iterable[Dict[str, Any]]) -> bytes:
    """
    Write rows of named fields to an .xlsx workbook

    Args:
        sheet_title: Worksheet name
        columns: Column headers, row keys and widths in display order
        rows: Dicts keyed by column key; missing keys become empty cells, an
            empty dict becomes a blank row

    Returns:
        Workbook file content
    """
    wb = Workbook()
    sheet = wb.active
    sheet.title = sheet_title
    sheet.sheet_view.rightToLeft = True

    for col_idx, column in enumerate(columns, 1):
        cell = sheet.cell(row=1, column=col_idx)
        cell.value = column.header
        cell.font = Font(bold=True)
        cell.fill = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")
        cell.alignment = Alignment(horizontal="center", vertical="center")
        sheet.column_dimensions[get_column_letter(col_idx)].width = column.width

    for row_idx, row in enumerate(rows, 2):
        for col_idx, column in enumerate(columns, 1):
            sheet.cell(row=row_idx, column=col_idx).value = row.get(column.key)

    sheet.freeze_panes = "A2"

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def patient_rows(patients: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    rows = []
    for patient in patients:
        created_at = patient.get("createdAt")
        rows.append({
            **{column.key: patient.get(column.key) for column in PATIENT_COLUMNS},
            "createdAt": persian_label(parse_timestamp(created_at)) if created_at else None,
        })
    return rows


def _unit_for(drug: str) -> str:
    known = get_drug(drug)
    return known.unit if known else ""


def delivery_rows(deliveries: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    rows = []
    for delivery in deliveries:
        quantities = "، ".join(
            f"{drug}: {qty} {_unit_for(drug)}".strip()
            for drug, qty in delivery.get("drugQuantities", {}).items()
        )
        rows.append({
            "patientName": delivery.get("patientName"),
            "nationalCode": delivery.get("nationalCode"),
            "recordNumber": delivery.get("recordNumber"),
            "persianDate": delivery.get("persianDate"),
            "drugs": "، ".join(delivery.get("drugs", [])),
            "quantities": quantities,
            "reason": delivery.get("reason"),
        })
    return rows


def report_rows(report: Dict[str, Any]) -> List[Dict[str, Any]]:
    rows = [
        {"drug": drug, "quantity": usage["quantity"], "type": usage["type"]}
        for drug, usage in report["drugs"].items()
    ]
    rows.append({})
    rows.append({"drug": "کل مصرف شده", "quantity": report["totalUsed"], "type": "واحد"})
    return rows


def patients_workbook(patients: Iterable[Dict[str, Any]]) -> bytes:
    return build_workbook("بیماران", PATIENT_COLUMNS, patient_rows(patients))


def deliveries_workbook(deliveries: Iterable[Dict[str, Any]]) -> bytes:
    return build_workbook("تحویل دارو", DELIVERY_COLUMNS, delivery_rows(deliveries))


def monthly_report_workbook(report: Dict[str, Any]) -> bytes:
    return build_workbook("گزارش ماهانه", REPORT_COLUMNS, report_rows(report))
