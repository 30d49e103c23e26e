"""
Drug delivery and monthly report endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.database.schemas import DeliveryInput, DeliveryUpdate
from app.services.deliveries import DeliveryService
from app.services.export import deliveries_workbook, monthly_report_workbook
from app.api.utils import get_deliveries, require_month_and_year, xlsx_response

router = APIRouter()


@router.post("/drug-delivery")
async def record_delivery(delivery: DeliveryInput, service: DeliveryService = Depends(get_deliveries)):
    """
    Record a drug delivery

    The server stamps the delivery time and the Persian month used to file it
    in the monthly report.
    """
    created = service.record_delivery(delivery.model_dump(by_alias=True))
    return {"success": True, "delivery": created}


@router.get("/drug-delivery")
async def list_deliveries(
    record_number: Optional[str] = Query(None, alias="recordNumber"),
    national_code: Optional[str] = Query(None, alias="nationalCode"),
    service: DeliveryService = Depends(get_deliveries),
):
    """
    Delivery history, optionally for one patient (record number wins over national code)
    """
    deliveries = service.list_deliveries(record_number=record_number, national_code=national_code)
    return {"success": True, "deliveries": deliveries}


@router.get("/drug-delivery/export")
async def export_deliveries(service: DeliveryService = Depends(get_deliveries)):
    return xlsx_response(deliveries_workbook(service.list_deliveries()), "drug_deliveries.xlsx")


@router.get("/drug-delivery/{delivery_id}")
async def get_delivery(delivery_id: str, service: DeliveryService = Depends(get_deliveries)):
    return {"success": True, "delivery": service.get_delivery(delivery_id)}


@router.put("/drug-delivery/{delivery_id}")
async def update_delivery(
    delivery_id: str,
    update: DeliveryUpdate,
    service: DeliveryService = Depends(get_deliveries),
):
    """
    Correct the drugs, quantities or reason of a delivery
    """
    updated = service.update_delivery(
        delivery_id,
        drugs=update.drugs,
        quantities=update.drug_quantities,
        reason=update.reason,
    )
    return {"success": True, "delivery": updated}


@router.get("/monthly-report")
async def get_monthly_report(
    month: Optional[str] = None,
    year: Optional[str] = None,
    service: DeliveryService = Depends(get_deliveries),
):
    """
    Usage per drug for a month, rebuilt from the deliveries on every call
    """
    month, year_num = require_month_and_year(month, year)
    return {"success": True, "report": service.get_monthly_report(month, year_num)}


@router.get("/monthly-report/export")
async def export_monthly_report(
    month: Optional[str] = None,
    year: Optional[str] = None,
    service: DeliveryService = Depends(get_deliveries),
):
    month, year_num = require_month_and_year(month, year)
    report = service.get_monthly_report(month, year_num)
    return xlsx_response(monthly_report_workbook(report), f"monthly_report_{month}_{year_num}.xlsx")
