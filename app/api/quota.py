"""
Global quota endpoints
"""
from fastapi import APIRouter, Depends

from app.database.schemas import GlobalQuotaAdjustment, MonthlyTopUpInput
from app.services.patients import PatientRegistry
from app.services.quota_ledger import QuotaLedger
from app.services.utils import to_int
from app.api.utils import get_ledger, get_registry

router = APIRouter()


@router.get("/global-quota")
async def get_global_quota(ledger: QuotaLedger = Depends(get_ledger)):
    """
    Current clinic-wide quota per drug (applies the monthly reset first)
    """
    return {"success": True, "globalQuota": ledger.get()}


@router.put("/global-quota")
async def adjust_global_quota(adjustment: GlobalQuotaAdjustment, ledger: QuotaLedger = Depends(get_ledger)):
    """
    Manually add to, subtract from or set a drug's total quota
    """
    global_quota = ledger.adjust(
        adjustment.drug,
        adjustment.action,
        to_int(adjustment.amount),
        adjustment.description,
    )
    return {"success": True, "globalQuota": global_quota}


@router.post("/global-quota/monthly")
async def add_monthly_quota(top_up: MonthlyTopUpInput, ledger: QuotaLedger = Depends(get_ledger)):
    """
    Add a monthly allotment to a drug's total quota
    """
    global_quota = ledger.add_monthly_top_up(
        top_up.drug,
        top_up.month,
        to_int(top_up.amount),
        to_int(top_up.expiry_days),
    )
    return {"success": True, "globalQuota": global_quota}


@router.get("/quota-history")
async def get_quota_history(registry: PatientRegistry = Depends(get_registry)):
    """
    Quota changes of all patients, newest first
    """
    return {"success": True, "history": registry.quota_history()}
