"""
Global quota ledger

Tracks the clinic-wide remaining quota per drug.

- Registration reserves a patient's quota, deletion releases it
- Staff can adjust a total manually or add a monthly top-up
- On the first access in a new calendar month every total is reset to the
  default and expired top-ups are dropped (a full reset, top-ups are not
  re-applied)
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Optional

from app.core.config import DEFAULT_TOP_UP_EXPIRY_DAYS, DEFAULT_TOTAL_QUOTA
from app.core.drugs import VALID_DRUGS, is_valid_drug
from app.core.errors import InsufficientQuota, ValidationFailed
from app.database.storage import GLOBAL_QUOTA, DocumentStore
from app.services.utils import parse_timestamp, utc_now

logger = logging.getLogger(__name__)

ADJUSTMENT_ACTIONS = ("add", "subtract", "set")


def default_drug_quota(today: date, total: int = DEFAULT_TOTAL_QUOTA) -> Dict[str, Any]:
    return {
        "totalQuota": total,
        "lastUpdated": today.isoformat(),
        "warningSent": False,
        "monthlyQuotas": [],
        "manualAdjustments": [],
    }


def default_global_quota(today: date) -> Dict[str, Any]:
    return {"drugs": {drug: default_drug_quota(today) for drug in VALID_DRUGS}}


def apply_monthly_reset(entry: Dict[str, Any], now: datetime, total: int = DEFAULT_TOTAL_QUOTA) -> bool:
    """
    Reset a drug entry if it was last touched in an earlier month

    Returns True when the entry was reset.
    """
    today = now.date()
    last_updated = date.fromisoformat(entry["lastUpdated"][:10])
    if (last_updated.year, last_updated.month) == (today.year, today.month):
        return False

    entry["totalQuota"] = total
    entry["lastUpdated"] = today.isoformat()
    entry["warningSent"] = False
    entry["monthlyQuotas"] = [
        top_up for top_up in entry.get("monthlyQuotas", [])
        if parse_timestamp(top_up["expiresAt"]) > now
    ]
    return True


class QuotaLedger:
    """
    Per-drug clinic quota stored in the global_quota document
    """
    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], datetime] = utc_now,
        default_total: int = DEFAULT_TOTAL_QUOTA,
    ):
        self.store = store
        self.clock = clock
        self.default_total = default_total

    def get(self) -> Dict[str, Any]:
        """
        Load the ledger, create missing drug entries, apply the monthly reset
        and persist the result
        """
        now = self.clock()
        today = now.date()
        ledger = self.store.load(GLOBAL_QUOTA, default_global_quota(today))
        drugs = ledger.setdefault("drugs", {})

        for drug in VALID_DRUGS:
            if drug not in drugs:
                drugs[drug] = default_drug_quota(today, self.default_total)
            entry = drugs[drug]
            entry.setdefault("monthlyQuotas", [])
            entry.setdefault("manualAdjustments", [])

        for drug, entry in drugs.items():
            if apply_monthly_reset(entry, now, self.default_total):
                logger.info(f"Monthly quota reset for {drug}: total={self.default_total}")

        self.store.save(GLOBAL_QUOTA, ledger)
        return ledger

    def remaining(self, drug: str) -> int:
        return self.get()["drugs"][drug]["totalQuota"]

    def _touch(self, entry: Dict[str, Any]):
        entry["lastUpdated"] = self.clock().date().isoformat()

    def adjust(self, drug: str, action: str, amount: Any, description: Optional[str] = None) -> Dict[str, Any]:
        """
        Manually add to, subtract from or replace a drug's total quota

        Returns:
            The updated ledger
        """
        errors = []
        if not is_valid_drug(drug):
            errors.append("داروی انتخاب شده معتبر نیست")
        if action not in ADJUSTMENT_ACTIONS:
            errors.append("عملیات نامعتبر")
        if not isinstance(amount, int) or isinstance(amount, bool):
            errors.append("مقدار باید عدد باشد")
        if errors:
            raise ValidationFailed(errors)

        ledger = self.get()
        entry = ledger["drugs"][drug]
        previous = entry["totalQuota"]

        if action == "add":
            new_total = previous + amount
        elif action == "subtract":
            new_total = previous - amount
        else:
            new_total = amount

        if new_total < 0:
            raise ValidationFailed(["سهمیه نمی‌تواند منفی باشد"])

        entry["totalQuota"] = new_total
        self._touch(entry)
        entry["manualAdjustments"].insert(0, {
            "date": self.clock().isoformat(),
            "action": action,
            "amount": amount,
            "description": description or "",
            "previousQuota": previous,
            "newQuota": new_total,
        })

        self.store.save(GLOBAL_QUOTA, ledger)
        logger.info(f"Global quota {action} for {drug}: {previous} -> {new_total}")
        return ledger

    def add_monthly_top_up(
        self,
        drug: str,
        month: Optional[str],
        amount: Any,
        expiry_days: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Add a monthly allotment to a drug

        The amount is added to the total right away; the allotment record is
        kept until it expires and is pruned by a later monthly reset.
        """
        errors = []
        if not is_valid_drug(drug):
            errors.append("داروی انتخاب شده معتبر نیست")
        if not month or len(month.strip()) < 2:
            errors.append("نام ماه الزامی است")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            errors.append("مقدار سهمیه باید عدد مثبت باشد")
        if errors:
            raise ValidationFailed(errors)

        if not expiry_days or expiry_days <= 0:
            expiry_days = DEFAULT_TOP_UP_EXPIRY_DAYS

        ledger = self.get()
        entry = ledger["drugs"][drug]
        added_at = self.clock()
        entry["monthlyQuotas"].insert(0, {
            "month": month,
            "amount": amount,
            "expiryDays": expiry_days,
            "addedAt": added_at.isoformat(),
            "expiresAt": (added_at + timedelta(days=expiry_days)).isoformat(),
        })
        entry["totalQuota"] += amount
        self._touch(entry)

        self.store.save(GLOBAL_QUOTA, ledger)
        logger.info(f"Monthly top-up for {drug} ({month}): +{amount}, expires in {expiry_days} days")
        return ledger

    def reserve(self, drug: str, amount: int) -> int:
        """
        Deduct a patient's quota from the drug's total

        Raises:
            InsufficientQuota: if the amount exceeds what is left; nothing is changed
            ValidationFailed: for a negative amount

        Returns:
            Remaining total after the deduction
        """
        if amount < 0:
            raise ValidationFailed(["مقدار سهمیه نمی‌تواند منفی باشد"])

        ledger = self.get()
        entry = ledger["drugs"].get(drug)
        if entry is None:
            raise ValidationFailed(["داروی انتخاب شده معتبر نیست"])

        if amount > entry["totalQuota"]:
            raise InsufficientQuota(
                f"سهمیه درخواستی بیشتر از سهمیه کل است. سهمیه باقیمانده {drug}: {entry['totalQuota']}"
            )

        entry["totalQuota"] -= amount
        self._touch(entry)
        self.store.save(GLOBAL_QUOTA, ledger)
        logger.info(f"Reserved {amount} of {drug}, remaining={entry['totalQuota']}")
        return entry["totalQuota"]

    def release(self, drug: str, amount: int) -> Optional[int]:
        """
        Give a patient's quota back to the drug's total

        Unknown drugs are ignored. Returns the new total, or None if ignored.

        Raises:
            ValidationFailed: for a negative amount
        """
        if amount < 0:
            raise ValidationFailed(["مقدار سهمیه نمی‌تواند منفی باشد"])

        ledger = self.get()
        entry = ledger["drugs"].get(drug)
        if entry is None:
            logger.warning(f"Release of {amount} ignored for unknown drug {drug}")
            return None

        entry["totalQuota"] += amount
        self._touch(entry)
        self.store.save(GLOBAL_QUOTA, ledger)
        logger.info(f"Released {amount} of {drug}, remaining={entry['totalQuota']}")
        return entry["totalQuota"]
