"""
Persian (Jalali) calendar labels for delivery stamps

Deliveries are reported by Persian month name together with the Gregorian
year of the delivery, which is how the clinic's monthly reports are keyed.
"""
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

import jdatetime

from app.core.config import CLINIC_TIMEZONE

PERSIAN_MONTHS = [
    "فروردین",
    "اردیبهشت",
    "خرداد",
    "تیر",
    "مرداد",
    "شهریور",
    "مهر",
    "آبان",
    "آذر",
    "دی",
    "بهمن",
    "اسفند",
]

PERSIAN_DIGITS = str.maketrans("0123456789", "۰۱۲۳۴۵۶۷۸۹")


def to_persian_digits(value) -> str:
    return str(value).translate(PERSIAN_DIGITS)


@dataclass(frozen=True)
class DeliveryStamp:
    """Every time-derived field stored on a delivery"""
    delivery_date: datetime
    persian_date: str
    month: str
    year: int
    gregorian_month: int
    gregorian_year: int
    delivery_time: str


def persian_label(moment: datetime, tz_name: str = CLINIC_TIMEZONE) -> str:
    """
    Human-readable Persian date and time, e.g. "۲۴ مهر ۱۴۰۴، ساعت ۰۹:۳۰"
    """
    local = moment.astimezone(ZoneInfo(tz_name))
    jalali = jdatetime.date.fromgregorian(date=local.date())
    return (
        f"{to_persian_digits(jalali.day)} {PERSIAN_MONTHS[jalali.month - 1]} {to_persian_digits(jalali.year)}، "
        f"ساعت {to_persian_digits(local.strftime('%H:%M'))}"
    )


def stamp_delivery(now: datetime, tz_name: str = CLINIC_TIMEZONE) -> DeliveryStamp:
    """
    Derive the delivery stamp for an aware timestamp in the clinic's timezone
    """
    local = now.astimezone(ZoneInfo(tz_name))
    jalali = jdatetime.date.fromgregorian(date=local.date())
    month_name = PERSIAN_MONTHS[jalali.month - 1]
    persian_date = persian_label(now, tz_name)
    return DeliveryStamp(
        delivery_date=now,
        persian_date=persian_date,
        month=month_name,
        year=local.year,
        gregorian_month=local.month,
        gregorian_year=local.year,
        delivery_time=to_persian_digits(local.strftime("%H:%M:%S")),
    )
