"""
Delivery and monthly report tests
"""
import pytest

from app.core.drugs import METHADONE_SYRUP, METHADONE_TABLET_5, METHADONE_TABLET_30, VALID_DRUGS
from app.core.errors import NotFound, ValidationFailed
from app.database.storage import DRUG_DELIVERIES, MONTHLY_REPORTS
from app.services.deliveries import compute_monthly_report


def _stored_report(store, month, year):
    for report in store.snapshot(MONTHLY_REPORTS) or []:
        if report["month"] == month and report["year"] == year:
            return report
    return None


def test_record_delivery_stamps_persian_month(deliveries, delivery_data):
    """Test that a delivery is filed under the Persian month and Gregorian year"""
    delivery = deliveries.record_delivery(delivery_data)

    assert delivery["id"]
    assert delivery["month"] == "مهر"
    assert delivery["year"] == 2025
    assert delivery["gregorianMonth"] == 10
    assert delivery["gregorianYear"] == 2025
    assert delivery["deliveryDate"].startswith("2025-10-16T09:30")
    assert "مهر" in delivery["persianDate"]
    assert "۱۴۰۴" in delivery["persianDate"]
    assert delivery["deliveryTime"] == "۱۳:۰۰:۰۰"
    assert delivery["drugQuantities"] == {METHADONE_TABLET_5: 20}


def test_record_delivery_updates_report(deliveries, store, delivery_data):
    deliveries.record_delivery(delivery_data)

    report = deliveries.get_monthly_report("مهر", 2025)
    assert report["drugs"][METHADONE_TABLET_5]["quantity"] == 20
    assert report["drugs"][METHADONE_TABLET_5]["type"] == "unit"
    assert report["drugs"][METHADONE_SYRUP]["type"] == "cc"
    assert report["totalUsed"] == 20
    assert _stored_report(store, "مهر", 2025)["totalUsed"] == 20


def test_invalid_delivery_is_not_stored(deliveries, store, delivery_data):
    with pytest.raises(ValidationFailed):
        deliveries.record_delivery({**delivery_data, "reason": ""})
    assert store.snapshot(DRUG_DELIVERIES) is None


def test_quantities_given_as_strings_are_stored_as_numbers(deliveries, delivery_data):
    delivery = deliveries.record_delivery({**delivery_data, "drugQuantities": {METHADONE_TABLET_5: "7"}})
    assert delivery["drugQuantities"] == {METHADONE_TABLET_5: 7}


def test_update_delivery_reconciles_report(deliveries, store, delivery_data):
    """Test that a correction removes the old quantities and adds the new ones"""
    delivery = deliveries.record_delivery(delivery_data)
    deliveries.record_delivery({**delivery_data, "drugQuantities": {METHADONE_TABLET_5: 5}})

    updated = deliveries.update_delivery(
        delivery["id"],
        drugs=[METHADONE_TABLET_30, METHADONE_SYRUP],
        quantities={METHADONE_TABLET_30: 4, METHADONE_SYRUP: 120},
        reason="اصلاح مقدار تحویل",
    )

    assert updated["updatedAt"]
    assert updated["recordNumber"] == delivery_data["recordNumber"]
    stored = _stored_report(store, "مهر", 2025)
    assert stored["drugs"][METHADONE_TABLET_5]["quantity"] == 5
    assert stored["drugs"][METHADONE_TABLET_30]["quantity"] == 4
    assert stored["drugs"][METHADONE_SYRUP]["quantity"] == 120
    assert stored["totalUsed"] == 129
    assert deliveries.get_monthly_report("مهر", 2025) == stored


def test_update_missing_delivery_fails(deliveries):
    with pytest.raises(NotFound):
        deliveries.update_delivery(
            "missing",
            drugs=[METHADONE_TABLET_5],
            quantities={METHADONE_TABLET_5: 1},
            reason="اصلاح مقدار تحویل",
        )


def test_update_validates_before_lookup(deliveries):
    with pytest.raises(ValidationFailed):
        deliveries.update_delivery("missing", drugs=[], quantities={}, reason="")


def test_report_ignores_stale_stored_values(deliveries, store, delivery_data):
    """Test that reading a report always recomputes it from deliveries"""
    deliveries.record_delivery(delivery_data)
    reports = store.load(MONTHLY_REPORTS, [])
    reports[0]["drugs"][METHADONE_TABLET_5]["quantity"] = 999
    reports[0]["totalUsed"] = 999
    store.save(MONTHLY_REPORTS, reports)

    first = deliveries.get_monthly_report("مهر", 2025)
    second = deliveries.get_monthly_report("مهر", 2025)

    assert first["drugs"][METHADONE_TABLET_5]["quantity"] == 20
    assert first["totalUsed"] == 20
    assert first == second


def test_report_for_empty_month_lists_all_drugs(deliveries):
    report = deliveries.get_monthly_report("فروردین", 2025)

    assert set(report["drugs"]) == set(VALID_DRUGS)
    assert report["totalUsed"] == 0
    assert report["remaining"] == 0
    assert report["exceeded"] == 0


def test_compute_monthly_report_filters_by_month_and_year():
    log = [
        {"month": "مهر", "year": 2025, "drugs": [METHADONE_SYRUP], "drugQuantities": {METHADONE_SYRUP: 100}},
        {"month": "مهر", "year": 2024, "drugs": [METHADONE_SYRUP], "drugQuantities": {METHADONE_SYRUP: 50}},
        {"month": "آبان", "year": 2025, "drugs": [METHADONE_SYRUP], "drugQuantities": {METHADONE_SYRUP: 30}},
        {"month": "مهر", "year": 2025, "drugs": [METHADONE_SYRUP, METHADONE_TABLET_5],
         "drugQuantities": {METHADONE_SYRUP: "40", METHADONE_TABLET_5: 3}},
    ]

    report = compute_monthly_report(log, "مهر", 2025)

    assert report["drugs"][METHADONE_SYRUP]["quantity"] == 140
    assert report["drugs"][METHADONE_TABLET_5]["quantity"] == 3
    assert report["totalUsed"] == 143


def test_list_deliveries_filters(deliveries, delivery_data):
    deliveries.record_delivery(delivery_data)
    deliveries.record_delivery({**delivery_data, "recordNumber": "REC-200", "nationalCode": "0098765432"})

    assert len(deliveries.list_deliveries()) == 2
    assert len(deliveries.list_deliveries(record_number="REC-200")) == 1
    assert len(deliveries.list_deliveries(national_code="0012345678")) == 1


def test_get_delivery(deliveries, delivery_data):
    delivery = deliveries.record_delivery(delivery_data)

    assert deliveries.get_delivery(delivery["id"]) == delivery
    with pytest.raises(NotFound):
        deliveries.get_delivery("missing")


def test_purge_for_patient_returns_touched_months(deliveries, clock, delivery_data):
    deliveries.record_delivery(delivery_data)
    clock.advance(days=30)
    deliveries.record_delivery({**delivery_data, "recordNumber": "OTHER", "nationalCode": "0012345678"})
    deliveries.record_delivery({**delivery_data, "recordNumber": "REC-200", "nationalCode": "0098765432"})

    touched = deliveries.purge_for_patient("REC-100", "0012345678")

    assert touched == {("مهر", 2025), ("آبان", 2025)}
    assert [d["recordNumber"] for d in deliveries.list_deliveries()] == ["REC-200"]
