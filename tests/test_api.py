"""
API route tests - verifies endpoints, response envelopes and error shapes
"""
from io import BytesIO

from openpyxl import load_workbook

from app.core.drugs import METHADONE_SYRUP, METHADONE_TABLET_5, OPIUM_SYRUP
from app.database.storage import PATIENTS
from app.services.export import XLSX_MEDIA_TYPE


def _register(client, data):
    response = client.post("/api/patients", json=data)
    assert response.status_code == 200, response.text
    return response.json()


def test_root(client):
    """Test root endpoint"""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_register_patient(client, store, patient_data):
    """Test registering a patient reserves quota and persists the record"""
    body = _register(client, patient_data)

    assert body["success"] is True
    assert body["remainingQuota"] == 9500
    assert body["patient"]["id"] == body["id"]
    assert store.snapshot(PATIENTS)[0]["nationalCode"] == "0012345678"

    quota = client.get("/api/global-quota").json()["globalQuota"]
    assert quota["drugs"][METHADONE_SYRUP]["totalQuota"] == 9500


def test_register_duplicate_patient(client, patient_data):
    _register(client, patient_data)

    response = client.post("/api/patients", json={**patient_data, "nationalCode": "0099999999"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "بیمار با این کد ملی یا کد رهگیری قبلاً ثبت شده است"}


def test_register_invalid_patient_reports_all_errors(client):
    response = client.post("/api/patients", json={"fullName": "ab", "quota": "-1"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert len(body["error"].split("\n")) == 6


def test_register_with_wrong_payload_type(client, patient_data):
    response = client.post("/api/patients", json={**patient_data, "drugs": None, "quota": [1]})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_list_get_and_search_patients(client, patient_data):
    created = _register(client, patient_data)["patient"]

    assert client.get("/api/patients").json()["patients"] == [created]
    assert client.get(f"/api/patients/{created['id']}").json()["patient"] == created

    by_code = client.get("/api/patients/search", params={"nationalCode": "0012345678"})
    assert by_code.json()["patient"]["id"] == created["id"]
    by_record = client.get("/api/patients/search", params={"recordNumber": "REC-100"})
    assert by_record.json()["patient"]["id"] == created["id"]

    assert client.get("/api/patients/search").status_code == 400
    missing = client.get("/api/patients/search", params={"recordNumber": "nope"})
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "بیمار یافت نشد"}


def test_get_missing_patient(client):
    response = client.get("/api/patients/missing")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_update_patient_moves_quota(client, patient_data):
    created = _register(client, patient_data)["patient"]

    response = client.put(f"/api/patients/{created['id']}", json={**patient_data, "drug": OPIUM_SYRUP})

    assert response.status_code == 200
    assert response.json()["patient"]["drug"] == OPIUM_SYRUP
    drugs = client.get("/api/global-quota").json()["globalQuota"]["drugs"]
    assert drugs[METHADONE_SYRUP]["totalQuota"] == 10000
    assert drugs[OPIUM_SYRUP]["totalQuota"] == 9500


def test_patch_patient_quota(client, patient_data):
    created = _register(client, patient_data)["patient"]

    response = client.patch(f"/api/patients/{created['id']}/quota", json={"quota": 300})

    assert response.status_code == 200
    assert response.json()["patient"]["quota"] == 300
    drugs = client.get("/api/global-quota").json()["globalQuota"]["drugs"]
    assert drugs[METHADONE_SYRUP]["totalQuota"] == 9700


def test_patient_quota_change_and_history(client, patient_data):
    created = _register(client, patient_data)["patient"]
    change = {"month": "مهر", "date": "1404/07/24", "amount": "100", "operation": "subtract"}

    response = client.post(f"/api/patients/{created['id']}/quota", json=change)

    assert response.status_code == 200
    assert response.json()["patient"]["quota"] == 400

    history = client.get(f"/api/patients/{created['id']}/quota-history").json()["history"]
    assert len(history) == 1
    assert history[0]["operation"] == "subtract"
    assert client.get("/api/quota-history").json()["history"] == history

    bad = client.post(f"/api/patients/{created['id']}/quota", json={**change, "operation": "double"})
    assert bad.status_code == 400
    assert client.get("/api/patients/missing/quota-history").status_code == 404


def test_delete_patient_releases_quota(client, patient_data, delivery_data):
    created = _register(client, patient_data)["patient"]
    delivery = client.post("/api/drug-delivery", json=delivery_data).json()["delivery"]

    response = client.delete(f"/api/patients/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get("/api/patients").json()["patients"] == []
    assert client.get("/api/drug-delivery").json()["deliveries"] == []
    drugs = client.get("/api/global-quota").json()["globalQuota"]["drugs"]
    assert drugs[METHADONE_SYRUP]["totalQuota"] == 10000

    params = {"month": delivery["month"], "year": delivery["year"]}
    report = client.get("/api/monthly-report", params=params).json()["report"]
    assert report["totalUsed"] == 0

    assert client.delete(f"/api/patients/{created['id']}").status_code == 404


def test_over_quota_registration(client, patient_data):
    response = client.post("/api/patients", json={**patient_data, "quota": 10001})

    assert response.status_code == 400
    assert "10000" in response.json()["error"]


def test_global_quota_adjustment_and_top_up(client):
    """Test manual adjustments and monthly top-ups through the API"""
    response = client.put(
        "/api/global-quota",
        json={"drug": METHADONE_SYRUP, "action": "subtract", "amount": "250", "description": "اصلاح"},
    )
    assert response.status_code == 200
    entry = response.json()["globalQuota"]["drugs"][METHADONE_SYRUP]
    assert entry["totalQuota"] == 9750
    assert entry["manualAdjustments"][0]["previousQuota"] == 10000

    response = client.post(
        "/api/global-quota/monthly",
        json={"drug": METHADONE_SYRUP, "month": "آبان", "amount": 1000, "expiryDays": 15},
    )
    assert response.status_code == 200
    entry = response.json()["globalQuota"]["drugs"][METHADONE_SYRUP]
    assert entry["totalQuota"] == 10750
    assert entry["monthlyQuotas"][0]["expiryDays"] == 15

    negative = client.put("/api/global-quota", json={"drug": METHADONE_SYRUP, "action": "set", "amount": -1})
    assert negative.status_code == 400
    assert negative.json()["error"] == "سهمیه نمی‌تواند منفی باشد"


def test_delivery_and_monthly_report(client, delivery_data):
    """Test that deliveries are reflected in the report for their month"""
    created = client.post("/api/drug-delivery", json=delivery_data)
    assert created.status_code == 200
    delivery = created.json()["delivery"]
    client.post("/api/drug-delivery", json={**delivery_data, "drugQuantities": {METHADONE_TABLET_5: "5"}})

    params = {"month": delivery["month"], "year": str(delivery["year"])}
    report = client.get("/api/monthly-report", params=params).json()["report"]
    assert report["drugs"][METHADONE_TABLET_5]["quantity"] == 25
    assert report["totalUsed"] == 25

    corrected = client.put(
        f"/api/drug-delivery/{delivery['id']}",
        json={"drugs": [METHADONE_SYRUP], "drugQuantities": {METHADONE_SYRUP: 40}, "reason": "اصلاح مقدار"},
    )
    assert corrected.status_code == 200
    assert corrected.json()["delivery"]["drugQuantities"] == {METHADONE_SYRUP: 40}

    report = client.get("/api/monthly-report", params=params).json()["report"]
    assert report["drugs"][METHADONE_TABLET_5]["quantity"] == 5
    assert report["drugs"][METHADONE_SYRUP]["quantity"] == 40
    assert report["totalUsed"] == 45

    fetched = client.get(f"/api/drug-delivery/{delivery['id']}").json()["delivery"]
    assert fetched["reason"] == "اصلاح مقدار"
    history = client.get("/api/drug-delivery", params={"recordNumber": "REC-100"}).json()["deliveries"]
    assert len(history) == 2


def test_invalid_delivery(client, delivery_data):
    response = client.post("/api/drug-delivery", json={**delivery_data, "reason": "کم"})

    assert response.status_code == 400
    assert response.json()["error"] == "دلیل تحویل باید حداقل 5 حرف داشته باشد"
    assert client.get("/api/drug-delivery/missing").status_code == 404


def test_monthly_report_requires_month_and_year(client):
    response = client.get("/api/monthly-report", params={"month": "مهر"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "ماه و سال الزامی است"}


def test_exports(client, patient_data, delivery_data):
    """Test that spreadsheet downloads are valid workbooks sent as attachments"""
    _register(client, patient_data)
    delivery = client.post("/api/drug-delivery", json=delivery_data).json()["delivery"]

    for path, params in [
        ("/api/patients/export", None),
        ("/api/drug-delivery/export", None),
        ("/api/monthly-report/export", {"month": delivery["month"], "year": delivery["year"]}),
    ]:
        response = client.get(path, params=params)
        assert response.status_code == 200, path
        assert response.headers["content-type"] == XLSX_MEDIA_TYPE
        assert response.headers["content-disposition"].startswith("attachment;")
        workbook = load_workbook(BytesIO(response.content))
        assert workbook.active.max_row >= 2


def test_notifications(client):
    """Test the default notifications, adding one and marking it read"""
    notifications = client.get("/api/notifications").json()["notifications"]
    assert [n["id"] for n in notifications] == [1, 2]

    created = client.post("/api/notifications", json={"title": "یادآوری", "message": "جلسه ماهانه"})
    assert created.status_code == 200
    notification = created.json()["notification"]
    assert notification["id"] == 3
    assert notification["read"] is False

    assert client.put("/api/notifications/3/read").json() == {"success": True}
    notifications = client.get("/api/notifications").json()["notifications"]
    assert notifications[0]["id"] == 3
    assert notifications[0]["read"] is True

    assert client.post("/api/notifications", json={"title": ""}).status_code == 400
    assert client.put("/api/notifications/99/read").status_code == 404
