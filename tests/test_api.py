from datetime import date

from jose import jwt

from endodelivery import achievement_service, material_service
from endodelivery.auth_security import JWT_ALG, decode_token, token_user_id
from endodelivery.config import settings


GOAL_PAYLOAD = {
    "title": "January revenue",
    "goalType": "REVENUE",
    "targetValue": 1000,
    "startDate": "2024-01-01",
    "endDate": "2024-01-31",
}


# =========================
# Auth / health
# =========================
def test_ping_and_status(client):
    assert client.get("/ping").text == "pong"

    body = client.get("/api/status").json()
    assert body["status"] == "online"
    assert "uptimeRaw" in body
    assert body["database"].startswith("connected")


def test_register_login_and_me(client):
    r = client.post("/api/auth/register", json={"username": "Dentist.Office", "password": "s3cret"})
    assert r.status_code == 201

    r = client.post("/api/auth/register", json={"username": "dentist.office", "password": "other"})
    assert r.status_code == 400
    assert r.json()["message"] == "Username already registered."

    r = client.post("/api/auth/login", data={"username": "dentist.office", "password": "s3cret"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/api/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["username"] == "dentist.office"
    assert me["isAdmin"] is False


def test_wrong_password_is_rejected(client, regular_user):
    r = client.post("/api/auth/login", data={"username": "operator", "password": "nope"})
    assert r.status_code == 401
    assert r.json() == {"message": "Invalid credentials"}


def test_login_token_claims(client, admin_user):
    r = client.post("/api/auth/login", data={"username": "admin", "password": "admin-pass"})
    claims = decode_token(r.json()["access_token"])
    assert claims["sub"] == str(admin_user)
    assert claims["username"] == "admin"
    assert claims["adm"] is True
    assert claims["exp"] > claims["iat"]

    assert token_user_id(r.json()["access_token"]) == admin_user
    assert token_user_id(jwt.encode({"sub": "admin"}, settings.jwt_secret, algorithm=JWT_ALG)) is None


def test_missing_or_bad_token_is_401(client):
    assert client.get("/api/patients").status_code == 401
    r = client.get("/api/patients", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json() == {"message": "Invalid token"}


# =========================
# CRUD
# =========================
def test_patient_crud_uses_camel_case(client, user_headers, dentist):
    r = client.post("/api/patients", json={"name": "Maria Souza", "dentistId": dentist.id}, headers=user_headers)
    assert r.status_code == 201
    created = r.json()
    assert created["dentistId"] == dentist.id
    assert "createdAt" in created

    r = client.put(f"/api/patients/{created['id']}", json={"phone": "11976543210"}, headers=user_headers)
    assert r.json()["phone"] == "11976543210"
    assert r.json()["name"] == "Maria Souza"

    assert client.delete(f"/api/patients/{created['id']}", headers=user_headers).status_code == 204
    r = client.get(f"/api/patients/{created['id']}", headers=user_headers)
    assert r.status_code == 404
    assert r.json() == {"message": "Patient not found"}


def test_procedure_validation_error_is_400(client, user_headers, patient, dentist):
    payload = {
        "patientId": patient.id,
        "dentistId": dentist.id,
        "toothNumber": 99,
        "procedureType": "TREATMENT",
        "value": 500,
        "paymentMethod": "PIX",
        "paymentStatus": "PAID",
        "procedureDate": "2024-01-10",
    }
    r = client.post("/api/procedures", json=payload, headers=user_headers)
    assert r.status_code == 400
    assert "toothNumber" in r.json()["message"]

    payload["toothNumber"] = 36
    r = client.post("/api/procedures", json=payload, headers=user_headers)
    assert r.status_code == 201

    listed = client.get("/api/procedures", params={"patientId": patient.id}, headers=user_headers).json()
    assert listed[0]["patientName"] == "João Silva"


def test_convert_appointment_endpoint(client, user_headers, patient, dentist):
    r = client.post(
        "/api/appointments",
        json={
            "patientId": patient.id,
            "dentistId": dentist.id,
            "toothNumber": 26,
            "procedureType": "TREATMENT",
            "appointmentDate": "2030-01-10T09:00:00",
        },
        headers=user_headers,
    )
    appointment_id = r.json()["id"]

    upcoming = client.get("/api/appointments/upcoming", headers=user_headers).json()
    assert [a["id"] for a in upcoming] == [appointment_id]

    r = client.post(f"/api/appointments/{appointment_id}/convert", headers=user_headers)
    assert r.status_code == 201
    assert r.json()["value"] == 0
    assert r.json()["paymentStatus"] == "PENDING"

    r = client.post(f"/api/appointments/{appointment_id}/convert", headers=user_headers)
    assert r.status_code == 400


# =========================
# Financial goals
# =========================
def test_goal_mutations_require_admin(client, user_headers):
    r = client.post("/api/financial-goals", json=GOAL_PAYLOAD, headers=user_headers)
    assert r.status_code == 403
    assert r.json() == {"message": "Administrator privileges required"}


def test_goal_lifecycle(client, admin_headers, make_procedure):
    r = client.post("/api/financial-goals", json=GOAL_PAYLOAD, headers=admin_headers)
    assert r.status_code == 201
    goal = r.json()
    assert goal["currentValue"] == 0
    assert goal["isCompleted"] is False

    make_procedure(value=1200, procedure_date=date(2024, 1, 20))
    r = client.post("/api/financial-goals/check-progress", headers=admin_headers)
    assert r.json() == {"updatedGoals": 1, "completedGoals": 1}

    stored = client.get(f"/api/financial-goals/{goal['id']}", headers=admin_headers).json()
    assert stored["isCompleted"] is True
    assert stored["completedAt"] is not None
    assert client.get("/api/financial-goals/active", headers=admin_headers).json()[0]["id"] == goal["id"]


def test_goal_validation(client, admin_headers):
    inverted = {**GOAL_PAYLOAD, "startDate": "2024-02-01"}
    r = client.post("/api/financial-goals", json=inverted, headers=admin_headers)
    assert r.status_code == 400
    assert "endDate" in r.json()["message"]

    no_dentist = {**GOAL_PAYLOAD, "goalType": "SPECIFIC_DENTIST"}
    assert client.post("/api/financial-goals", json=no_dentist, headers=admin_headers).status_code == 400

    assert client.get("/api/financial-goals/999", headers=admin_headers).status_code == 404


def test_manual_progress(client, admin_headers, user_headers):
    goal_id = client.post("/api/financial-goals", json=GOAL_PAYLOAD, headers=admin_headers).json()["id"]

    r = client.post(f"/api/financial-goals/{goal_id}/progress", json={"value": -5}, headers=user_headers)
    assert r.status_code == 400

    r = client.post(f"/api/financial-goals/{goal_id}/progress", json={"value": 1500}, headers=user_headers)
    assert r.status_code == 200
    assert r.json()["currentValue"] == 1500
    assert r.json()["isCompleted"] is True


def test_goal_update_rejects_explicit_nulls(client, admin_headers):
    goal_id = client.post("/api/financial-goals", json=GOAL_PAYLOAD, headers=admin_headers).json()["id"]

    r = client.put(f"/api/financial-goals/{goal_id}", json={"startDate": None}, headers=admin_headers)
    assert r.status_code == 400
    assert "startDate cannot be null" in r.json()["message"]

    # i campi facoltativi si possono azzerare
    r = client.put(f"/api/financial-goals/{goal_id}", json={"description": None}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["startDate"] == "2024-01-01"


def test_completed_goal_target_cannot_change(client, admin_headers, user_headers):
    goal_id = client.post("/api/financial-goals", json=GOAL_PAYLOAD, headers=admin_headers).json()["id"]
    client.post(f"/api/financial-goals/{goal_id}/progress", json={"value": 1500}, headers=user_headers)

    r = client.put(f"/api/financial-goals/{goal_id}", json={"targetValue": 5000}, headers=admin_headers)
    assert r.status_code == 400

    stored = client.get(f"/api/financial-goals/{goal_id}", headers=admin_headers).json()
    assert stored["targetValue"] == 1000
    assert stored["isCompleted"] is True


# =========================
# Achievements
# =========================
def test_award_endpoint(client, admin_headers, user_headers):
    a = achievement_service.create_achievement({"title": "Full Month", "description": "Reach the monthly goal."})

    assert client.post(f"/api/achievements/{a.id}/award", headers=user_headers).status_code == 403
    assert client.post("/api/achievements/999/award", headers=admin_headers).status_code == 404

    r = client.post(f"/api/achievements/{a.id}/award", headers=admin_headers)
    assert r.json() == {"success": True}

    r = client.post(f"/api/achievements/{a.id}/award", headers=admin_headers)
    assert r.status_code == 400

    earned = client.get("/api/achievements/user", headers=user_headers).json()
    assert len(earned) == 1
    assert "earnedDate" in earned[0]


# =========================
# Materials
# =========================
def test_material_stock_and_cost(client, user_headers):
    r = client.post(
        "/api/materials",
        json={"name": "Lima rotatória", "unitPrice": 10, "stockQuantity": 1, "minimumStock": 4},
        headers=user_headers,
    )
    material_id = r.json()["id"]
    other = material_service.create_material({"name": "Cone de papel", "unit_price": 5})

    low = client.get("/api/materials/low-stock", headers=user_headers).json()
    assert [m["id"] for m in low] == [material_id]

    r = client.patch(f"/api/materials/{material_id}/stock", json={"quantity": 8}, headers=user_headers)
    assert r.json()["stockQuantity"] == 8
    assert client.get("/api/materials/low-stock", headers=user_headers).json() == []

    for mid, qty in ((material_id, 2), (other.id, 3)):
        r = client.post(
            "/api/procedure-materials",
            json={"procedureType": "TREATMENT", "materialId": mid, "quantityUsed": qty},
            headers=user_headers,
        )
        assert r.status_code == 201

    cost = client.get("/api/procedure-cost/TREATMENT", headers=user_headers).json()
    assert cost["totalCost"] == 35
    assert len(cost["materials"]) == 2
    assert cost["materials"][0]["material"]["name"] == "Lima rotatória"


def test_partial_updates_reject_nulls_on_required_columns(client, admin_headers, user_headers):
    material = material_service.create_material({"name": "Hipoclorito 2,5%", "unit_price": 12})
    r = client.patch(f"/api/materials/{material.id}", json={"unitPrice": None}, headers=user_headers)
    assert r.status_code == 400
    assert "unitPrice cannot be null" in r.json()["message"]

    r = client.patch(f"/api/materials/{material.id}", json={"supplier": None}, headers=user_headers)
    assert r.status_code == 200
    assert r.json()["unitPrice"] == 12

    link = material_service.add_material_to_procedure_type(
        {"procedure_type": "TREATMENT", "material_id": material.id, "quantity_used": 1}
    )
    r = client.patch(f"/api/procedure-materials/{link.id}", json={"quantityUsed": None}, headers=user_headers)
    assert r.status_code == 400

    a = achievement_service.create_achievement({"title": "Full Month", "description": "Reach the monthly goal."})
    r = client.put(f"/api/achievements/{a.id}", json={"title": None}, headers=admin_headers)
    assert r.status_code == 400
    assert "title cannot be null" in r.json()["message"]


# =========================
# Dashboard
# =========================
def test_dashboard_endpoints(client, user_headers, make_procedure):
    make_procedure(value=750, procedure_date=date.today())

    stats = client.get("/api/dashboard/stats", headers=user_headers).json()
    assert stats["totalProcedures"] == 1
    assert stats["monthlyRevenue"] == 750

    by_type = client.get("/api/dashboard/stats/procedures-by-type", headers=user_headers).json()
    assert by_type == [{"type": "TREATMENT", "count": 1, "percentage": 100.0}]

    report = client.get("/api/reports/dentist-procedures", params={"period": "month"}, headers=user_headers).json()
    assert report[0]["totalProcedures"] == 1
    assert report[0]["procedures"][0]["patientName"] == "João Silva"

    r = client.get("/api/reports/dentist-procedures", params={"period": "decade"}, headers=user_headers)
    assert r.status_code == 400
