import pytest

from backoffice.models import CorpsFormation, Formation, Student
from backoffice.services.enrollments import payment_status, price_enrollment

API = "/api/v1"


def test_price_enrollment_applies_discount():
    amounts = price_enrollment(2000, discount_percentage=10, paid=500)
    assert amounts["discount_amount"] == 200
    assert amounts["montant_total"] == 1800
    assert amounts["montant_du"] == 1300


@pytest.mark.parametrize(
    "paid,total,expected",
    [(0, 100, "impaye"), (40, 100, "partiellement_paye"), (100, 100, "paye")],
)
def test_payment_status(paid, total, expected):
    assert payment_status(paid, total) == expected


@pytest.fixture
def catalogue(db):
    corps = CorpsFormation(name="Bureautique")
    other = CorpsFormation(name="Langues")
    db.add_all([corps, other])
    db.flush()
    formation = Formation(title="Word", price=1000, corps_formation_id=corps.id)
    foreign = Formation(title="Anglais", price=800, corps_formation_id=other.id)
    student = Student(first_name="Nadia", last_name="Berrada")
    db.add_all([formation, foreign, student])
    db.commit()
    return {"corps": corps, "formation": formation, "foreign": foreign, "student": student}


@pytest.fixture
def session_id(client, admin_headers, catalogue):
    response = client.post(
        f"{API}/sessions-formation/",
        headers=admin_headers,
        json={"titre": "Session Mars", "corps_formation_id": str(catalogue["corps"].id)},
    )
    assert response.status_code == 201
    return response.json()["session"]["id"]


def enroll(client, headers, session_id, student, formation, **extra):
    return client.post(
        f"{API}/sessions-formation/{session_id}/etudiants",
        headers=headers,
        json={"student_id": str(student.id), "formation_id": str(formation.id), **extra},
    )


def test_session_requires_title(client, admin_headers):
    response = client.post(f"{API}/sessions-formation/", headers=admin_headers, json={"titre": "  "})
    assert response.status_code == 400


def test_enrollment_uses_formation_price_and_discount(client, admin_headers, catalogue, session_id):
    response = enroll(
        client, admin_headers, session_id, catalogue["student"], catalogue["formation"],
        discount_percentage=20,
    )
    assert response.status_code == 201
    inscription = response.json()["inscription"]
    assert inscription["formation_original_price"] == 1000
    assert inscription["montant_total"] == 800
    assert inscription["montant_du"] == 800
    assert inscription["statut_paiement"] == "impaye"


def test_enrollment_rejects_formation_from_another_corps(client, admin_headers, catalogue, session_id):
    response = enroll(client, admin_headers, session_id, catalogue["student"], catalogue["foreign"])
    assert response.status_code == 400


def test_student_cannot_be_enrolled_twice(client, admin_headers, catalogue, session_id):
    enroll(client, admin_headers, session_id, catalogue["student"], catalogue["formation"])
    response = enroll(client, admin_headers, session_id, catalogue["student"], catalogue["formation"])
    assert response.status_code == 409


def test_payments_update_totals(client, admin_headers, catalogue, session_id):
    enroll(client, admin_headers, session_id, catalogue["student"], catalogue["formation"])
    url = f"{API}/sessions-formation/{session_id}/etudiants/{catalogue['student'].id}/paiements"

    response = client.post(url, headers=admin_headers, json={"amount": 400, "payment_method": "especes"})
    assert response.status_code == 201
    totals = response.json()["updated_totals"]
    assert totals == {
        "montant_total": 1000,
        "montant_paye": 400,
        "montant_du": 600,
        "statut_paiement": "partiellement_paye",
    }
    payment_id = response.json()["payment"]["id"]

    too_much = client.post(url, headers=admin_headers, json={"amount": 601, "payment_method": "especes"})
    assert too_much.status_code == 400

    bad_method = client.post(url, headers=admin_headers, json={"amount": 10, "payment_method": "bitcoin"})
    assert bad_method.status_code == 400

    response = client.delete(f"{url}/{payment_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["updated_totals"]["statut_paiement"] == "impaye"
    assert response.json()["updated_totals"]["montant_du"] == 1000


def test_bulk_status_update(client, admin_headers, catalogue, session_id):
    enroll(client, admin_headers, session_id, catalogue["student"], catalogue["formation"])
    url = f"{API}/sessions-formation/{session_id}/etudiants/bulk-status"

    response = client.put(
        url,
        headers=admin_headers,
        json={"student_ids": [str(catalogue["student"].id)], "status": "valide"},
    )
    assert response.status_code == 200
    assert response.json()["updated_count"] == 1

    invalid = client.put(url, headers=admin_headers, json={"student_ids": [], "status": "valide"})
    assert invalid.status_code == 400


def test_session_detail_lists_students_and_totals(client, admin_headers, catalogue, session_id):
    enroll(client, admin_headers, session_id, catalogue["student"], catalogue["formation"], montant_paye=250)
    body = client.get(f"{API}/sessions-formation/{session_id}", headers=admin_headers).json()
    assert body["session"]["nombre_etudiants"] == 1
    assert body["session"]["total_paye"] == 250
    assert body["session"]["total_du"] == 750
    assert body["etudiants"][0]["student"]["full_name"] == "Nadia Berrada"
