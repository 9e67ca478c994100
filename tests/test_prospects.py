from datetime import datetime, timedelta, timezone

import pytest

from backoffice.models import Prospect, ProspectCallHistory
from backoffice.services.prospects import cleaning_decision, normalize_phone, should_reinject

API = "/api/v1/prospects"
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("0612345678", "+212612345678"),
        ("06 12 34 56 78", "+212612345678"),
        ("212612345678", "+212612345678"),
        ("+2120612345678", "+212612345678"),
        ("0033612345678", "+33612345678"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw)["phone_international"] == expected


def test_normalize_phone_reports_country():
    assert normalize_phone("+33612345678")["country"] == "France"
    assert normalize_phone("0612345678")["country_code"] == "212"


@pytest.mark.parametrize("raw", ["", "12345", "06-12-AB-56-78", "+21261234"])
def test_normalize_phone_rejects(raw):
    with pytest.raises(ValueError):
        normalize_phone(raw)


def test_should_reinject():
    fresh = Prospect(statut_contact="non contacté", date_injection=NOW - timedelta(days=1))
    assert should_reinject(fresh, NOW) is False
    assert should_reinject(None, NOW) is False

    stale_status = Prospect(statut_contact="Boîte vocale", date_injection=NOW)
    assert should_reinject(stale_status, NOW) is True

    old_rdv = Prospect(statut_contact="rdv", date_injection=NOW, date_rdv=NOW - timedelta(days=8))
    assert should_reinject(old_rdv, NOW) is True

    # Naive timestamps are read as UTC
    old_injection = Prospect(statut_contact="rdv", date_injection=datetime(2024, 6, 10, 12, 0))
    assert should_reinject(old_injection, NOW) is True


def test_cleaning_decision():
    keep = Prospect(phone_international="+212612345678", statut_contact="rdv", date_injection=NOW)
    assert cleaning_decision(keep, NOW) == "laisser"

    broken = Prospect(phone_raw="abc", statut_contact="rdv")
    assert cleaning_decision(broken, NOW) == "supprimer"

    cold = Prospect(
        phone_international="+212612345678",
        statut_contact="non intéressé",
        date_injection=NOW - timedelta(days=31),
    )
    assert cleaning_decision(cold, NOW) == "supprimer"


def create(client, headers, segment, phone="0612345678", **extra):
    return client.post(
        f"{API}/",
        headers=headers,
        json={"phone": phone, "segment_id": str(segment.id), **extra},
    )


def test_create_then_duplicate(client, admin_headers, segment):
    created = create(client, admin_headers, segment, nom="Alaoui")
    assert created.status_code == 201
    assert created.json()["prospect"]["phone_international"] == "+212612345678"
    assert created.json()["prospect"]["segment_name"] == "Casablanca"

    duplicate = create(client, admin_headers, segment, phone="06.12.34.56.78")
    assert duplicate.status_code == 409
    assert duplicate.json()["prospect"]["id"] == created.json()["prospect"]["id"]


def test_invalid_phone_is_400(client, admin_headers, segment):
    assert create(client, admin_headers, segment, phone="123").status_code == 400


def test_stale_prospect_is_reinjected_on_create(client, db, admin_headers, segment):
    prospect = Prospect(
        phone_raw="0612345678",
        phone_international="+212612345678",
        segment_id=segment.id,
        statut_contact="contacté sans rdv",
        date_injection=datetime.now(timezone.utc),
    )
    db.add(prospect)
    db.commit()

    response = create(client, admin_headers, segment, ville="Rabat")
    assert response.status_code == 200
    body = response.json()
    assert body["reinjected"] is True
    assert body["prospect"]["statut_contact"] == "non contacté"
    assert body["prospect"]["ville"] == "Rabat"

    history = db.query(ProspectCallHistory).filter(ProspectCallHistory.prospect_id == prospect.id).one()
    assert history.status_before == "réinjection"


def test_reinject_endpoint_honours_force(client, admin_headers, segment):
    prospect_id = create(client, admin_headers, segment).json()["prospect"]["id"]
    url = f"{API}/{prospect_id}/reinject"

    assert client.post(url, headers=admin_headers).status_code == 400
    forced = client.post(f"{url}?force=true", headers=admin_headers)
    assert forced.status_code == 200
    assert forced.json()["prospect"]["statut_contact"] == "non contacté"


def test_call_updates_status(client, admin_headers, segment):
    prospect_id = create(client, admin_headers, segment).json()["prospect"]["id"]
    started = client.post(f"{API}/{prospect_id}/start-call", headers=admin_headers)
    assert started.status_code == 201

    ended = client.post(
        f"{API}/{prospect_id}/end-call",
        headers=admin_headers,
        json={"statut_contact": "contacté sans rdv", "commentaire": "Rappeler lundi"},
    )
    assert ended.status_code == 200
    assert ended.json()["prospect"]["statut_contact"] == "contacté sans rdv"


def test_csv_import(client, admin_headers, segment):
    create(client, admin_headers, segment, phone="0611111111")
    csv = "phone,nom\n0611111111,Déjà\n0622222222,Nouveau\n0622222222,Doublon\nabc,Invalide\n"
    response = client.post(
        f"{API}/import",
        headers=admin_headers,
        data={"segment_id": str(segment.id)},
        files={"file": ("leads.csv", csv.encode("utf-8"), "text/csv")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["created"] == 1
    assert body["duplicates"] == 2
    assert [e["line"] for e in body["errors"]] == [5]


def test_import_requires_csv(client, admin_headers, segment):
    response = client.post(
        f"{API}/import",
        headers=admin_headers,
        data={"segment_id": str(segment.id)},
        files={"file": ("leads.xlsx", b"data", "application/octet-stream")},
    )
    assert response.status_code == 400


def test_end_call_keeps_earlier_notes(client, admin_headers, segment):
    prospect_id = create(client, admin_headers, segment, ville="Casablanca").json()["prospect"]["id"]

    def call(**body):
        client.post(f"{API}/{prospect_id}/start-call", headers=admin_headers)
        return client.post(f"{API}/{prospect_id}/end-call", headers=admin_headers, json=body)

    call(statut_contact="rdv", ville="Rabat", date_rdv="2024-07-01T10:00:00Z")
    response = call(statut_contact="contacté sans rdv", commentaire="Rappeler lundi")

    comment = response.json()["prospect"]["commentaire"]
    assert comment.splitlines() == ["Ville: Casablanca -> Rabat", "Rappeler lundi"]


def test_country_codes(client, admin_headers):
    countries = client.get(f"{API}/country-codes", headers=admin_headers).json()["countries"]
    assert {"country_code": "212", "country": "Maroc"} in countries


def test_cleaning_lists_prospects_to_delete(client, db, admin_headers, segment):
    db.add_all(
        [
            Prospect(phone_raw="abc", phone_international="abc", segment_id=segment.id),
            Prospect(phone_raw="0612345678", phone_international="+212612345678", segment_id=segment.id),
        ]
    )
    db.commit()

    assert client.post(f"{API}/batch-clean", headers=admin_headers).status_code == 200
    response = client.get(f"{API}/cleaning/to-delete", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert response.json()["prospects"][0]["phone_raw"] == "abc"
    assert db.query(Prospect).count() == 2
