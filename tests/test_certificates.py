import pytest

from backoffice.models import CertificateTemplate, Formation, Student
from backoffice.services import templates

API = "/api/v1"


@pytest.fixture
def course(db):
    formation = Formation(title="Photoshop", price=1200)
    student = Student(first_name="Yassine", last_name="Tazi")
    template = CertificateTemplate(name="Classique", template_config={"pages": []})
    db.add_all([formation, student, template])
    db.commit()
    return {"formation": formation, "student": student, "template": template}


def generate(client, headers, course, **extra):
    payload = {
        "student_id": str(course["student"].id),
        "formation_id": str(course["formation"].id),
        "completion_date": "2024-06-30",
    }
    payload.update(extra)
    return client.post(f"{API}/certificates/generate", headers=headers, json=payload)


def test_generate_requires_a_default_template(client, admin_headers, course):
    response = generate(client, admin_headers, course)
    assert response.status_code == 400


def test_generate_uses_default_template_and_verifies_publicly(client, admin_headers, db, course):
    templates.add_link(db, course["formation"].id, course["template"].id)
    db.commit()

    response = generate(client, admin_headers, course, grade="Très bien")
    assert response.status_code == 201
    certificate = response.json()["certificate"]
    assert certificate["template_id"] == str(course["template"].id)
    assert certificate["certificate_number"].startswith("CERT-")
    assert certificate["student_name"] == "Yassine Tazi"

    verified = client.get(f"{API}/certificates/verify/{certificate['certificate_number']}")
    assert verified.status_code == 200
    assert verified.json()["valid"] is True
    assert verified.json()["certificate"]["formation_title"] == "Photoshop"

    unknown = client.get(f"{API}/certificates/verify/CERT-00000000-XXXXXX")
    assert unknown.status_code == 404
    assert unknown.json()["valid"] is False


def test_one_certificate_per_student_and_formation(client, admin_headers, course):
    template_id = str(course["template"].id)
    assert generate(client, admin_headers, course, template_id=template_id).status_code == 201
    response = generate(client, admin_headers, course, template_id=template_id)
    assert response.status_code == 409
    assert "certificate_id" in response.json()


def test_template_in_use_cannot_be_deleted(client, admin_headers, course):
    template_id = str(course["template"].id)
    generate(client, admin_headers, course, template_id=template_id)

    response = client.delete(f"{API}/certificate-templates/{template_id}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["usage_count"] == 1


def test_deleting_template_removes_formation_links(client, admin_headers, db, course):
    templates.add_link(db, course["formation"].id, course["template"].id)
    db.commit()

    url = f"{API}/certificate-templates/{course['template'].id}"
    assert client.delete(url, headers=admin_headers).status_code == 200
    links = client.get(f"{API}/formations/{course['formation'].id}/templates", headers=admin_headers)
    assert links.json()["templates"] == []


def test_duplicate_template_copies_config(client, admin_headers, course):
    response = client.post(
        f"{API}/certificate-templates/{course['template'].id}/duplicate", headers=admin_headers
    )
    assert response.status_code == 201
    copy = response.json()["template"]
    assert copy["name"] == "Classique (Copie)"
    assert copy["template_config"] == {"pages": []}


def test_template_config_must_be_an_object(client, admin_headers):
    response = client.post(
        f"{API}/certificate-templates/",
        headers=admin_headers,
        json={"name": "Broken", "template_config": ["not", "a", "dict"]},
    )
    assert response.status_code == 400


def test_non_empty_folder_cannot_be_deleted(client, admin_headers):
    folder = client.post(
        f"{API}/certificate-templates/folders", headers=admin_headers, json={"name": "2024"}
    ).json()["folder"]
    client.post(
        f"{API}/certificate-templates/",
        headers=admin_headers,
        json={"name": "In folder", "template_config": {}, "folder_id": folder["id"]},
    )

    response = client.delete(
        f"{API}/certificate-templates/folders/{folder['id']}", headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["template_count"] == 1


def test_deleting_default_template_promotes_the_next_link(client, admin_headers, db, course):
    spare = CertificateTemplate(name="Moderne", template_config={})
    other = Formation(title="Excel", price=900)
    db.add_all([spare, other])
    db.commit()
    for formation in (course["formation"], other):
        templates.add_link(db, formation.id, course["template"].id)
        templates.add_link(db, formation.id, spare.id)
    db.commit()

    url = f"{API}/certificate-templates/{course['template'].id}"
    assert client.delete(url, headers=admin_headers).status_code == 200

    for formation in (course["formation"], other):
        links = client.get(f"{API}/formations/{formation.id}/templates", headers=admin_headers)
        assert [(link["template_id"], link["is_default"]) for link in links.json()["templates"]] == [
            (str(spare.id), True)
        ]


def test_duplicate_to_folder(client, admin_headers, course):
    url = f"{API}/certificate-templates/{course['template'].id}/duplicate-to-folder"
    assert client.post(url, headers=admin_headers, json={}).status_code == 400

    folder = client.post(
        f"{API}/certificate-templates/folders", headers=admin_headers, json={"name": "Archives"}
    ).json()["folder"]
    response = client.post(url, headers=admin_headers, json={"targetFolderId": folder["id"]})
    assert response.status_code == 201
    copy = response.json()["template"]
    assert copy["name"] == "Classique - Copie"
    assert copy["folder_id"] == folder["id"]


def test_upload_background(client, admin_headers, course):
    url = f"{API}/certificate-templates/{course['template'].id}/upload-background"

    rejected = client.post(
        url, headers=admin_headers, files={"background": ("fond.exe", b"MZ", "application/octet-stream")}
    )
    assert rejected.status_code == 400

    response = client.post(
        url, headers=admin_headers, files={"background": ("fond.png", b"\x89PNG", "image/png")}
    )
    assert response.status_code == 200
    template = response.json()["template"]
    assert template["background_image_type"] == "upload"
    assert template["background_image_url"].startswith("/uploads/backgrounds/")
    assert template["background_image_url"].endswith(".png")

    cleared = client.delete(
        f"{API}/certificate-templates/{course['template'].id}/background", headers=admin_headers
    )
    assert cleared.json()["template"]["background_image_url"] is None


def test_student_certificates_and_metadata(client, admin_headers, course):
    template_id = str(course["template"].id)
    certificate_id = generate(client, admin_headers, course, template_id=template_id).json()[
        "certificate"
    ]["id"]

    listed = client.get(
        f"{API}/certificates/student/{course['student'].id}", headers=admin_headers
    ).json()["certificates"]
    assert [c["id"] for c in listed] == [certificate_id]

    url = f"{API}/certificates/{certificate_id}/metadata"
    assert client.patch(url, headers=admin_headers, json={}).status_code == 400
    response = client.patch(url, headers=admin_headers, json={"metadata": {"mention": "Bien"}})
    assert response.status_code == 200
    assert response.json()["certificate"]["metadata"] == {"mention": "Bien"}
