from backoffice.models import CertificateTemplate, Formation, FormationTemplate
from backoffice.services import templates

API = "/api/v1"


def make_template(db, name):
    template = CertificateTemplate(name=name, template_config={"pages": []})
    db.add(template)
    db.commit()
    return template


def make_formation(db, title="Excel avancé", price=1500, corps=None):
    formation = Formation(title=title, price=price, corps_formation_id=corps.id if corps else None)
    db.add(formation)
    db.commit()
    return formation


def test_first_linked_template_becomes_default(db):
    formation = make_formation(db)
    first = templates.add_link(db, formation.id, make_template(db, "A").id)
    second = templates.add_link(db, formation.id, make_template(db, "B").id)
    db.commit()

    assert first.is_default is True
    assert second.is_default is False
    assert (first.position, second.position) == (0, 1)


def test_removing_default_promotes_lowest_position(db):
    formation = make_formation(db)
    links = [
        templates.add_link(db, formation.id, make_template(db, name).id)
        for name in ("A", "B", "C")
    ]
    db.commit()

    promoted = templates.remove_link(db, links[0])
    db.commit()

    assert promoted.id == links[1].id
    defaults = (
        db.query(FormationTemplate)
        .filter(FormationTemplate.formation_id == formation.id, FormationTemplate.is_default.is_(True))
        .all()
    )
    assert [d.id for d in defaults] == [links[1].id]


def test_set_default_keeps_a_single_default(db):
    formation = make_formation(db)
    first = templates.add_link(db, formation.id, make_template(db, "A").id)
    second = templates.add_link(db, formation.id, make_template(db, "B").id)
    templates.set_default(db, second)
    db.commit()
    db.refresh(first)

    assert first.is_default is False
    assert second.is_default is True


def test_corps_names_are_unique_case_insensitively(client, admin_headers):
    response = client.post(f"{API}/corps-formation/", headers=admin_headers, json={"name": "Informatique"})
    assert response.status_code == 201
    response = client.post(f"{API}/corps-formation/", headers=admin_headers, json={"name": " informatique "})
    assert response.status_code == 409


def test_corps_with_formations_cannot_be_deleted(client, admin_headers):
    corps_id = client.post(
        f"{API}/corps-formation/", headers=admin_headers, json={"name": "Gestion"}
    ).json()["corps"]["id"]
    client.post(
        f"{API}/formations/",
        headers=admin_headers,
        json={"title": "Comptabilité", "price": 900, "corps_formation_id": corps_id},
    )

    response = client.delete(f"{API}/corps-formation/{corps_id}", headers=admin_headers)
    assert response.status_code == 400

    listed = client.get(f"{API}/corps-formation/", headers=admin_headers).json()["corps"]
    assert listed[0]["formations_count"] == 1


def test_viewer_can_list_but_not_create_formations(client, viewer_headers):
    assert client.get(f"{API}/formations/", headers=viewer_headers).status_code == 200
    response = client.post(f"{API}/formations/", headers=viewer_headers, json={"title": "X"})
    assert response.status_code == 403


def test_link_and_unlink_templates_over_http(client, admin_headers, db):
    formation = make_formation(db)
    first = make_template(db, "Classique")
    second = make_template(db, "Moderne")
    url = f"{API}/formations/{formation.id}/templates"

    assert client.post(url, headers=admin_headers, json={"template_id": str(first.id)}).status_code == 201
    assert client.post(url, headers=admin_headers, json={"template_id": str(second.id)}).status_code == 201
    duplicate = client.post(url, headers=admin_headers, json={"template_id": str(first.id)})
    assert duplicate.status_code == 409

    response = client.delete(f"{url}/{first.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["new_default_template_id"] == str(second.id)

    links = client.get(url, headers=admin_headers).json()["templates"]
    assert [(l["template_name"], l["is_default"]) for l in links] == [("Moderne", True)]


def test_student_cin_check(client, admin_headers):
    created = client.post(
        f"{API}/students/",
        headers=admin_headers,
        json={"first_name": "Omar", "last_name": "Idrissi", "cin": "AB1234"},
    )
    assert created.status_code == 201

    response = client.get(f"{API}/students/check-cin/AB1234", headers=admin_headers)
    assert response.json()["exists"] is True
