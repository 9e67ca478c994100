from datetime import date, timedelta

API = "/api/v1"


def create_project(client, headers, **fields):
    payload = {"name": "Ouverture Rabat", **fields}
    return client.post(f"{API}/projects/", headers=headers, json=payload)


def create_action(client, headers, **fields):
    payload = {"description": "Préparer le local", **fields}
    return client.post(f"{API}/actions/", headers=headers, json=payload)


def test_project_defaults_and_validation(client, admin_headers):
    response = create_project(client, admin_headers)
    assert response.status_code == 201
    project = response.json()["project"]
    assert (project["status"], project["priority"]) == ("planning", "normale")
    assert project["progress"] == 0

    assert create_project(client, admin_headers, name=" ").status_code == 400
    assert create_project(client, admin_headers, priority="critique").status_code == 400
    reversed_dates = create_project(
        client, admin_headers, start_date="2024-05-01", end_date="2024-04-01"
    )
    assert reversed_dates.status_code == 400


def test_progress_counts_finished_actions(client, admin_headers):
    project_id = create_project(client, admin_headers).json()["project"]["id"]
    create_action(client, admin_headers, project_id=project_id, status="termine")
    create_action(client, admin_headers, project_id=project_id)

    body = client.get(f"{API}/projects/{project_id}", headers=admin_headers).json()
    assert body["project"]["total_actions"] == 2
    assert body["project"]["completed_actions"] == 1
    assert body["project"]["progress"] == 50
    assert {a["project_name"] for a in body["actions"]} == {"Ouverture Rabat"}


def test_deleting_a_project_keeps_its_actions(client, admin_headers):
    project_id = create_project(client, admin_headers).json()["project"]["id"]
    action_id = create_action(client, admin_headers, project_id=project_id).json()["action"]["id"]

    assert client.delete(f"{API}/projects/{project_id}", headers=admin_headers).status_code == 200
    action = client.get(f"{API}/actions/{action_id}", headers=admin_headers).json()["action"]
    assert action["project_id"] is None


def test_link_actions(client, admin_headers):
    project_id = create_project(client, admin_headers).json()["project"]["id"]
    action_id = create_action(client, admin_headers).json()["action"]["id"]
    url = f"{API}/projects/{project_id}/link-actions"

    assert client.put(url, headers=admin_headers, json={"action_ids": []}).status_code == 400
    response = client.put(url, headers=admin_headers, json={"action_ids": [action_id]})
    assert response.json()["linked_count"] == 1


def test_action_stats(client, admin_headers):
    today = date.today()
    create_action(client, admin_headers, deadline=(today - timedelta(days=1)).isoformat())
    create_action(client, admin_headers, deadline=(today + timedelta(days=2)).isoformat())
    create_action(client, admin_headers, deadline=(today + timedelta(days=30)).isoformat())
    create_action(
        client, admin_headers, status="termine", deadline=(today - timedelta(days=5)).isoformat()
    )

    stats = client.get(f"{API}/actions/stats", headers=admin_headers).json()["stats"]
    assert stats["total"] == 4
    assert stats["overdue"] == 1
    assert stats["due_soon"] == 1
    assert stats["by_status"]["termine"] == 1


def test_action_status_is_validated(client, admin_headers):
    assert create_action(client, admin_headers, status="bloque").status_code == 400
    assert create_action(client, admin_headers, description="").status_code == 400
