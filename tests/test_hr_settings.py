API = "/api/v1/hr/settings"


def test_leave_type_codes_are_uppercased_and_unique(client, admin_headers):
    response = client.post(
        f"{API}/leave-types",
        headers=admin_headers,
        json={"code": "rtt", "name": "RTT", "default_days": 5},
    )
    assert response.status_code == 201
    assert response.json()["leave_type"]["code"] == "RTT"

    clash = client.post(f"{API}/leave-types", headers=admin_headers, json={"code": "RTT", "name": "Autre"})
    assert clash.status_code == 400

    bad_workflow = client.post(
        f"{API}/leave-types",
        headers=admin_headers,
        json={"code": "X", "name": "X", "approval_workflow": "n3"},
    )
    assert bad_workflow.status_code == 400


def test_only_one_default_schedule(client, admin_headers):
    first = client.post(
        f"{API}/schedules", headers=admin_headers, json={"name": "Matin", "is_default": True}
    ).json()["schedule"]
    client.post(f"{API}/schedules", headers=admin_headers, json={"name": "Soir", "is_default": True})

    schedules = client.get(f"{API}/schedules", headers=admin_headers).json()["schedules"]
    defaults = [s["name"] for s in schedules if s["is_default"]]
    assert defaults == ["Soir"]
    assert first["id"] in [s["id"] for s in schedules]


def test_schedule_times_are_validated(client, admin_headers):
    response = client.post(
        f"{API}/schedules", headers=admin_headers, json={"name": "Bad", "monday_start": "9h"}
    )
    assert response.status_code == 400


def test_holidays_are_unique_per_date(client, admin_headers):
    payload = {"holiday_date": "2024-07-30", "name": "Fête du Trône"}
    assert client.post(f"{API}/holidays", headers=admin_headers, json=payload).status_code == 201
    assert client.post(f"{API}/holidays", headers=admin_headers, json=payload).status_code == 409


def test_settings_upsert(client, admin_headers):
    url = f"{API}/correction_workflow"
    assert client.get(url, headers=admin_headers).status_code == 404

    assert client.put(url, headers=admin_headers, json={"setting_value": "n1_n2"}).status_code == 200
    response = client.get(url, headers=admin_headers)
    assert response.json()["setting"]["setting_value"] == "n1_n2"
