API = "/api/v1/segments"


def test_segment_crud(client, admin_headers):
    created = client.post(f"{API}/", headers=admin_headers, json={"name": " Rabat "})
    assert created.status_code == 201
    segment = created.json()["segment"]
    assert (segment["name"], segment["color"]) == ("Rabat", "#3B82F6")

    assert client.post(f"{API}/", headers=admin_headers, json={"name": "rabat"}).status_code == 409
    assert client.post(f"{API}/", headers=admin_headers, json={"name": ""}).status_code == 400

    updated = client.put(
        f"{API}/{segment['id']}", headers=admin_headers, json={"color": "#10B981"}
    )
    assert updated.json()["segment"]["name"] == "Rabat"
    assert updated.json()["segment"]["color"] == "#10B981"

    listed = client.get(f"{API}/", headers=admin_headers).json()["segments"]
    assert [(s["name"], s["prospects_count"]) for s in listed] == [("Rabat", 0)]

    assert client.delete(f"{API}/{segment['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/{segment['id']}", headers=admin_headers).status_code == 404


def test_new_segment_accepts_prospects(client, admin_headers):
    segment_id = client.post(
        f"{API}/", headers=admin_headers, json={"name": "Tanger"}
    ).json()["segment"]["id"]
    response = client.post(
        "/api/v1/prospects/",
        headers=admin_headers,
        json={"phone": "0612345678", "segment_id": segment_id},
    )
    assert response.status_code == 201
    assert response.json()["prospect"]["segment_name"] == "Tanger"

    refused = client.delete(f"{API}/{segment_id}", headers=admin_headers)
    assert refused.status_code == 400
    assert refused.json()["prospect_count"] == 1


def test_segments_need_permission(client, viewer_headers):
    assert client.get(f"{API}/", headers=viewer_headers).status_code == 403
