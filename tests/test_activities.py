import json


def test_get_activities_empty(client):
    resp = client.get("/api/activities")
    assert resp.status_code == 200
    assert resp.json() == []


def test_post_activity_assigns_ids(client, activity):
    assert activity["id"] == 1
    assert [p["id"] for p in activity["parts"]] == ["p1", "p2"]
    assert [p["max_points"] for p in activity["parts"]] == [10, 10]

    resp = client.get("/api/activities/1")
    assert resp.status_code == 200
    assert resp.json() == activity


def test_post_activity_keeps_explicit_part_ids(client):
    resp = client.post("/api/activities", json={
        "name": "DS",
        "parts": [
            {"id": "p2", "label": "Ex 1", "max_points": 4},
            {"label": "Ex 2", "max_points": 6},
        ],
    })
    assert [p["id"] for p in resp.json()["parts"]] == ["p2", "p1"]


def test_post_activity_rejects_negative_points(client):
    resp = client.post("/api/activities", json={
        "name": "DS", "parts": [{"label": "Ex 1", "max_points": -1}],
    })
    assert resp.status_code == 422


def test_get_missing_activity(client):
    resp = client.get("/api/activities/42")
    assert resp.status_code == 404


def test_put_parts_resyncs_corrections(client, activity):
    created = client.post("/api/activities/1/corrections", json={
        "points_earned": [8, 6], "disabled_parts": [False, True], "penalty": 2,
    }).json()
    assert created["final_grade"] == 6.0

    resp = client.put("/api/activities/1/parts", json={"parts": [
        {"id": "p1", "label": "Expérimental", "max_points": 10},
        {"id": "p2", "label": "Théorique", "max_points": 10},
        {"label": "Bonus", "max_points": 5},
    ]})
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()["parts"]] == ["p1", "p2", "p3"]

    correction = client.get(f"/api/corrections/{created['id']}").json()
    assert correction["points_earned"] == [8.0, 6.0, 0.0]
    assert correction["disabled_parts"] == [False, True, False]
    assert correction["grade"] == 8.0
    assert correction["percentage_grade"] == 40.0


def test_put_parts_truncates_removed_parts(client, activity):
    created = client.post("/api/activities/1/corrections", json={"points_earned": [8, 6]}).json()
    client.put("/api/activities/1/parts", json={"parts": [
        {"id": "p1", "label": "Expérimental", "max_points": 10},
    ]})
    correction = client.get(f"/api/corrections/{created['id']}").json()
    assert correction["points_earned"] == [8.0]
    assert correction["grade"] == 8.0
    assert correction["percentage_grade"] == 80.0


def test_put_parts_missing_activity(client):
    resp = client.put("/api/activities/5/parts", json={"parts": []})
    assert resp.status_code == 404


def test_put_parts_skips_unreadable_correction(client, activity, tmp_data_dir):
    first = client.post("/api/activities/1/corrections", json={"points_earned": [8, 6]}).json()
    second = client.post("/api/activities/1/corrections", json={"points_earned": [5, 5]}).json()

    path = tmp_data_dir / "corrections.json"
    stored = json.loads(path.read_text())
    stored[str(second["id"])]["penalty"] = "n/a"
    path.write_text(json.dumps(stored))
    broken_before = stored[str(second["id"])]

    resp = client.put("/api/activities/1/parts", json={"parts": [
        {"id": "p1", "label": "Expérimental", "max_points": 10},
        {"id": "p2", "label": "Théorique", "max_points": 10},
        {"label": "Bonus", "max_points": 20},
    ]})
    assert resp.status_code == 200
    assert len(client.get("/api/activities/1").json()["parts"]) == 3

    correction = client.get(f"/api/corrections/{first['id']}").json()
    assert correction["points_earned"] == [8.0, 6.0, 0.0]
    assert correction["percentage_grade"] == 35.0

    stored = json.loads(path.read_text())
    assert stored[str(second["id"])] == broken_before


def test_unreadable_activity_is_treated_as_missing(client, activity, tmp_data_dir):
    client.post("/api/activities", json={"name": "TP chimie", "parts": []})
    path = tmp_data_dir / "activities.json"
    stored = json.loads(path.read_text())
    stored["1"]["parts"] = [{"label": "Expérimental", "max_points": "dix"}]
    path.write_text(json.dumps(stored))

    assert client.get("/api/activities/1").status_code == 404
    assert [a["name"] for a in client.get("/api/activities").json()] == ["TP chimie"]
